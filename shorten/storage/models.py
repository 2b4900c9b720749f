"""Data models for short-link storage."""

import enum
import json
from dataclasses import dataclass
from typing import Optional


class LookupStatus(str, enum.Enum):
    """How a resolve call ended."""

    FOUND = "ok"
    FUZZY = "fuzzy"
    NOT_FOUND = "not_found"
    ERROR = "error"


@dataclass(frozen=True)
class LookupOutcome:
    """Result of resolving a short code.

    ``url`` is set for FOUND and FUZZY; ``matched_code`` only for FUZZY,
    and ``error`` only for ERROR.
    """

    status: LookupStatus
    url: Optional[str] = None
    matched_code: Optional[str] = None
    error: Optional[Exception] = None

    @classmethod
    def found(cls, url: str) -> "LookupOutcome":
        return cls(LookupStatus.FOUND, url=url)

    @classmethod
    def fuzzy(cls, url: str, matched_code: str) -> "LookupOutcome":
        return cls(LookupStatus.FUZZY, url=url, matched_code=matched_code)

    @classmethod
    def not_found(cls) -> "LookupOutcome":
        return cls(LookupStatus.NOT_FOUND)

    @classmethod
    def failed(cls, error: Exception) -> "LookupOutcome":
        return cls(LookupStatus.ERROR, error=error)

    @property
    def ok(self) -> bool:
        return self.status is LookupStatus.FOUND

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "status": self.status.value,
            "url": self.url,
            "matched_code": self.matched_code,
            "error": str(self.error) if self.error else None,
        }


@dataclass
class ChangeRecord:
    """One entry of the object store's append-only change history."""

    url: str
    user: str

    def to_json(self) -> str:
        return json.dumps({"URL": self.url, "User": self.user})

    @classmethod
    def from_json(cls, data: str) -> "ChangeRecord":
        raw = json.loads(data)
        return cls(url=raw["URL"], user=raw["User"])
