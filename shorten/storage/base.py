"""Abstract base classes for short-link storage backends."""

from abc import ABC, abstractmethod
from typing import Optional

from ..errors import UnsupportedError
from .models import LookupOutcome


class Resolver(ABC):
    """Capability to look up the long URL behind a short code."""

    name: str = "storage"

    @abstractmethod
    async def resolve(self, raw_code: str) -> LookupOutcome:
        """Resolve a short code.

        The code is sanitized before any backend I/O.

        Args:
            raw_code: The short code as supplied by the caller

        Returns:
            A FOUND, FUZZY or NOT_FOUND outcome

        Raises:
            InvalidCodeError: If the code fails sanitation
            StorageError: If the backend failed
        """
        pass

    async def health_check(self) -> bool:
        """Check if the backend is reachable.

        Returns:
            True if healthy, False otherwise
        """
        return True

    async def close(self) -> None:
        """Release backend resources."""
        pass


class Binder(Resolver):
    """Capability to create or overwrite short code mappings."""

    # False for backends fixed at construction; bind() then always fails
    supports_binding: bool = True

    # True for backends able to mint their own codes
    supports_generation: bool = False

    @abstractmethod
    async def bind(self, raw_code: str, raw_url: str, user: Optional[str] = None) -> None:
        """Create or overwrite the mapping for a short code.

        Both inputs are validated before anything is persisted.

        Args:
            raw_code: The short code as supplied by the caller
            raw_url: The long URL
            user: Acting principal, recorded by backends that keep history

        Raises:
            InvalidCodeError: If the code fails sanitation
            InvalidURLError: If the URL is not absolute
            UnsupportedError: If the backend is read-only
            StorageError: If the write failed
        """
        pass

    async def bind_generated(self, raw_url: str, user: Optional[str] = None) -> str:
        """Store a URL under a freshly minted short code.

        Returns:
            The generated code

        Raises:
            UnsupportedError: Unless ``supports_generation`` is set
        """
        raise UnsupportedError(f"{self.name} storage cannot generate short codes")
