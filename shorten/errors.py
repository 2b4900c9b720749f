"""Exception taxonomy for short-link storage."""

from typing import Optional


class StorageError(Exception):
    """Base error for storage operations.

    ``stage`` names the step that failed (``lookup``, ``fuzzy lookup``,
    ``write``, ``connect``) so callers can tell transport failures apart.
    """

    def __init__(self, message: str, stage: Optional[str] = None):
        super().__init__(message)
        self.stage = stage

    def __str__(self) -> str:
        message = super().__str__()
        cause = self.__cause__
        if cause is not None:
            message = f"{message}: {cause}"
        return message


class InvalidCodeError(StorageError, ValueError):
    """Short code failed sanitation."""
    pass


class InvalidURLError(StorageError, ValueError):
    """Long URL is not an absolute URL."""
    pass


class UnsupportedError(StorageError):
    """Backend cannot perform the requested mutation."""
    pass


class ExhaustionError(StorageError):
    """No free short code was found within the attempt budget."""
    pass
