"""Validation utilities for short codes and long URLs."""

import posixpath
from urllib.parse import urlparse

from ..errors import InvalidCodeError, InvalidURLError

MAX_CODE_LENGTH = 256
MAX_URL_LENGTH = 2048


def normalize_code(raw: str) -> str:
    """Normalize a short code into an absolute, traversal-free path.

    Leading separators are dropped, ``..`` segments are collapsed and a
    single ``/`` is put back in front, so ``../../path`` and
    ``/asdf/../../path`` both become ``/path``.

    Args:
        raw: The short code as supplied by the caller

    Returns:
        The normalized short code

    Raises:
        InvalidCodeError: If nothing usable is left after normalization
    """
    if not isinstance(raw, str):
        raise InvalidCodeError("Short code is required")

    if any(ord(c) < 32 or ord(c) == 127 for c in raw):
        raise InvalidCodeError("Short code cannot contain control characters")

    # posixpath keeps a double leading slash, so strip them all first
    code = posixpath.normpath("/" + raw.lstrip("/"))

    if code == "/":
        raise InvalidCodeError("Short code is empty after normalization")

    if len(code) > MAX_CODE_LENGTH:
        raise InvalidCodeError(f"Short code must be at most {MAX_CODE_LENGTH} characters")

    return code


def validate_url(raw: str) -> str:
    """Validate a long URL.

    Args:
        raw: The URL to validate

    Returns:
        The URL, unchanged

    Raises:
        InvalidURLError: If the URL is not absolute (scheme and host)
    """
    if not raw or not isinstance(raw, str):
        raise InvalidURLError("URL is required")

    if len(raw) > MAX_URL_LENGTH:
        raise InvalidURLError(f"URL is too long (max {MAX_URL_LENGTH} characters)")

    try:
        result = urlparse(raw)
        hostname = result.hostname
    except ValueError as e:
        raise InvalidURLError(f"Invalid URL format: {e}") from e

    if not result.scheme:
        raise InvalidURLError("URL must have a scheme")

    if not hostname:
        raise InvalidURLError("URL must have a valid host")

    return raw
