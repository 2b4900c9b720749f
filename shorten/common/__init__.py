"""Common utilities for shorten."""

from .validators import normalize_code, validate_url, MAX_CODE_LENGTH, MAX_URL_LENGTH
from .logging_config import setup_logging, get_logger

__all__ = [
    "normalize_code",
    "validate_url",
    "MAX_CODE_LENGTH",
    "MAX_URL_LENGTH",
    "setup_logging",
    "get_logger",
]
