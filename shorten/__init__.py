"""Short link storage: sanitation, fuzzy matching and pluggable backends."""

from .errors import (
    StorageError,
    InvalidCodeError,
    InvalidURLError,
    UnsupportedError,
    ExhaustionError,
)
from .fuzzy import FuzzyMatcher
from .shortcode import ShortCodeGenerator
from .service import StorageService

__all__ = [
    "StorageError",
    "InvalidCodeError",
    "InvalidURLError",
    "UnsupportedError",
    "ExhaustionError",
    "FuzzyMatcher",
    "ShortCodeGenerator",
    "StorageService",
]
