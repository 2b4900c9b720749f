"""Storage backends for shorten."""

from .base import Resolver, Binder
from .models import LookupStatus, LookupOutcome, ChangeRecord
from .filesystem import FilesystemStorage
from .regex import RegexStorage
from .factory import create_storage

__all__ = [
    "Resolver",
    "Binder",
    "LookupStatus",
    "LookupOutcome",
    "ChangeRecord",
    "FilesystemStorage",
    "RegexStorage",
    "create_storage",
]
