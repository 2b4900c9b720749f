"""Filesystem backend: one file per short code under a root directory."""

import asyncio
import logging
import os
import tempfile
from typing import Optional

from ..common.validators import normalize_code, validate_url
from ..errors import StorageError
from .base import Binder
from .models import LookupOutcome


class FilesystemStorage(Binder):
    """Store each long URL in a file named after its sanitized short code.

    ``/docs/setup`` lives at ``<root>/docs/setup``. Sanitation guarantees the
    path never leaves the root.
    """

    name = "filesystem"

    def __init__(self, root: str, logger: Optional[logging.Logger] = None):
        """Initialize filesystem storage.

        Args:
            root: Directory holding the mapping files, created if missing
            logger: Optional logger instance
        """
        self.logger = logger or logging.getLogger(__name__)
        self.root = os.path.abspath(root)
        os.makedirs(self.root, exist_ok=True)

    def _path_for(self, code: str) -> str:
        return os.path.join(self.root, code.lstrip("/"))

    def _read(self, path: str) -> Optional[str]:
        try:
            with open(path, "r", encoding="utf-8") as f:
                return f.read()
        except (FileNotFoundError, IsADirectoryError, NotADirectoryError):
            return None

    def _write(self, path: str, url: str) -> None:
        directory = os.path.dirname(path)
        os.makedirs(directory, exist_ok=True)

        # Write then rename, so readers never see a half-written file
        fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".tmp-")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(url)
            os.replace(tmp_path, path)
        except BaseException:
            os.unlink(tmp_path)
            raise

    async def resolve(self, raw_code: str) -> LookupOutcome:
        code = normalize_code(raw_code)

        try:
            url = await asyncio.to_thread(self._read, self._path_for(code))
        except OSError as e:
            self.logger.error(f"Error reading {code}: {e}")
            raise StorageError(f"failed to read {code}", stage="lookup") from e
        except UnicodeDecodeError as e:
            self.logger.error(f"Error decoding {code}: {e}")
            raise StorageError(f"stored url for {code} is not valid UTF-8", stage="lookup") from e

        if url is None:
            return LookupOutcome.not_found()
        return LookupOutcome.found(url)

    async def bind(self, raw_code: str, raw_url: str, user: Optional[str] = None) -> None:
        code = normalize_code(raw_code)
        url = validate_url(raw_url)

        try:
            await asyncio.to_thread(self._write, self._path_for(code), url)
        except OSError as e:
            self.logger.error(f"Error writing {code}: {e}")
            raise StorageError(f"failed to write {code}", stage="write") from e

        self.logger.info(f"Saved {code} -> {url}")

    async def health_check(self) -> bool:
        return os.path.isdir(self.root) and os.access(self.root, os.W_OK)
