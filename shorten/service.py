"""Storage facade used by the HTTP layer."""

import asyncio
import logging
from typing import Awaitable, Optional, Set, TypeVar

from .errors import StorageError
from .storage.base import Binder
from .storage.models import LookupOutcome, LookupStatus

T = TypeVar("T")

HEALTHCHECK_URL = "https://google.com"


class StorageService:
    """Uniform entry point over whichever backend was configured."""

    def __init__(self, storage: Binder, logger: Optional[logging.Logger] = None):
        """Initialize storage service.

        Args:
            storage: The backend, chosen once at startup
            logger: Optional logger
        """
        self.storage = storage
        self.logger = logger or logging.getLogger(__name__)
        self._seeded_paths: Set[str] = set()

    @property
    def supports_binding(self) -> bool:
        return self.storage.supports_binding

    @property
    def supports_generation(self) -> bool:
        return self.storage.supports_generation

    async def _run(self, call: Awaitable[T], timeout: Optional[float]) -> T:
        if timeout is None:
            return await call
        return await asyncio.wait_for(call, timeout)

    async def resolve(self, code: str, timeout: Optional[float] = None) -> LookupOutcome:
        """Resolve a short code.

        Storage failures come back as an ERROR outcome instead of raising.

        Args:
            code: The short code to lookup
            timeout: Optional deadline in seconds

        Returns:
            The lookup outcome
        """
        try:
            outcome = await self._run(self.storage.resolve(code), timeout)
        except StorageError as e:
            self.logger.error(f"Failed to resolve {code!r}: {e}")
            return LookupOutcome.failed(e)
        except asyncio.TimeoutError:
            self.logger.error(f"Timed out resolving {code!r}")
            return LookupOutcome.failed(StorageError(f"resolving {code!r} timed out", stage="lookup"))

        if outcome.status is LookupStatus.NOT_FOUND:
            self.logger.debug(f"Short code not found: {code}")
        elif outcome.status is LookupStatus.FUZZY:
            self.logger.debug(f"Fuzzy match for {code}: {outcome.matched_code}")
        return outcome

    async def bind(
        self,
        code: str,
        url: str,
        user: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> None:
        """Create or overwrite a mapping.

        Raises:
            InvalidCodeError, InvalidURLError, UnsupportedError, StorageError
        """
        try:
            await self._run(self.storage.bind(code, url, user=user), timeout)
        except asyncio.TimeoutError as e:
            raise StorageError(f"binding {code!r} timed out", stage="write") from e
        self.logger.info(f"Bound {code} -> {url}")

    async def shorten(
        self,
        url: str,
        user: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> str:
        """Store a URL under a code minted by the backend.

        Returns:
            The new short code

        Raises:
            InvalidURLError, UnsupportedError, ExhaustionError, StorageError
        """
        try:
            code = await self._run(self.storage.bind_generated(url, user=user), timeout)
        except asyncio.TimeoutError as e:
            raise StorageError("generating a short code timed out", stage="write") from e
        self.logger.info(f"Created short code {code} -> {url}")
        return code

    async def seed_health_check(self, path: str = "/healthcheck") -> bool:
        """Bind ``path`` to the health check URL, once per service.

        Returns:
            True once the seed is in place, False if the write failed
        """
        if not self.storage.supports_binding or path in self._seeded_paths:
            return True

        try:
            await self.storage.bind(path, HEALTHCHECK_URL)
        except StorageError as e:
            self.logger.error(f"Health check seed write failed: {e}")
            return False

        self._seeded_paths.add(path)
        return True

    async def health_check(self, path: str = "/healthcheck") -> bool:
        """Check the backend can serve a known code.

        Backends that accept binds get ``path`` seeded by the first call and
        are only read afterwards, so polling never writes. Read-only
        backends only need to be reachable.
        """
        if not self.storage.supports_binding:
            return await self.storage.health_check()

        if not await self.seed_health_check(path):
            return False

        outcome = await self.resolve(path)
        return outcome.ok

    async def close(self) -> None:
        """Close storage connections."""
        await self.storage.close()
