"""Short code generation utilities."""

import logging
import random
import string
from typing import Awaitable, Callable, Optional

from .errors import ExhaustionError


class ShortCodeGenerator:
    """Generate random short codes and resolve collisions against a backend."""

    # Base62 characters (alphanumeric, case-sensitive)
    BASE62_CHARS = string.ascii_letters + string.digits

    def __init__(
        self,
        length: int = 8,
        max_attempts: int = 10,
        seed: Optional[int] = None,
        logger: Optional[logging.Logger] = None,
    ):
        """Initialize short code generator.

        Args:
            length: Length of generated codes
            max_attempts: Collisions tolerated before giving up
            seed: Optional seed, for reproducible codes in tests
            logger: Optional logger instance
        """
        self.length = length
        self.max_attempts = max_attempts
        self.logger = logger or logging.getLogger(__name__)
        self._random = random.Random(seed)

    def generate_random(self) -> str:
        """Generate one random candidate code."""
        return "".join(self._random.choices(self.BASE62_CHARS, k=self.length))

    async def generate(self, exists_check: Callable[[str], Awaitable[bool]]) -> str:
        """Generate a code that ``exists_check`` reports as free.

        Args:
            exists_check: Coroutine function returning True when a code is taken

        Returns:
            An unused short code

        Raises:
            ExhaustionError: If every attempt collided
        """
        for attempt in range(self.max_attempts):
            code = self.generate_random()

            if not await exists_check(code):
                self.logger.debug(f"Generated code after {attempt + 1} attempts: {code}")
                return code

        raise ExhaustionError(
            f"Unable to generate unique short code after {self.max_attempts} attempts"
        )
