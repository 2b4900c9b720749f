"""Rule table backend: short codes rewritten by regular expressions."""

import logging
import re
from typing import List, Mapping, Optional, Tuple

from ..common.validators import normalize_code
from ..errors import UnsupportedError
from .base import Binder
from .models import LookupOutcome


class RegexStorage(Binder):
    """Resolve codes through an ordered list of pattern -> template rules.

    Rules are tried in the mapping's iteration order against the sanitized
    code, which always starts with ``/``, and the first pattern that matches
    wins. Templates use ``re`` replacement syntax, so
    ``{"^/gh/(.*)$": r"https://github.com/\\1"}`` sends ``gh/foo``,
    ``/gh/foo`` and ``//gh/foo`` alike to ``https://github.com/foo``. The
    table is fixed once built.
    """

    name = "regex"
    supports_binding = False

    def __init__(self, rules: Mapping[str, str], logger: Optional[logging.Logger] = None):
        """Compile the rules.

        Args:
            rules: Pattern strings mapped to replacement templates
            logger: Optional logger instance

        Raises:
            re.error: If a pattern does not compile
        """
        self.logger = logger or logging.getLogger(__name__)
        self._rules: List[Tuple[re.Pattern, str]] = [
            (re.compile(pattern), replacement) for pattern, replacement in rules.items()
        ]
        self.logger.debug(f"Loaded {len(self._rules)} redirect rules")

    async def resolve(self, raw_code: str) -> LookupOutcome:
        code = normalize_code(raw_code)

        for pattern, replacement in self._rules:
            if pattern.search(code):
                return LookupOutcome.found(pattern.sub(replacement, code))

        self.logger.debug(f"No rule matched {code}")
        return LookupOutcome.not_found()

    async def bind(self, raw_code: str, raw_url: str, user: Optional[str] = None) -> None:
        raise UnsupportedError("regex storage is read-only")
