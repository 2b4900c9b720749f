"""Approximate short code matching.

A candidate qualifies when it sounds like the requested code (soundex
similarity above a threshold) and is only a few edits away from it
(Levenshtein distance below a bound). Qualifying candidates are ordered by
``(distance, code)``, so the closest code wins and ties go to the
lexicographically smaller code.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional

from rapidfuzz.distance import Levenshtein

SIMILARITY_THRESHOLD = 2
MAX_EDIT_DISTANCE = 5

SOUNDEX_LENGTH = 4

# Soundex digit per letter, A..Z. '0' marks vowels, H, W and Y.
_SOUNDEX_TABLE = "01230120022455012623010202"


def _soundex_code(c: str) -> str:
    upper = c.upper()
    if "A" <= upper <= "Z":
        return _SOUNDEX_TABLE[ord(upper) - ord("A")]
    return c


def _is_letter(c: str) -> bool:
    return "A" <= c.upper() <= "Z"


def soundex(word: str) -> str:
    """Four character soundex code, PostgreSQL ``fuzzystrmatch`` flavour.

    Leading non-letters are skipped and anything that is not an ASCII
    letter is ignored, so ``/cats`` and ``cats`` share a code. Returns an
    empty string when the word has no letters.
    """
    start = 0
    while start < len(word) and not _is_letter(word[start]):
        start += 1
    if start == len(word):
        return ""

    code = word[start].upper()
    for i in range(start + 1, len(word)):
        if len(code) == SOUNDEX_LENGTH:
            break
        c = word[i]
        if not _is_letter(c):
            continue
        digit = _soundex_code(c)
        if digit != _soundex_code(word[i - 1]) and digit != "0":
            code += digit

    return code.ljust(SOUNDEX_LENGTH, "0")


def similarity(a: str, b: str) -> int:
    """Number of soundex positions on which ``a`` and ``b`` agree.

    Only positions carrying a real symbol in both codes count; the zero
    padding of short codes never does, so ``a`` and ``b`` score 0.
    """
    code_a = soundex(a).rstrip("0")
    code_b = soundex(b).rstrip("0")
    return sum(1 for x, y in zip(code_a, code_b) if x == y)


@dataclass(frozen=True)
class FuzzyCandidate:
    """A known code that passed both gates."""

    code: str
    distance: int
    similarity: int


class FuzzyMatcher:
    """Pick the best approximate match for a code from a set of known codes."""

    def __init__(
        self,
        similarity_threshold: int = SIMILARITY_THRESHOLD,
        max_distance: int = MAX_EDIT_DISTANCE,
        logger: Optional[logging.Logger] = None,
    ):
        """Initialize fuzzy matcher.

        Args:
            similarity_threshold: Candidates need a similarity above this
            max_distance: Candidates need fewer edits than this
            logger: Optional logger instance
        """
        self.similarity_threshold = similarity_threshold
        self.max_distance = max_distance
        self.logger = logger or logging.getLogger(__name__)

    def length_bounds(self, code: str):
        """Candidate lengths that can possibly pass the distance gate."""
        slack = self.max_distance - 1
        return max(len(code) - slack, 0), len(code) + slack

    def rank(self, code: str, candidates: Iterable[str]) -> List[FuzzyCandidate]:
        """All qualifying candidates, best first.

        Args:
            code: The code that had no exact match
            candidates: Known codes

        Returns:
            Candidates passing both gates, ordered by (distance, code)
        """
        matches = []
        for candidate in set(candidates):
            distance = Levenshtein.distance(code, candidate, score_cutoff=self.max_distance)
            if distance >= self.max_distance:
                continue

            score = similarity(code, candidate)
            if score <= self.similarity_threshold:
                continue

            matches.append(FuzzyCandidate(code=candidate, distance=distance, similarity=score))

        matches.sort(key=lambda m: (m.distance, m.code))
        return matches

    def best_match(self, code: str, candidates: Iterable[str]) -> Optional[FuzzyCandidate]:
        """The single closest qualifying candidate, or None."""
        matches = self.rank(code, candidates)
        if not matches:
            self.logger.debug(f"No fuzzy match for {code}")
            return None

        best = matches[0]
        self.logger.debug(f"Fuzzy match for {code}: {best.code} (distance {best.distance})")
        return best
