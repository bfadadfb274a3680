"""Match article text against tracked keywords and companies."""

from __future__ import annotations

import re
from typing import Iterable


def _pattern(term: str) -> re.Pattern[str]:
    # Word boundaries only where the term itself starts/ends with a word char,
    # so "B2B" does not match inside "B2BC" but "Sixteen:Nine" still works.
    prefix = r"\b" if term[:1].isalnum() else ""
    suffix = r"\b" if term[-1:].isalnum() else ""
    return re.compile(prefix + re.escape(term) + suffix, re.IGNORECASE)


class TermMatcher:
    """Finds which tracked terms a piece of text mentions."""

    def __init__(self, terms: Iterable[str]) -> None:
        self._terms = [t for t in dict.fromkeys(t.strip() for t in terms) if t]
        self._patterns = [(t, _pattern(t)) for t in self._terms]

    def match(self, *texts: str) -> list[str]:
        """Return matched terms in tracked order, each at most once."""
        haystack = "\n".join(t for t in texts if t)
        return [term for term, pattern in self._patterns if pattern.search(haystack)]

    def __bool__(self) -> bool:
        return bool(self._terms)
