"""
Term Matcher - case-insensitive regex matching of log lines

Handles:
- Search/ignore matching (a line matches if any term matches)
- Filtering of matched lines through the ignore list
- Inline HTML highlighting of matching tokens
- Search/ignore overlap validation
"""
import logging
import re
from typing import Dict, Iterable, List, Optional, Sequence

from logalert.errors import TermConflictError

HIGHLIGHT_TEMPLATE = "<span style=color:#EC5C46 border>{}</span>"


class TermMatcher:
    """
    Matches lines against term patterns.

    Terms are regular expressions. Both term and line are lowercased before
    matching, so ``ERROR`` and ``error`` behave the same. Patterns that fail
    to compile never match; they are reported on first use and again after
    ``forget_errors``.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(__name__)
        self._compiled: Dict[str, Optional[re.Pattern]] = {}

    def _compile(self, term: str) -> Optional[re.Pattern]:
        if term not in self._compiled:
            try:
                self._compiled[term] = re.compile(term.lower())
            except re.error as e:
                self.logger.error(f"ERROR: invalid term pattern {term!r}: {e}")
                self._compiled[term] = None
        return self._compiled[term]

    def forget_errors(self) -> None:
        """Drop cached compile failures so they are reported again on next use."""
        self._compiled = {term: p for term, p in self._compiled.items() if p is not None}

    def matches(self, line: str, terms: Iterable[str]) -> bool:
        lowered = line.lower()
        for term in terms:
            pattern = self._compile(term)
            if pattern is not None and pattern.search(lowered):
                return True
        return False

    def filter_ignored(self, lines: Iterable[str], ignore_terms: Sequence[str]) -> List[str]:
        """Drop every line that matches one of ``ignore_terms``."""
        return [line for line in lines if not self.matches(line, ignore_terms)]

    def highlight(self, line: str, search_terms: Sequence[str]) -> str:
        # Original runs of whitespace are not preserved
        tokens = line.split()
        colored = [
            HIGHLIGHT_TEMPLATE.format(token) if self.matches(token, search_terms) else token
            for token in tokens
        ]
        return " ".join(colored)


def find_conflicts(search_terms: Sequence[str], ignore_terms: Sequence[str]) -> List[str]:
    """Terms present literally in both lists, in ignore-list order."""
    search = set(search_terms)
    conflicts = []
    for term in ignore_terms:
        if term in search and term not in conflicts:
            conflicts.append(term)
    return conflicts


def validate_terms(search_terms: Sequence[str], ignore_terms: Sequence[str], file_location: str) -> None:
    conflicts = find_conflicts(search_terms, ignore_terms)
    if conflicts:
        raise TermConflictError(file_location, conflicts)
