"""Ranked lookup of index entries: exact-prefix tier, then fuzzy-subsequence tier."""

from __future__ import annotations

from typing import List, Set, Tuple

from lexicon_index import LexicalIndex
from models import EntryKind, IndexEntry, ScoredEntry
from normalizer import normalize

MAX_RESULTS = 100
EXACT_SCORE = 0.0
FUZZY_SCORE = 0.5


def fuzzy_match(query: str, text: str) -> bool:
    """True when every character of ``query`` appears in ``text`` in order."""
    search_from = 0
    for char in query:
        found = text.find(char, search_from)
        if found == -1:
            return False
        search_from = found + 1
    return True


class MatchEngine:
    """Answers suggestion queries against a LexicalIndex."""

    def __init__(self, index: LexicalIndex, min_fuzzy_length: int = 1):
        self.index = index
        # Keys shorter than this only get prefix matches.
        self.min_fuzzy_length = max(1, int(min_fuzzy_length))

    def query(self, raw_text: str, limit: int = MAX_RESULTS) -> List[ScoredEntry]:
        key = normalize(raw_text)
        if not key:
            return []
        limit = max(0, min(int(limit), MAX_RESULTS))

        snapshot = self.index.snapshot()
        matches: List[ScoredEntry] = []
        for index_key, entries in snapshot:
            if index_key.startswith(key):
                matches.extend(ScoredEntry(entry=e, score=EXACT_SCORE) for e in entries)

        if len(key) >= self.min_fuzzy_length:
            for index_key, entries in snapshot:
                if fuzzy_match(key, index_key):
                    matches.extend(ScoredEntry(entry=e, score=FUZZY_SCORE) for e in entries)

        deduped: List[ScoredEntry] = []
        seen: Set[Tuple[EntryKind, str, str]] = set()
        for match in matches:
            identity = match.entry.identity
            if identity in seen:
                continue
            seen.add(identity)
            deduped.append(match)
            if len(deduped) >= limit:
                break
        return deduped

    def has_match(self, raw_text: str) -> bool:
        key = normalize(raw_text)
        if not key:
            return False
        check_fuzzy = len(key) >= self.min_fuzzy_length
        for index_key, entries in self.index.snapshot():
            if not entries:
                continue
            # A prefix match is also a subsequence match.
            if index_key.startswith(key) or (check_fuzzy and fuzzy_match(key, index_key)):
                return True
        return False

    def entries(self, raw_text: str, limit: int = MAX_RESULTS) -> List[IndexEntry]:
        return [match.entry for match in self.query(raw_text, limit)]
