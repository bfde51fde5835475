"""Decide which part of a line should become a link.

Given the line under the cursor, the resolver prefers (in order) an ISO-style
date anywhere on the line, then the widest run of words in the cursor's
sentence that the index knows about, then the plain word under the cursor.
"""

from __future__ import annotations

import re
import unicodedata
from dataclasses import dataclass
from typing import List, Optional, Tuple

from matcher import MatchEngine
from models import PhraseSpan

_DATE_RE = re.compile(r"\b[0-9]{4}-[0-9]{2}-[0-9]{2}\b", re.ASCII)
_SENTENCE_TERMINALS = frozenset(".!?")
_WORD_EXTRA_CHARS = frozenset("'-")


@dataclass(frozen=True)
class WordToken:
    text: str
    start: int
    end: int


def _is_word_char(char: str) -> bool:
    if char in _WORD_EXTRA_CHARS:
        return True
    category = unicodedata.category(char)
    return category[0] in ("L", "M") or category in ("Pc", "Nd")


def _is_boundary_char(char: str) -> bool:
    return char.isspace() or unicodedata.category(char).startswith("P")


def tokenize_words(text: str) -> List[WordToken]:
    """Split ``text`` into word runs with their offsets."""
    tokens: List[WordToken] = []
    start: Optional[int] = None
    for i, char in enumerate(text):
        if _is_word_char(char):
            if start is None:
                start = i
        elif start is not None:
            tokens.append(WordToken(text[start:i], start, i))
            start = None
    if start is not None:
        tokens.append(WordToken(text[start:], start, len(text)))
    return tokens


def sentence_bounds(line: str, cursor: int) -> Tuple[int, int]:
    """Whitespace-trimmed [start, end) of the sentence around ``cursor``."""
    start = 0
    for i in range(cursor - 1, -1, -1):
        if line[i] in _SENTENCE_TERMINALS:
            start = i + 1
            break
    end = len(line)
    for i in range(cursor, len(line)):
        if line[i] in _SENTENCE_TERMINALS:
            end = i
            break
    while start < end and line[start].isspace():
        start += 1
    while end > start and line[end - 1].isspace():
        end -= 1
    return start, end


def find_date(line: str) -> Optional[PhraseSpan]:
    match = _DATE_RE.search(line)
    if match is None:
        return None
    return PhraseSpan(start=match.start(), end=match.end(), query=match.group(0))


def word_under_cursor(line: str, cursor: int) -> Optional[PhraseSpan]:
    start = cursor
    while start > 0 and not _is_boundary_char(line[start - 1]):
        start -= 1
    end = cursor
    while end < len(line) and not _is_boundary_char(line[end]):
        end += 1
    if start == end:
        return None
    return PhraseSpan(start=start, end=end, query=line[start:end])


class PhraseResolver:
    """Finds the span to link around a cursor, validated against a MatchEngine."""

    def __init__(self, matcher: MatchEngine):
        self.matcher = matcher

    def resolve_span(self, line: str, cursor_offset: int) -> Optional[PhraseSpan]:
        if not line or cursor_offset < 0 or cursor_offset > len(line):
            return None

        date = find_date(line)
        if date is not None:
            return date

        sentence_start, sentence_end = sentence_bounds(line, cursor_offset)
        sentence = line[sentence_start:sentence_end]
        words = tokenize_words(sentence)

        cursor = cursor_offset - sentence_start
        cursor_idx = next(
            (i for i, word in enumerate(words) if word.start <= cursor <= word.end),
            None,
        )
        if cursor_idx is None:
            return None

        span = self._widest_matching_span(sentence, words, cursor_idx)
        if span is not None:
            return PhraseSpan(
                start=sentence_start + span.start,
                end=sentence_start + span.end,
                query=span.query,
            )

        return word_under_cursor(line, cursor_offset)

    def _widest_matching_span(
        self, sentence: str, words: List[WordToken], cursor_idx: int
    ) -> Optional[PhraseSpan]:
        count = len(words)
        for width in range(count, 0, -1):
            for first in range(0, count - width + 1):
                last = first + width - 1
                if not first <= cursor_idx <= last:
                    continue
                start, end = words[first].start, words[last].end
                phrase = sentence[start:end]
                if self.matcher.has_match(phrase):
                    return PhraseSpan(start=start, end=end, query=phrase)
        return None
