"""
Unit tests for the MatchEngine and fuzzy subsequence matching.
"""

import os
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "../../backend"))

from lexicon_index import LexicalIndex
from matcher import EXACT_SCORE, FUZZY_SCORE, MAX_RESULTS, MatchEngine, fuzzy_match
from models import EntryKind, IndexEntry


def _entry(kind, path, target):
    return IndexEntry(
        kind=kind,
        source_path=path,
        source_title=os.path.splitext(path)[0],
        target=target,
        display_text=target,
    )


@pytest.mark.unit
@pytest.mark.parametrize(
    "query, text, expected",
    [
        ("pk", "projectkickoff", True),
        ("prkf", "projectkickoff", True),
        ("kp", "projectkickoff", False),
        ("zz", "projectkickoff", False),
        ("ooo", "foo", False),
        ("", "anything", True),
        ("a", "", False),
    ],
)
def test_fuzzy_match(query, text, expected):
    assert fuzzy_match(query, text) is expected


class TestMatchEngine:
    """Test suite for MatchEngine.query."""

    def setup_method(self):
        """Set up test fixtures."""
        self.index = LexicalIndex()
        self.engine = MatchEngine(self.index)

    def test_empty_query_returns_nothing(self):
        self.index.insert_entry("Anything", _entry(EntryKind.TITLE, "Anything.md", "Anything"))
        assert self.engine.query("") == []
        assert self.engine.query("  ?! ") == []
        assert not self.engine.has_match("...")

    def test_exact_tier_ranks_before_fuzzy_tier(self):
        # "proj" is only a subsequence of the first key, a prefix of the second.
        fuzzy_only = _entry(EntryKind.HEADING, "a.md", "Big project")
        prefix = _entry(EntryKind.TITLE, "b.md", "Projection")
        self.index.insert_entry("Big project", fuzzy_only)
        self.index.insert_entry("Projection", prefix)

        results = self.engine.query("proj")

        assert [r.entry for r in results] == [prefix, fuzzy_only]
        assert results[0].score == EXACT_SCORE
        assert results[1].score == FUZZY_SCORE

    def test_exact_match_not_repeated_in_fuzzy_tier(self):
        entry = _entry(EntryKind.TAG, "a.md", "kickoff")
        self.index.insert_entry("kickoff", entry)

        results = self.engine.query("kick")

        assert len(results) == 1
        assert results[0].score == EXACT_SCORE

    def test_ties_keep_index_order(self):
        entries = [
            _entry(EntryKind.TITLE, f"{name}.md", name) for name in ("Zeta", "Alpha", "Mid")
        ]
        for entry in entries:
            self.index.insert_entry("a " + entry.target, entry)

        results = self.engine.query("a")
        assert [r.entry.target for r in results] == ["Zeta", "Alpha", "Mid"]

    def test_query_is_normalized(self):
        entry = _entry(EntryKind.HEADING, "a.md", "Café Menu")
        self.index.insert_entry("Café Menu", entry)
        assert [r.entry for r in self.engine.query("CAFE-me")] == [entry]

    def test_entries_across_documents_under_one_key(self):
        a = _entry(EntryKind.TAG, "a.md", "ops")
        b = _entry(EntryKind.TAG, "b.md", "ops")
        self.index.insert_entry("ops", a)
        self.index.insert_entry("ops", b)
        assert self.engine.entries("ops") == [a, b]

    def test_results_are_capped(self):
        for i in range(MAX_RESULTS + 50):
            self.index.insert_entry(f"note {i}", _entry(EntryKind.TITLE, f"n{i}.md", f"note {i}"))

        assert len(self.engine.query("note")) == MAX_RESULTS
        assert len(self.engine.query("note", limit=500)) == MAX_RESULTS
        assert len(self.engine.query("note", limit=5)) == 5

    def test_no_match(self):
        self.index.insert_entry("alpha", _entry(EntryKind.TAG, "a.md", "alpha"))
        assert self.engine.query("xyz") == []
        assert not self.engine.has_match("xyz")

    def test_has_match_agrees_with_query(self):
        self.index.insert_entry("Project Kickoff", _entry(EntryKind.HEADING, "a.md", "Project Kickoff"))
        for text in ("project", "pk", "kickoff", "Project Kickoff", "kickoffs", "team"):
            assert self.engine.has_match(text) == bool(self.engine.query(text))

    def test_min_fuzzy_length_limits_short_queries(self):
        self.index.insert_entry("Big project", _entry(EntryKind.HEADING, "a.md", "Big project"))
        strict = MatchEngine(self.index, min_fuzzy_length=3)

        assert self.engine.query("bp")
        assert strict.query("bp") == []
        assert not strict.has_match("bp")
        assert strict.query("big")
        assert strict.query("bpr")

    def test_reflects_removed_documents(self):
        self.index.insert_entry("alpha", _entry(EntryKind.TAG, "a.md", "alpha"))
        self.index.remove_document("a.md")
        assert self.engine.query("alpha") == []
