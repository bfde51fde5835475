"""
Unit tests for the filesystem VaultStorage.
"""

import os
import shutil
import sys
import tempfile
from pathlib import Path

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "../../backend"))

from models import NoteKind
from storage import VaultStorage


class TestVaultStorage:
    """Test suite for VaultStorage."""

    def setup_method(self):
        """Set up test fixtures."""
        self.temp_dir = tempfile.mkdtemp()
        self.root = Path(self.temp_dir) / "vault"
        self.storage = VaultStorage(root=self.root)

    def teardown_method(self):
        """Clean up test fixtures."""
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def _write(self, rel, content=""):
        path = self.root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")

    def test_creates_root(self):
        assert self.root.is_dir()

    def test_list_records_classifies_files(self):
        self._write("Plan.md", "# Goals")
        self._write("projects/Kickoff.md", "text")
        self._write("assets/diagram.png", "binary-ish")
        self._write(".obsidian/workspace.md", "hidden")

        records = self.storage.list_records()

        assert set(records) == {"Plan.md", "projects/Kickoff.md", "assets/diagram.png"}
        assert records["projects/Kickoff.md"].title == "Kickoff"
        assert records["projects/Kickoff.md"].kind == NoteKind.NOTE
        assert records["Plan.md"].content == "# Goals"
        assert records["assets/diagram.png"].kind == NoteKind.ATTACHMENT
        assert records["assets/diagram.png"].content == ""

    def test_save_adds_markdown_suffix(self):
        record, is_new = self.storage.save_note_content("ideas/Backlog", "- one")
        assert is_new
        assert record.id == "ideas/Backlog.md"
        assert record.title == "Backlog"
        assert (self.root / "ideas" / "Backlog.md").read_text(encoding="utf-8") == "- one"

        record, is_new = self.storage.save_note_content("ideas/Backlog.md", "- two")
        assert not is_new
        assert record.content == "- two"

    def test_get_note_missing(self):
        with pytest.raises(FileNotFoundError):
            self.storage.get_note("nope.md")

    @pytest.mark.parametrize("note_id", ["", "/", "../outside.md", "a/../../outside.md", "."])
    def test_rejects_ids_outside_vault(self, note_id):
        with pytest.raises(ValueError):
            self.storage.get_note(note_id)

    def test_delete_file(self):
        self._write("A.md")
        assert self.storage.delete_item("A.md") == ["A.md"]
        assert not (self.root / "A.md").exists()

    def test_delete_folder_returns_descendants(self):
        self._write("folder/A.md")
        self._write("folder/sub/B.md")

        deleted = self.storage.delete_item("folder")

        assert sorted(deleted) == ["folder/A.md", "folder/sub/B.md"]
        assert not (self.root / "folder").exists()

    def test_delete_missing(self):
        with pytest.raises(FileNotFoundError):
            self.storage.delete_item("ghost.md")

    def test_rename_file_in_place_keeps_extension(self):
        self._write("notes/Old.md", "body")

        moved = self.storage.rename_item("notes/Old.md", "New")

        assert moved == [("notes/Old.md", "notes/New.md")]
        assert (self.root / "notes" / "New.md").read_text(encoding="utf-8") == "body"

    def test_rename_moves_across_folders(self):
        self._write("Old.md")
        moved = self.storage.rename_item("Old.md", "archive/Older.md")
        assert moved == [("Old.md", "archive/Older.md")]

    def test_rename_folder_lists_every_file(self):
        self._write("proj/A.md")
        self._write("proj/sub/B.md")

        moved = self.storage.rename_item("proj", "project")

        assert sorted(moved) == [
            ("proj/A.md", "project/A.md"),
            ("proj/sub/B.md", "project/sub/B.md"),
        ]
        assert (self.root / "project" / "sub" / "B.md").exists()

    def test_rename_to_existing_target_fails(self):
        self._write("A.md")
        self._write("B.md")
        with pytest.raises(FileExistsError):
            self.storage.rename_item("A.md", "B")

    def test_rename_to_same_name_is_noop(self):
        self._write("A.md")
        assert self.storage.rename_item("A.md", "A") == []

    def test_get_tree_is_sorted_by_title(self):
        self._write("b/Zeta.md")
        self._write("alpha.md")

        tree = self.storage.get_tree()

        assert [node.title for node in tree.notes] == ["alpha", "Zeta"]
        assert tree.notes[0].kind == NoteKind.NOTE
