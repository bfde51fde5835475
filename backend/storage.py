"""Filesystem-backed vault of markdown documents."""

from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from models import NoteKind, NoteNodePayload, NoteRecord, NotesResponsePayload

log = logging.getLogger("phraselink.storage")

MARKDOWN_SUFFIXES = (".md", ".markdown")


class VaultStorage:
    """Plain files under a root directory; ids are root-relative POSIX paths."""

    def __init__(self, root: Optional[Path] = None):
        base_dir = Path(root) if root else Path(__file__).resolve().parent / "storage" / "vault"
        base_dir.mkdir(parents=True, exist_ok=True)
        self.root = base_dir.resolve()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def get_tree(self) -> NotesResponsePayload:
        nodes = [self._to_node(record) for record in self.list_records().values()]
        nodes.sort(key=lambda n: (n.title.lower(), n.id))
        return NotesResponsePayload(notes=nodes)

    def list_records(self) -> Dict[str, NoteRecord]:
        """Every visible file in the vault, keyed by id."""
        records: Dict[str, NoteRecord] = {}
        for path in sorted(self.root.rglob("*")):
            if not path.is_file() or self._is_hidden(path):
                continue
            try:
                record = self._read_record(path)
            except (OSError, UnicodeDecodeError, ValueError) as exc:
                log.warning("Skipping unreadable file %s: %s", path, exc)
                continue
            records[record.id] = record
        return records

    def get_note(self, note_id: str) -> NoteRecord:
        path = self._resolve(note_id)
        if not path.is_file():
            raise FileNotFoundError(f"Note not found: {note_id}")
        return self._read_record(path)

    def save_note_content(self, note_id: str, content: str) -> Tuple[NoteRecord, bool]:
        path = self._resolve(self._with_markdown_suffix(note_id))
        is_new = not path.exists()
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return self._read_record(path), is_new

    def delete_item(self, note_id: str) -> List[str]:
        """Delete a file or a folder; returns ids of the files removed."""
        path = self._resolve(note_id)
        if not path.exists():
            raise FileNotFoundError(f"Note or folder not found: {note_id}")

        if path.is_dir():
            deleted = [self._id_for(p) for p in sorted(path.rglob("*")) if p.is_file()]
            shutil.rmtree(path)
        else:
            deleted = [self._id_for(path)]
            path.unlink()
        return deleted

    def rename_item(self, old_id: str, new_name: str) -> List[Tuple[str, str]]:
        """Rename or move a file or folder.

        A ``new_name`` without "/" stays in the same folder. A file keeps its
        extension when the new name has none. Returns ``(old_id, new_id)`` for
        every file that moved.
        """
        old_path = self._resolve(old_id)
        if not old_path.exists():
            raise FileNotFoundError(f"Note or folder not found: {old_id}")

        normalized_new = self._normalize_id(new_name)
        if not normalized_new:
            raise ValueError("New name must not be empty")
        if "/" not in normalized_new:
            normalized_new = self._join(self._derive_parent_id(self._id_for(old_path)), normalized_new)
        if old_path.is_file() and not Path(normalized_new).suffix:
            normalized_new += old_path.suffix

        new_path = self._resolve(normalized_new)
        if new_path == old_path:
            return []
        if new_path.exists():
            raise FileExistsError(f"Target already exists: {normalized_new}")

        if old_path.is_dir():
            moved_files = [p for p in sorted(old_path.rglob("*")) if p.is_file()]
            pairs = [
                (self._id_for(p), self._id_for(new_path / p.relative_to(old_path)))
                for p in moved_files
            ]
        else:
            pairs = [(self._id_for(old_path), self._id_for(new_path))]

        new_path.parent.mkdir(parents=True, exist_ok=True)
        old_path.rename(new_path)
        return pairs

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _normalize_id(self, raw_id: str) -> str:
        return (raw_id or "").replace("\\", "/").strip().strip("/")

    def _join(self, parent: Optional[str], leaf: str) -> str:
        return f"{parent}/{leaf}" if parent else leaf

    def _derive_parent_id(self, note_id: str) -> Optional[str]:
        normalized = self._normalize_id(note_id)
        if "/" not in normalized:
            return None
        return normalized.rsplit("/", 1)[0]

    def _title_from_id(self, note_id: str) -> str:
        return Path(self._normalize_id(note_id)).stem or "Untitled"

    def _with_markdown_suffix(self, note_id: str) -> str:
        normalized = self._normalize_id(note_id)
        if Path(normalized).suffix:
            return normalized
        return normalized + ".md"

    def _resolve(self, note_id: str) -> Path:
        normalized = self._normalize_id(note_id)
        if not normalized:
            raise ValueError("Note id must not be empty")
        path = (self.root / normalized).resolve()
        if self.root not in path.parents:
            raise ValueError(f"Note id escapes the vault: {note_id}")
        return path

    def _id_for(self, path: Path) -> str:
        return path.resolve().relative_to(self.root).as_posix()

    def _is_hidden(self, path: Path) -> bool:
        return any(part.startswith(".") for part in path.relative_to(self.root).parts)

    def _read_record(self, path: Path) -> NoteRecord:
        note_id = self._id_for(path)
        stat = path.stat()
        is_markdown = path.suffix.lower() in MARKDOWN_SUFFIXES
        content = path.read_text(encoding="utf-8") if is_markdown else ""
        return NoteRecord(
            id=note_id,
            title=self._title_from_id(note_id),
            kind=NoteKind.NOTE if is_markdown else NoteKind.ATTACHMENT,
            content=content,
            created_at=stat.st_ctime,
            updated_at=stat.st_mtime,
        )

    def _to_node(self, record: NoteRecord) -> NoteNodePayload:
        return NoteNodePayload(id=record.id, title=record.title, kind=record.kind)
