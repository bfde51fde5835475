"""Service layer for coordinating the vault with the link index."""

from __future__ import annotations

import logging
import threading
from pathlib import PurePosixPath
from typing import Dict, Iterable, List, Optional, Tuple

from lexicon_index import LexicalIndex
from links import build_link
from matcher import MAX_RESULTS, MatchEngine
from models import (
    CreateNoteRequest,
    IndexEntry,
    NoteContentPayload,
    NoteRecord,
    NotesResponsePayload,
    PhraseSpan,
    ScoredEntry,
    UpdateNoteRequest,
)
from phrase_resolver import PhraseResolver
from reindex_scheduler import DEFAULT_DELAY_SECONDS, DebouncedReindexer
from storage import VaultStorage

log = logging.getLogger("phraselink.services")


class LinkService:
    """Owns the lexical index and answers span and suggestion queries.

    Vault change notifications come in through the ``on_*`` methods; edits
    are debounced per document, deletes and renames apply immediately.
    """

    def __init__(
        self,
        storage: VaultStorage,
        index: LexicalIndex | None = None,
        *,
        min_fuzzy_length: int = 1,
        debounce_seconds: float = DEFAULT_DELAY_SECONDS,
    ):
        self.storage = storage
        self.index = index if index is not None else LexicalIndex()
        self.matcher = MatchEngine(self.index, min_fuzzy_length=min_fuzzy_length)
        self.resolver = PhraseResolver(self.matcher)
        self.reindexer = DebouncedReindexer(self.reindex_document, delay=debounce_seconds)
        # Serializes per-document mutations; generations count deletes and
        # renames away from a path so an in-flight re-scan can tell it is stale.
        self._lock = threading.RLock()
        self._generations: Dict[str, int] = {}

    # ------------------------------------------------------------------
    # Change notifications
    # ------------------------------------------------------------------
    def on_created(self, path: str) -> None:
        self.reindexer.schedule(path)

    def on_changed(self, path: str) -> None:
        self.reindexer.schedule(path)

    def on_deleted(self, path: str) -> None:
        with self._lock:
            self.reindexer.cancel(path)
            self._retire(path)
            self.index.remove_document(path)

    def on_renamed(self, new_path: str, old_path: str) -> None:
        with self._lock:
            self._retire(old_path)
            self.index.rename_document(new_path, PurePosixPath(new_path).stem, old_path)
            self.reindexer.cancel(old_path)
            # Title keys still carry the old name until the document is re-scanned.
            self.reindexer.schedule(new_path)

    def _retire(self, path: str) -> None:
        self._generations[path] = self._generations.get(path, 0) + 1

    # ------------------------------------------------------------------
    # Indexing
    # ------------------------------------------------------------------
    def reindex_document(self, path: str) -> int:
        """Drop and re-scan one document. Returns the number of entries added."""
        with self._lock:
            generation = self._generations.get(path, 0)
            self.index.remove_document(path)
            try:
                record = self.storage.get_note(path)
            except FileNotFoundError:
                log.debug("Document %s is gone; entries removed", path)
                return 0
            if self._generations.get(path, 0) != generation:
                log.debug("Document %s was removed during re-scan; skipped", path)
                return 0
            added = self.index.index_document(record)
        log.debug("Re-indexed %s (%d entries)", path, added)
        return added

    def rebuild(self, records: Iterable[NoteRecord] | None = None) -> Optional[int]:
        if records is None:
            records = self.storage.list_records().values()
        return self.index.rebuild(records)

    def shutdown(self) -> None:
        self.reindexer.cancel_all()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def resolve_span(self, line: str, cursor_offset: int) -> Optional[PhraseSpan]:
        return self.resolver.resolve_span(line, cursor_offset)

    def query(self, text: str, limit: int = MAX_RESULTS) -> List[ScoredEntry]:
        return self.matcher.query(text, limit)

    def suggest(
        self, line: str, cursor_offset: int, limit: int = MAX_RESULTS
    ) -> Tuple[Optional[PhraseSpan], List[ScoredEntry]]:
        span = self.resolve_span(line, cursor_offset)
        if span is None:
            return None, []
        return span, self.query(span.query, limit)

    def build_link(self, entry: IndexEntry, query: str) -> str:
        return build_link(entry, query)


class NoteService:
    """Coordinates vault operations with link index notifications."""

    def __init__(self, storage: VaultStorage | None = None, links: LinkService | None = None):
        self.storage = storage or VaultStorage()
        self.links = links if links is not None else LinkService(self.storage)

    def tree(self) -> NotesResponsePayload:
        return self.storage.get_tree()

    def get_note(self, note_id: str) -> NoteContentPayload:
        record = self.storage.get_note(note_id)
        return NoteContentPayload(note_id=record.id, title=record.title, content=record.content)

    def save_note(self, request: UpdateNoteRequest) -> NoteRecord:
        record, is_new = self.storage.save_note_content(request.note_id, request.content)
        if is_new:
            self.links.on_created(record.id)
        else:
            self.links.on_changed(record.id)
        return record

    def create_note(self, request: CreateNoteRequest) -> NoteRecord:
        record, _ = self.storage.save_note_content(request.note_id, request.content)
        self.links.on_created(record.id)
        return record

    def delete_item(self, note_id: str) -> List[str]:
        deleted_ids = self.storage.delete_item(note_id)
        for deleted_id in deleted_ids:
            self.links.on_deleted(deleted_id)
        return deleted_ids

    def rename_item(self, old_id: str, new_id: str) -> List[Tuple[str, str]]:
        moved = self.storage.rename_item(old_id, new_id)
        for old_path, new_path in moved:
            self.links.on_renamed(new_path, old_path)
        return moved

    def rebuild_index(self) -> Optional[int]:
        return self.links.rebuild(self.storage.list_records().values())
