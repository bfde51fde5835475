"""
Lexical index for PhraseLink.

Maps normalized keys (document titles, tags, headings, block ids) to the
entries that produced them, and keeps that mapping consistent as vault
documents are created, edited, renamed or deleted.
"""

from __future__ import annotations

import dataclasses
import logging
import threading
from typing import Callable, Dict, Iterable, List, Optional, Set, Tuple

from metadata import extract_metadata
from models import DocumentMetadata, EntryKind, IndexEntry, NoteKind, NoteRecord
from normalizer import normalize

log = logging.getLogger("phraselink.index")


class LexicalIndex:
    """In-memory key -> entries mapping with per-document maintenance."""

    def __init__(self):
        # Values are tuples and get replaced wholesale, so a snapshot taken by
        # a reader never changes underneath it.
        self._keys: Dict[str, Tuple[IndexEntry, ...]] = {}
        self._lock = threading.RLock()
        self._build_lock = threading.Lock()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def insert_entry(self, key: str, entry: IndexEntry) -> bool:
        """Add ``entry`` under ``normalize(key)``. Returns False for duplicates."""
        normalized = normalize(key)
        if not normalized:
            return False
        with self._lock:
            entries = self._keys.get(normalized, ())
            if any(existing.identity == entry.identity for existing in entries):
                return False
            self._keys[normalized] = entries + (entry,)
            return True

    def remove_document(self, path: str) -> int:
        """Drop every entry owned by ``path``; empty keys are removed too."""
        removed = 0
        with self._lock:
            for key, entries in list(self._keys.items()):
                kept = tuple(e for e in entries if e.source_path != path)
                if len(kept) == len(entries):
                    continue
                removed += len(entries) - len(kept)
                if kept:
                    self._keys[key] = kept
                else:
                    del self._keys[key]
        if removed:
            log.debug("Removed %d entries for %s", removed, path)
        return removed

    def rename_document(self, new_path: str, new_title: str, old_path: str) -> int:
        """Point entries of ``old_path`` at ``new_path``/``new_title`` in place."""
        renamed = 0
        with self._lock:
            for key, entries in list(self._keys.items()):
                if not any(e.source_path == old_path for e in entries):
                    continue
                rewritten: List[IndexEntry] = []
                seen: Set[Tuple[EntryKind, str, str]] = set()
                for entry in entries:
                    if entry.source_path == old_path:
                        entry = dataclasses.replace(
                            entry, source_path=new_path, source_title=new_title
                        )
                        renamed += 1
                    if entry.identity in seen:
                        continue
                    seen.add(entry.identity)
                    rewritten.append(entry)
                self._keys[key] = tuple(rewritten)
        if renamed:
            log.debug("Renamed %d entries %s -> %s", renamed, old_path, new_path)
        return renamed

    def index_document(
        self, record: NoteRecord, metadata: Optional[DocumentMetadata] = None
    ) -> int:
        """Insert title, tag, heading and block entries for one document.

        Returns the number of entries added; non-markdown records add none.
        """
        if record.kind != NoteKind.NOTE:
            return 0
        if metadata is None:
            metadata = extract_metadata(record.content)

        path = record.id
        title = record.title
        added = 0

        added += self.insert_entry(
            title,
            IndexEntry(
                kind=EntryKind.TITLE,
                source_path=path,
                source_title=title,
                target=title,
                display_text=title,
            ),
        )
        for tag in metadata.tags:
            added += self.insert_entry(
                tag,
                IndexEntry(
                    kind=EntryKind.TAG,
                    source_path=path,
                    source_title=title,
                    target=tag,
                    display_text=f"#{tag}",
                ),
            )
        for heading in metadata.headings:
            added += self.insert_entry(
                heading,
                IndexEntry(
                    kind=EntryKind.HEADING,
                    source_path=path,
                    source_title=title,
                    target=heading,
                    display_text=f"{title} > {heading}",
                ),
            )
        for block_id in metadata.block_ids:
            added += self.insert_entry(
                block_id,
                IndexEntry(
                    kind=EntryKind.BLOCK,
                    source_path=path,
                    source_title=title,
                    target=block_id,
                    display_text=f"{title} > #{block_id}",
                ),
            )
        return added

    def rebuild(
        self,
        records: Iterable[NoteRecord],
        extractor: Callable[[str], DocumentMetadata] = extract_metadata,
    ) -> Optional[int]:
        """Clear and repopulate from ``records``.

        Only one rebuild runs at a time; a call made while another is in
        progress returns None without doing anything.
        """
        if not self._build_lock.acquire(blocking=False):
            log.info("Index rebuild already running; request dropped")
            return None
        try:
            self.clear()
            processed = 0
            for record in records:
                if record.kind != NoteKind.NOTE:
                    continue
                self.index_document(record, extractor(record.content))
                processed += 1
            log.info("Index rebuilt: %d documents, %d keys", processed, len(self))
            return processed
        finally:
            self._build_lock.release()

    def clear(self) -> None:
        with self._lock:
            self._keys = {}

    # ------------------------------------------------------------------
    # Read helpers
    # ------------------------------------------------------------------
    @property
    def is_building(self) -> bool:
        return self._build_lock.locked()

    def snapshot(self) -> List[Tuple[str, Tuple[IndexEntry, ...]]]:
        with self._lock:
            return list(self._keys.items())

    def entries_for(self, key: str) -> List[IndexEntry]:
        with self._lock:
            return list(self._keys.get(normalize(key), ()))

    def documents(self) -> Set[str]:
        return {entry.source_path for _, entries in self.snapshot() for entry in entries}

    def __len__(self) -> int:
        with self._lock:
            return len(self._keys)

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, str):
            return False
        with self._lock:
            return normalize(key) in self._keys
