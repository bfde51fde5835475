"""Backend application state for vault-scoped services."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from config import Settings, load_settings
from services import LinkService, NoteService
from storage import VaultStorage

log = logging.getLogger("phraselink.app")


@dataclass
class VaultServices:
    root: Path
    storage: VaultStorage
    links: LinkService
    notes: NoteService


class PhraseLinkAppState:
    """Holds the currently-open vault and all vault-scoped services."""

    def __init__(self, settings: Optional[Settings] = None):
        self._lock = threading.RLock()
        self.settings = settings or load_settings()
        self._services: Optional[VaultServices] = None
        self._load_vault(self.settings.vault_dir)

    def current(self) -> VaultServices:
        with self._lock:
            assert self._services is not None
            return self._services

    def open_vault(self, path: str) -> VaultServices:
        root = Path(path).expanduser()
        if not root.is_dir():
            raise FileNotFoundError(f"Vault not found: {path}")
        with self._lock:
            self._load_vault(root)
            assert self._services is not None
            return self._services

    def shutdown(self) -> None:
        with self._lock:
            if self._services is not None:
                self._services.links.shutdown()

    def _load_vault(self, root: Path) -> None:
        if self._services is not None:
            self._services.links.shutdown()

        storage = VaultStorage(root=root)
        links = LinkService(
            storage,
            min_fuzzy_length=self.settings.fuzzy_min_length,
            debounce_seconds=self.settings.debounce_seconds,
        )
        indexed = links.rebuild()
        log.info("Opened vault %s (%s documents indexed)", storage.root, indexed)
        notes = NoteService(storage=storage, links=links)

        self._services = VaultServices(
            root=storage.root,
            storage=storage,
            links=links,
            notes=notes,
        )
