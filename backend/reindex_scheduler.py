"""Per-document debounce for re-indexing after edits."""

from __future__ import annotations

import logging
import threading
from typing import Callable, Dict, List

log = logging.getLogger("phraselink.reindex")

DEFAULT_DELAY_SECONDS = 0.3


class DebouncedReindexer:
    """Collapses bursts of change events into one callback per document.

    Each path owns its own timer: scheduling ``a.md`` again cancels and
    restarts only ``a.md``'s pending run, never ``b.md``'s.
    """

    def __init__(
        self,
        callback: Callable[[str], None],
        delay: float = DEFAULT_DELAY_SECONDS,
    ):
        self.callback = callback
        self.delay = max(0.0, float(delay))
        self._lock = threading.Lock()
        self._timers: Dict[str, threading.Timer] = {}

    def schedule(self, path: str) -> None:
        with self._lock:
            pending = self._timers.pop(path, None)
            if pending is not None:
                pending.cancel()
            timer = threading.Timer(self.delay, self._fire, args=(path,))
            timer.daemon = True
            timer.name = f"reindex:{path}"
            self._timers[path] = timer
            timer.start()

    def cancel(self, path: str) -> bool:
        with self._lock:
            pending = self._timers.pop(path, None)
        if pending is None:
            return False
        pending.cancel()
        return True

    def cancel_all(self) -> None:
        with self._lock:
            timers = list(self._timers.values())
            self._timers.clear()
        for timer in timers:
            timer.cancel()

    def pending(self) -> List[str]:
        with self._lock:
            return sorted(self._timers)

    def flush(self) -> int:
        """Run every pending callback now, on the calling thread."""
        with self._lock:
            paths = sorted(self._timers)
            timers = [self._timers.pop(path) for path in paths]
        for timer in timers:
            timer.cancel()
        for path in paths:
            self._run(path)
        return len(paths)

    def _fire(self, path: str) -> None:
        with self._lock:
            current = self._timers.get(path)
            if current is not threading.current_thread():
                # Superseded or cancelled after the timer already woke up.
                return
            del self._timers[path]
        self._run(path)

    def _run(self, path: str) -> None:
        try:
            self.callback(path)
        except Exception:
            log.exception("Re-index failed for %s", path)
