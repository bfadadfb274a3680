"""Debounced, best-effort saving of the session snapshot."""

from __future__ import annotations

import logging
import threading
from typing import Callable

from pundit.storage.documents import Snapshot

logger = logging.getLogger(__name__)

TimerFactory = Callable[[float, Callable[[], None]], threading.Timer]


class AutosaveScheduler:
    """Trailing-edge debounce in front of a snapshot writer.

    Each ``schedule`` call replaces the pending snapshot and restarts the
    quiet period, so a burst of edits produces one write of the last
    snapshot. Writes are serialized and a snapshot older than the last one
    written is dropped, whichever thread gets to the store first. Write
    failures are logged and dropped; the in-memory state stays
    authoritative for the session.
    """

    def __init__(
        self,
        write: Callable[[Snapshot], None],
        delay: float = 3.0,
        *,
        timer_factory: TimerFactory = threading.Timer,
    ) -> None:
        self._write = write
        self._delay = delay
        self._timer_factory = timer_factory
        self._lock = threading.Lock()
        self._write_lock = threading.Lock()
        self._timer: threading.Timer | None = None
        self._pending: Snapshot | None = None
        self._generation = 0
        self._written = 0

    @property
    def pending(self) -> bool:
        return self._pending is not None

    def schedule(self, snapshot: Snapshot) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._generation += 1
            generation = self._generation
            self._pending = snapshot
            self._timer = self._timer_factory(self._delay, lambda: self._fire(generation))
            self._timer.daemon = True
            self._timer.start()

    def flush(self) -> bool:
        """Write the pending snapshot now. Returns True if one was written."""
        taken = self._take(None)
        if taken is None:
            return False
        return self._write_safely(*taken)

    def cancel(self) -> None:
        self._take(None)

    def _fire(self, generation: int) -> None:
        taken = self._take(generation)
        if taken is not None:
            self._write_safely(*taken)

    def _take(self, generation: int | None) -> tuple[int, Snapshot] | None:
        with self._lock:
            # A timer superseded by a later schedule() must not write
            if generation is not None and generation != self._generation:
                return None
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            snapshot, self._pending = self._pending, None
            if snapshot is None:
                return None
            return self._generation, snapshot

    def _write_safely(self, generation: int, snapshot: Snapshot) -> bool:
        with self._write_lock:
            if generation <= self._written:
                logger.debug("skipping stale autosave %d (last written %d)", generation, self._written)
                return False
            try:
                self._write(snapshot)
            except Exception:
                logger.exception("autosave failed; keeping local state")
                return False
            self._written = generation
            return True
