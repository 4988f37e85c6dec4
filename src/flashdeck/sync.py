"""Background progress synchronizer.

Session mutations hand partial progress documents to a ProgressSynchronizer,
which writes them to the progress store from a worker thread. Queue and
starred changes go out immediately; preference changes are coalesced and
written once the user stops toggling for the debounce window.
Failed writes are logged and dropped.
"""
import queue
import threading
from enum import Enum
from typing import Optional

from flashdeck.logging import logger

DEFAULT_DEBOUNCE_MS = 700

_STOP = object()


class SavePolicy(str, Enum):
    IMMEDIATE = "immediate"
    DEBOUNCED = "debounced"


class ProgressSynchronizer:
    def __init__(self, store, deck_id: str, user_id: Optional[str], debounce_ms: int = DEFAULT_DEBOUNCE_MS):
        self.store = store
        self.deck_id = deck_id
        self.user_id = user_id
        self.debounce_s = debounce_ms / 1000
        self._queue = queue.Queue()
        self._lock = threading.Lock()
        self._pending: Optional[dict] = None
        self._timer: Optional[threading.Timer] = None
        self._closed = False
        self._worker = threading.Thread(
            target=self._run, name=f"progress-sync-{deck_id}", daemon=True,
        )
        self._worker.start()

    def save(self, partial: dict, policy: SavePolicy = SavePolicy.IMMEDIATE) -> None:
        if not partial or not self.user_id or self._closed:
            return
        if SavePolicy(policy) is SavePolicy.DEBOUNCED:
            self._schedule(partial)
        else:
            self._queue.put(dict(partial))

    def _schedule(self, partial: dict) -> None:
        with self._lock:
            self._pending = {**(self._pending or {}), **partial}
            if self._timer is not None:
                self._timer.cancel()
            self._timer = threading.Timer(self.debounce_s, self._fire)
            self._timer.daemon = True
            self._timer.start()

    def _fire(self) -> None:
        with self._lock:
            pending, self._pending = self._pending, None
            self._timer = None
            if pending:
                self._queue.put(pending)

    def _run(self) -> None:
        while True:
            item = self._queue.get()
            try:
                if item is _STOP:
                    return
                self._write(item)
            finally:
                self._queue.task_done()

    def _write(self, partial: dict) -> None:
        try:
            self.store.save(self.deck_id, self.user_id, partial)
        except Exception as exc:
            logger.warning(
                "progress_save_failed", deck_id=self.deck_id, user_id=self.user_id,
                keys=sorted(partial), error=str(exc),
            )
        else:
            logger.debug("progress_saved", deck_id=self.deck_id, keys=sorted(partial))

    @property
    def has_pending(self) -> bool:
        with self._lock:
            return self._pending is not None

    def flush(self) -> None:
        """Send any debounced write now and wait for the worker to catch up."""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
        self._fire()
        self._queue.join()

    def close(self) -> None:
        if self._closed:
            return
        self.flush()
        self._closed = True
        self._queue.put(_STOP)
        self._worker.join()
