from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Iterator, Optional

from .errors import SyncAlreadyInProgress, SyncCancelled

logger = logging.getLogger(__name__)


class PassGuard:
    """
    Single-flight guard. Sync and update-check passes share one guard so at
    most one of them touches the store at a time; a second caller is turned
    away immediately rather than queued.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._running: Optional[str] = None

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    @property
    def running(self) -> Optional[str]:
        return self._running

    @contextmanager
    def hold(self, name: str) -> Iterator[None]:
        if not self._lock.acquire(blocking=False):
            logger.warning("Rejected %s: %s already running", name, self._running)
            raise SyncAlreadyInProgress(self._running or name)
        self._running = name
        try:
            yield
        finally:
            self._running = None
            self._lock.release()


class CancellationToken:
    """Checked by the orchestrator between units of work."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise SyncCancelled()
