"""
Status publishing for sync passes.

A :class:`SyncStatusPublisher` holds the latest :class:`SyncStatus` and hands
a copy of it to every subscriber whenever it changes. Callbacks run on the
thread that publishes (the one driving the pass); marshalling onto a UI
thread is the subscriber's job.

Example:
    publisher = SyncStatusPublisher()
    unsubscribe = publisher.subscribe(lambda status: print(status.to_dict()))
    ...
    unsubscribe()
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, List, Optional

from .models import SyncPhase

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SyncProgress:
    current: int = 0
    total: int = 0
    skipped: int = 0


@dataclass(frozen=True)
class SyncStatus:
    is_loading: bool = False
    error: Optional[str] = None
    progress: SyncProgress = field(default_factory=SyncProgress)
    phase: SyncPhase = SyncPhase.IDLE

    def to_dict(self) -> Dict[str, Any]:
        return {
            "isLoading": self.is_loading,
            "error": self.error,
            "progress": {
                "current": self.progress.current,
                "total": self.progress.total,
                "skipped": self.progress.skipped,
            },
            "phase": self.phase.value,
        }


StatusCallback = Callable[[SyncStatus], None]


class SyncStatusPublisher:
    def __init__(self) -> None:
        self._listeners: List[StatusCallback] = []
        self._status = SyncStatus()
        self._lock = threading.Lock()

    @property
    def current(self) -> SyncStatus:
        return self._status

    def subscribe(self, callback: StatusCallback) -> Callable[[], bool]:
        """Register ``callback``; the returned function unregisters it."""
        with self._lock:
            self._listeners.append(callback)
        return lambda: self.unsubscribe(callback)

    def unsubscribe(self, callback: StatusCallback) -> bool:
        with self._lock:
            try:
                self._listeners.remove(callback)
            except ValueError:
                return False
            return True

    def publish(self, **changes: Any) -> SyncStatus:
        """Merge ``changes`` into the current status and notify listeners."""
        with self._lock:
            self._status = replace(self._status, **changes)
            status = self._status
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(status)
            except Exception:  # noqa: BLE001
                logger.exception("Sync status listener %r failed", listener)
        return status
