from __future__ import annotations

from pathlib import Path
from typing import Callable, Optional

from .concurrency import CancellationToken, PassGuard
from .config import SyncSettings
from .documents import TopicSummary
from .events import StatusCallback, SyncStatus, SyncStatusPublisher
from .models import SyncInfo, SyncReport, UpdateCheckResult
from .orchestrator import SyncOrchestrator
from .reader import DocumentReader, JsonDocumentReader
from .repository import ContentStore, SqlAlchemyContentStore
from .storage import PathResolver
from .updates import UpdateChecker


class ContentSyncService:
    """
    Composition root for the sync engine. Owns one publisher and one pass
    guard and shares them between the orchestrator and the update checker,
    so a sync and an update check never overlap.
    """

    def __init__(
        self,
        store: ContentStore,
        resolver: PathResolver,
        reader: Optional[DocumentReader] = None,
    ):
        self.store = store
        self.resolver = resolver
        self.reader = reader or JsonDocumentReader()
        self.publisher = SyncStatusPublisher()
        self.guard = PassGuard()
        self.orchestrator = SyncOrchestrator(
            store=store,
            resolver=resolver,
            reader=self.reader,
            publisher=self.publisher,
            guard=self.guard,
        )
        self.checker = UpdateChecker(store=store, resolver=resolver, reader=self.reader, guard=self.guard)

    @classmethod
    def from_settings(cls, settings: SyncSettings) -> "ContentSyncService":
        store = SqlAlchemyContentStore(settings.database_url, reset_schema=settings.reset_schema)
        resolver = PathResolver(
            [Path(p) for p in settings.candidate_roots()],
            create_if_missing=settings.create_source_root,
        )
        return cls(store=store, resolver=resolver)

    def sync_all(self, cancel_token: Optional[CancellationToken] = None) -> SyncReport:
        return self.orchestrator.sync_all(cancel_token=cancel_token)

    def cancel_current(self) -> bool:
        return self.orchestrator.cancel()

    def check_for_updates(self) -> UpdateCheckResult:
        return self.checker.check_for_updates()

    def subscribe(self, callback: StatusCallback) -> Callable[[], bool]:
        return self.publisher.subscribe(callback)

    def get_sync_status(self) -> SyncStatus:
        return self.publisher.current

    @property
    def is_syncing(self) -> bool:
        return self.guard.busy

    def is_data_available(self) -> bool:
        return self.store.has_topics()

    def get_sync_info(self) -> SyncInfo:
        return self.store.get_sync_info()

    def get_topic_summary(self, topic_id: str) -> Optional[TopicSummary]:
        return self.orchestrator.get_topic_summary(topic_id)

    def close(self) -> None:
        self.store.close()
