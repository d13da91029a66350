from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional

from .concurrency import CancellationToken, PassGuard
from .documents import ContentIndex, TopicDocument, TopicSummary
from .errors import DocumentError, IndexMalformed, IndexMissing, NoTopicsDiscovered, NoTopicsSynced
from .events import SyncProgress, SyncStatus, SyncStatusPublisher
from .models import (
    BASELINE_VERSION,
    LessonRecord,
    SkippedEntity,
    SyncPhase,
    SyncReport,
    TopicRecord,
    TopicSyncStatus,
    utcnow,
)
from .reader import DocumentReader, JsonDocumentReader
from .repository import ContentStore
from .storage import PathResolver, SourcePaths

logger = logging.getLogger(__name__)


class SyncOrchestrator:
    """
    Drives a sync pass through resolving -> enumerating -> transferring ->
    finalizing. The orchestrator reads the source only through the reader and
    writes the cache only through the store; every status change goes out on
    the publisher.

    Failures reading a single topic or lesson are logged, counted in the
    report and skipped. Failures that leave nothing to sync end the pass
    with an error status and are raised. SyncMeta is only written by a pass
    that stored at least one topic.
    """

    def __init__(
        self,
        store: ContentStore,
        resolver: PathResolver,
        reader: Optional[DocumentReader] = None,
        publisher: Optional[SyncStatusPublisher] = None,
        guard: Optional[PassGuard] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.store = store
        self.resolver = resolver
        self.reader = reader or JsonDocumentReader()
        self.publisher = publisher or SyncStatusPublisher()
        self.guard = guard or PassGuard()
        self.clock = clock
        self.last_index: Optional[ContentIndex] = None
        self._active_token: Optional[CancellationToken] = None

    @property
    def status(self) -> SyncStatus:
        return self.publisher.current

    def get_topic_summary(self, topic_id: str) -> Optional[TopicSummary]:
        if not self.last_index:
            return None
        return self.last_index.find(topic_id)

    def sync_all(self, cancel_token: Optional[CancellationToken] = None) -> SyncReport:
        with self.guard.hold("sync"):
            token = cancel_token or CancellationToken()
            self._active_token = token
            try:
                return self._run_pass(token)
            finally:
                self._active_token = None

    def cancel(self) -> bool:
        """Ask the running pass to stop. Returns False when nothing is running."""
        token = self._active_token
        if token is None:
            return False
        token.cancel()
        return True

    def _run_pass(self, token: CancellationToken) -> SyncReport:
        self.publisher.publish(is_loading=True, error=None, progress=SyncProgress(), phase=SyncPhase.RESOLVING)
        try:
            root = self.resolver.resolve_root()

            self.publisher.publish(phase=SyncPhase.ENUMERATING)
            index = self._load_index(root)
            topic_ids = self._discover_topic_ids(root, index)
            report = SyncReport(
                source_root=root,
                index_version=index.version if index else BASELINE_VERSION,
            )
            topics = self._read_topics(root, topic_ids, report, token)
            if not topics:
                raise NoTopicsSynced(root, report.topics_skipped)

            total = len(topics) + sum(len(self._lesson_ids(t)) for t in topics)
            progress = SyncProgress(current=0, total=total, skipped=len(report.skipped))
            self.publisher.publish(phase=SyncPhase.TRANSFERRING, progress=progress)
            for topic in topics:
                progress = self._transfer_topic(root, topic, index, report, progress, token)

            self.publisher.publish(phase=SyncPhase.FINALIZING)
            finished_at = self.clock()
            self.store.write_sync_meta(finished_at, report.index_version)
            report.finished_at = finished_at
        except Exception as exc:  # noqa: BLE001
            logger.error("Content sync failed: %s", exc)
            self.publisher.publish(is_loading=False, error=str(exc), phase=SyncPhase.IDLE)
            raise

        self.publisher.publish(is_loading=False, error=None, phase=SyncPhase.IDLE)
        logger.info(
            "Content sync finished from %s: %d topics, %d lessons, %d topics skipped, %d lessons skipped",
            report.source_root,
            report.topics_synced,
            report.lessons_synced,
            report.topics_skipped,
            report.lessons_skipped,
        )
        return report

    def _load_index(self, root: Path) -> Optional[ContentIndex]:
        try:
            index = self.reader.read_index(root)
        except IndexMissing:
            logger.info("No content index in %s; falling back to directory scan", root)
            index = None
        except IndexMalformed as exc:
            logger.warning("Ignoring unreadable content index: %s", exc)
            index = None
        self.last_index = index
        return index

    def _discover_topic_ids(self, root: Path, index: Optional[ContentIndex]) -> List[str]:
        if index and index.topics:
            topic_ids = sorted({summary.id for summary in index.topics})
            logger.info("Loaded %d topic ids from content index", len(topic_ids))
        else:
            topic_ids = SourcePaths(root).topic_dirs()
            logger.info("Scanned %d candidate topic folders in %s", len(topic_ids), root)
        if not topic_ids:
            raise NoTopicsDiscovered(root)
        return topic_ids

    def _read_topics(
        self,
        root: Path,
        topic_ids: List[str],
        report: SyncReport,
        token: CancellationToken,
    ) -> List[TopicDocument]:
        topics: List[TopicDocument] = []
        for topic_id in topic_ids:
            token.raise_if_cancelled()
            try:
                topics.append(self.reader.read_topic(root, topic_id))
            except DocumentError as exc:
                logger.warning("Skipping topic %s: %s", topic_id, exc)
                report.skipped.append(SkippedEntity(kind="topic", id=topic_id, reason=str(exc)))
        return topics

    def _transfer_topic(
        self,
        root: Path,
        topic: TopicDocument,
        index: Optional[ContentIndex],
        report: SyncReport,
        progress: SyncProgress,
        token: CancellationToken,
    ) -> SyncProgress:
        token.raise_if_cancelled()
        summary = index.find(topic.id) if index else None
        self.store.upsert_topic(
            TopicRecord(
                id=topic.id,
                serialized_body=topic.to_json(),
                version=summary.version if summary else BASELINE_VERSION,
                last_updated=topic.last_updated or (summary.last_updated if summary else ""),
                sync_status=TopicSyncStatus.SYNCED,
            )
        )
        report.topics_synced += 1
        progress = SyncProgress(progress.current + 1, progress.total, progress.skipped)
        self.publisher.publish(progress=progress)

        for lesson_id in self._lesson_ids(topic):
            token.raise_if_cancelled()
            try:
                lesson = self.reader.read_lesson(root, topic.id, lesson_id)
            except DocumentError as exc:
                logger.warning("Skipping lesson %s/%s: %s", topic.id, lesson_id, exc)
                report.skipped.append(SkippedEntity(kind="lesson", id=lesson_id, reason=str(exc)))
                progress = SyncProgress(progress.current, progress.total - 1, progress.skipped + 1)
                self.publisher.publish(progress=progress)
                continue

            if lesson.topic and lesson.topic != topic.id:
                logger.warning(
                    "Lesson %s names topic %r but lives under %r; filing it under %r",
                    lesson_id,
                    lesson.topic,
                    topic.id,
                    topic.id,
                )
            self.store.upsert_lesson(
                LessonRecord(
                    id=lesson.id,
                    topic_id=topic.id,
                    serialized_body=lesson.to_json(),
                    version=lesson.last_updated or BASELINE_VERSION,
                    last_updated=lesson.last_updated,
                )
            )
            report.lessons_synced += 1
            progress = SyncProgress(progress.current + 1, progress.total, progress.skipped)
            self.publisher.publish(progress=progress)
        return progress

    @staticmethod
    def _lesson_ids(topic: TopicDocument) -> List[str]:
        return sorted({meta.id for meta in topic.lessons})
