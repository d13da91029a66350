from __future__ import annotations

import logging
from typing import Optional

from .concurrency import PassGuard
from .errors import IndexMissing, NoAccessibleSource
from .models import UNSYNCED_INDEX_VERSION, TopicSyncStatus, UpdateCheckResult
from .reader import DocumentReader, JsonDocumentReader
from .repository import ContentStore
from .storage import PathResolver

logger = logging.getLogger(__name__)


class UpdateChecker:
    """
    Compares the source's content index against the cache without reading
    any topic or lesson bodies, so it is cheap enough to poll.

    Topics whose index version differs from the cached one are flagged
    ``outdated`` in the store right away; the next successful sync of that
    topic flips them back to ``synced``.
    """

    def __init__(
        self,
        store: ContentStore,
        resolver: PathResolver,
        reader: Optional[DocumentReader] = None,
        guard: Optional[PassGuard] = None,
    ):
        self.store = store
        self.resolver = resolver
        self.reader = reader or JsonDocumentReader()
        self.guard = guard or PassGuard()

    def check_for_updates(self) -> UpdateCheckResult:
        with self.guard.hold("update check"):
            return self._check()

    def _check(self) -> UpdateCheckResult:
        try:
            root = self.resolver.resolve_root()
            index = self.reader.read_index(root)
        except (NoAccessibleSource, IndexMissing) as exc:
            logger.info("Update check skipped, no content index to compare against: %s", exc)
            return UpdateCheckResult()

        meta = self.store.read_sync_meta()
        local_index_version = meta.topics_index_version if meta else UNSYNCED_INDEX_VERSION
        result = UpdateCheckResult(index_updated=index.version != local_index_version)

        seen = set()
        for summary in index.topics:
            if summary.id in seen:
                logger.warning("Duplicate topic %s in content index; using its first entry", summary.id)
                continue
            seen.add(summary.id)
            local_version = self.store.get_topic_version(summary.id)
            if local_version is None:
                result.new_topics.append(summary)
            elif local_version != summary.version:
                result.updated_topics.append(summary)
                self.store.set_topic_sync_status(summary.id, TopicSyncStatus.OUTDATED)

        result.has_updates = result.index_updated or bool(result.new_topics) or bool(result.updated_topics)
        logger.info(
            "Update check: index %s -> %s, %d new topics, %d updated topics",
            local_index_version,
            index.version,
            len(result.new_topics),
            len(result.updated_topics),
        )
        return result
