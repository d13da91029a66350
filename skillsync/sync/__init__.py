"""
Content sync subsystem exports.
"""

from .concurrency import CancellationToken, PassGuard
from .config import SyncSettings, load_settings
from .documents import ContentIndex, LessonDocument, LessonMeta, TopicDocument, TopicSummary
from .errors import (
    ContentSyncError,
    DocumentError,
    IndexMalformed,
    IndexMissing,
    LessonMalformed,
    LessonMissing,
    NoAccessibleSource,
    NoTopicsDiscovered,
    NoTopicsSynced,
    StoreSchemaError,
    StoreUnavailable,
    SyncAlreadyInProgress,
    SyncCancelled,
    TopicMalformed,
    TopicMissing,
)
from .events import SyncProgress, SyncStatus, SyncStatusPublisher
from .job_queue import RQSyncQueue, run_sync_job, run_update_check_job
from .models import (
    BASELINE_VERSION,
    LessonRecord,
    SkippedEntity,
    SyncInfo,
    SyncMeta,
    SyncPhase,
    SyncReport,
    TopicRecord,
    TopicSyncStatus,
    UpdateCheckResult,
)
from .orchestrator import SyncOrchestrator
from .reader import DocumentReader, JsonDocumentReader
from .repository import ContentStore, InMemoryContentStore, SqlAlchemyContentStore
from .service import ContentSyncService
from .storage import PathResolver, SourcePaths, default_candidate_roots
from .updates import UpdateChecker

__all__ = [
    "BASELINE_VERSION",
    "CancellationToken",
    "ContentIndex",
    "ContentStore",
    "ContentSyncError",
    "ContentSyncService",
    "DocumentError",
    "DocumentReader",
    "IndexMalformed",
    "IndexMissing",
    "InMemoryContentStore",
    "JsonDocumentReader",
    "LessonDocument",
    "LessonMalformed",
    "LessonMeta",
    "LessonMissing",
    "LessonRecord",
    "NoAccessibleSource",
    "NoTopicsDiscovered",
    "NoTopicsSynced",
    "PassGuard",
    "PathResolver",
    "RQSyncQueue",
    "SkippedEntity",
    "SourcePaths",
    "SqlAlchemyContentStore",
    "StoreSchemaError",
    "StoreUnavailable",
    "SyncAlreadyInProgress",
    "SyncCancelled",
    "SyncInfo",
    "SyncMeta",
    "SyncOrchestrator",
    "SyncPhase",
    "SyncProgress",
    "SyncReport",
    "SyncSettings",
    "SyncStatus",
    "SyncStatusPublisher",
    "TopicDocument",
    "TopicMalformed",
    "TopicMissing",
    "TopicRecord",
    "TopicSummary",
    "TopicSyncStatus",
    "UpdateCheckResult",
    "UpdateChecker",
    "default_candidate_roots",
    "load_settings",
    "run_sync_job",
    "run_update_check_job",
]
