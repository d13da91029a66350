from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import List, Optional

from .documents import LessonDocument, TopicDocument, TopicSummary

BASELINE_VERSION = "1.0.0"
UNSYNCED_INDEX_VERSION = "0.0.0"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TopicSyncStatus(str, Enum):
    SYNCED = "synced"
    PENDING = "pending"
    OUTDATED = "outdated"


class SyncPhase(str, Enum):
    IDLE = "idle"
    RESOLVING = "resolving"
    ENUMERATING = "enumerating"
    TRANSFERRING = "transferring"
    FINALIZING = "finalizing"


@dataclass
class TopicRecord:
    id: str
    serialized_body: str
    version: str = BASELINE_VERSION
    last_updated: str = ""
    sync_status: TopicSyncStatus = TopicSyncStatus.SYNCED

    def document(self) -> TopicDocument:
        return TopicDocument.model_validate_json(self.serialized_body)


@dataclass
class LessonRecord:
    id: str
    topic_id: str
    serialized_body: str
    version: str = BASELINE_VERSION
    last_updated: str = ""

    def document(self) -> LessonDocument:
        return LessonDocument.model_validate_json(self.serialized_body)


@dataclass
class SyncMeta:
    last_sync_timestamp: datetime
    topics_index_version: str


@dataclass
class SyncInfo:
    last_sync_timestamp: Optional[datetime]
    topics_index_version: str = UNSYNCED_INDEX_VERSION
    topics_synced: int = 0
    topics_outdated: int = 0


@dataclass
class SkippedEntity:
    kind: str
    id: str
    reason: str


@dataclass
class SyncReport:
    source_root: Path
    index_version: str
    topics_synced: int = 0
    lessons_synced: int = 0
    skipped: List[SkippedEntity] = field(default_factory=list)
    finished_at: Optional[datetime] = None

    @property
    def topics_skipped(self) -> int:
        return sum(1 for s in self.skipped if s.kind == "topic")

    @property
    def lessons_skipped(self) -> int:
        return sum(1 for s in self.skipped if s.kind == "lesson")

    @property
    def complete(self) -> bool:
        return not self.skipped


@dataclass
class UpdateCheckResult:
    has_updates: bool = False
    new_topics: List[TopicSummary] = field(default_factory=list)
    updated_topics: List[TopicSummary] = field(default_factory=list)
    index_updated: bool = False
