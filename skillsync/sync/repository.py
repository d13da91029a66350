from __future__ import annotations

import logging
from copy import deepcopy
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Dict, List, Optional

from sqlalchemy import (
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    String,
    Text,
    create_engine,
    delete,
    func,
    insert,
    select,
    update,
)
from sqlalchemy.engine import Connection, make_url
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from .errors import StoreSchemaError, StoreUnavailable
from .models import (
    UNSYNCED_INDEX_VERSION,
    LessonRecord,
    SyncInfo,
    SyncMeta,
    TopicRecord,
    TopicSyncStatus,
)

logger = logging.getLogger(__name__)

Base = declarative_base()

SYNC_META_ROW_ID = 1

# Bump SCHEMA_VERSION and register a step here when a table changes. A step
# receives an open connection inside the init transaction and upgrades the
# schema from version (key - 1) to version key.
SCHEMA_VERSION = 1
SCHEMA_MIGRATIONS: Dict[int, Callable[[Connection], None]] = {}


class TopicModel(Base):
    __tablename__ = "topics"
    id = Column(String, primary_key=True)
    data = Column(Text, nullable=False)
    version = Column(String, nullable=False)
    last_updated = Column(String, nullable=False)
    sync_status = Column(
        Enum(
            TopicSyncStatus,
            name="topic_sync_status",
            values_callable=lambda enum: [member.value for member in enum],
        ),
        nullable=False,
        default=TopicSyncStatus.SYNCED,
    )


class LessonModel(Base):
    __tablename__ = "lessons"
    id = Column(String, primary_key=True)
    topic_id = Column(String, ForeignKey("topics.id"), index=True, nullable=False)
    data = Column(Text, nullable=False)
    version = Column(String, nullable=False)
    last_updated = Column(String, nullable=False)


class SyncMetaModel(Base):
    __tablename__ = "sync_meta"
    id = Column(Integer, primary_key=True)
    last_sync_timestamp = Column(DateTime(timezone=True), nullable=False)
    topics_index_version = Column(String, nullable=False, default=UNSYNCED_INDEX_VERSION)


class SchemaVersionModel(Base):
    __tablename__ = "schema_version"
    id = Column(Integer, primary_key=True)
    version = Column(Integer, nullable=False)


class ContentStore:
    """
    Persistence boundary for the offline cache. Writes replace whole records
    so a reader never observes a half-updated topic or lesson. All methods
    are synchronous.
    """

    # Topic operations
    def upsert_topic(self, topic: TopicRecord) -> None:
        raise NotImplementedError

    def get_topic(self, topic_id: str) -> Optional[TopicRecord]:
        raise NotImplementedError

    def get_all_topics(self) -> List[TopicRecord]:
        raise NotImplementedError

    def get_topic_version(self, topic_id: str) -> Optional[str]:
        raise NotImplementedError

    def get_topic_sync_status(self, topic_id: str) -> Optional[TopicSyncStatus]:
        raise NotImplementedError

    def set_topic_sync_status(self, topic_id: str, status: TopicSyncStatus) -> None:
        """No-op when the topic does not exist."""
        raise NotImplementedError

    # Lesson operations
    def upsert_lesson(self, lesson: LessonRecord) -> None:
        raise NotImplementedError

    def get_lesson(self, lesson_id: str) -> Optional[LessonRecord]:
        raise NotImplementedError

    def get_lessons_by_topic(self, topic_id: str) -> List[LessonRecord]:
        raise NotImplementedError

    # Sync metadata
    def write_sync_meta(self, timestamp: datetime, index_version: str) -> None:
        raise NotImplementedError

    def read_sync_meta(self) -> Optional[SyncMeta]:
        raise NotImplementedError

    def get_sync_info(self) -> SyncInfo:
        raise NotImplementedError

    # Utilities
    def has_topics(self) -> bool:
        return bool(self.get_all_topics())

    def clear_all(self) -> None:
        raise NotImplementedError

    def close(self) -> None:
        raise NotImplementedError


class InMemoryContentStore(ContentStore):
    """
    Dict-backed store for local runs and tests. Keeps copies of records to
    avoid cross-mutation between calls.
    """

    def __init__(self):
        self.topics: Dict[str, TopicRecord] = {}
        self.lessons: Dict[str, LessonRecord] = {}
        self.sync_meta: Optional[SyncMeta] = None
        self._closed = False

    def _clone(self, obj):
        return deepcopy(obj)

    def _require_open(self) -> None:
        if self._closed:
            raise StoreUnavailable("Content store has been closed")

    def upsert_topic(self, topic: TopicRecord) -> None:
        self._require_open()
        self.topics[topic.id] = self._clone(topic)

    def get_topic(self, topic_id: str) -> Optional[TopicRecord]:
        self._require_open()
        topic = self.topics.get(topic_id)
        return self._clone(topic) if topic else None

    def get_all_topics(self) -> List[TopicRecord]:
        self._require_open()
        return [self._clone(self.topics[k]) for k in sorted(self.topics)]

    def get_topic_version(self, topic_id: str) -> Optional[str]:
        self._require_open()
        topic = self.topics.get(topic_id)
        return topic.version if topic else None

    def get_topic_sync_status(self, topic_id: str) -> Optional[TopicSyncStatus]:
        self._require_open()
        topic = self.topics.get(topic_id)
        return topic.sync_status if topic else None

    def set_topic_sync_status(self, topic_id: str, status: TopicSyncStatus) -> None:
        self._require_open()
        topic = self.topics.get(topic_id)
        if not topic:
            return
        updated = self._clone(topic)
        updated.sync_status = status
        self.topics[topic_id] = updated

    def upsert_lesson(self, lesson: LessonRecord) -> None:
        self._require_open()
        self.lessons[lesson.id] = self._clone(lesson)

    def get_lesson(self, lesson_id: str) -> Optional[LessonRecord]:
        self._require_open()
        lesson = self.lessons.get(lesson_id)
        return self._clone(lesson) if lesson else None

    def get_lessons_by_topic(self, topic_id: str) -> List[LessonRecord]:
        self._require_open()
        return [self._clone(self.lessons[k]) for k in sorted(self.lessons) if self.lessons[k].topic_id == topic_id]

    def write_sync_meta(self, timestamp: datetime, index_version: str) -> None:
        self._require_open()
        self.sync_meta = SyncMeta(last_sync_timestamp=timestamp, topics_index_version=index_version)

    def read_sync_meta(self) -> Optional[SyncMeta]:
        self._require_open()
        return self._clone(self.sync_meta) if self.sync_meta else None

    def get_sync_info(self) -> SyncInfo:
        self._require_open()
        statuses = [t.sync_status for t in self.topics.values()]
        return SyncInfo(
            last_sync_timestamp=self.sync_meta.last_sync_timestamp if self.sync_meta else None,
            topics_index_version=self.sync_meta.topics_index_version if self.sync_meta else UNSYNCED_INDEX_VERSION,
            topics_synced=statuses.count(TopicSyncStatus.SYNCED),
            topics_outdated=statuses.count(TopicSyncStatus.OUTDATED),
        )

    def clear_all(self) -> None:
        self._require_open()
        self.lessons.clear()
        self.topics.clear()
        self.sync_meta = None

    def close(self) -> None:
        self._closed = True


class SqlAlchemyContentStore(ContentStore):
    """
    SQL-backed store using SQLAlchemy. Works with SQLite/Postgres URLs.

    Opening an existing database keeps its content and applies any pending
    schema migrations. Pass ``reset_schema=True`` to drop and recreate every
    table instead, for a cache that is meant to be thrown away on startup.
    """

    def __init__(self, database_url: str, reset_schema: bool = False):
        self.database_url = database_url
        self._ensure_sqlite_dir(database_url)
        self.engine = create_engine(database_url, future=True)
        with self.engine.begin() as conn:
            if reset_schema:
                logger.warning("Dropping and recreating cache tables in %s", self.engine.url)
                Base.metadata.drop_all(conn)
            Base.metadata.create_all(conn)
            self._migrate(conn)
        self.SessionLocal = sessionmaker(bind=self.engine, expire_on_commit=False, future=True)
        logger.info("Content store ready: %s", self.engine.url)

    @staticmethod
    def _ensure_sqlite_dir(database_url: str) -> None:
        url = make_url(database_url)
        if url.get_backend_name() != "sqlite":
            return
        if url.database and url.database != ":memory:":
            Path(url.database).parent.mkdir(parents=True, exist_ok=True)

    def _migrate(self, conn: Connection) -> None:
        current = conn.execute(
            select(SchemaVersionModel.version).where(SchemaVersionModel.id == 1)
        ).scalar_one_or_none()
        if current is None:
            conn.execute(insert(SchemaVersionModel).values(id=1, version=SCHEMA_VERSION))
            return
        if current > SCHEMA_VERSION:
            raise StoreSchemaError(
                f"Cache schema version {current} is newer than supported version {SCHEMA_VERSION}"
            )
        for target in range(current + 1, SCHEMA_VERSION + 1):
            step = SCHEMA_MIGRATIONS.get(target)
            if step is None:
                raise StoreSchemaError(f"No migration registered for cache schema version {target}")
            logger.info("Migrating cache schema %s -> %s", target - 1, target)
            step(conn)
        if current != SCHEMA_VERSION:
            conn.execute(update(SchemaVersionModel).where(SchemaVersionModel.id == 1).values(version=SCHEMA_VERSION))

    def schema_version(self) -> int:
        with self._session() as session:
            return session.execute(select(SchemaVersionModel.version)).scalar_one()

    def _session(self) -> Session:
        if self.engine is None:
            raise StoreUnavailable("Content store has been closed")
        return self.SessionLocal()

    # region Topic operations
    def upsert_topic(self, topic: TopicRecord) -> None:
        with self._session() as session:
            model = TopicModel(
                id=topic.id,
                data=topic.serialized_body,
                version=topic.version,
                last_updated=topic.last_updated,
                sync_status=topic.sync_status,
            )
            session.merge(model)
            session.commit()

    def get_topic(self, topic_id: str) -> Optional[TopicRecord]:
        with self._session() as session:
            model = session.get(TopicModel, topic_id)
            if not model:
                return None
            return self._to_topic(model)

    def get_all_topics(self) -> List[TopicRecord]:
        with self._session() as session:
            models = session.execute(select(TopicModel).order_by(TopicModel.id)).scalars().all()
            return [self._to_topic(m) for m in models]

    def get_topic_version(self, topic_id: str) -> Optional[str]:
        with self._session() as session:
            stmt = select(TopicModel.version).where(TopicModel.id == topic_id)
            return session.execute(stmt).scalar_one_or_none()

    def get_topic_sync_status(self, topic_id: str) -> Optional[TopicSyncStatus]:
        with self._session() as session:
            stmt = select(TopicModel.sync_status).where(TopicModel.id == topic_id)
            return session.execute(stmt).scalar_one_or_none()

    def set_topic_sync_status(self, topic_id: str, status: TopicSyncStatus) -> None:
        with self._session() as session:
            stmt = update(TopicModel).where(TopicModel.id == topic_id).values(sync_status=status)
            session.execute(stmt)
            session.commit()

    def has_topics(self) -> bool:
        with self._session() as session:
            return session.execute(select(TopicModel.id).limit(1)).first() is not None

    # endregion

    # region Lesson operations
    def upsert_lesson(self, lesson: LessonRecord) -> None:
        with self._session() as session:
            model = LessonModel(
                id=lesson.id,
                topic_id=lesson.topic_id,
                data=lesson.serialized_body,
                version=lesson.version,
                last_updated=lesson.last_updated,
            )
            session.merge(model)
            session.commit()

    def get_lesson(self, lesson_id: str) -> Optional[LessonRecord]:
        with self._session() as session:
            model = session.get(LessonModel, lesson_id)
            if not model:
                return None
            return self._to_lesson(model)

    def get_lessons_by_topic(self, topic_id: str) -> List[LessonRecord]:
        with self._session() as session:
            stmt = select(LessonModel).where(LessonModel.topic_id == topic_id).order_by(LessonModel.id)
            models = session.execute(stmt).scalars().all()
            return [self._to_lesson(m) for m in models]

    # endregion

    # region Sync metadata
    def write_sync_meta(self, timestamp: datetime, index_version: str) -> None:
        with self._session() as session:
            session.merge(
                SyncMetaModel(
                    id=SYNC_META_ROW_ID,
                    last_sync_timestamp=timestamp,
                    topics_index_version=index_version,
                )
            )
            session.commit()

    def read_sync_meta(self) -> Optional[SyncMeta]:
        with self._session() as session:
            model = session.get(SyncMetaModel, SYNC_META_ROW_ID)
            if not model:
                return None
            return SyncMeta(
                last_sync_timestamp=self._as_utc(model.last_sync_timestamp),
                topics_index_version=model.topics_index_version,
            )

    def get_sync_info(self) -> SyncInfo:
        meta = self.read_sync_meta()
        with self._session() as session:
            stmt = select(TopicModel.sync_status, func.count()).group_by(TopicModel.sync_status)
            counts = {status: count for status, count in session.execute(stmt).all()}
        return SyncInfo(
            last_sync_timestamp=meta.last_sync_timestamp if meta else None,
            topics_index_version=meta.topics_index_version if meta else UNSYNCED_INDEX_VERSION,
            topics_synced=counts.get(TopicSyncStatus.SYNCED, 0),
            topics_outdated=counts.get(TopicSyncStatus.OUTDATED, 0),
        )

    # endregion

    def clear_all(self) -> None:
        with self._session() as session:
            session.execute(delete(LessonModel))
            session.execute(delete(TopicModel))
            session.execute(delete(SyncMetaModel))
            session.commit()

    def close(self) -> None:
        if self.engine is not None:
            self.engine.dispose()
            self.engine = None

    @staticmethod
    def _as_utc(value: datetime) -> datetime:
        # SQLite hands back naive datetimes even for timezone-aware columns.
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @staticmethod
    def _to_topic(model: TopicModel) -> TopicRecord:
        return TopicRecord(
            id=model.id,
            serialized_body=model.data,
            version=model.version,
            last_updated=model.last_updated,
            sync_status=model.sync_status,
        )

    @staticmethod
    def _to_lesson(model: LessonModel) -> LessonRecord:
        return LessonRecord(
            id=model.id,
            topic_id=model.topic_id,
            serialized_body=model.data,
            version=model.version,
            last_updated=model.last_updated,
        )
