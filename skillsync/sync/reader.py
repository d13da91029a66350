from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Type, TypeVar

from pydantic import ValidationError

from .documents import ContentIndex, LessonDocument, SourceDocument, TopicDocument
from .errors import (
    DocumentMalformed,
    DocumentMissing,
    IndexMalformed,
    IndexMissing,
    LessonMalformed,
    LessonMissing,
    TopicMalformed,
    TopicMissing,
)
from .storage import SourcePaths, is_safe_id

logger = logging.getLogger(__name__)

DocT = TypeVar("DocT", bound=SourceDocument)


class DocumentReader:
    """
    Abstract reader for a content source tree. Implementations never cache
    and never write: every call goes back to the source.
    """

    def read_index(self, root: Path) -> ContentIndex:
        raise NotImplementedError

    def read_topic(self, root: Path, topic_id: str) -> TopicDocument:
        raise NotImplementedError

    def read_lesson(self, root: Path, topic_id: str, lesson_id: str) -> LessonDocument:
        raise NotImplementedError


class JsonDocumentReader(DocumentReader):
    """
    Reads the on-disk layout described by :class:`SourcePaths` and validates
    each file against its schema.
    """

    def read_index(self, root: Path) -> ContentIndex:
        path = SourcePaths(Path(root)).index_path()
        return self._load(path, ContentIndex, IndexMissing, IndexMalformed)

    def read_topic(self, root: Path, topic_id: str) -> TopicDocument:
        if not is_safe_id(topic_id):
            raise TopicMalformed(Path(root), f"topic id {topic_id!r} is not a plain folder name")
        path = SourcePaths(Path(root)).topic_path(topic_id)
        topic = self._load(path, TopicDocument, TopicMissing, TopicMalformed)
        if topic.id != topic_id:
            raise TopicMalformed(path, f"id {topic.id!r} does not match folder {topic_id!r}")
        return topic

    def read_lesson(self, root: Path, topic_id: str, lesson_id: str) -> LessonDocument:
        for part in (topic_id, lesson_id):
            if not is_safe_id(part):
                raise LessonMalformed(Path(root), f"id {part!r} in {topic_id}/{lesson_id} is not a plain file name")
        path = SourcePaths(Path(root)).lesson_path(topic_id, lesson_id)
        lesson = self._load(path, LessonDocument, LessonMissing, LessonMalformed)
        if lesson.id != lesson_id:
            raise LessonMalformed(path, f"id {lesson.id!r} does not match file name {lesson_id!r}")
        return lesson

    def _load(
        self,
        path: Path,
        schema: Type[DocT],
        missing: Type[DocumentMissing],
        malformed: Type[DocumentMalformed],
    ) -> DocT:
        logger.debug("Reading %s", path)
        raw = self._read_json(path, missing, malformed)
        try:
            return schema.model_validate(raw)
        except ValidationError as exc:
            raise malformed(path, f"{exc.error_count()} validation error(s)") from exc

    def _read_json(
        self,
        path: Path,
        missing: Type[DocumentMissing],
        malformed: Type[DocumentMalformed],
    ) -> Any:
        try:
            if not path.is_file():
                raise missing(path)
            with path.open("r", encoding="utf-8") as f:
                return json.load(f)
        except FileNotFoundError as exc:
            # removed between the check and the open
            raise missing(path) from exc
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise malformed(path, str(exc)) from exc
        except (OSError, ValueError) as exc:
            # stat or open refused the path, e.g. ENAMETOOLONG or EACCES
            raise missing(path, str(exc)) from exc
