import json
from pathlib import Path
from typing import Dict, Iterable, Optional

import pytest

from skillsync.sync import InMemoryContentStore, PathResolver, SourcePaths


class ContentTree:
    """Writes a content source tree (index, topics, lessons) under a root."""

    def __init__(self, root: Path):
        self.root = root
        self.paths = SourcePaths(root)

    def _write(self, path: Path, data) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(data), encoding="utf-8")
        return path

    def add_topic(
        self,
        topic_id: str,
        lesson_ids: Iterable[str] = (),
        last_updated: str = "2024-05-01",
        write_lessons: bool = True,
        **overrides,
    ) -> dict:
        lesson_ids = list(lesson_ids)
        topic = {
            "id": topic_id,
            "title": topic_id.replace("-", " ").title(),
            "description": f"All about {topic_id}",
            "icon": "book",
            "color": "#336699",
            "lessons": [
                {
                    "id": lesson_id,
                    "order": order,
                    "title": f"Lesson {lesson_id}",
                    "duration": "10 min",
                    "difficulty": "beginner",
                }
                for order, lesson_id in enumerate(lesson_ids, start=1)
            ],
            "prerequisites": [],
            "tags": ["math"],
            "lastUpdated": last_updated,
        }
        topic.update(overrides)
        self._write(self.paths.topic_path(topic_id), topic)
        if write_lessons:
            for lesson_id in lesson_ids:
                self.add_lesson(topic_id, lesson_id)
        return topic

    def add_lesson(self, topic_id: str, lesson_id: str, last_updated: str = "2024-05-02", **overrides) -> dict:
        lesson = {
            "id": lesson_id,
            "title": f"Lesson {lesson_id}",
            "topic": topic_id,
            "order": 1,
            "duration": "10 min",
            "difficulty": "beginner",
            "objectives": ["Understand the basics"],
            "sections": [
                {"id": "s1", "type": "content", "title": "Intro", "content": "Hello"},
                {"id": "s2", "type": "code", "title": "Example", "content": "x = 1", "codeLanguage": "python"},
            ],
            "quiz": [
                {
                    "id": "q1",
                    "type": "true-false",
                    "question": "Is this a lesson?",
                    "correctAnswer": True,
                    "explanation": "It is.",
                }
            ],
            "keyTakeaways": ["Lessons exist"],
            "previousLesson": None,
            "nextLesson": None,
            "resources": [{"title": "Docs", "url": "https://example.com", "type": "article"}],
            "lastUpdated": last_updated,
        }
        lesson.update(overrides)
        self._write(self.paths.lesson_path(topic_id, lesson_id), lesson)
        return lesson

    def write_index(self, version: str = "1.0.0", topic_versions: Optional[Dict[str, str]] = None) -> dict:
        topic_versions = topic_versions or {}
        index = {
            "version": version,
            "lastUpdated": "2024-05-01",
            "topics": [
                {
                    "id": topic_id,
                    "title": topic_id.title(),
                    "description": "",
                    "icon": "book",
                    "color": "#336699",
                    "version": topic_version,
                    "lastUpdated": "2024-05-01",
                    "lessonCount": 0,
                    "totalDuration": "1h",
                    "difficulty": "mixed",
                    "tags": [],
                }
                for topic_id, topic_version in topic_versions.items()
            ],
        }
        self._write(self.paths.index_path(), index)
        return index

    def write_raw(self, relative: str, text: str) -> Path:
        path = self.root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
        return path


@pytest.fixture
def content_tree(tmp_path) -> ContentTree:
    root = tmp_path / "source"
    root.mkdir()
    return ContentTree(root)


@pytest.fixture
def resolver(content_tree) -> PathResolver:
    return PathResolver([content_tree.root.parent / "missing-shared", content_tree.root])


@pytest.fixture
def memory_store() -> InMemoryContentStore:
    return InMemoryContentStore()
