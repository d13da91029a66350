"""
Schemas for the documents found in a content source tree.

The JSON files use camelCase keys; fields here are snake_case with camelCase
aliases. Unknown keys are kept so a document serialized back into the cache
carries everything the source had.
"""

from __future__ import annotations

from typing import List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

Difficulty = Literal["beginner", "intermediate", "advanced"]


class SourceDocument(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)


class TopicSummary(SourceDocument):
    id: str
    title: str = ""
    description: str = ""
    icon: str = ""
    color: str = ""
    version: str = "1.0.0"
    last_updated: str = ""
    lesson_count: int = 0
    total_duration: str = ""
    difficulty: Optional[Literal["beginner", "intermediate", "advanced", "mixed"]] = None
    tags: List[str] = Field(default_factory=list)


class ContentIndex(SourceDocument):
    version: str = "1.0.0"
    last_updated: str = ""
    topics: List[TopicSummary] = Field(default_factory=list)

    def find(self, topic_id: str) -> Optional[TopicSummary]:
        for summary in self.topics:
            if summary.id == topic_id:
                return summary
        return None


class LessonMeta(SourceDocument):
    id: str
    order: int = 0
    title: str = ""
    duration: str = ""
    difficulty: Optional[Difficulty] = None


class TopicDocument(SourceDocument):
    id: str
    title: str
    description: str = ""
    icon: str = ""
    color: str = ""
    lessons: List[LessonMeta] = Field(default_factory=list)
    prerequisites: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    last_updated: str = ""


class LessonSection(SourceDocument):
    id: str
    type: Literal["content", "code", "exercise", "video", "markdown", "file"]
    title: str = ""
    content: str = ""
    code_language: Optional[str] = None
    video_url: Optional[str] = None
    # relative to the topic folder
    file_path: Optional[str] = None
    file_type: Optional[Literal["video", "markdown", "other"]] = None


class QuizQuestion(SourceDocument):
    id: str
    type: Literal["multiple-choice", "true-false", "fill-blank"]
    question: str
    options: Optional[List[str]] = None
    correct_answer: Union[bool, int, str]
    explanation: str = ""


class Resource(SourceDocument):
    title: str
    url: str
    type: Literal["video", "article", "book", "course", "paper", "interactive"]


class LessonDocument(SourceDocument):
    id: str
    title: str
    topic: Optional[str] = None
    order: int = 0
    duration: str = ""
    difficulty: Optional[Difficulty] = None
    objectives: List[str] = Field(default_factory=list)
    sections: List[LessonSection] = Field(default_factory=list)
    quiz: List[QuizQuestion] = Field(default_factory=list)
    key_takeaways: List[str] = Field(default_factory=list)
    previous_lesson: Optional[str] = None
    next_lesson: Optional[str] = None
    resources: List[Resource] = Field(default_factory=list)
    last_updated: str = ""
