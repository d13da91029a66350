from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from skillsync.sync import ContentStore, LessonRecord, TopicRecord

from api.dependencies import get_store

router = APIRouter(prefix="/topics", tags=["topics"])


def _topic_payload(record: TopicRecord) -> dict:
    return {
        "id": record.id,
        "version": record.version,
        "last_updated": record.last_updated,
        "sync_status": record.sync_status,
        "topic": record.document().model_dump(by_alias=True),
    }


def _lesson_payload(record: LessonRecord) -> dict:
    return {
        "id": record.id,
        "topic_id": record.topic_id,
        "version": record.version,
        "last_updated": record.last_updated,
        "lesson": record.document().model_dump(by_alias=True),
    }


@router.get("")
def list_topics(store: ContentStore = Depends(get_store)):
    return [_topic_payload(t) for t in store.get_all_topics()]


@router.get("/{topic_id}")
def get_topic(topic_id: str, store: ContentStore = Depends(get_store)):
    topic = store.get_topic(topic_id)
    if not topic:
        raise HTTPException(status_code=404, detail=f"Topic not found: {topic_id}")
    return _topic_payload(topic)


@router.get("/{topic_id}/lessons")
def list_lessons(topic_id: str, store: ContentStore = Depends(get_store)):
    if not store.get_topic(topic_id):
        raise HTTPException(status_code=404, detail=f"Topic not found: {topic_id}")
    return [_lesson_payload(lesson) for lesson in store.get_lessons_by_topic(topic_id)]


@router.get("/{topic_id}/lessons/{lesson_id}")
def get_lesson(topic_id: str, lesson_id: str, store: ContentStore = Depends(get_store)):
    lesson = store.get_lesson(lesson_id)
    if not lesson or lesson.topic_id != topic_id:
        raise HTTPException(status_code=404, detail=f"Lesson not found: {topic_id}/{lesson_id}")
    return _lesson_payload(lesson)
