import json

import pytest

from skillsync.sync import (
    IndexMalformed,
    IndexMissing,
    JsonDocumentReader,
    LessonMalformed,
    LessonMissing,
    TopicDocument,
    TopicMalformed,
    TopicMissing,
)


def test_reads_camel_case_documents(content_tree):
    content_tree.add_topic("algebra", ["a1"])
    content_tree.write_index("2.0.0", {"algebra": "1.4.0"})
    reader = JsonDocumentReader()

    index = reader.read_index(content_tree.root)
    assert index.version == "2.0.0"
    assert index.topics[0].total_duration == "1h"
    assert index.find("algebra").version == "1.4.0"

    topic = reader.read_topic(content_tree.root, "algebra")
    assert topic.last_updated == "2024-05-01"
    assert [meta.id for meta in topic.lessons] == ["a1"]

    lesson = reader.read_lesson(content_tree.root, "algebra", "a1")
    assert lesson.key_takeaways == ["Lessons exist"]
    assert lesson.quiz[0].correct_answer is True
    assert lesson.previous_lesson is None


def test_unknown_keys_survive_serialization(content_tree):
    content_tree.add_topic("algebra", [], coverImage="cover.png")

    topic = JsonDocumentReader().read_topic(content_tree.root, "algebra")
    body = json.loads(topic.to_json())

    assert body["coverImage"] == "cover.png"
    assert body["lastUpdated"] == "2024-05-01"
    assert TopicDocument.model_validate_json(topic.to_json()) == topic


def test_missing_documents(content_tree):
    reader = JsonDocumentReader()
    with pytest.raises(IndexMissing):
        reader.read_index(content_tree.root)
    with pytest.raises(TopicMissing):
        reader.read_topic(content_tree.root, "algebra")

    content_tree.add_topic("algebra", ["a1"], write_lessons=False)
    with pytest.raises(LessonMissing) as excinfo:
        reader.read_lesson(content_tree.root, "algebra", "a1")
    assert excinfo.value.path == content_tree.paths.lesson_path("algebra", "a1")


def test_malformed_documents(content_tree):
    reader = JsonDocumentReader()

    content_tree.write_raw("topics.json", "[1, 2")
    with pytest.raises(IndexMalformed):
        reader.read_index(content_tree.root)

    content_tree.write_raw("algebra/topic.json", json.dumps({"id": "algebra", "title": "A", "lessons": {}}))
    with pytest.raises(TopicMalformed):
        reader.read_topic(content_tree.root, "algebra")

    content_tree.write_raw("algebra/lessons/a1.json", json.dumps({"id": "a1"}))
    with pytest.raises(LessonMalformed):
        reader.read_lesson(content_tree.root, "algebra", "a1")


def test_ids_must_match_their_location(content_tree):
    reader = JsonDocumentReader()
    content_tree.add_topic("algebra", ["a1"], id="geometry")
    with pytest.raises(TopicMalformed, match="does not match folder"):
        reader.read_topic(content_tree.root, "algebra")

    content_tree.add_lesson("algebra", "a1", id="a2")
    with pytest.raises(LessonMalformed, match="does not match file name"):
        reader.read_lesson(content_tree.root, "algebra", "a1")


def test_reader_does_not_touch_the_source(content_tree):
    content_tree.add_topic("algebra", ["a1"])
    content_tree.write_index("1.0.0", {"algebra": "1.0.0"})
    before = sorted((p, p.stat().st_mtime_ns) for p in content_tree.root.rglob("*"))

    reader = JsonDocumentReader()
    reader.read_index(content_tree.root)
    reader.read_topic(content_tree.root, "algebra")
    reader.read_lesson(content_tree.root, "algebra", "a1")
    with pytest.raises(TopicMissing):
        reader.read_topic(content_tree.root, "calculus")

    assert sorted((p, p.stat().st_mtime_ns) for p in content_tree.root.rglob("*")) == before


def test_topic_id_must_be_a_plain_folder_name(content_tree):
    content_tree.add_topic("algebra", ["a1"])
    reader = JsonDocumentReader()

    for topic_id in ("../source/algebra", "..", "algebra/"):
        with pytest.raises(TopicMalformed, match="not a plain folder name"):
            reader.read_topic(content_tree.root, topic_id)


@pytest.mark.parametrize(
    "topic_id, lesson_id",
    [
        ("algebra", "../../geometry/lessons/g1"),
        ("..", "a1"),
        ("algebra", ""),
        ("algebra", "a\x001"),
    ],
)
def test_lesson_ids_must_be_plain_file_names(content_tree, topic_id, lesson_id):
    content_tree.add_topic("algebra", ["a1"])
    content_tree.add_topic("geometry", ["g1"])

    with pytest.raises(LessonMalformed, match="not a plain file name"):
        JsonDocumentReader().read_lesson(content_tree.root, topic_id, lesson_id)


def test_path_the_os_refuses_reads_as_missing(content_tree):
    content_tree.add_topic("algebra", ["a1"])

    with pytest.raises(LessonMissing):
        JsonDocumentReader().read_lesson(content_tree.root, "algebra", "x" * 300)
