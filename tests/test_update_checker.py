import json

import pytest

from skillsync.sync import (
    ContentSyncService,
    IndexMalformed,
    JsonDocumentReader,
    PathResolver,
    SyncAlreadyInProgress,
    SyncOrchestrator,
    TopicSyncStatus,
    UpdateChecker,
)


def test_version_bump_flags_topic_outdated_until_next_sync(content_tree, resolver, memory_store):
    content_tree.add_topic("algebra", ["a1"])
    content_tree.add_topic("geometry", ["g1"])
    content_tree.write_index("1.0.0", {"algebra": "1.0.0", "geometry": "1.0.0"})
    orchestrator = SyncOrchestrator(store=memory_store, resolver=resolver)
    checker = UpdateChecker(store=memory_store, resolver=resolver)

    orchestrator.sync_all()
    assert memory_store.read_sync_meta().topics_index_version == "1.0.0"

    content_tree.write_index("1.1.0", {"algebra": "1.0.1", "geometry": "1.0.0"})
    result = checker.check_for_updates()

    assert result.has_updates
    assert result.index_updated
    assert [t.id for t in result.updated_topics] == ["algebra"]
    assert result.updated_topics[0].version == "1.0.1"
    assert result.new_topics == []
    assert memory_store.get_topic_sync_status("algebra") == TopicSyncStatus.OUTDATED
    assert memory_store.get_topic_sync_status("geometry") == TopicSyncStatus.SYNCED
    # the check never rewrites cached versions
    assert memory_store.get_topic_version("algebra") == "1.0.0"

    orchestrator.sync_all()
    assert memory_store.get_topic_sync_status("algebra") == TopicSyncStatus.SYNCED
    assert memory_store.get_topic_version("algebra") == "1.0.1"
    assert memory_store.read_sync_meta().topics_index_version == "1.1.0"
    assert not checker.check_for_updates().has_updates


def test_unknown_topic_is_new_not_updated(content_tree, resolver, memory_store):
    content_tree.add_topic("algebra", ["a1"])
    content_tree.write_index("1.0.0", {"algebra": "1.0.0"})
    SyncOrchestrator(store=memory_store, resolver=resolver).sync_all()

    content_tree.write_index("1.0.0", {"algebra": "1.0.0", "calculus": "0.1.0"})
    result = UpdateChecker(store=memory_store, resolver=resolver).check_for_updates()

    assert [t.id for t in result.new_topics] == ["calculus"]
    assert result.updated_topics == []
    assert result.index_updated is False
    assert result.has_updates
    assert memory_store.get_topic_sync_status("calculus") is None


def test_everything_is_new_before_first_sync(content_tree, resolver, memory_store):
    content_tree.write_index("1.0.0", {"algebra": "1.0.0", "geometry": "1.0.0"})

    result = UpdateChecker(store=memory_store, resolver=resolver).check_for_updates()

    assert result.index_updated
    assert [t.id for t in result.new_topics] == ["algebra", "geometry"]


def test_missing_index_reports_no_updates(content_tree, resolver, memory_store):
    content_tree.add_topic("algebra", ["a1"])
    SyncOrchestrator(store=memory_store, resolver=resolver).sync_all()
    before = memory_store.get_all_topics()

    result = UpdateChecker(store=memory_store, resolver=resolver).check_for_updates()

    assert not result.has_updates
    assert result.new_topics == [] and result.updated_topics == []
    assert memory_store.get_all_topics() == before


def test_unreachable_source_reports_no_updates(tmp_path, memory_store):
    checker = UpdateChecker(store=memory_store, resolver=PathResolver([tmp_path / "gone"]))
    assert not checker.check_for_updates().has_updates


def test_malformed_index_is_raised(content_tree, resolver, memory_store):
    content_tree.write_raw("topics.json", '{"version": "1.0.0", "topics": "nope"}')
    with pytest.raises(IndexMalformed):
        UpdateChecker(store=memory_store, resolver=resolver).check_for_updates()


class CheckingReader(JsonDocumentReader):
    """Runs an update check while a sync pass is reading topics."""

    def __init__(self):
        self.service = None
        self.error = None

    def read_topic(self, root, topic_id):
        try:
            self.service.check_for_updates()
        except SyncAlreadyInProgress as exc:
            self.error = exc
        return super().read_topic(root, topic_id)


def test_update_check_is_rejected_while_sync_runs(content_tree, resolver, memory_store):
    content_tree.add_topic("algebra", ["a1"])
    content_tree.write_index("1.0.0", {"algebra": "1.0.0"})
    reader = CheckingReader()
    service = ContentSyncService(store=memory_store, resolver=resolver, reader=reader)
    reader.service = service

    service.sync_all()

    assert isinstance(reader.error, SyncAlreadyInProgress)
    assert service.check_for_updates().has_updates is False


def test_duplicate_index_entries_are_classified_once(content_tree, resolver, memory_store):
    content_tree.add_topic("algebra", ["a1"])
    content_tree.write_index("1.0.0", {"algebra": "1.0.0"})
    SyncOrchestrator(store=memory_store, resolver=resolver).sync_all()

    index = content_tree.write_index("1.1.0", {"algebra": "1.0.1", "geometry": "1.0.0"})
    index["topics"] = index["topics"] + index["topics"]
    content_tree.write_raw("topics.json", json.dumps(index))

    result = UpdateChecker(store=memory_store, resolver=resolver).check_for_updates()

    assert [t.id for t in result.updated_topics] == ["algebra"]
    assert [t.id for t in result.new_topics] == ["geometry"]
