"""
SkillSync offline content core.

The package currently focuses on the sync subsystem: it mirrors a
filesystem tree of topic and lesson JSON documents into a local SQL cache,
tracks per-topic versions and sync status, and detects changes in the
source's content index without a full re-sync.
"""
