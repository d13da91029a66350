from __future__ import annotations

from functools import lru_cache

from skillsync.sync import ContentStore, ContentSyncService, SyncSettings, load_settings


@lru_cache(maxsize=1)
def get_settings() -> SyncSettings:
    return load_settings()


@lru_cache(maxsize=1)
def get_service() -> ContentSyncService:
    return ContentSyncService.from_settings(get_settings())


def get_store() -> ContentStore:
    return get_service().store
