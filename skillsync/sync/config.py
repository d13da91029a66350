"""Sync engine configuration loaded from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple

from .storage import default_candidate_roots

DEFAULT_DATABASE_URL = "sqlite+pysqlite:///./data/skillsync.db"


@dataclass(frozen=True)
class SyncSettings:
    database_url: str = DEFAULT_DATABASE_URL
    # priority order, first usable one wins
    source_roots: Tuple[Path, ...] = ()
    create_source_root: bool = False
    reset_schema: bool = False
    redis_url: str = "redis://localhost:6379/0"
    queue_name: str = "content-sync"
    log_level: str = "INFO"

    def candidate_roots(self) -> Tuple[Path, ...]:
        return self.source_roots or tuple(default_candidate_roots())


def _parse_bool(raw: Optional[str]) -> bool:
    if raw is None:
        return False
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _parse_roots(raw: Optional[str]) -> Tuple[Path, ...]:
    if not raw:
        return ()
    return tuple(Path(part).expanduser() for part in raw.split(os.pathsep) if part.strip())


def load_settings() -> SyncSettings:
    return SyncSettings(
        database_url=os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL),
        source_roots=_parse_roots(os.getenv("SKILLSYNC_SOURCE_ROOTS")),
        create_source_root=_parse_bool(os.getenv("SKILLSYNC_CREATE_SOURCE_ROOT")),
        reset_schema=_parse_bool(os.getenv("SKILLSYNC_RESET_SCHEMA")),
        redis_url=os.getenv("REDIS_URL", "redis://localhost:6379/0"),
        queue_name=os.getenv("SYNC_QUEUE_NAME", "content-sync"),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )
