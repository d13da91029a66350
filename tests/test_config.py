import os
from pathlib import Path

from skillsync.sync import SyncSettings, load_settings
from skillsync.sync.config import DEFAULT_DATABASE_URL
from skillsync.sync.storage import default_candidate_roots

ENV_KEYS = (
    "DATABASE_URL",
    "SKILLSYNC_SOURCE_ROOTS",
    "SKILLSYNC_CREATE_SOURCE_ROOT",
    "SKILLSYNC_RESET_SCHEMA",
    "REDIS_URL",
    "SYNC_QUEUE_NAME",
    "LOG_LEVEL",
)


def _clear_env(monkeypatch):
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


def test_defaults_without_environment(monkeypatch):
    _clear_env(monkeypatch)
    settings = load_settings()

    assert settings == SyncSettings()
    assert settings.database_url == DEFAULT_DATABASE_URL
    assert settings.candidate_roots() == tuple(default_candidate_roots())
    assert settings.create_source_root is False
    assert settings.queue_name == "content-sync"


def test_environment_overrides(monkeypatch, tmp_path):
    _clear_env(monkeypatch)
    shared, local = tmp_path / "shared", tmp_path / "local"
    monkeypatch.setenv("DATABASE_URL", "sqlite+pysqlite:///:memory:")
    monkeypatch.setenv("SKILLSYNC_SOURCE_ROOTS", os.pathsep.join([str(shared), "", str(local)]))
    monkeypatch.setenv("SKILLSYNC_CREATE_SOURCE_ROOT", "yes")
    monkeypatch.setenv("SKILLSYNC_RESET_SCHEMA", "0")
    monkeypatch.setenv("SYNC_QUEUE_NAME", "nightly")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    settings = load_settings()

    assert settings.database_url == "sqlite+pysqlite:///:memory:"
    assert settings.candidate_roots() == (Path(shared), Path(local))
    assert settings.create_source_root is True
    assert settings.reset_schema is False
    assert settings.queue_name == "nightly"
    assert settings.log_level == "DEBUG"
