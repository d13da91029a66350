from __future__ import annotations

from pathlib import Path
from typing import Iterable, Optional


class ContentSyncError(Exception):
    """Root of every error raised by the sync engine."""


# region source
class SourceError(ContentSyncError):
    pass


class NoAccessibleSource(SourceError):
    def __init__(self, candidates: Iterable[Path]):
        self.candidates = [Path(c) for c in candidates]
        tried = ", ".join(str(c) for c in self.candidates) or "<none configured>"
        super().__init__(f"No accessible content source found (tried: {tried})")


# endregion


# region documents
class DocumentError(ContentSyncError):
    """
    A single source document could not be used. These are entity-level
    failures: the orchestrator skips the entity and keeps going.
    """

    kind = "document"

    def __init__(self, path: Path, detail: Optional[str] = None):
        self.path = Path(path)
        self.detail = detail
        message = f"{self.describe()}: {self.path}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)

    def describe(self) -> str:
        return f"{self.kind} document error"


class DocumentMissing(DocumentError):
    def describe(self) -> str:
        return f"{self.kind} document not found"


class DocumentMalformed(DocumentError):
    def describe(self) -> str:
        return f"{self.kind} document is malformed"


class IndexMissing(DocumentMissing):
    kind = "index"


class IndexMalformed(DocumentMalformed):
    kind = "index"


class TopicMissing(DocumentMissing):
    kind = "topic"


class TopicMalformed(DocumentMalformed):
    kind = "topic"


class LessonMissing(DocumentMissing):
    kind = "lesson"


class LessonMalformed(DocumentMalformed):
    kind = "lesson"


# endregion


# region store
class StoreError(ContentSyncError):
    pass


class StoreUnavailable(StoreError):
    pass


class StoreSchemaError(StoreError):
    pass


# endregion


# region sync pass
class SyncPassError(ContentSyncError):
    pass


class SyncAlreadyInProgress(SyncPassError):
    def __init__(self, running: str = "sync"):
        self.running = running
        super().__init__(f"A {running} pass is already in progress")


class SyncCancelled(SyncPassError):
    def __init__(self):
        super().__init__("Sync cancelled")


class NoTopicsDiscovered(SyncPassError):
    def __init__(self, root: Path):
        self.root = Path(root)
        super().__init__(f"No topics found in {self.root}")


class NoTopicsSynced(SyncPassError):
    def __init__(self, root: Path, skipped: int):
        self.root = Path(root)
        self.skipped = skipped
        super().__init__(f"None of the {skipped} topics in {self.root} could be read")


# endregion
