from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Sequence

from .errors import NoAccessibleSource

logger = logging.getLogger(__name__)

INDEX_FILE_NAME = "topics.json"
TOPIC_FILE_NAME = "topic.json"
LESSONS_DIR_NAME = "lessons"


def is_safe_id(entity_id: str) -> bool:
    """True when ``entity_id`` names a single path component under its parent."""
    if not entity_id or entity_id in (".", "..") or "\x00" in entity_id:
        return False
    separators = {"/", os.sep, os.altsep} - {None}
    return not any(sep in entity_id for sep in separators)


@dataclass
class SourcePaths:
    root: Path

    def index_path(self) -> Path:
        return self.root / INDEX_FILE_NAME

    def topic_dir(self, topic_id: str) -> Path:
        return self.root / str(topic_id)

    def topic_path(self, topic_id: str) -> Path:
        return self.topic_dir(topic_id) / TOPIC_FILE_NAME

    def lesson_path(self, topic_id: str, lesson_id: str) -> Path:
        return self.topic_dir(topic_id) / LESSONS_DIR_NAME / f"{lesson_id}.json"

    def topic_dirs(self) -> List[str]:
        """
        Names of the subdirectories of the root, sorted. Each one is a
        candidate topic id; whether it actually holds a topic is decided when
        its topic.json is read.
        """
        try:
            return sorted(
                entry.name for entry in self.root.iterdir() if entry.is_dir() and not entry.name.startswith(".")
            )
        except OSError as exc:
            logger.warning("Could not list source root %s: %s", self.root, exc)
            return []


def default_candidate_roots() -> List[Path]:
    """
    Resolution order, first match wins:
      1. ~/Downloads/SkillSync/data  (shared, user-visible)
      2. ~/.skillsync/data           (private fallback)
    """
    home = Path.home()
    return [
        home / "Downloads" / "SkillSync" / "data",
        home / ".skillsync" / "data",
    ]


class PathResolver:
    """
    Picks the content source root out of an ordered list of candidates.

    Nothing is cached: removable or network-mounted locations come and go, so
    callers resolve again at the start of every pass.
    """

    def __init__(self, candidates: Iterable[Path], create_if_missing: bool = False):
        self.candidates: Sequence[Path] = [Path(c).expanduser() for c in candidates]
        self.create_if_missing = create_if_missing

    def resolve_root(self) -> Path:
        for candidate in self.candidates:
            if self._is_usable(candidate):
                logger.info("Using content source root %s", candidate)
                return candidate
            logger.debug("Candidate source root not usable: %s", candidate)

        if self.create_if_missing and self.candidates:
            first = self.candidates[0]
            try:
                first.mkdir(parents=True, exist_ok=True)
            except OSError as exc:
                logger.error("Could not create source root %s: %s", first, exc)
            else:
                if self._is_usable(first):
                    logger.warning("No existing source root found; created %s", first)
                    return first

        logger.error("No accessible content source among %s", [str(c) for c in self.candidates])
        raise NoAccessibleSource(self.candidates)

    def paths(self) -> SourcePaths:
        return SourcePaths(self.resolve_root())

    @staticmethod
    def _is_usable(path: Path) -> bool:
        try:
            return path.is_dir() and os.access(path, os.R_OK | os.X_OK)
        except OSError:
            return False
