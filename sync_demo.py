"""
Run a content sync pass (or just an update check) against a local source tree.

Usage:
    python3 sync_demo.py --source-root ~/Downloads/SkillSync/data --db ./data/skillsync.db
    python3 sync_demo.py --check-only
    python3 sync_demo.py --enqueue      # then: python3 sync_demo.py --worker
"""

import argparse
import logging
from dataclasses import replace
from pathlib import Path

from skillsync.sync import (
    ContentSyncError,
    ContentSyncService,
    RQSyncQueue,
    SyncStatus,
    load_settings,
)


def setup_logging(level: str = "INFO"):
    log_dir = Path("./logs")
    log_dir.mkdir(exist_ok=True)

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[
            logging.StreamHandler(),
            logging.FileHandler(log_dir / "sync.log", encoding="utf-8"),
        ],
        force=True,
    )


def print_status(status: SyncStatus) -> None:
    progress = status.progress
    print(f"[{status.phase.value}] {progress.current}/{progress.total} (skipped {progress.skipped})")


def main():
    settings = load_settings()
    parser = argparse.ArgumentParser()
    parser.add_argument(
        "--source-root",
        action="append",
        type=Path,
        default=None,
        help="Candidate content root; repeat to give fallbacks in priority order",
    )
    parser.add_argument("--db", default=None, type=Path, help="SQLite cache path")
    parser.add_argument("--create-root", action="store_true", help="Create the first source root if none exists")
    parser.add_argument("--reset", action="store_true", help="Drop and recreate the cache tables first")
    parser.add_argument("--check-only", action="store_true", help="Only compare the content index with the cache")
    parser.add_argument("--enqueue", action="store_true", help="Hand the pass to the RQ queue instead of running it here")
    parser.add_argument("--worker", action="store_true", help="Run an RQ worker for the sync queue")
    parser.add_argument("--log-level", default=settings.log_level, help="Logging level")
    args = parser.parse_args()

    setup_logging(args.log_level)

    overrides = {}
    if args.source_root:
        overrides["source_roots"] = tuple(args.source_root)
    if args.db:
        overrides["database_url"] = f"sqlite+pysqlite:///{args.db}"
    if args.create_root:
        overrides["create_source_root"] = True
    if args.reset:
        overrides["reset_schema"] = True
    settings = replace(settings, **overrides)

    if args.worker or args.enqueue:
        queue = RQSyncQueue.from_settings(settings)
        if args.worker:
            queue.work()
            return
        job = queue.enqueue_update_check(settings) if args.check_only else queue.enqueue_sync(settings)
        print(f"Job {job.id} is {job.get_status()} on queue {settings.queue_name}")
        return

    service = ContentSyncService.from_settings(settings)
    try:
        if args.check_only:
            result = service.check_for_updates()
            print(f"Updates available: {result.has_updates} (index changed: {result.index_updated})")
            for summary in result.new_topics:
                print(f"  new:     {summary.id} {summary.version}")
            for summary in result.updated_topics:
                print(f"  updated: {summary.id} {summary.version}")
            return

        service.subscribe(print_status)
        try:
            report = service.sync_all()
        except ContentSyncError as exc:
            print(f"Sync failed: {exc}")
            raise SystemExit(1) from exc
        print(
            f"Synced {report.topics_synced} topics and {report.lessons_synced} lessons "
            f"from {report.source_root} (index {report.index_version})"
        )
        for skipped in report.skipped:
            print(f"  skipped {skipped.kind} {skipped.id}: {skipped.reason}")
    finally:
        service.close()


if __name__ == "__main__":
    main()
