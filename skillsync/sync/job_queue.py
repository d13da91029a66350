from __future__ import annotations

import logging
from typing import Callable, Optional

from redis import Redis
from rq import Queue, Worker
from rq.exceptions import NoSuchJobError
from rq.job import Job, JobStatus

from .config import SyncSettings
from .models import SyncReport, UpdateCheckResult
from .service import ContentSyncService

logger = logging.getLogger(__name__)

SYNC_JOB_ID = "content-sync"
UPDATE_CHECK_JOB_ID = "content-update-check"

# A job in one of these states has not run to completion yet.
PENDING_STATUSES = {JobStatus.QUEUED, JobStatus.STARTED, JobStatus.DEFERRED, JobStatus.SCHEDULED}


def run_sync_job(settings: SyncSettings) -> SyncReport:
    """
    RQ task entrypoint. Builds the service from settings and runs one full
    sync pass.
    """
    service = ContentSyncService.from_settings(settings)
    try:
        return service.sync_all()
    finally:
        service.close()


def run_update_check_job(settings: SyncSettings) -> UpdateCheckResult:
    service = ContentSyncService.from_settings(settings)
    try:
        return service.check_for_updates()
    finally:
        service.close()


class RQSyncQueue:
    """
    Redis-backed job queue using RQ. Keeps long sync passes off the caller's
    thread; workers are started by calling `work()` in a dedicated process.
    """

    def __init__(
        self,
        redis_url: str = "redis://localhost:6379/0",
        queue_name: str = "content-sync",
        connection: Optional[Redis] = None,
    ):
        self.redis = connection if connection is not None else Redis.from_url(redis_url)
        self.queue = Queue(queue_name, connection=self.redis)

    @classmethod
    def from_settings(cls, settings: SyncSettings) -> "RQSyncQueue":
        return cls(redis_url=settings.redis_url, queue_name=settings.queue_name)

    def enqueue_sync(self, settings: SyncSettings) -> Job:
        """
        Enqueue a sync pass. While a sync job is still queued or running the
        existing job is returned instead of a second one.
        """
        return self._enqueue_once(run_sync_job, settings, SYNC_JOB_ID)

    def enqueue_update_check(self, settings: SyncSettings) -> Job:
        return self._enqueue_once(run_update_check_job, settings, UPDATE_CHECK_JOB_ID)

    def pending_job(self, job_id: str) -> Optional[Job]:
        try:
            job = Job.fetch(job_id, connection=self.redis)
        except NoSuchJobError:
            return None
        if job.get_status(refresh=True) in PENDING_STATUSES:
            return job
        return None

    def _enqueue_once(self, func: Callable, settings: SyncSettings, job_id: str) -> Job:
        existing = self.pending_job(job_id)
        if existing is not None:
            logger.info("Job %s is already %s on %s; not enqueueing again", job_id, existing.get_status(), self.queue.name)
            return existing
        logger.info("Enqueueing %s on %s", job_id, self.queue.name)
        return self.queue.enqueue(func, settings, job_id=job_id)

    def work(self):
        worker = Worker([self.queue], connection=self.redis)
        worker.work(with_scheduler=True)
