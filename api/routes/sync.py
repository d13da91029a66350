from __future__ import annotations

import logging

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException

from skillsync.sync import ContentSyncError, ContentSyncService, SyncAlreadyInProgress

from api.dependencies import get_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sync", tags=["sync"])


def _run_sync(service: ContentSyncService) -> None:
    try:
        report = service.sync_all()
    except ContentSyncError as exc:
        # Already logged and published on the status; the caller polls /sync/status.
        logger.info("Background sync ended without completing: %s", exc)
        return
    logger.info("Background sync done: %d topics, %d lessons", report.topics_synced, report.lessons_synced)


@router.post("", status_code=202)
def start_sync(background_tasks: BackgroundTasks, service: ContentSyncService = Depends(get_service)):
    if service.is_syncing:
        raise HTTPException(status_code=409, detail="A sync pass is already in progress")
    background_tasks.add_task(_run_sync, service)
    return {"status": "started"}


@router.post("/check")
def check_for_updates(service: ContentSyncService = Depends(get_service)):
    try:
        result = service.check_for_updates()
    except SyncAlreadyInProgress as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    return {
        "has_updates": result.has_updates,
        "index_updated": result.index_updated,
        "new_topics": [t.model_dump(by_alias=True) for t in result.new_topics],
        "updated_topics": [t.model_dump(by_alias=True) for t in result.updated_topics],
    }


@router.post("/cancel")
def cancel_sync(service: ContentSyncService = Depends(get_service)):
    return {"cancelled": service.cancel_current()}


@router.get("/status")
def get_status(service: ContentSyncService = Depends(get_service)):
    return service.get_sync_status().to_dict()


@router.get("/info")
def get_info(service: ContentSyncService = Depends(get_service)):
    info = service.get_sync_info()
    return {
        "last_sync_timestamp": info.last_sync_timestamp.isoformat() if info.last_sync_timestamp else None,
        "topics_index_version": info.topics_index_version,
        "topics_synced": info.topics_synced,
        "topics_outdated": info.topics_outdated,
        "data_available": service.is_data_available(),
    }
