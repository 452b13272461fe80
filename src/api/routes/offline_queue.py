"""Offline sale queue endpoints."""

from fastapi import APIRouter, Depends, HTTPException, Query, status

from src.api.dependencies import (
    get_list_queue_use_case,
    get_offline_status_use_case,
    get_purge_entries_use_case,
    get_retry_entry_use_case,
    get_sync_queue_use_case,
)
from src.application.dto.responses import (
    ErrorResponse,
    OfflineStatusResponse,
    PurgeResponse,
    QueueEntryResponse,
    QueueListResponse,
    SyncResultResponse,
)
from src.application.use_cases import (
    GetOfflineStatusUseCase,
    ListOfflineQueueUseCase,
    PurgeQueueEntriesUseCase,
    RetryQueueEntryUseCase,
    SyncOfflineQueueUseCase,
)
from src.core.entities.sale import SyncState

router = APIRouter(prefix="/api/offline", tags=["offline"])


@router.get("/status", response_model=OfflineStatusResponse)
async def offline_status(
    use_case: GetOfflineStatusUseCase = Depends(get_offline_status_use_case),
) -> OfflineStatusResponse:
    """Connectivity, queue counters and product cache freshness."""
    return await use_case.execute()


@router.get("/queue", response_model=QueueListResponse)
async def list_queue(
    state: SyncState | None = Query(default=None, description="Filter by sync state"),
    use_case: ListOfflineQueueUseCase = Depends(get_list_queue_use_case),
) -> QueueListResponse:
    """Queued sales, oldest first."""
    return await use_case.execute(state)


@router.post("/sync", response_model=SyncResultResponse)
async def sync_queue(
    use_case: SyncOfflineQueueUseCase = Depends(get_sync_queue_use_case),
) -> SyncResultResponse:
    """
    Replay queued sales now.

    Returns ``offline`` without sending anything while the backend is
    unreachable, and ``skipped`` if a sync is already running.
    """
    return await use_case.execute()


@router.post(
    "/queue/{local_id}/retry",
    response_model=QueueEntryResponse,
    responses={404: {"model": ErrorResponse, "description": "Entry not found"}},
)
async def retry_entry(
    local_id: str,
    use_case: RetryQueueEntryUseCase = Depends(get_retry_entry_use_case),
) -> QueueEntryResponse:
    """Re-admit a failed sale to automatic syncing."""
    return await use_case.execute(local_id)


@router.delete(
    "/queue/{local_id}",
    response_model=PurgeResponse,
    responses={404: {"model": ErrorResponse, "description": "Entry not found"}},
)
async def purge_entry(
    local_id: str,
    use_case: PurgeQueueEntriesUseCase = Depends(get_purge_entries_use_case),
) -> PurgeResponse:
    """Drop a queued sale without sending it."""
    return await use_case.execute(local_id=local_id)


@router.delete(
    "/queue",
    response_model=PurgeResponse,
    responses={400: {"model": ErrorResponse, "description": "Unsupported state"}},
)
async def purge_entries(
    state: SyncState = Query(..., description="Only 'failed' is accepted"),
    use_case: PurgeQueueEntriesUseCase = Depends(get_purge_entries_use_case),
) -> PurgeResponse:
    """Drop every sale the backend refused."""
    if state != SyncState.FAILED:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Only failed entries can be purged in bulk",
        )
    return await use_case.execute(state=state)
