"""Sync Offline Queue Use Case: replay queued sales to the backend."""

from src.application.dto.responses import SyncResultResponse
from src.config import get_logger
from src.core.services.offline_queue import OfflineQueue

logger = get_logger(__name__)


class SyncOfflineQueueUseCase:
    """Drain the offline queue on demand."""

    def __init__(self, queue: OfflineQueue | None = None):
        self._queue = queue

    def _get_queue(self) -> OfflineQueue:
        if self._queue is None:
            from src.application.services import get_offline_queue

            self._queue = get_offline_queue()
        return self._queue

    async def execute(self) -> SyncResultResponse:
        logger.info("sync_offline_queue_started")

        report = await self._get_queue().force_sync()

        logger.info(
            "sync_offline_queue_complete",
            status=report.status.value,
            synced=report.synced_count,
            remaining=report.remaining,
        )
        return SyncResultResponse.from_report(report)
