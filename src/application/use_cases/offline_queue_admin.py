"""Offline queue inspection and maintenance use cases."""

from src.application.dto.responses import (
    NetworkStatusResponse,
    OfflineStatusResponse,
    PurgeResponse,
    QueueEntryResponse,
    QueueListResponse,
    QueueStatsResponse,
)
from src.config import get_logger
from src.core.entities.sale import SyncState
from src.core.interfaces.connectivity import IConnectivitySignal
from src.core.services.offline_queue import OfflineQueue
from src.core.services.product_cache import ProductCache

logger = get_logger(__name__)


class _QueueUseCase:
    def __init__(self, queue: OfflineQueue | None = None):
        self._queue = queue

    def _get_queue(self) -> OfflineQueue:
        if self._queue is None:
            from src.application.services import get_offline_queue

            self._queue = get_offline_queue()
        return self._queue


class GetOfflineStatusUseCase(_QueueUseCase):
    """Report connectivity, queue counters and product cache freshness."""

    def __init__(
        self,
        queue: OfflineQueue | None = None,
        connectivity: IConnectivitySignal | None = None,
        product_cache: ProductCache | None = None,
    ):
        super().__init__(queue)
        self._connectivity = connectivity
        self._product_cache = product_cache

    def _get_connectivity(self) -> IConnectivitySignal:
        if self._connectivity is None:
            from src.application.services import get_connectivity_monitor

            self._connectivity = get_connectivity_monitor()
        return self._connectivity

    def _get_product_cache(self) -> ProductCache:
        if self._product_cache is None:
            from src.application.services import get_product_cache

            self._product_cache = get_product_cache()
        return self._product_cache

    async def execute(self) -> OfflineStatusResponse:
        stats = await self._get_queue().stats()
        cache = self._get_product_cache()
        return OfflineStatusResponse(
            network=NetworkStatusResponse.from_status(self._get_connectivity().status()),
            queue=QueueStatsResponse.from_stats(stats),
            cached_products=len(await cache.list_products()),
            last_product_sync=await cache.last_product_sync(),
        )


class ListOfflineQueueUseCase(_QueueUseCase):
    """List queued sales in drain order."""

    async def execute(self, state: SyncState | None = None) -> QueueListResponse:
        entries = await self._get_queue().entries(state)
        return QueueListResponse(
            entries=[QueueEntryResponse.from_entry(e) for e in entries],
            total=len(entries),
        )


class RetryQueueEntryUseCase(_QueueUseCase):
    """Re-admit a failed sale to automatic syncing."""

    async def execute(self, local_id: str) -> QueueEntryResponse:
        logger.info("retry_queue_entry_started", local_id=local_id)
        entry = await self._get_queue().retry(local_id)
        return QueueEntryResponse.from_entry(entry)


class PurgeQueueEntriesUseCase(_QueueUseCase):
    """Remove one queued sale, or every failed one."""

    async def execute(
        self,
        local_id: str | None = None,
        state: SyncState | None = None,
    ) -> PurgeResponse:
        queue = self._get_queue()
        if local_id is not None:
            await queue.purge(local_id)
            return PurgeResponse(removed=1)
        if state == SyncState.FAILED:
            return PurgeResponse(removed=await queue.purge_failed())
        raise ValueError("Only failed entries can be purged in bulk")
