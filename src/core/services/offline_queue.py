"""
Offline transaction queue.

Durable FIFO of sales the backend has not acknowledged yet. Entries are
replayed oldest-first, one at a time, through the same dispatcher the
checkout uses, with the sale's local id as the idempotency key.

Drains are single-flight, stop at the first connectivity failure, and are
triggered by the connectivity signal coming back online and by a periodic
timer. Nothing expires automatically: an entry leaves the queue only when
the backend accepts it or an operator purges it.
"""

import asyncio
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from enum import Enum

from src.config import get_logger
from src.core.entities.sale import OfflineQueueEntry, Sale, SyncState
from src.core.exceptions import QueueEntryNotFoundError
from src.core.interfaces.connectivity import IConnectivitySignal, NetworkStatus
from src.core.services.queue_log import AttemptKind, QueueLog
from src.core.services.sale_submitter import DispatchOutcome, SaleDispatcher

logger = get_logger(__name__)

SyncedListener = Callable[[Sale], None]


class DrainStatus(str, Enum):
    COMPLETED = "completed"  # every eligible entry was attempted
    STOPPED = "stopped"  # halted on a connectivity failure
    SKIPPED = "skipped"  # another drain was already running
    OFFLINE = "offline"  # not attempted


@dataclass
class DrainReport:
    """Outcome of one drain pass."""

    status: DrainStatus
    synced: list[Sale] = field(default_factory=list)
    rejected: list[str] = field(default_factory=list)
    remaining: int = 0
    error: str | None = None

    @property
    def synced_count(self) -> int:
        return len(self.synced)


@dataclass
class QueueStats:
    pending_count: int
    failed_count: int
    quarantined_count: int
    last_sync_attempt: datetime | None
    last_successful_sync: datetime | None
    next_scheduled_sync: datetime | None
    is_syncing: bool

    @property
    def total(self) -> int:
        return self.pending_count + self.failed_count


def _parse_time(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


class OfflineQueue:
    """
    Persistent queue of unsent sales.

    Call ``start()`` from a running event loop to attach the connectivity
    signal and the periodic timer; ``stop()`` detaches them.
    """

    DEFAULT_SYNC_INTERVAL = 300.0
    DEFAULT_RECONNECT_DELAY = 1.0

    def __init__(
        self,
        log: QueueLog,
        dispatcher: SaleDispatcher,
        connectivity: IConnectivitySignal,
        sync_interval: float | None = None,
        reconnect_delay: float | None = None,
    ):
        self._log = log
        self._dispatcher = dispatcher
        self._connectivity = connectivity
        self._sync_interval = (
            sync_interval if sync_interval is not None else self.DEFAULT_SYNC_INTERVAL
        )
        self._reconnect_delay = (
            reconnect_delay if reconnect_delay is not None else self.DEFAULT_RECONNECT_DELAY
        )

        self._draining = False
        self._was_online: bool | None = None
        self._unsubscribe: Callable[[], None] | None = None
        self._timer: asyncio.Task | None = None
        self._tasks: set[asyncio.Task] = set()
        self._listeners: list[SyncedListener] = []
        self._next_scheduled: datetime | None = None

    @property
    def is_draining(self) -> bool:
        return self._draining

    # === Queue operations ===

    async def enqueue(self, sale: Sale) -> OfflineQueueEntry:
        """Durably append a sale. Returns after the write is acknowledged."""
        entry = await self._log.append(sale)
        logger.info(
            "offline_queue_entry_added",
            local_id=entry.local_id,
            sequence=entry.sequence,
            total=str(sale.total),
        )
        return entry

    async def entries(self, state: SyncState | None = None) -> list[OfflineQueueEntry]:
        """All queued entries in drain order, optionally filtered by state."""
        entries = await self._log.load_all()
        if state is None:
            return entries
        return [e for e in entries if e.sync_state == state]

    async def get(self, local_id: str) -> OfflineQueueEntry:
        entry = await self._log.load(local_id)
        if entry is None:
            raise QueueEntryNotFoundError(local_id)
        return entry

    async def pending_count(self) -> int:
        return len(await self.entries(SyncState.PENDING))

    async def retry(self, local_id: str) -> OfflineQueueEntry:
        """Re-admit a FAILED entry to automatic drains."""
        entry = await self.get(local_id)
        if entry.sync_state == SyncState.FAILED:
            await self._log.record_attempt(local_id, AttemptKind.REQUEUED)
            logger.info("offline_queue_entry_requeued", local_id=local_id)
            entry = await self.get(local_id)
        return entry

    async def purge(self, local_id: str) -> None:
        """Drop an entry without sending it."""
        if not await self._log.remove(local_id):
            raise QueueEntryNotFoundError(local_id)
        logger.warning("offline_queue_entry_purged", local_id=local_id)

    async def purge_failed(self) -> int:
        """Drop every FAILED entry. Returns how many were removed."""
        removed = 0
        for entry in await self.entries(SyncState.FAILED):
            if await self._log.remove(entry.local_id):
                removed += 1
        if removed:
            logger.warning("offline_queue_failed_purged", count=removed)
        return removed

    async def stats(self) -> QueueStats:
        entries = await self._log.load_all()
        pending = sum(1 for e in entries if e.sync_state == SyncState.PENDING)
        failed = sum(1 for e in entries if e.sync_state == SyncState.FAILED)
        return QueueStats(
            pending_count=pending,
            failed_count=failed,
            quarantined_count=len(await self._log.quarantined()),
            last_sync_attempt=_parse_time(await self._log.get_meta("last_sync_attempt")),
            last_successful_sync=_parse_time(await self._log.get_meta("last_successful_sync")),
            next_scheduled_sync=self._next_scheduled,
            is_syncing=self._draining,
        )

    def on_synced(self, listener: SyncedListener) -> Callable[[], None]:
        """Register a callback for sales the backend acknowledged during a drain."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # === Draining ===

    async def force_sync(self) -> DrainReport:
        """Drain now, outside the timer. Still a no-op while offline."""
        logger.info("offline_queue_force_sync")
        return await self.drain()

    async def drain(self) -> DrainReport:
        """
        Replay pending entries oldest-first.

        - a drain already in progress makes this call a no-op (SKIPPED)
        - nothing is sent while offline (OFFLINE)
        - an accepted sale is removed from the queue
        - a rejected sale stays queued as FAILED and the drain continues
        - a connectivity failure is recorded and ends the drain (STOPPED)
        """
        if self._draining:
            logger.debug("offline_queue_drain_skipped", reason="already_draining")
            return DrainReport(status=DrainStatus.SKIPPED)
        if not self._connectivity.is_online:
            logger.debug("offline_queue_drain_skipped", reason="offline")
            return DrainReport(status=DrainStatus.OFFLINE)

        self._draining = True
        try:
            return await self._drain()
        finally:
            self._draining = False

    async def _drain(self) -> DrainReport:
        started = datetime.now(UTC)
        await self._log.set_meta("last_sync_attempt", started.isoformat())

        pending = await self.entries(SyncState.PENDING)
        logger.info("offline_queue_drain_started", pending=len(pending))
        report = DrainReport(status=DrainStatus.COMPLETED)

        for index, entry in enumerate(pending):
            if not self._connectivity.is_online:
                report.status = DrainStatus.STOPPED
                report.error = "connectivity lost"
                report.remaining = len(pending) - index
                break

            result = await self._dispatcher.dispatch(entry.sale)

            if result.outcome == DispatchOutcome.ACCEPTED:
                await self._log.remove(entry.local_id)
                report.synced.append(result.sale)
                logger.info(
                    "offline_queue_entry_synced",
                    local_id=entry.local_id,
                    server_id=result.sale.server_id,
                    attempts=entry.attempts + 1,
                )
                self._notify(result.sale)
                continue

            error = str(result.error)
            if result.outcome == DispatchOutcome.REJECTED:
                await self._log.record_attempt(entry.local_id, AttemptKind.REJECTED, error)
                report.rejected.append(entry.local_id)
                logger.warning(
                    "offline_queue_entry_rejected",
                    local_id=entry.local_id,
                    error=error,
                )
                continue

            await self._log.record_attempt(entry.local_id, AttemptKind.ERROR, error)
            report.status = DrainStatus.STOPPED
            report.error = error
            report.remaining = len(pending) - index
            logger.warning(
                "offline_queue_drain_stopped",
                local_id=entry.local_id,
                error=error,
                remaining=report.remaining,
            )
            break

        if report.status == DrainStatus.COMPLETED:
            await self._log.set_meta("last_successful_sync", datetime.now(UTC).isoformat())

        logger.info(
            "offline_queue_drain_complete",
            status=report.status.value,
            synced=report.synced_count,
            rejected=len(report.rejected),
            remaining=report.remaining,
        )
        return report

    def _notify(self, sale: Sale) -> None:
        for listener in list(self._listeners):
            try:
                listener(sale)
            except Exception as e:
                logger.error(
                    "offline_queue_listener_failed",
                    local_id=sale.local_id,
                    error=str(e),
                )

    # === Triggers ===

    def start(self) -> None:
        """Attach to the connectivity signal and start the periodic timer."""
        if self._unsubscribe is not None:
            return
        self._unsubscribe = self._connectivity.subscribe(self._on_status)
        if self._sync_interval > 0:
            self._timer = asyncio.create_task(self._periodic())
        logger.info(
            "offline_queue_started",
            sync_interval=self._sync_interval,
            reconnect_delay=self._reconnect_delay,
        )

    async def stop(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

        tasks = list(self._tasks)
        if self._timer is not None:
            tasks.append(self._timer)
            self._timer = None
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()
        self._next_scheduled = None
        logger.info("offline_queue_stopped")

    def _on_status(self, status: NetworkStatus) -> None:
        came_online = status.is_online and self._was_online is not True
        self._was_online = status.is_online
        if not came_online:
            return

        logger.info("offline_queue_connectivity_restored", delay=self._reconnect_delay)
        task = asyncio.get_running_loop().create_task(self._drain_after(self._reconnect_delay))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _drain_after(self, delay: float) -> None:
        if delay > 0:
            await asyncio.sleep(delay)
        await self._safe_drain()

    async def _periodic(self) -> None:
        while True:
            self._next_scheduled = datetime.now(UTC) + timedelta(seconds=self._sync_interval)
            await asyncio.sleep(self._sync_interval)
            if self._connectivity.is_online:
                await self._safe_drain()

    async def _safe_drain(self) -> None:
        try:
            await self.drain()
        except Exception as e:
            logger.error("offline_queue_drain_error", error=str(e), error_type=type(e).__name__)
