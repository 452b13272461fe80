"""Response DTOs for API endpoints.

Pydantic v2 models for API response serialization.
These are the ONLY contracts between use cases and API layer.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from src.core.entities.sale import OfflineQueueEntry
from src.core.interfaces.connectivity import NetworkStatus
from src.core.services.offline_queue import DrainReport, QueueStats


class ComponentHealthResponse(BaseModel):
    """Health of one dependency."""

    name: str
    available: bool
    latency_ms: float | None = None
    error: str | None = None


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str = "1.0.0"
    uptime_seconds: float
    database: ComponentHealthResponse | None = None
    backend: ComponentHealthResponse | None = None


class NetworkStatusResponse(BaseModel):
    """Connectivity as seen by the terminal."""

    is_online: bool
    is_slow_connection: bool = False
    last_online_time: datetime | None = None
    last_offline_time: datetime | None = None

    @classmethod
    def from_status(cls, status: NetworkStatus) -> "NetworkStatusResponse":
        return cls(
            is_online=status.is_online,
            is_slow_connection=status.is_slow_connection,
            last_online_time=status.last_online_time,
            last_offline_time=status.last_offline_time,
        )


class QueueStatsResponse(BaseModel):
    """Offline queue counters."""

    pending_count: int = Field(..., description="Sales waiting to be sent")
    failed_count: int = Field(..., description="Sales the backend refused")
    quarantined_count: int = Field(default=0, description="Unreadable entries set aside")
    total: int
    last_sync_attempt: datetime | None = None
    last_successful_sync: datetime | None = None
    next_scheduled_sync: datetime | None = None
    is_syncing: bool = False

    @classmethod
    def from_stats(cls, stats: QueueStats) -> "QueueStatsResponse":
        return cls(
            pending_count=stats.pending_count,
            failed_count=stats.failed_count,
            quarantined_count=stats.quarantined_count,
            total=stats.total,
            last_sync_attempt=stats.last_sync_attempt,
            last_successful_sync=stats.last_successful_sync,
            next_scheduled_sync=stats.next_scheduled_sync,
            is_syncing=stats.is_syncing,
        )


class OfflineStatusResponse(BaseModel):
    """Combined connectivity, queue and product cache status."""

    network: NetworkStatusResponse
    queue: QueueStatsResponse
    cached_products: int = 0
    last_product_sync: datetime | None = None


class QueueEntryResponse(BaseModel):
    """One queued sale."""

    local_id: str
    sync_state: str
    total: str = Field(..., description="Sale total as a decimal string")
    payment_method: str
    items: int = Field(..., description="Number of line items")
    staff_name: str
    created_at: datetime
    enqueued_at: datetime
    attempts: int = 0
    last_error: str | None = None
    last_attempt_at: datetime | None = None

    @classmethod
    def from_entry(cls, entry: OfflineQueueEntry) -> "QueueEntryResponse":
        sale = entry.sale
        return cls(
            local_id=sale.local_id,
            sync_state=sale.sync_state.value,
            total=str(sale.total),
            payment_method=sale.payment_method,
            items=len(sale.items),
            staff_name=sale.staff_name,
            created_at=sale.created_at,
            enqueued_at=entry.enqueued_at,
            attempts=entry.attempts,
            last_error=entry.last_error,
            last_attempt_at=entry.last_attempt_at,
        )


class QueueListResponse(BaseModel):
    """Queued sales in drain order."""

    entries: list[QueueEntryResponse]
    total: int


class SyncedSaleResponse(BaseModel):
    local_id: str
    server_id: str | None


class SyncResultResponse(BaseModel):
    """Outcome of a drain."""

    status: str
    synced: list[SyncedSaleResponse] = Field(default_factory=list)
    rejected: list[str] = Field(default_factory=list)
    remaining: int = 0
    error: str | None = None

    @classmethod
    def from_report(cls, report: DrainReport) -> "SyncResultResponse":
        return cls(
            status=report.status.value,
            synced=[
                SyncedSaleResponse(local_id=s.local_id, server_id=s.server_id)
                for s in report.synced
            ],
            rejected=list(report.rejected),
            remaining=report.remaining,
            error=report.error,
        )


class PurgeResponse(BaseModel):
    """Number of queue entries removed."""

    removed: int


class ProductCacheRefreshResponse(BaseModel):
    """Result of refreshing the offline product cache."""

    count: int
    last_product_sync: datetime | None = None


class ErrorResponse(BaseModel):
    """Standardized error response DTO.

    Every error response includes:
    - error_code: machine-readable code (e.g. QUEUE_ENTRY_NOT_FOUND)
    - message: human-readable description
    - hint: suggested recovery action
    - path: request path that triggered the error
    """

    error_code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error description")
    hint: str | None = Field(default=None, description="Suggested recovery action")
    detail: str | None = Field(default=None, description="Additional details")
    path: str | None = Field(default=None, description="Request path")
