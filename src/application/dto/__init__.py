"""Data transfer objects for the API layer."""

from src.application.dto.responses import (
    ComponentHealthResponse,
    ErrorResponse,
    HealthResponse,
    NetworkStatusResponse,
    OfflineStatusResponse,
    ProductCacheRefreshResponse,
    PurgeResponse,
    QueueEntryResponse,
    QueueListResponse,
    QueueStatsResponse,
    SyncedSaleResponse,
    SyncResultResponse,
)

__all__ = [
    "ComponentHealthResponse",
    "ErrorResponse",
    "HealthResponse",
    "NetworkStatusResponse",
    "OfflineStatusResponse",
    "ProductCacheRefreshResponse",
    "PurgeResponse",
    "QueueEntryResponse",
    "QueueListResponse",
    "QueueStatsResponse",
    "SyncedSaleResponse",
    "SyncResultResponse",
]
