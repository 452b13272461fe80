"""
Application layer - Use cases, DTOs, and service factories.

This layer orchestrates business logic by:
1. Defining response DTOs for API contracts
2. Implementing use cases that coordinate core services
3. Providing factory functions for dependency injection

Use cases are the only entry point for API handlers.
"""

from src.application.dto.responses import (
    ErrorResponse,
    HealthResponse,
    OfflineStatusResponse,
    QueueEntryResponse,
    QueueListResponse,
    SyncResultResponse,
)
from src.application.services import (
    create_checkout,
    get_connectivity_monitor,
    get_offline_queue,
    get_product_cache,
    get_sale_submitter,
    reset_services,
)
from src.application.use_cases import (
    GetOfflineStatusUseCase,
    ListOfflineQueueUseCase,
    PurgeQueueEntriesUseCase,
    RefreshProductCacheUseCase,
    RetryQueueEntryUseCase,
    SyncOfflineQueueUseCase,
)

__all__ = [
    # DTOs
    "ErrorResponse",
    "HealthResponse",
    "OfflineStatusResponse",
    "QueueEntryResponse",
    "QueueListResponse",
    "SyncResultResponse",
    # Factories
    "create_checkout",
    "get_connectivity_monitor",
    "get_offline_queue",
    "get_product_cache",
    "get_sale_submitter",
    "reset_services",
    # Use cases
    "SyncOfflineQueueUseCase",
    "GetOfflineStatusUseCase",
    "ListOfflineQueueUseCase",
    "RetryQueueEntryUseCase",
    "PurgeQueueEntriesUseCase",
    "RefreshProductCacheUseCase",
]
