"""Application use cases."""

from src.application.use_cases.offline_queue_admin import (
    GetOfflineStatusUseCase,
    ListOfflineQueueUseCase,
    PurgeQueueEntriesUseCase,
    RetryQueueEntryUseCase,
)
from src.application.use_cases.refresh_product_cache import RefreshProductCacheUseCase
from src.application.use_cases.sync_offline_queue import SyncOfflineQueueUseCase

__all__ = [
    "SyncOfflineQueueUseCase",
    "GetOfflineStatusUseCase",
    "ListOfflineQueueUseCase",
    "RetryQueueEntryUseCase",
    "PurgeQueueEntriesUseCase",
    "RefreshProductCacheUseCase",
]
