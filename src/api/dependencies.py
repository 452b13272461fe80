"""
Dependency injection container for FastAPI.

Provides service instances to route handlers.
"""

from functools import lru_cache

from src.application.services import (
    get_connectivity_monitor,
    get_offline_queue,
)
from src.application.use_cases import (
    GetOfflineStatusUseCase,
    ListOfflineQueueUseCase,
    PurgeQueueEntriesUseCase,
    RetryQueueEntryUseCase,
    SyncOfflineQueueUseCase,
)
from src.config import Settings, get_settings
from src.core.interfaces import IConnectivitySignal
from src.core.services import OfflineQueue


@lru_cache
def get_app_settings() -> Settings:
    """Get cached application settings."""
    return get_settings()


# Service dependencies
def get_queue() -> OfflineQueue:
    """Get the offline sale queue."""
    return get_offline_queue()


def get_connectivity() -> IConnectivitySignal:
    """Get the connectivity signal."""
    return get_connectivity_monitor()


# Use case dependencies
def get_offline_status_use_case() -> GetOfflineStatusUseCase:
    return GetOfflineStatusUseCase()


def get_list_queue_use_case() -> ListOfflineQueueUseCase:
    return ListOfflineQueueUseCase()


def get_sync_queue_use_case() -> SyncOfflineQueueUseCase:
    return SyncOfflineQueueUseCase()


def get_retry_entry_use_case() -> RetryQueueEntryUseCase:
    return RetryQueueEntryUseCase()


def get_purge_entries_use_case() -> PurgeQueueEntriesUseCase:
    return PurgeQueueEntriesUseCase()
