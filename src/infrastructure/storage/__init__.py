"""Storage infrastructure implementations."""

from src.infrastructure.storage.sqlite import (
    ConnectionPool,
    SQLiteKeyValueStore,
    close_pool,
    get_connection,
    get_kv_store,
    get_pool,
    get_transaction,
    reset_kv_store,
)

__all__ = [
    # Key-value store
    "SQLiteKeyValueStore",
    "get_kv_store",
    "reset_kv_store",
    # Connection pool
    "ConnectionPool",
    "get_pool",
    "close_pool",
    "get_connection",
    "get_transaction",
]
