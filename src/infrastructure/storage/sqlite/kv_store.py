"""SQLite implementation of the durable key-value store."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import UTC, datetime

import aiosqlite

from src.config import get_logger
from src.core.exceptions import DatabaseError
from src.core.interfaces.storage import IKeyValueStore
from src.infrastructure.storage.sqlite.connection import (
    ConnectionPool,
    get_connection,
    get_transaction,
)

logger = get_logger(__name__)


class SQLiteKeyValueStore(IKeyValueStore):
    """
    Key-value records in the ``kv_store`` table.

    Every write runs in its own committed transaction, so ``set`` and
    ``delete`` return only once the change is on disk.
    """

    def __init__(self, pool: ConnectionPool | None = None):
        self._pool = pool

    @asynccontextmanager
    async def _connection(self) -> AsyncIterator[aiosqlite.Connection]:
        if self._pool is not None:
            async with self._pool.acquire() as conn:
                yield conn
        else:
            async with get_connection() as conn:
                yield conn

    @asynccontextmanager
    async def _transaction(self, operation: str) -> AsyncIterator[aiosqlite.Connection]:
        try:
            if self._pool is not None:
                async with self._pool.transaction() as conn:
                    yield conn
            else:
                async with get_transaction() as conn:
                    yield conn
        except aiosqlite.Error as e:
            logger.error("kv_store_write_failed", operation=operation, error=str(e))
            raise DatabaseError(operation, str(e)) from e

    async def get(self, key: str) -> str | None:
        try:
            async with self._connection() as conn:
                cursor = await conn.execute("SELECT value FROM kv_store WHERE key = ?", (key,))
                row = await cursor.fetchone()
        except aiosqlite.Error as e:
            raise DatabaseError("kv_get", str(e)) from e
        return row["value"] if row else None

    async def set(self, key: str, value: str) -> None:
        async with self._transaction("kv_set") as conn:
            await conn.execute(
                """
                INSERT INTO kv_store (key, value, updated_at)
                VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET
                    value = excluded.value,
                    updated_at = excluded.updated_at
                """,
                (key, value, datetime.now(UTC).isoformat()),
            )

    async def delete(self, key: str) -> bool:
        async with self._transaction("kv_delete") as conn:
            cursor = await conn.execute("DELETE FROM kv_store WHERE key = ?", (key,))
            return cursor.rowcount > 0

    async def delete_many(self, keys: list[str]) -> int:
        if not keys:
            return 0
        removed = 0
        async with self._transaction("kv_delete_many") as conn:
            for key in keys:
                cursor = await conn.execute("DELETE FROM kv_store WHERE key = ?", (key,))
                removed += cursor.rowcount
        return removed

    async def keys(self, prefix: str = "") -> list[str]:
        try:
            async with self._connection() as conn:
                cursor = await conn.execute(
                    """
                    SELECT key FROM kv_store
                    WHERE substr(key, 1, ?) = ?
                    ORDER BY key
                    """,
                    (len(prefix), prefix),
                )
                rows = await cursor.fetchall()
        except aiosqlite.Error as e:
            raise DatabaseError("kv_keys", str(e)) from e
        return [row["key"] for row in rows]

    async def count(self, prefix: str = "") -> int:
        return len(await self.keys(prefix))
