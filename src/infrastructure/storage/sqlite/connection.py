"""
Connections to the till's offline store.

A queued sale is only safe once its commit has reached the disk, so every
connection runs WAL with ``synchronous=FULL``. Closing the pool checkpoints
the WAL back into the main file, which is what backups copy.
"""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

import aiosqlite

from src.config import get_logger, get_settings

logger = get_logger(__name__)

DURABILITY_PRAGMAS = (
    "PRAGMA journal_mode=WAL",
    "PRAGMA synchronous=FULL",
)


class ConnectionPool:
    """
    Fixed set of aiosqlite connections to the offline store.

    Opened on first use. ``close()`` leaves the pool reusable: the next
    ``acquire()`` opens fresh connections.
    """

    def __init__(
        self,
        db_path: Path,
        pool_size: int = 2,
        busy_timeout: int = 30000,
    ):
        self.db_path = db_path
        self.pool_size = max(pool_size, 1)
        self.busy_timeout = busy_timeout

        self._idle: asyncio.Queue[aiosqlite.Connection] = asyncio.Queue(maxsize=self.pool_size)
        self._open: list[aiosqlite.Connection] = []
        self._lock = asyncio.Lock()

    @property
    def initialized(self) -> bool:
        return bool(self._open)

    async def initialize(self) -> None:
        async with self._lock:
            if self._open:
                return

            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            for _ in range(self.pool_size):
                conn = await self._connect()
                self._open.append(conn)
                self._idle.put_nowait(conn)

            logger.info(
                "offline_store_opened",
                db_path=str(self.db_path),
                connections=self.pool_size,
            )

    async def _connect(self) -> aiosqlite.Connection:
        conn = await aiosqlite.connect(self.db_path)
        for pragma in DURABILITY_PRAGMAS:
            await conn.execute(pragma)
        await conn.execute(f"PRAGMA busy_timeout={self.busy_timeout}")
        conn.row_factory = aiosqlite.Row
        return conn

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[aiosqlite.Connection]:
        """Borrow a connection; it goes back to the pool on exit."""
        if not self._open:
            await self.initialize()

        conn = await self._idle.get()
        try:
            yield conn
        finally:
            self._idle.put_nowait(conn)

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[aiosqlite.Connection]:
        """Borrow a connection whose writes commit together or not at all."""
        async with self.acquire() as conn:
            try:
                yield conn
                await conn.commit()
            except Exception:
                await conn.rollback()
                raise

    async def checkpoint(self) -> None:
        """Fold the WAL into the main database file and truncate it."""
        async with self.acquire() as conn:
            await self._checkpoint(conn)

    async def _checkpoint(self, conn: aiosqlite.Connection) -> None:
        cursor = await conn.execute("PRAGMA wal_checkpoint(TRUNCATE)")
        busy, wal_pages, moved = await cursor.fetchone()
        if busy:
            logger.warning("wal_checkpoint_busy", db_path=str(self.db_path), pages=wal_pages)
        else:
            logger.debug("wal_checkpointed", db_path=str(self.db_path), pages=moved)

    async def close(self) -> None:
        async with self._lock:
            if self._open:
                await self._checkpoint(self._open[0])
            for conn in self._open:
                await conn.close()
            self._open.clear()
            self._idle = asyncio.Queue(maxsize=self.pool_size)
            logger.info("offline_store_closed", db_path=str(self.db_path))


_pool: ConnectionPool | None = None


async def get_pool() -> ConnectionPool:
    """Pool for the configured offline store, opened on first call."""
    global _pool
    if _pool is None:
        storage = get_settings().storage
        _pool = ConnectionPool(
            db_path=storage.db_path,
            pool_size=storage.pool_size,
            busy_timeout=storage.busy_timeout,
        )
        await _pool.initialize()
    return _pool


async def close_pool() -> None:
    global _pool
    if _pool is not None:
        await _pool.close()
        _pool = None


@asynccontextmanager
async def get_connection() -> AsyncIterator[aiosqlite.Connection]:
    pool = await get_pool()
    async with pool.acquire() as conn:
        yield conn


@asynccontextmanager
async def get_transaction() -> AsyncIterator[aiosqlite.Connection]:
    pool = await get_pool()
    async with pool.transaction() as conn:
        yield conn
