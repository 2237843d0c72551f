"""Async database connection management.

Provides async database connectivity using aiosqlite.
"""
import asyncio
import sqlite3
from contextlib import asynccontextmanager
from datetime import datetime
from pathlib import Path
from typing import AsyncIterator, Union

import aiosqlite


# =============================================================================
# SQLite3 datetime adapter (Python 3.12 compatibility)
# =============================================================================
def _adapt_datetime(dt: datetime) -> str:
    """Adapt datetime to ISO 8601 string for SQLite."""
    return dt.isoformat()


def _convert_datetime(val: bytes) -> datetime:
    """Convert ISO 8601 string from SQLite to datetime."""
    return datetime.fromisoformat(val.decode())


sqlite3.register_adapter(datetime, _adapt_datetime)
sqlite3.register_converter("DATETIME", _convert_datetime)
sqlite3.register_converter("TIMESTAMP", _convert_datetime)


GALLERY_SCHEMA = """
    CREATE TABLE IF NOT EXISTS gallery (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL,
        image_url TEXT NOT NULL,
        image_public_id TEXT NOT NULL,
        video_url TEXT,
        video_public_id TEXT,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )
"""


class AsyncConnectionPool:
    """Async connection pool for aiosqlite.

    At most max_connections connections are checked out at once; idle
    connections are kept for reuse. Safe for concurrent use by many
    coroutines.
    """

    def __init__(self, db_path: Union[str, Path], max_connections: int = 10):
        self.db_path = db_path
        self.max_connections = max_connections
        self._connections: list[aiosqlite.Connection] = []
        self._semaphore = asyncio.Semaphore(max_connections)
        self._lock = asyncio.Lock()

    async def acquire(self) -> aiosqlite.Connection:
        """Acquire a connection from the pool."""
        await self._semaphore.acquire()
        try:
            async with self._lock:
                # Return existing connection if available
                if self._connections:
                    return self._connections.pop()

            conn = await aiosqlite.connect(
                self.db_path,
                detect_types=sqlite3.PARSE_DECLTYPES
            )
            conn.row_factory = aiosqlite.Row
            return conn
        except BaseException:
            self._semaphore.release()
            raise

    async def release(self, conn: aiosqlite.Connection) -> None:
        """Release a connection back to the pool."""
        try:
            async with self._lock:
                if len(self._connections) < self.max_connections:
                    self._connections.append(conn)
                    return
            await conn.close()
        finally:
            self._semaphore.release()

    @asynccontextmanager
    async def connection(self) -> AsyncIterator[aiosqlite.Connection]:
        """Borrow a connection for the duration of a block.

        Usage:
            async with pool.connection() as conn:
                await conn.execute(...)
        """
        conn = await self.acquire()
        try:
            yield conn
        finally:
            await self.release(conn)

    async def close_all(self) -> None:
        """Close all idle connections in the pool."""
        async with self._lock:
            for conn in self._connections:
                await conn.close()
            self._connections.clear()


async def init_async_db(pool: AsyncConnectionPool) -> None:
    """Initialize database schema."""
    async with pool.connection() as conn:
        await conn.execute("PRAGMA journal_mode=WAL")
        await conn.execute(GALLERY_SCHEMA)
        await conn.commit()


async def create_pool(db_path: Union[str, Path], max_connections: int = 10) -> AsyncConnectionPool:
    """Create the process-wide pool and make sure the schema exists."""
    pool = AsyncConnectionPool(db_path, max_connections=max_connections)
    await init_async_db(pool)
    return pool
