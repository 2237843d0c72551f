"""Base async repository and utilities."""
import logging
import sqlite3
from typing import Optional

import aiosqlite

from ..database import AsyncConnectionPool

logger = logging.getLogger(__name__)


class RecordStoreError(Exception):
    """Database operation failed (connection, constraint, I/O)."""
    pass


class AsyncRepository:
    """Async base repository class.

    Each call borrows a connection from the shared pool, so one repository
    instance can serve many concurrent operations.

    Example:
        class AsyncProductRepository(AsyncRepository):
            async def get_by_id(self, product_id: int) -> dict | None:
                return await self._fetchone(
                    "SELECT * FROM gallery WHERE id = ?", (product_id,)
                )
    """

    def __init__(self, pool: AsyncConnectionPool):
        """Initialize repository with a connection pool.

        Args:
            pool: Shared aiosqlite connection pool
        """
        self._pool = pool

    async def _write(self, sql: str, parameters: tuple = ()) -> tuple[Optional[int], int]:
        """Execute a write statement and commit.

        A failed statement or commit is rolled back before the connection
        goes back to the pool, so an idle connection never holds the write
        lock.

        Returns:
            (lastrowid, rowcount)

        Raises:
            RecordStoreError: If the statement or commit fails
        """
        try:
            async with self._pool.connection() as conn:
                try:
                    cursor = await conn.execute(sql, parameters)
                    await conn.commit()
                except Exception:
                    await self._rollback(conn)
                    raise
                return cursor.lastrowid, cursor.rowcount
        except sqlite3.Error as e:
            raise RecordStoreError(str(e)) from e

    async def _rollback(self, conn: aiosqlite.Connection) -> None:
        try:
            await conn.rollback()
        except Exception as e:
            logger.warning("Rollback after failed write also failed: %s", e)

    def _row_to_dict(self, row: Optional[aiosqlite.Row]) -> Optional[dict]:
        """Convert aiosqlite.Row to dictionary."""
        return dict(row) if row else None

    async def _fetchone(self, sql: str, parameters: tuple = ()) -> Optional[dict]:
        """Fetch single row and return as dict."""
        try:
            async with self._pool.connection() as conn:
                cursor = await conn.execute(sql, parameters)
                row = await cursor.fetchone()
                return self._row_to_dict(row)
        except sqlite3.Error as e:
            raise RecordStoreError(str(e)) from e

    async def _fetchall(self, sql: str, parameters: tuple = ()) -> list[dict]:
        """Fetch all rows and return as list of dicts."""
        try:
            async with self._pool.connection() as conn:
                cursor = await conn.execute(sql, parameters)
                rows = await cursor.fetchall()
                return [dict(row) for row in rows]
        except sqlite3.Error as e:
            raise RecordStoreError(str(e)) from e
