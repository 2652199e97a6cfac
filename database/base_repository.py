"""Base repository pattern for database operations."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, List, Optional, Sequence

import aiosqlite

from database.connection import SQLitePool


class BaseRepository:
    """Base repository with common database operations.

    Every helper accepts an optional ``conn`` so callers already inside
    :meth:`SQLitePool.transaction` can run several repository calls against
    the same snapshot. Without one, a pooled connection is borrowed for the
    single statement.
    """

    def __init__(self, pool: SQLitePool) -> None:
        self.pool = pool

    @asynccontextmanager
    async def _use(self, conn: Optional[aiosqlite.Connection]) -> AsyncIterator[aiosqlite.Connection]:
        if conn is not None:
            yield conn
            return
        async with self.pool.connection() as pooled:
            yield pooled

    async def execute(
        self, query: str, params: Sequence[Any] = (), conn: Optional[aiosqlite.Connection] = None
    ) -> int:
        """Execute a statement and return the affected row count."""
        async with self._use(conn) as db:
            cursor = await db.execute(query, params)
            return cursor.rowcount

    async def execute_insert(
        self, query: str, params: Sequence[Any] = (), conn: Optional[aiosqlite.Connection] = None
    ) -> int:
        """Execute an INSERT and return the new row id."""
        async with self._use(conn) as db:
            cursor = await db.execute(query, params)
            return cursor.lastrowid

    async def fetch_one(
        self, query: str, params: Sequence[Any] = (), conn: Optional[aiosqlite.Connection] = None
    ) -> Optional[aiosqlite.Row]:
        async with self._use(conn) as db:
            cursor = await db.execute(query, params)
            return await cursor.fetchone()

    async def fetch_all(
        self, query: str, params: Sequence[Any] = (), conn: Optional[aiosqlite.Connection] = None
    ) -> List[aiosqlite.Row]:
        async with self._use(conn) as db:
            cursor = await db.execute(query, params)
            return list(await cursor.fetchall())

    async def fetch_value(
        self, query: str, params: Sequence[Any] = (), conn: Optional[aiosqlite.Connection] = None
    ) -> Optional[Any]:
        """Fetch a single value from a single row."""
        row = await self.fetch_one(query, params, conn)
        return row[0] if row else None

    async def fetch_column(
        self, query: str, params: Sequence[Any] = (), conn: Optional[aiosqlite.Connection] = None
    ) -> List[Any]:
        """Fetch first column from all rows."""
        rows = await self.fetch_all(query, params, conn)
        return [row[0] for row in rows]
