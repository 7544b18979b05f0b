"""
Single long-lived SQLite connection shared by every repository.

Reads go straight through ``read()``. Writes go through ``transaction()``,
which serialises writers behind one semaphore, commits on a clean exit and
rolls back when the block raises.

    await db_connection.open(DB_PATH)

    async with db_connection.transaction() as conn:
        await conn.execute("INSERT ...")

    async with db_connection.read() as conn:
        cursor = await conn.execute("SELECT ...")

    await db_connection.close()
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator

import aiosqlite

from auditcord.util.logger import get_logger

logger = get_logger("db_connection")

DB_PATH = Path("./data/auditcord.db").resolve()

_PRAGMAS = (
    "PRAGMA journal_mode = WAL",
    "PRAGMA foreign_keys = ON",
    "PRAGMA synchronous = NORMAL",
    "PRAGMA temp_store = MEMORY",
)


class ConnectionManager:
    """Owns the process-wide aiosqlite connection."""

    def __init__(self) -> None:
        self._conn: aiosqlite.Connection | None = None
        self._write_sem = asyncio.Semaphore(1)
        self._path: Path | None = None

    async def open(self, path: Path = DB_PATH) -> None:
        """Open the database file (creating its directory) and apply pragmas."""
        if self._conn is not None:
            logger.warning("[DB CONNECTION] Connection to %s already open, ignoring open()", self._path)
            return

        path.parent.mkdir(parents=True, exist_ok=True)
        self._path = path
        self._conn = await aiosqlite.connect(path)
        self._conn.row_factory = aiosqlite.Row

        for pragma in _PRAGMAS:
            await self._conn.execute(pragma)
        await self._conn.commit()

        logger.info("[DB CONNECTION] Opened %s", path)

    async def close(self) -> None:
        if self._conn is None:
            return

        try:
            await self._conn.execute("PRAGMA wal_checkpoint(TRUNCATE)")
            await self._conn.commit()
        except aiosqlite.Error:
            logger.exception("[DB CONNECTION] WAL checkpoint failed while closing")
        finally:
            await self._conn.close()
            self._conn = None
            logger.info("[DB CONNECTION] Closed %s", self._path)

    @property
    def connection(self) -> aiosqlite.Connection:
        """
        Raises:
            RuntimeError: If ``open()`` has not been awaited yet.
        """
        if self._conn is None:
            raise RuntimeError("Database connection is not open; await db_connection.open() first")
        return self._conn

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[aiosqlite.Connection]:
        conn = self.connection
        async with self._write_sem:
            try:
                yield conn
                await conn.commit()
            except Exception:
                await conn.rollback()
                raise

    @asynccontextmanager
    async def read(self) -> AsyncIterator[aiosqlite.Connection]:
        yield self.connection


db_connection = ConnectionManager()
