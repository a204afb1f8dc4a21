"""SQLite store backing the asset cache.

Every read or write opens its own aiosqlite connection, so concurrent guild
sessions never share a cursor. WAL journaling lets the link index be read
while a finished pipeline records a new asset.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncGenerator
from contextlib import AbstractAsyncContextManager, asynccontextmanager, nullcontext
from pathlib import Path
from typing import TYPE_CHECKING, Any

import aiosqlite

from guild_music_bot.domain.shared.constants import SQLPragmas
from guild_music_bot.domain.shared.messages import LogTemplates

if TYPE_CHECKING:
    from ...config.settings import CacheSettings

logger = logging.getLogger(__name__)

_SQLITE_URL_PREFIX = "sqlite:///"
_MEMORY = ":memory:"

_SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS assets (
        asset_key TEXT PRIMARY KEY,
        source_id TEXT NOT NULL,
        extractor TEXT NOT NULL,
        title TEXT NOT NULL,
        duration_seconds INTEGER,
        webpage_url TEXT NOT NULL,
        recorded_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%f','now'))
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS asset_links (
        link TEXT PRIMARY KEY,
        asset_key TEXT NOT NULL,
        FOREIGN KEY(asset_key) REFERENCES assets(asset_key) ON DELETE CASCADE
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_asset_links_key ON asset_links(asset_key)",
    "CREATE INDEX IF NOT EXISTS idx_assets_identity ON assets(source_id, extractor)",
)

Params = tuple[Any, ...] | None


def _path_from_url(url: str) -> str:
    return url.removeprefix(_SQLITE_URL_PREFIX)


class Database:
    def __init__(self, url: str, settings: CacheSettings | None = None) -> None:
        self._db_path = _path_from_url(url)
        self._initialized = False
        # Holds a shared in-memory database open between operations.
        self._anchor: aiosqlite.Connection | None = None
        # Shared-cache memory databases raise "table is locked" instead of
        # honouring busy_timeout, so their operations run one at a time.
        self._memory_guard = asyncio.Lock() if self._db_path == _MEMORY else None

        if settings is None:
            self._busy_timeout_ms, self._connect_timeout_s = 5000, 10
        else:
            self._busy_timeout_ms = settings.busy_timeout_ms
            self._connect_timeout_s = settings.connection_timeout_s

    @property
    def db_path(self) -> str:
        return self._db_path

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    @property
    def _in_memory(self) -> bool:
        return self._db_path == _MEMORY

    async def initialize(self) -> None:
        """Create the schema once; later calls are no-ops."""
        if self._initialized:
            return

        if self._in_memory:
            if self._anchor is None:
                self._anchor = await self._open()
        else:
            Path(self._db_path).parent.mkdir(parents=True, exist_ok=True)

        async with self.transaction() as conn:
            for statement in _SCHEMA:
                await conn.execute(statement)

        self._initialized = True
        logger.info(LogTemplates.DATABASE_INITIALIZED, self._db_path)

    async def _open(self) -> aiosqlite.Connection:
        if self._in_memory:
            target, uri = f"file:guild-music-bot-{id(self)}?mode=memory&cache=shared", True
        else:
            target, uri = self._db_path, False

        conn = await aiosqlite.connect(target, uri=uri, timeout=self._connect_timeout_s)
        conn.row_factory = aiosqlite.Row
        for pragma in (
            SQLPragmas.JOURNAL_MODE_WAL,
            SQLPragmas.FOREIGN_KEYS_ON,
            SQLPragmas.BUSY_TIMEOUT.format(timeout=self._busy_timeout_ms),
        ):
            await conn.execute(pragma)
        return conn

    def _serialized(self) -> AbstractAsyncContextManager[object]:
        return self._memory_guard if self._memory_guard is not None else nullcontext()

    @asynccontextmanager
    async def connection(self) -> AsyncGenerator[aiosqlite.Connection, None]:
        async with self._serialized():
            conn = await self._open()
            try:
                yield conn
            finally:
                await conn.close()

    @asynccontextmanager
    async def transaction(self) -> AsyncGenerator[aiosqlite.Connection, None]:
        """Commit on a clean exit, roll back and re-raise otherwise."""
        async with self.connection() as conn:
            try:
                yield conn
            except Exception:
                await conn.rollback()
                raise
            await conn.commit()

    @staticmethod
    async def _run(conn: aiosqlite.Connection, sql: str, parameters: Params) -> aiosqlite.Cursor:
        return await conn.execute(sql, parameters or ())

    async def execute(self, sql: str, parameters: Params = None) -> int:
        """Run one statement in its own transaction; returns the affected row count."""
        async with self.transaction() as conn:
            cursor = await self._run(conn, sql, parameters)
            return cursor.rowcount

    async def fetch_one(self, sql: str, parameters: Params = None) -> dict[str, Any] | None:
        async with self.connection() as conn:
            cursor = await self._run(conn, sql, parameters)
            row = await cursor.fetchone()
        return dict(row) if row is not None else None

    async def fetch_all(self, sql: str, parameters: Params = None) -> list[dict[str, Any]]:
        async with self.connection() as conn:
            cursor = await self._run(conn, sql, parameters)
            rows = await cursor.fetchall()
        return [dict(row) for row in rows]

    async def close(self) -> None:
        anchor, self._anchor = self._anchor, None
        if anchor is not None:
            await anchor.close()
        self._initialized = False
        logger.info(LogTemplates.DATABASE_CLOSED)
