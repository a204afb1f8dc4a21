"""SQLite implementation of the asset cache."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

from guild_music_bot.application.interfaces.asset_cache import AssetCache
from guild_music_bot.domain.music.entities import TrackDescriptor
from guild_music_bot.domain.shared.constants import AssetFiles
from guild_music_bot.domain.shared.messages import LogTemplates

if TYPE_CHECKING:
    from guild_music_bot.domain.music.value_objects import TrackIdentity

    from .database import Database

logger = logging.getLogger(__name__)


class SQLiteAssetCache(AssetCache):
    """Asset index in SQLite, converted files under ``cache_dir``.

    Lookups verify the converted file still exists; an entry whose file has
    vanished is removed and reported as a miss.
    """

    def __init__(self, database: Database, cache_dir: Path) -> None:
        self._db = database
        self._cache_dir = Path(cache_dir)

    @property
    def cache_dir(self) -> Path:
        return self._cache_dir

    def asset_path(self, asset_key: str) -> Path:
        return self._cache_dir / f"{asset_key}{AssetFiles.CONVERTED_SUFFIX}"

    async def lookup_by_link(self, link: str) -> TrackDescriptor | None:
        row = await self._db.fetch_one(
            """
            SELECT a.* FROM asset_links l
            JOIN assets a ON a.asset_key = l.asset_key
            WHERE l.link = ?
            """,
            (link,),
        )
        return await self._checked(row, link=link)

    async def lookup_by_identity(self, identity: TrackIdentity) -> TrackDescriptor | None:
        row = await self._db.fetch_one(
            "SELECT * FROM assets WHERE asset_key = ?",
            (identity.asset_key,),
        )
        return await self._checked(row)

    async def record(self, descriptor: TrackDescriptor, link: str | None = None) -> None:
        async with self._db.transaction() as conn:
            await conn.execute(
                """
                INSERT INTO assets (asset_key, source_id, extractor, title, duration_seconds, webpage_url)
                VALUES (?, ?, ?, ?, ?, ?)
                ON CONFLICT(asset_key) DO UPDATE SET
                    title = excluded.title,
                    duration_seconds = excluded.duration_seconds,
                    webpage_url = excluded.webpage_url,
                    recorded_at = strftime('%Y-%m-%dT%H:%M:%f','now')
                """,
                (
                    descriptor.asset_key,
                    descriptor.source_id,
                    descriptor.extractor,
                    descriptor.title,
                    descriptor.duration_seconds,
                    descriptor.webpage_url,
                ),
            )
            if link:
                await conn.execute(
                    """
                    INSERT INTO asset_links (link, asset_key) VALUES (?, ?)
                    ON CONFLICT(link) DO UPDATE SET asset_key = excluded.asset_key
                    """,
                    (link, descriptor.asset_key),
                )
        logger.debug(LogTemplates.CACHE_RECORDED, descriptor.asset_key, link)

    async def forget(self, asset_key: str) -> bool:
        deleted = await self._db.execute("DELETE FROM assets WHERE asset_key = ?", (asset_key,))
        if deleted:
            logger.info(LogTemplates.CACHE_FORGOTTEN, asset_key)
        return deleted > 0

    async def count(self) -> int:
        row = await self._db.fetch_one("SELECT COUNT(*) AS n FROM assets")
        return int(row["n"]) if row else 0

    async def _checked(self, row: dict[str, Any] | None, link: str | None = None) -> TrackDescriptor | None:
        if row is None:
            return None

        asset_key = row["asset_key"]
        if not self.asset_path(asset_key).is_file():
            await self.forget(asset_key)
            logger.warning(LogTemplates.CACHE_STALE_REMOVED, asset_key)
            return None

        return TrackDescriptor(
            source_id=row["source_id"],
            extractor=row["extractor"],
            title=row["title"],
            webpage_url=row["webpage_url"],
            duration_seconds=row["duration_seconds"],
            link=link,
        )
