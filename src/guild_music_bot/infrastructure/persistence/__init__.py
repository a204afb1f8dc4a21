"""SQLite persistence for the converted-asset index."""

from guild_music_bot.infrastructure.persistence.asset_cache_repository import SQLiteAssetCache
from guild_music_bot.infrastructure.persistence.database import Database
from guild_music_bot.infrastructure.persistence.janitor import AssetCacheJanitor, JanitorStats

__all__ = [
    "AssetCacheJanitor",
    "Database",
    "JanitorStats",
    "SQLiteAssetCache",
]
