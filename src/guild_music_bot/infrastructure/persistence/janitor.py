"""Startup sweep of leftovers from interrupted downloads and conversions."""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic import BaseModel

from guild_music_bot.domain.shared.constants import AssetFiles
from guild_music_bot.domain.shared.messages import LogTemplates
from guild_music_bot.domain.shared.types import NonNegativeInt

logger = logging.getLogger(__name__)


class JanitorStats(BaseModel):
    partial_files: NonNegativeInt = 0
    scratch_files: NonNegativeInt = 0

    @property
    def total(self) -> int:
        return self.partial_files + self.scratch_files


class AssetCacheJanitor:
    """Removes ``*.part`` conversion outputs and scratch downloads left by a crash.

    Only runs at startup, before any pipeline is active, so nothing it deletes
    can belong to a live conversion.
    """

    def __init__(self, *, cache_dir: Path, scratch_dir: Path) -> None:
        self._cache_dir = Path(cache_dir)
        self._scratch_dir = Path(scratch_dir)

    def sweep(self) -> JanitorStats:
        stats = JanitorStats()

        if self._cache_dir.is_dir():
            for path in self._cache_dir.glob(f"*{AssetFiles.PARTIAL_SUFFIX}"):
                if self._remove(path):
                    stats.partial_files += 1
                    logger.debug(LogTemplates.JANITOR_REMOVED_PARTIAL, path)

        if self._scratch_dir.is_dir():
            for path in self._scratch_dir.iterdir():
                if path.is_file() and self._remove(path):
                    stats.scratch_files += 1
                    logger.debug(LogTemplates.JANITOR_REMOVED_SCRATCH, path)

        logger.info(LogTemplates.JANITOR_COMPLETED, stats.partial_files, stats.scratch_files)
        return stats

    @staticmethod
    def _remove(path: Path) -> bool:
        try:
            path.unlink()
            return True
        except FileNotFoundError:
            return False
        except OSError as exc:
            logger.warning(LogTemplates.JANITOR_REMOVE_FAILED, path, exc)
            return False
