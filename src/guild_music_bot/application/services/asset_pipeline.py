"""Asset Pipeline - downloads and converts a track into a cached playable file."""

from __future__ import annotations

import asyncio
import logging
import os
from pathlib import Path
from typing import TYPE_CHECKING

from ...domain.shared.constants import AssetFiles
from ...domain.shared.exceptions import PipelineError
from ...domain.shared.messages import ErrorMessages, LogTemplates

if TYPE_CHECKING:
    from ...domain.music.entities import TrackDescriptor
    from ..interfaces.asset_cache import AssetCache
    from ..interfaces.audio_converter import AudioConverter
    from ..interfaces.metadata_extractor import MetadataExtractor

logger = logging.getLogger(__name__)

STAGE_FETCH = "fetch"
STAGE_CONVERT = "convert"
STAGE_RECORD = "record"


def _consume_exception(future: asyncio.Future[Path]) -> None:
    if not future.cancelled():
        future.exception()


class AssetPipeline:
    """Fetch-then-convert pipeline that populates the asset cache.

    Concurrent calls for the same asset key share one in-flight run. A failed
    run is not remembered, so the next caller simply tries again.
    """

    def __init__(
        self,
        *,
        asset_cache: AssetCache,
        metadata_extractor: MetadataExtractor,
        audio_converter: AudioConverter,
        scratch_dir: Path,
    ) -> None:
        self._cache = asset_cache
        self._extractor = metadata_extractor
        self._converter = audio_converter
        self._scratch_dir = Path(scratch_dir)
        self._inflight: dict[str, asyncio.Future[Path]] = {}

    @property
    def inflight_count(self) -> int:
        return len(self._inflight)

    async def ensure_asset(self, descriptor: TrackDescriptor) -> Path:
        """Return the path of the playable file for ``descriptor``, building it if needed.

        Raises PipelineError when fetching, converting or recording fails.
        """
        key = descriptor.asset_key

        cached = await self._cache.lookup_by_identity(descriptor.identity)
        if cached is not None:
            logger.debug(LogTemplates.CACHE_HIT, key)
            if descriptor.link:
                await self._cache.record(cached, link=descriptor.link)
            return self._cache.asset_path(key)

        # Singleflight: deduplicate concurrent builds of the same asset
        if key in self._inflight:
            logger.debug(LogTemplates.CACHE_JOIN_INFLIGHT, key)
            path = await asyncio.shield(self._inflight[key])
            if descriptor.link:
                await self._cache.record(descriptor, link=descriptor.link)
            return path

        future: asyncio.Future[Path] = asyncio.get_running_loop().create_future()
        future.add_done_callback(_consume_exception)
        self._inflight[key] = future

        try:
            path = await self._build(descriptor)
            future.set_result(path)
            return path
        except Exception as e:
            future.set_exception(e)
            raise
        except asyncio.CancelledError:
            future.cancel()
            raise
        finally:
            self._inflight.pop(key, None)

    async def _build(self, descriptor: TrackDescriptor) -> Path:
        key = descriptor.asset_key
        final_path = self._cache.asset_path(key)
        partial_path = final_path.with_name(final_path.name + AssetFiles.PARTIAL_SUFFIX)
        scratch_path = self._scratch_dir / f"{key}{AssetFiles.SCRATCH_SUFFIX}"
        downloaded: Path | None = None

        logger.info(LogTemplates.PIPELINE_STARTED, key)
        try:
            try:
                self._scratch_dir.mkdir(parents=True, exist_ok=True)
                downloaded = await self._extractor.download(descriptor.webpage_url, scratch_path)
            except Exception as exc:
                raise self._failure(key, STAGE_FETCH, exc) from exc
            if not downloaded.exists():
                raise self._failure(
                    key,
                    STAGE_FETCH,
                    ErrorMessages.DOWNLOAD_PRODUCED_NOTHING.format(link=descriptor.webpage_url),
                )
            logger.debug(LogTemplates.PIPELINE_DOWNLOADED, key, downloaded)

            try:
                final_path.parent.mkdir(parents=True, exist_ok=True)
                await self._converter.convert(downloaded, partial_path)
                os.replace(partial_path, final_path)
            except Exception as exc:
                raise self._failure(key, STAGE_CONVERT, exc) from exc
            logger.debug(LogTemplates.PIPELINE_CONVERTED, key, final_path)

            # Record only once the file is in place, so an entry always implies a file.
            try:
                await self._cache.record(descriptor, link=descriptor.link)
            except Exception as exc:
                raise self._failure(key, STAGE_RECORD, exc) from exc

            logger.info(LogTemplates.PIPELINE_READY, key, final_path)
            return final_path
        finally:
            for leftover in {scratch_path, downloaded, partial_path}:
                if leftover is not None:
                    _remove_quietly(leftover)

    @staticmethod
    def _failure(key: str, stage: str, error: Exception | str) -> PipelineError:
        if isinstance(error, PipelineError):
            return error
        message = error if isinstance(error, str) else f"{type(error).__name__}: {error}"
        logger.warning(LogTemplates.PIPELINE_FAILED, key, stage, message)
        return PipelineError(key, stage, message)


def _remove_quietly(path: Path) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError as exc:
        logger.warning(LogTemplates.PIPELINE_SCRATCH_CLEANUP_FAILED, path, exc)
