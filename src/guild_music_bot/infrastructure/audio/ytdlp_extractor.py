"""MetadataExtractor implementation backed by yt-dlp."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError
from yt_dlp import YoutubeDL

from guild_music_bot.application.interfaces.metadata_extractor import (
    ExtractedRecord,
    MetadataExtractor,
)
from guild_music_bot.config.settings import AudioSettings
from guild_music_bot.domain.shared.messages import ErrorMessages, LogTemplates

from .models import DEFAULT_PLAYLIST_END, LOG_URL_TRUNCATE, YtDlpOpts, YtDlpTrackInfo

logger = logging.getLogger(__name__)


def _flatten_entries(data: dict[str, Any]) -> list[dict[str, Any]]:
    """Walk nested playlist results depth-first, keeping leaf entries in order."""
    entries = data.get("entries")
    if entries is None:
        return [data]

    flat: list[dict[str, Any]] = []
    for entry in entries:
        if isinstance(entry, dict):
            flat.extend(_flatten_entries(entry))
    return flat


class YtDlpExtractor(MetadataExtractor):
    """Runs yt-dlp in a worker thread for extraction, search and download.

    Extraction returns one record per item; a playlist link expands into its
    entries and entries that cannot be parsed are dropped individually.
    """

    def __init__(self, settings: AudioSettings | None = None) -> None:
        self._settings = settings or AudioSettings()
        self._base_opts = YtDlpOpts(format=self._settings.ytdlp_format)

    def _get_opts(self, **overrides: Any) -> YtDlpOpts:
        if overrides:
            return self._base_opts.model_copy(update=overrides)
        return self._base_opts

    def _extract_opts(self) -> YtDlpOpts:
        return self._get_opts(
            noplaylist=False,
            extract_flat="in_playlist",
            ignoreerrors=True,
            playlistend=DEFAULT_PLAYLIST_END,
        )

    def _search_opts(self) -> YtDlpOpts:
        return self._get_opts(extract_flat=True)

    def _download_opts(self, destination: Path) -> YtDlpOpts:
        postprocessor = {
            "key": "FFmpegExtractAudio",
            "preferredcodec": destination.suffix.lstrip(".") or "m4a",
        }
        return self._get_opts(
            skip_download=False,
            outtmpl=str(destination.with_suffix("")) + ".%(ext)s",
            overwrites=True,
            ffmpeg_location=self._settings.ffmpeg_path,
            postprocessors=[postprocessor],
        )

    # ── Sync workers (run in a thread) ──────────────────────────────

    def _extract_sync(self, link: str) -> list[ExtractedRecord]:
        try:
            with YoutubeDL(params=self._extract_opts().to_params()) as ydl:
                data = ydl.extract_info(link, download=False)
        except Exception:
            logger.exception(LogTemplates.YTDLP_FAILED_EXTRACT_INFO, link[:LOG_URL_TRUNCATE])
            raise

        if not isinstance(data, dict):
            return []
        return self.parse_records(link, _flatten_entries(dict(data)))

    @staticmethod
    def parse_records(link: str, entries: list[dict[str, Any]]) -> list[ExtractedRecord]:
        """Parse raw entries independently; a bad entry never blocks its siblings."""
        records: list[ExtractedRecord] = []
        for entry in entries:
            try:
                records.append(YtDlpTrackInfo.model_validate(entry).to_record())
            except ValidationError as exc:
                logger.warning(
                    LogTemplates.RESOLVE_RECORD_SKIPPED,
                    link[:LOG_URL_TRUNCATE],
                    exc.errors(include_url=False)[:1],
                )
        return records

    def _search_sync(self, query: str, limit: int) -> list[str]:
        try:
            with YoutubeDL(params=self._search_opts().to_params()) as ydl:
                data = ydl.extract_info(f"ytsearch{limit}:{query}", download=False)
        except Exception:
            logger.exception(LogTemplates.YTDLP_FAILED_SEARCH, query)
            raise

        if not isinstance(data, dict):
            return []
        entries = data.get("entries") or []
        return [str(e["id"]) for e in entries if isinstance(e, dict) and e.get("id")][:limit]

    def _download_sync(self, link: str, destination: Path) -> Path:
        try:
            with YoutubeDL(params=self._download_opts(destination).to_params()) as ydl:
                ydl.download([link])
        except Exception:
            logger.exception(LogTemplates.YTDLP_FAILED_DOWNLOAD, link[:LOG_URL_TRUNCATE])
            raise

        if destination.exists():
            return destination
        # Postprocessing can be skipped when the source already had the target codec.
        for candidate in sorted(destination.parent.glob(f"{destination.stem}.*")):
            if candidate.is_file() and not candidate.name.endswith(".part"):
                return candidate
        raise FileNotFoundError(ErrorMessages.DOWNLOAD_PRODUCED_NOTHING.format(link=link))

    # ── Port implementation ─────────────────────────────────────────

    async def extract(self, link: str) -> list[ExtractedRecord]:
        return await asyncio.to_thread(self._extract_sync, link)

    async def search(self, query: str, limit: int = 1) -> list[str]:
        return await asyncio.to_thread(self._search_sync, query, limit)

    async def download(self, link: str, destination: Path) -> Path:
        destination.parent.mkdir(parents=True, exist_ok=True)
        return await asyncio.to_thread(self._download_sync, link, destination)
