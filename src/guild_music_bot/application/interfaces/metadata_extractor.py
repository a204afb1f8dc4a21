"""Port interface for the metadata extraction and download tool."""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path

from pydantic import BaseModel, ConfigDict

from guild_music_bot.domain.shared.types import (
    DurationSeconds,
    HttpUrlStr,
    NonEmptyStr,
    PositiveInt,
    TrackTitleStr,
)


class ExtractedRecord(BaseModel):
    """One structured record emitted by the extractor for a link."""

    model_config = ConfigDict(frozen=True)

    source_id: NonEmptyStr
    extractor: NonEmptyStr
    title: TrackTitleStr
    webpage_url: HttpUrlStr
    duration_seconds: DurationSeconds | None = None


class MetadataExtractor(ABC):
    """Interface for extracting metadata, searching and downloading audio."""

    @abstractmethod
    async def extract(self, link: NonEmptyStr) -> list[ExtractedRecord]:
        """Return every record found at ``link``; a single video yields one record.

        Records that fail to parse are skipped rather than failing the batch.
        """
        ...

    @abstractmethod
    async def search(self, query: NonEmptyStr, limit: PositiveInt = 1) -> list[str]:
        """Return up to ``limit`` source IDs matching ``query``."""
        ...

    @abstractmethod
    async def download(self, link: NonEmptyStr, destination: Path) -> Path:
        """Download the best audio for ``link`` to ``destination`` and return the written path."""
        ...
