"""Pydantic models for yt-dlp data transformation and configuration.

These are infrastructure-specific models for parsing external yt-dlp data
and configuring yt-dlp options.
"""

from __future__ import annotations

from typing import Any, Final

from pydantic import BaseModel, ConfigDict, Field, field_validator

from guild_music_bot.application.interfaces.metadata_extractor import ExtractedRecord
from guild_music_bot.domain.shared.types import NonEmptyStr, NonNegativeInt, PositiveInt

DEFAULT_RETRIES: Final[int] = 3
DEFAULT_SOCKET_TIMEOUT: Final[int] = 10
DEFAULT_PLAYLIST_END: Final[int] = 100
LOG_URL_TRUNCATE: Final[int] = 60


# ── Pydantic models for yt-dlp data ────────────────────────────────────


class YtDlpTrackInfo(BaseModel):
    """Trimmed yt-dlp info dict for a single playable item.

    Extra fields from yt-dlp are silently ignored. Flat playlist entries carry
    ``ie_key`` and ``url`` instead of ``extractor`` and ``webpage_url``, so
    both spellings are accepted.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: NonEmptyStr
    extractor: NonEmptyStr | None = None
    ie_key: NonEmptyStr | None = None
    title: NonEmptyStr = "Unknown Title"
    duration: NonNegativeInt | None = None
    webpage_url: NonEmptyStr | None = None
    url: NonEmptyStr | None = None

    @field_validator("extractor", "ie_key", "webpage_url", "url", mode="before")
    @classmethod
    def _coerce_empty_to_none(cls, v: Any) -> str | None:
        """Convert empty / whitespace-only / non-string values to None."""
        if not isinstance(v, str) or not v.strip():
            return None
        return v

    @field_validator("title", mode="before")
    @classmethod
    def _coerce_title(cls, v: Any) -> str:
        """Fall back to default when yt-dlp sends empty or non-string title."""
        if not isinstance(v, str) or not v.strip():
            return "Unknown Title"
        return v[:500]

    @field_validator("duration", mode="before")
    @classmethod
    def _coerce_duration(cls, v: Any) -> int | None:
        """Coerce to non-negative int; return None for garbage values."""
        if v is None:
            return None
        try:
            val = int(v)
            return val if val >= 0 else None
        except (TypeError, ValueError):
            return None

    @property
    def extractor_name(self) -> str | None:
        name = self.extractor or self.ie_key
        return name.lower() if name else None

    @property
    def page_url(self) -> str | None:
        for candidate in (self.webpage_url, self.url):
            if candidate and candidate.startswith(("http://", "https://")):
                return candidate
        return None

    def to_record(self) -> ExtractedRecord:
        """Convert to the port record; raises ``ValidationError`` when incomplete."""
        return ExtractedRecord.model_validate(
            {
                "source_id": self.id,
                "extractor": self.extractor_name,
                "title": self.title,
                "webpage_url": self.page_url,
                "duration_seconds": self.duration,
            }
        )


# ── yt-dlp option models ───────────────────────────────────────────────


class YtDlpOpts(BaseModel):
    """Typed yt-dlp configuration options passed to YoutubeDL."""

    model_config = ConfigDict(frozen=True)

    quiet: bool = True
    no_warnings: bool = True
    noprogress: bool = True
    noplaylist: bool = True
    ignoreerrors: bool = False
    retries: PositiveInt = DEFAULT_RETRIES
    socket_timeout: PositiveInt = DEFAULT_SOCKET_TIMEOUT
    format: NonEmptyStr | None = None
    skip_download: bool = True
    extract_flat: NonEmptyStr | bool = False
    playlistend: PositiveInt | None = None
    outtmpl: NonEmptyStr | None = None
    overwrites: bool | None = None
    ffmpeg_location: NonEmptyStr | None = None
    postprocessors: list[dict[str, Any]] = Field(default_factory=list)

    def to_params(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)
