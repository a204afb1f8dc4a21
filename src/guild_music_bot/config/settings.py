"""Application Settings and Configuration

Pydantic-based settings management using environment variables.
Settings are loaded from environment variables with support for .env files,
type validation, and sensible defaults. All settings are frozen and immutable
after initialization.
"""

from __future__ import annotations

import re
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..domain.shared.messages import ErrorMessages

_BITRATE_PATTERN = re.compile(r"^\d{1,3}k$")


class DiscordSettings(BaseModel):
    """Discord bot configuration."""

    model_config = ConfigDict(frozen=True, strict=True, populate_by_name=True)

    token: SecretStr = Field(
        default=SecretStr(""), validation_alias=AliasChoices("token", "bot_token", "discord_token")
    )
    command_prefix: str = Field(
        default="!",
        min_length=1,
        max_length=5,
        validation_alias=AliasChoices("command_prefix", "prefix"),
    )


class CacheSettings(BaseModel):
    """Asset index database and on-disk cache layout."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    database_url: str = Field(
        default="sqlite:///data/assets.db",
        validation_alias=AliasChoices("database_url", "url", "db_url"),
    )
    cache_dir: Path = Field(
        default=Path("audio_cache"), validation_alias=AliasChoices("cache_dir", "dir")
    )
    scratch_dir: Path = Field(
        default=Path("download"), validation_alias=AliasChoices("scratch_dir", "download_dir")
    )
    busy_timeout_ms: int = Field(
        default=5000,
        ge=1000,
        le=30000,
        validation_alias=AliasChoices("busy_timeout_ms", "busy_timeout"),
    )
    connection_timeout_s: int = Field(
        default=10,
        ge=1,
        le=60,
        validation_alias=AliasChoices("connection_timeout_s", "connection_timeout"),
    )

    @field_validator("database_url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Validate database URL format."""
        if not v.startswith("sqlite://"):
            raise ValueError(ErrorMessages.INVALID_DATABASE_URL)
        return v


class AudioSettings(BaseModel):
    """Download, search and transcoding configuration."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    ytdlp_format: str = "bestaudio[ext=m4a]/bestaudio/best"
    search_limit: int = Field(
        default=1, ge=1, le=10, validation_alias=AliasChoices("search_limit", "search_results")
    )
    ffmpeg_path: str | None = Field(
        default=None, validation_alias=AliasChoices("ffmpeg_path", "ffmpeg")
    )
    opus_bitrate: str = Field(
        default="128k", validation_alias=AliasChoices("opus_bitrate", "bitrate")
    )

    @field_validator("opus_bitrate")
    @classmethod
    def validate_bitrate(cls, v: str) -> str:
        if not _BITRATE_PATTERN.match(v):
            raise ValueError(ErrorMessages.INVALID_BITRATE)
        return v

    @field_validator("ffmpeg_path", mode="before")
    @classmethod
    def _empty_path_to_none(cls, v: object) -> object:
        if isinstance(v, str) and not v.strip():
            return None
        return v


class SpotifySettings(BaseModel):
    """Spotify Web API client credentials."""

    model_config = ConfigDict(frozen=True, strict=True, populate_by_name=True)

    client_id: str | None = Field(
        default=None, validation_alias=AliasChoices("client_id", "spotify_client_id")
    )
    client_secret: SecretStr = Field(
        default=SecretStr(""),
        validation_alias=AliasChoices("client_secret", "spotify_client_secret"),
    )

    @property
    def enabled(self) -> bool:
        return bool(self.client_id) and bool(self.client_secret.get_secret_value())


class Settings(BaseSettings):
    """Application settings container.

    Automatically loads configuration from environment variables.

    Environment variable naming:
    - ENVIRONMENT, DEBUG, LOG_LEVEL (top-level)
    - DISCORD__TOKEN, DISCORD__COMMAND_PREFIX (nested with ``__``)
    - CACHE__DATABASE_URL, CACHE__CACHE_DIR, CACHE__SCRATCH_DIR
    - AUDIO__SEARCH_LIMIT, AUDIO__FFMPEG_PATH, AUDIO__OPUS_BITRATE
    - SPOTIFY__CLIENT_ID, SPOTIFY__CLIENT_SECRET
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    environment: Literal["development", "production", "test"] = "development"
    debug: bool = False
    log_level: str = "INFO"

    discord: DiscordSettings = Field(default_factory=DiscordSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    audio: AudioSettings = Field(default_factory=AudioSettings)
    spotify: SpotifySettings = Field(default_factory=SpotifySettings)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(
                ErrorMessages.INVALID_LOG_LEVEL.format(level=v, valid_levels=sorted(valid_levels))
            )
        return v_upper


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached application settings.

    Settings are automatically loaded from:
    1. .env file (if present)
    2. Environment variables
    3. Default values
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache (useful for testing)."""
    get_settings.cache_clear()
