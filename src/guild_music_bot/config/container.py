"""Dependency Injection Container

Manages the application's dependency graph, providing lazy initialization
and lifecycle management for the asset cache, adapters and services.
Components are created on-demand and cached for reuse throughout the application.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ..domain.shared.messages import ErrorMessages, LogTemplates

logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from discord.ext.commands import Bot

    from ..application.interfaces.asset_cache import AssetCache
    from ..application.interfaces.audio_converter import AudioConverter
    from ..application.interfaces.metadata_extractor import MetadataExtractor
    from ..application.interfaces.playlist_client import PlaylistClient
    from ..application.interfaces.voice_transport import VoiceTransport
    from ..application.services.asset_pipeline import AssetPipeline
    from ..application.services.play_request import PlayRequestService
    from ..application.services.playback_scheduler import PlaybackScheduler
    from ..application.services.session_registry import SessionRegistry
    from ..application.services.track_resolver import TrackResolver
    from ..infrastructure.persistence.database import Database
    from ..infrastructure.persistence.janitor import AssetCacheJanitor
    from .settings import Settings


@dataclass
class Container:
    """Dependency injection container.

    This container manages all application dependencies and their lifecycle.
    Components are lazily initialized when first accessed.
    """

    settings: Settings
    _bot: Bot | None = None

    # Persistence layer
    _database: Database | None = None
    _asset_cache: AssetCache | None = None
    _janitor: AssetCacheJanitor | None = None

    # Infrastructure adapters
    _metadata_extractor: MetadataExtractor | None = None
    _audio_converter: AudioConverter | None = None
    _playlist_client: PlaylistClient | None = None
    _voice_transport: VoiceTransport | None = None

    # Application services
    _session_registry: SessionRegistry | None = None
    _track_resolver: TrackResolver | None = None
    _asset_pipeline: AssetPipeline | None = None
    _playback_scheduler: PlaybackScheduler | None = None
    _play_request_service: PlayRequestService | None = None

    def set_bot(self, bot: Bot) -> None:
        """Set the Discord bot instance."""
        self._bot = bot

    @property
    def bot(self) -> Bot:
        """Get the Discord bot instance."""
        if self._bot is None:
            raise RuntimeError(ErrorMessages.BOT_NOT_INITIALIZED)
        return self._bot

    # === Persistence ===

    @property
    def database(self) -> Database:
        """Get the database connection manager."""
        if self._database is None:
            from ..infrastructure.persistence.database import Database

            self._database = Database(self.settings.cache.database_url, settings=self.settings.cache)
        return self._database

    @property
    def asset_cache(self) -> AssetCache:
        """Get the SQLite-backed asset cache."""
        if self._asset_cache is None:
            from ..infrastructure.persistence.asset_cache_repository import SQLiteAssetCache

            self._asset_cache = SQLiteAssetCache(self.database, self.settings.cache.cache_dir)
        return self._asset_cache

    @property
    def janitor(self) -> AssetCacheJanitor:
        if self._janitor is None:
            from ..infrastructure.persistence.janitor import AssetCacheJanitor

            self._janitor = AssetCacheJanitor(
                cache_dir=self.settings.cache.cache_dir,
                scratch_dir=self.settings.cache.scratch_dir,
            )
        return self._janitor

    # === Infrastructure Adapters ===

    @property
    def metadata_extractor(self) -> MetadataExtractor:
        """Get the yt-dlp metadata extractor."""
        if self._metadata_extractor is None:
            from ..infrastructure.audio.ytdlp_extractor import YtDlpExtractor

            self._metadata_extractor = YtDlpExtractor(self.settings.audio)
        return self._metadata_extractor

    @property
    def audio_converter(self) -> AudioConverter:
        """Get the ffmpeg converter."""
        if self._audio_converter is None:
            from ..infrastructure.audio.ffmpeg_converter import FFmpegConverter

            self._audio_converter = FFmpegConverter(self.settings.audio)
        return self._audio_converter

    @property
    def playlist_client(self) -> PlaylistClient | None:
        """Get the Spotify client, or None when no credentials are configured."""
        if self._playlist_client is None and self.settings.spotify.enabled:
            from ..infrastructure.spotify.playlist_client import SpotifyPlaylistClient

            self._playlist_client = SpotifyPlaylistClient(self.settings.spotify)
        return self._playlist_client

    @property
    def voice_transport(self) -> VoiceTransport:
        """Get the voice adapter."""
        if self._voice_transport is None:
            from ..infrastructure.discord.adapters.voice_adapter import DiscordVoiceAdapter

            self._voice_transport = DiscordVoiceAdapter(self.bot, self.settings.audio)
        return self._voice_transport

    # === Application Services ===

    @property
    def session_registry(self) -> SessionRegistry:
        if self._session_registry is None:
            from ..application.services.session_registry import SessionRegistry

            self._session_registry = SessionRegistry()
        return self._session_registry

    @property
    def track_resolver(self) -> TrackResolver:
        if self._track_resolver is None:
            from ..application.services.track_resolver import TrackResolver

            self._track_resolver = TrackResolver(
                asset_cache=self.asset_cache,
                metadata_extractor=self.metadata_extractor,
                playlist_client=self.playlist_client,
                search_limit=self.settings.audio.search_limit,
            )
        return self._track_resolver

    @property
    def asset_pipeline(self) -> AssetPipeline:
        if self._asset_pipeline is None:
            from ..application.services.asset_pipeline import AssetPipeline

            self._asset_pipeline = AssetPipeline(
                asset_cache=self.asset_cache,
                metadata_extractor=self.metadata_extractor,
                audio_converter=self.audio_converter,
                scratch_dir=self.settings.cache.scratch_dir,
            )
        return self._asset_pipeline

    @property
    def playback_scheduler(self) -> PlaybackScheduler:
        if self._playback_scheduler is None:
            from ..application.services.playback_scheduler import PlaybackScheduler

            self._playback_scheduler = PlaybackScheduler(
                registry=self.session_registry,
                voice_transport=self.voice_transport,
            )
        return self._playback_scheduler

    @property
    def play_request_service(self) -> PlayRequestService:
        if self._play_request_service is None:
            from ..application.services.play_request import PlayRequestService

            self._play_request_service = PlayRequestService(
                registry=self.session_registry,
                resolver=self.track_resolver,
                pipeline=self.asset_pipeline,
                scheduler=self.playback_scheduler,
            )
        return self._play_request_service

    # === Lifecycle ===

    async def initialize(self) -> None:
        """Initialize all async resources.

        Raises ExternalAPIError when Spotify credentials are configured but rejected.
        """
        await self.database.initialize()
        self.janitor.sweep()

        client = self.playlist_client
        if client is None:
            logger.info(LogTemplates.SPOTIFY_DISABLED)
        else:
            await client.authenticate()

    async def shutdown(self) -> None:
        """Shutdown and cleanup all resources."""
        if self._play_request_service is not None:
            try:
                await self._play_request_service.shutdown()
            except Exception as exc:
                logger.warning(LogTemplates.BOT_CONTAINER_SHUTDOWN_ERROR, exc)

        if self._playback_scheduler is not None:
            try:
                await self._playback_scheduler.shutdown()
            except Exception as exc:
                logger.warning(LogTemplates.BOT_CONTAINER_SHUTDOWN_ERROR, exc)

        if self._playlist_client is not None:
            await self._playlist_client.close()

        if self._database is not None:
            await self._database.close()


def create_container(settings: Settings) -> Container:
    """Create a new dependency injection container."""
    return Container(settings)

