"""Discord voice adapter implementing VoiceTransport for connection and streaming."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

import discord

from guild_music_bot.application.interfaces.voice_transport import VoiceHandle, VoiceTransport
from guild_music_bot.config.settings import AudioSettings
from guild_music_bot.domain.shared.exceptions import TransportError
from guild_music_bot.domain.shared.messages import ErrorMessages, LogTemplates
from guild_music_bot.infrastructure.audio.ffmpeg_converter import default_ffmpeg_executable

logger = logging.getLogger(__name__)

CONNECT_TIMEOUT: float = 10.0


class DiscordVoiceAdapter(VoiceTransport):
    """Streams cached Ogg/Opus files into guild voice channels.

    Files are already Opus encoded, so ffmpeg only remuxes them (``codec="copy"``).
    Each stream gets a future that the discord.py player thread resolves through
    ``loop.call_soon_threadsafe`` once playback ends for any reason.
    """

    def __init__(self, bot: discord.Client, settings: AudioSettings | None = None) -> None:
        self._bot = bot
        self._settings = settings or AudioSettings()
        self._executable = self._settings.ffmpeg_path or default_ffmpeg_executable()
        self._streams: dict[int, asyncio.Future[None]] = {}

    def _get_voice_client(self, guild_id: int) -> discord.VoiceClient | None:
        guild = self._bot.get_guild(guild_id)
        if not guild:
            return None

        vc = guild.voice_client
        return vc if isinstance(vc, discord.VoiceClient) else None

    async def connect(self, guild_id: int, channel_id: int) -> VoiceHandle:
        guild = self._bot.get_guild(guild_id)
        channel = guild.get_channel(channel_id) if guild else None
        if not isinstance(channel, discord.VoiceChannel | discord.StageChannel):
            raise TransportError(
                guild_id, ErrorMessages.VOICE_CHANNEL_NOT_FOUND.format(channel_id=channel_id)
            )

        vc = self._get_voice_client(guild_id)
        if vc and not vc.is_connected():
            await self._force_disconnect(guild_id, vc)
            vc = None

        if vc and vc.channel and vc.channel.id == channel_id:
            return VoiceHandle(guild_id=guild_id, channel_id=channel_id)

        try:
            async with asyncio.timeout(CONNECT_TIMEOUT):
                if vc:
                    await vc.move_to(channel)
                    logger.info(LogTemplates.VOICE_MOVED, channel.name)
                else:
                    await channel.connect(self_deaf=True)
                    logger.info(LogTemplates.VOICE_CONNECTED, channel.name, guild.name)
        except TimeoutError as e:
            logger.error(LogTemplates.VOICE_CONNECTION_TIMEOUT, channel_id)
            raise TransportError(
                guild_id, ErrorMessages.VOICE_CONNECT_TIMEOUT.format(channel_id=channel_id)
            ) from e
        except (discord.ClientException, discord.Forbidden) as e:
            logger.error(LogTemplates.VOICE_CLIENT_ERROR, e)
            raise TransportError(guild_id, str(e)) from e

        return VoiceHandle(guild_id=guild_id, channel_id=channel_id)

    async def disconnect(self, handle: VoiceHandle) -> None:
        self._settle(handle.guild_id, None)
        vc = self._get_voice_client(handle.guild_id)
        if vc is None:
            return
        await self._force_disconnect(handle.guild_id, vc)

    async def _force_disconnect(self, guild_id: int, vc: discord.VoiceClient) -> None:
        try:
            await vc.disconnect(force=True)
        except (discord.ClientException, discord.HTTPException, OSError) as e:
            logger.warning(LogTemplates.VOICE_DISCONNECT_FAILED, guild_id, e)

    async def stream(self, handle: VoiceHandle, path: Path) -> asyncio.Future[None]:
        guild_id = handle.guild_id
        vc = self._get_voice_client(guild_id)
        if vc is None or not vc.is_connected():
            raise TransportError(guild_id, ErrorMessages.VOICE_NOT_CONNECTED)

        loop = asyncio.get_running_loop()
        future: asyncio.Future[None] = loop.create_future()

        def after_callback(error: Exception | None = None) -> None:
            if error:
                logger.warning(LogTemplates.VOICE_AFTER_CALLBACK_ERROR, guild_id, error)
            loop.call_soon_threadsafe(self._finish, guild_id, future, error)

        try:
            source = discord.FFmpegOpusAudio(str(path), codec="copy", executable=self._executable)
            vc.play(source, after=after_callback)
        except (discord.ClientException, OSError) as e:
            raise TransportError(guild_id, ErrorMessages.VOICE_PLAY_FAILED.format(error=e)) from e

        self._streams[guild_id] = future
        return future

    async def stop(self, handle: VoiceHandle) -> None:
        vc = self._get_voice_client(handle.guild_id)
        if vc and (vc.is_playing() or vc.is_paused()):
            # The player thread resolves the future through after_callback.
            vc.stop()
            return
        self._settle(handle.guild_id, None)

    def is_connected(self, handle: VoiceHandle) -> bool:
        vc = self._get_voice_client(handle.guild_id)
        return (
            vc is not None
            and vc.is_connected()
            and vc.channel is not None
            and vc.channel.id == handle.channel_id
        )

    def _finish(self, guild_id: int, future: asyncio.Future[None], error: Exception | None) -> None:
        if self._streams.get(guild_id) is future:
            del self._streams[guild_id]
        if future.done():
            return
        if error is None:
            future.set_result(None)
        else:
            future.set_exception(
                TransportError(guild_id, ErrorMessages.VOICE_PLAY_FAILED.format(error=error))
            )

    def _settle(self, guild_id: int, error: Exception | None) -> None:
        future = self._streams.get(guild_id)
        if future is not None:
            self._finish(guild_id, future, error)
