"""
Unit Tests for DiscordVoiceAdapter

Tests for:
- Connecting, moving and reusing voice connections
- Connection failures mapped to TransportError
- Streaming a cached file with the after-callback resolving the future
- Stop and disconnect settling the active stream
"""

import asyncio
import threading
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import discord
import pytest

from guild_music_bot.application.interfaces.voice_transport import VoiceHandle
from guild_music_bot.config.settings import AudioSettings
from guild_music_bot.domain.shared.exceptions import TransportError
from guild_music_bot.infrastructure.discord.adapters.voice_adapter import DiscordVoiceAdapter

GUILD_ID = 123
CHANNEL_ID = 456
OPUS_AUDIO = "guild_music_bot.infrastructure.discord.adapters.voice_adapter.discord.FFmpegOpusAudio"


def _channel(channel_id: int = CHANNEL_ID) -> MagicMock:
    channel = MagicMock(spec=discord.VoiceChannel)
    channel.id = channel_id
    channel.name = f"voice-{channel_id}"
    channel.connect = AsyncMock()
    return channel


def _voice_client(channel_id: int = CHANNEL_ID, connected: bool = True) -> MagicMock:
    vc = MagicMock(spec=discord.VoiceClient)
    vc.channel = MagicMock()
    vc.channel.id = channel_id
    vc.is_connected.return_value = connected
    vc.is_playing.return_value = False
    vc.is_paused.return_value = False
    vc.move_to = AsyncMock()
    vc.disconnect = AsyncMock()
    return vc


@pytest.fixture
def guild():
    guild = MagicMock()
    guild.id = GUILD_ID
    guild.name = "Test Guild"
    guild.voice_client = None
    guild.get_channel.return_value = _channel()
    return guild


@pytest.fixture
def mock_bot(guild):
    bot = MagicMock()
    bot.get_guild.return_value = guild
    return bot


@pytest.fixture
def adapter(mock_bot):
    return DiscordVoiceAdapter(mock_bot, AudioSettings(ffmpeg_path="/opt/ffmpeg"))


@pytest.fixture
def handle():
    return VoiceHandle(guild_id=GUILD_ID, channel_id=CHANNEL_ID)


class TestConnect:
    async def test_connects_deafened(self, adapter, guild):
        handle = await adapter.connect(GUILD_ID, CHANNEL_ID)

        guild.get_channel.return_value.connect.assert_awaited_once_with(self_deaf=True)
        assert handle == VoiceHandle(GUILD_ID, CHANNEL_ID)

    async def test_reuses_connection_in_same_channel(self, adapter, guild):
        vc = _voice_client()
        guild.voice_client = vc

        await adapter.connect(GUILD_ID, CHANNEL_ID)

        vc.move_to.assert_not_awaited()
        guild.get_channel.return_value.connect.assert_not_awaited()

    async def test_moves_to_another_channel(self, adapter, guild):
        vc = _voice_client(channel_id=999)
        guild.voice_client = vc

        await adapter.connect(GUILD_ID, CHANNEL_ID)

        vc.move_to.assert_awaited_once_with(guild.get_channel.return_value)

    async def test_stale_connection_is_replaced(self, adapter, guild):
        vc = _voice_client(connected=False)
        guild.voice_client = vc

        await adapter.connect(GUILD_ID, CHANNEL_ID)

        vc.disconnect.assert_awaited_once_with(force=True)
        guild.get_channel.return_value.connect.assert_awaited_once()

    async def test_unknown_channel_raises(self, adapter, guild):
        guild.get_channel.return_value = None

        with pytest.raises(TransportError):
            await adapter.connect(GUILD_ID, CHANNEL_ID)

    async def test_text_channel_is_rejected(self, adapter, guild):
        guild.get_channel.return_value = MagicMock(spec=discord.TextChannel)

        with pytest.raises(TransportError):
            await adapter.connect(GUILD_ID, CHANNEL_ID)

    async def test_timeout_raises_transport_error(self, adapter, guild):
        guild.get_channel.return_value.connect.side_effect = TimeoutError()

        with pytest.raises(TransportError) as exc_info:
            await adapter.connect(GUILD_ID, CHANNEL_ID)

        assert exc_info.value.guild_id == GUILD_ID

    async def test_client_exception_raises_transport_error(self, adapter, guild):
        guild.get_channel.return_value.connect.side_effect = discord.ClientException("Already connected")

        with pytest.raises(TransportError, match="Already connected"):
            await adapter.connect(GUILD_ID, CHANNEL_ID)

    async def test_forbidden_raises_transport_error(self, adapter, guild):
        response = MagicMock(status=403, reason="Forbidden")
        guild.get_channel.return_value.connect.side_effect = discord.Forbidden(response, "Missing Access")

        with pytest.raises(TransportError):
            await adapter.connect(GUILD_ID, CHANNEL_ID)


class TestStream:
    async def test_stream_requires_connection(self, adapter, handle):
        with pytest.raises(TransportError):
            await adapter.stream(handle, Path("/cache/a.opus"))

    async def test_stream_copies_opus_and_resolves_on_finish(self, adapter, guild, handle):
        vc = _voice_client()
        guild.voice_client = vc

        with patch(OPUS_AUDIO) as mock_source:
            future = await adapter.stream(handle, Path("/cache/a.opus"))

        mock_source.assert_called_once_with("/cache/a.opus", codec="copy", executable="/opt/ffmpeg")
        after = vc.play.call_args.kwargs["after"]
        assert not future.done()

        # discord.py calls ``after`` from its player thread
        thread = threading.Thread(target=after, args=(None,))
        thread.start()
        thread.join()
        await asyncio.wait_for(future, timeout=1)

        assert future.result() is None

    async def test_player_error_resolves_with_transport_error(self, adapter, guild, handle):
        vc = _voice_client()
        guild.voice_client = vc

        with patch(OPUS_AUDIO):
            future = await adapter.stream(handle, Path("/cache/a.opus"))
        vc.play.call_args.kwargs["after"](OSError("broken pipe"))

        with pytest.raises(TransportError, match="broken pipe"):
            await asyncio.wait_for(future, timeout=1)

    async def test_play_failure_raises_transport_error(self, adapter, guild, handle):
        vc = _voice_client()
        vc.play.side_effect = discord.ClientException("Already playing audio.")
        guild.voice_client = vc

        with patch(OPUS_AUDIO):
            with pytest.raises(TransportError):
                await adapter.stream(handle, Path("/cache/a.opus"))


class TestStopAndDisconnect:
    async def test_stop_while_playing_stops_player(self, adapter, guild, handle):
        vc = _voice_client()
        vc.is_playing.return_value = True
        guild.voice_client = vc

        await adapter.stop(handle)

        vc.stop.assert_called_once()

    async def test_stop_when_idle_settles_pending_future(self, adapter, guild, handle):
        vc = _voice_client()
        guild.voice_client = vc
        with patch(OPUS_AUDIO):
            future = await adapter.stream(handle, Path("/cache/a.opus"))

        await adapter.stop(handle)

        assert future.done()
        vc.stop.assert_not_called()

    async def test_disconnect_settles_stream_and_disconnects(self, adapter, guild, handle):
        vc = _voice_client()
        guild.voice_client = vc
        with patch(OPUS_AUDIO):
            future = await adapter.stream(handle, Path("/cache/a.opus"))

        await adapter.disconnect(handle)

        assert future.done()
        vc.disconnect.assert_awaited_once_with(force=True)

    async def test_disconnect_failure_is_logged_not_raised(self, adapter, guild, handle):
        vc = _voice_client()
        vc.disconnect.side_effect = discord.ClientException("gone")
        guild.voice_client = vc

        await adapter.disconnect(handle)

    async def test_is_connected_checks_channel(self, adapter, guild, handle):
        assert adapter.is_connected(handle) is False

        guild.voice_client = _voice_client()
        assert adapter.is_connected(handle) is True

        guild.voice_client = _voice_client(channel_id=999)
        assert adapter.is_connected(handle) is False
