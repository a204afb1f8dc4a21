"""Playback Scheduler - drains each guild queue through the voice transport."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING

from ...domain.music.entities import GuildSession, QueueEntry
from ...domain.music.value_objects import PlaybackState
from ...domain.shared.exceptions import TransportError
from ...domain.shared.messages import DiscordUIMessages, LogTemplates
from ...domain.shared.types import ChannelIdField, DiscordSnowflake

if TYPE_CHECKING:
    from ..interfaces.voice_transport import VoiceHandle, VoiceTransport
    from .session_registry import SessionRegistry

logger = logging.getLogger(__name__)

Notifier = Callable[[int, str], Awaitable[None]]


class PlaybackScheduler:
    """Runs at most one player task per guild.

    The player task is the only consumer of a guild queue. It waits for the
    head entry to settle, streams it, honours the skip signal, pops it and
    repeats until the queue is empty or voice is released. Waiting on a
    download and streaming both happen outside the session lock, so enqueue,
    skip and snapshot never block behind playback.
    """

    def __init__(
        self,
        *,
        registry: SessionRegistry,
        voice_transport: VoiceTransport,
        notifier: Notifier | None = None,
    ) -> None:
        self._registry = registry
        self._transport = voice_transport
        self._notifier = notifier

    def set_notifier(self, notifier: Notifier | None) -> None:
        self._notifier = notifier

    # ── Public API ──────────────────────────────────────────────────

    async def kick(self, guild_id: DiscordSnowflake) -> bool:
        """Start the player task for a guild unless one is already running."""
        session = self._registry.get_or_create(guild_id)
        async with session.lock:
            if session.has_active_player:
                return False
            session.player_task = asyncio.create_task(
                self._run(session), name=f"player-{guild_id}"
            )
        logger.debug(LogTemplates.PLAYBACK_SCHEDULER_STARTED, guild_id)
        return True

    async def ensure_connected(
        self, guild_id: DiscordSnowflake, channel_id: ChannelIdField
    ) -> VoiceHandle:
        """Connect (or move) to a voice channel and attach the handle to the session."""
        handle = await self._transport.connect(guild_id, channel_id)
        session = self._registry.get_or_create(guild_id)
        async with session.lock:
            session.voice = handle
            if session.state == PlaybackState.DISCONNECTED:
                # A player still waiting on a download resumes from AWAITING_ASSET.
                resumed = (
                    PlaybackState.AWAITING_ASSET if session.has_active_player else PlaybackState.IDLE
                )
                self._transition(session, resumed)
        return handle

    async def summon(self, guild_id: DiscordSnowflake, channel_id: ChannelIdField) -> VoiceHandle:
        handle = await self.ensure_connected(guild_id, channel_id)
        await self.kick(guild_id)
        return handle

    async def disconnect(self, guild_id: DiscordSnowflake) -> bool:
        """Release voice. Queued entries stay and resume on the next connection."""
        session = self._registry.get_or_create(guild_id)
        async with session.lock:
            handle = session.voice
            if handle is None:
                return False
            session.voice = None
            streaming = session.state.is_streaming
            if not streaming:
                self._transition(session, PlaybackState.DISCONNECTED)

        if streaming:
            await self._transport.stop(handle)
        await self._transport.disconnect(handle)
        logger.info(LogTemplates.VOICE_DISCONNECTED, guild_id)
        return True

    async def shutdown(self) -> None:
        tasks = []
        for session in self._registry.all_sessions():
            task = session.player_task
            if task is not None and not task.done():
                task.cancel()
                tasks.append(task)
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

        for session in self._registry.all_sessions():
            if session.voice is not None:
                await self.disconnect(session.guild_id)

    # ── Player loop ─────────────────────────────────────────────────

    async def _run(self, session: GuildSession) -> None:
        guild_id = session.guild_id
        voice_lost = False
        try:
            while True:
                async with session.lock:
                    voice_lost |= self._release_lost_voice(session)
                    head = session.head()
                    if head is None or session.voice is None:
                        self._transition(session, self._resting_state(session, head))
                        session.player_task = None
                        logger.debug(
                            LogTemplates.PLAYBACK_SCHEDULER_EXITED, guild_id, session.state.value
                        )
                        break
                    self._transition(session, PlaybackState.AWAITING_ASSET)

                if not await head.wait_settled():
                    async with session.lock:
                        session.remove(head)
                    logger.info(LogTemplates.TRACK_DROPPED, head.request, guild_id, head.error)
                    continue

                async with session.lock:
                    voice_lost |= self._release_lost_voice(session)
                    handle = session.voice
                    if handle is None or session.head() is not head:
                        continue
                    session.consume_skip()
                    self._transition(session, PlaybackState.PLAYING)
                    session.now_playing = head

                await self._play(session, head, handle)

                async with session.lock:
                    session.now_playing = None
                    voice_lost |= self._release_lost_voice(session)
                    # A changed handle means voice was released mid-track; keep the entry.
                    if session.voice is handle:
                        session.pop_head(head)
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception(LogTemplates.PLAYBACK_SCHEDULER_CRASHED, guild_id)
            session.now_playing = None
            session.state = PlaybackState.IDLE
            return
        finally:
            if session.player_task is asyncio.current_task():
                session.player_task = None

        if voice_lost:
            await self._notify(guild_id, DiscordUIMessages.ERROR_VOICE_LOST)

    async def _play(self, session: GuildSession, entry: QueueEntry, handle: VoiceHandle) -> None:
        guild_id = session.guild_id
        title = entry.title or entry.request

        if entry.asset_path is None:
            return
        try:
            done = await self._transport.stream(handle, entry.asset_path)
        except TransportError as exc:
            logger.warning(LogTemplates.PLAYBACK_ERROR, guild_id, exc.message)
            await self._notify(guild_id, DiscordUIMessages.ERROR_PLAYBACK_FAILED.format(error=exc.message))
            return

        logger.info(LogTemplates.PLAYBACK_STARTED, title, guild_id)
        await self._notify(
            guild_id,
            DiscordUIMessages.ACTION_NOW_PLAYING.format(title=title, user=entry.requested_by),
        )

        skip_wait = asyncio.create_task(session.skip_signal.wait())
        try:
            await asyncio.wait({done, skip_wait}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            skip_wait.cancel()

        if not done.done():
            async with session.lock:
                if session.consume_skip():
                    self._transition(session, PlaybackState.SKIPPING)
            await self._transport.stop(handle)
            await asyncio.wait({done})
            logger.info(LogTemplates.TRACK_SKIPPED, title, guild_id)
        else:
            logger.info(LogTemplates.TRACK_FINISHED, title, guild_id)

        if done.cancelled():
            return
        error = done.exception()
        if error is not None:
            message = error.message if isinstance(error, TransportError) else str(error)
            logger.warning(LogTemplates.PLAYBACK_ERROR, guild_id, message)
            await self._notify(guild_id, DiscordUIMessages.ERROR_PLAYBACK_FAILED.format(error=message))

    # ── Helpers ─────────────────────────────────────────────────────

    def _release_lost_voice(self, session: GuildSession) -> bool:
        """Forget a handle whose connection dropped without a disconnect command.

        Called under the session lock. The queue is left intact so the next
        connection resumes from the head.
        """
        handle = session.voice
        if handle is None or self._transport.is_connected(handle):
            return False
        session.voice = None
        logger.warning(LogTemplates.VOICE_LOST, session.guild_id, len(session.entries))
        return True

    @staticmethod
    def _resting_state(session: GuildSession, head: QueueEntry | None) -> PlaybackState:
        if session.voice is None and (head is not None or session.state != PlaybackState.IDLE):
            return PlaybackState.DISCONNECTED
        return PlaybackState.IDLE

    @staticmethod
    def _transition(session: GuildSession, target: PlaybackState) -> None:
        previous = session.state
        session.transition_to(target)
        if previous != target:
            logger.debug(LogTemplates.PLAYBACK_STATE, session.guild_id, previous.value, target.value)

    async def _notify(self, guild_id: int, message: str) -> None:
        if self._notifier is None:
            return
        try:
            await self._notifier(guild_id, message)
        except Exception as exc:
            logger.warning(LogTemplates.PLAYBACK_NOTIFY_FAILED, guild_id, exc)
