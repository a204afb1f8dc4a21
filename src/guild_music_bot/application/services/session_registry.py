"""Session Registry - owns the per-guild sessions and their queues."""

from __future__ import annotations

import logging

from ...domain.music.entities import GuildSession, QueueEntry
from ...domain.shared.messages import LogTemplates
from ...domain.shared.types import DiscordSnowflake
from .queue_models import QueueSnapshot, QueueSnapshotItem

logger = logging.getLogger(__name__)


class SessionRegistry:
    """Maps guild IDs to their single GuildSession.

    A session is created the first time a guild is observed and looked up
    thereafter; it is never replaced. Every queue mutation happens under that
    guild's own lock, so guilds never contend with each other.
    """

    def __init__(self) -> None:
        self._sessions: dict[int, GuildSession] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, guild_id: object) -> bool:
        return guild_id in self._sessions

    def get_or_create(self, guild_id: DiscordSnowflake) -> GuildSession:
        # No await between lookup and insert, so this is atomic on the event loop.
        session = self._sessions.get(guild_id)
        if session is None:
            session = GuildSession(guild_id=guild_id)
            self._sessions[guild_id] = session
            logger.debug(LogTemplates.SESSION_CREATED, guild_id)
        return session

    def get(self, guild_id: DiscordSnowflake) -> GuildSession | None:
        return self._sessions.get(guild_id)

    def all_sessions(self) -> list[GuildSession]:
        return list(self._sessions.values())

    async def enqueue(self, guild_id: DiscordSnowflake, entries: list[QueueEntry]) -> int:
        """Append entries in order; returns the zero-based position of the first."""
        session = self.get_or_create(guild_id)
        async with session.lock:
            position = session.append(entries)
        logger.info(LogTemplates.QUEUE_ENQUEUED, len(entries), position, guild_id)
        return position

    async def discard(self, guild_id: DiscordSnowflake, entry: QueueEntry) -> bool:
        """Remove an entry wherever it sits, unless it is the one streaming."""
        session = self.get_or_create(guild_id)
        async with session.lock:
            if entry is session.now_playing:
                return False
            removed = session.remove(entry)
        if removed:
            logger.debug(LogTemplates.QUEUE_DISCARDED, entry.request, guild_id)
        return removed

    async def request_skip(self, guild_id: DiscordSnowflake) -> bool:
        session = self.get_or_create(guild_id)
        async with session.lock:
            accepted = session.request_skip()
            state = session.state
        if accepted:
            logger.info(LogTemplates.SKIP_REQUESTED, guild_id)
        else:
            logger.debug(LogTemplates.SKIP_IGNORED, guild_id, state.value)
        return accepted

    async def clear(self, guild_id: DiscordSnowflake) -> int:
        session = self.get_or_create(guild_id)
        async with session.lock:
            removed = session.clear_waiting()
        logger.info(LogTemplates.QUEUE_CLEARED, removed, guild_id)
        return removed

    async def snapshot(self, guild_id: DiscordSnowflake) -> QueueSnapshot:
        session = self.get_or_create(guild_id)
        async with session.lock:
            items = [
                QueueSnapshotItem(
                    position=index,
                    request=entry.request,
                    requested_by=entry.requested_by,
                    status=entry.status,
                    title=entry.title,
                    duration=entry.descriptor.duration_formatted if entry.descriptor else None,
                    is_playing=entry is session.now_playing,
                )
                for index, entry in enumerate(session.entries)
            ]
            state = session.state
        return QueueSnapshot(guild_id=guild_id, state=state, items=items)
