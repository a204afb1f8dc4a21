"""
Music Bounded Context

Track identity, queue entries and per-guild session state.
"""

from guild_music_bot.domain.music.entities import GuildSession, QueueEntry, TrackDescriptor
from guild_music_bot.domain.music.value_objects import (
    EntryStatus,
    PlaybackState,
    RequestKind,
    TrackIdentity,
)

__all__ = [
    # Entities
    "TrackDescriptor",
    "QueueEntry",
    "GuildSession",
    # Value Objects
    "TrackIdentity",
    "PlaybackState",
    "EntryStatus",
    "RequestKind",
]
