"""Core domain entities for the music bounded context."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict

from guild_music_bot.domain.music.value_objects import EntryStatus, PlaybackState, TrackIdentity
from guild_music_bot.domain.shared.exceptions import InvalidStateTransitionError
from guild_music_bot.domain.shared.types import (
    DurationSeconds,
    HttpUrlStr,
    NonEmptyStr,
    TrackTitleStr,
)


class TrackDescriptor(BaseModel):
    """Immutable resolved metadata for one playable item."""

    model_config = ConfigDict(frozen=True, strict=True)

    source_id: NonEmptyStr
    extractor: NonEmptyStr
    title: TrackTitleStr
    webpage_url: HttpUrlStr
    duration_seconds: DurationSeconds | None = None

    # Only present when the user supplied the link directly and it named a single item
    link: NonEmptyStr | None = None
    requested_by: NonEmptyStr | None = None

    @property
    def identity(self) -> TrackIdentity:
        return TrackIdentity(self.source_id, self.extractor)

    @property
    def asset_key(self) -> str:
        return self.identity.asset_key

    @property
    def duration_formatted(self) -> str:
        """Format duration as MM:SS or HH:MM:SS."""
        if self.duration_seconds is None:
            return "Unknown"

        hours, remainder = divmod(self.duration_seconds, 3600)
        minutes, seconds = divmod(remainder, 60)

        if hours > 0:
            return f"{hours}:{minutes:02d}:{seconds:02d}"
        return f"{minutes}:{seconds:02d}"

    def with_requester(self, user_name: str) -> TrackDescriptor:
        """Return a copy of this descriptor stamped with the requesting user."""
        return self.model_copy(update={"requested_by": user_name})

    def with_link(self, link: str | None) -> TrackDescriptor:
        return self.model_copy(update={"link": link})


@dataclass(eq=False)
class QueueEntry:
    """One slot in a guild queue.

    Entries are appended in request order before their descriptor is known, so
    the queue listing can show a placeholder while resolution and download run.
    Entries compare by identity; the same track requested twice is two entries.
    """

    request: str
    requested_by: str
    descriptor: TrackDescriptor | None = None
    asset_path: Path | None = None
    status: EntryStatus = EntryStatus.RESOLVING
    error: str | None = None
    _settled: asyncio.Event = field(default_factory=asyncio.Event, repr=False)

    @property
    def title(self) -> str | None:
        return self.descriptor.title if self.descriptor else None

    @property
    def is_ready(self) -> bool:
        return self.status == EntryStatus.READY

    @property
    def is_failed(self) -> bool:
        return self.status == EntryStatus.FAILED

    def mark_resolved(self, descriptor: TrackDescriptor) -> None:
        """Metadata is known; the asset may still be downloading."""
        if self.status.is_settled:
            return
        self.descriptor = descriptor
        self.status = EntryStatus.DOWNLOADING

    def mark_ready(self, asset_path: Path, descriptor: TrackDescriptor | None = None) -> None:
        if self.status.is_settled:
            return
        if descriptor is not None:
            self.descriptor = descriptor
        self.asset_path = asset_path
        self.status = EntryStatus.READY
        self._settled.set()

    def mark_failed(self, reason: str) -> None:
        if self.status.is_settled:
            return
        self.error = reason
        self.status = EntryStatus.FAILED
        self._settled.set()

    async def wait_settled(self) -> bool:
        """Block until the entry is ready or failed. Returns True when playable."""
        await self._settled.wait()
        return self.is_ready


@dataclass(eq=False)
class GuildSession:
    """Mutable per-guild playback state.

    ``lock`` guards every other field. Methods on this class do not take the
    lock themselves; callers hold it for the whole read-decide-write sequence.
    """

    guild_id: int
    lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)
    entries: list[QueueEntry] = field(default_factory=list)
    skip_requested: bool = False
    skip_signal: asyncio.Event = field(default_factory=asyncio.Event, repr=False)
    voice: Any = None
    text_channel_id: int | None = None
    state: PlaybackState = PlaybackState.IDLE
    now_playing: QueueEntry | None = None
    player_task: asyncio.Task[None] | None = field(default=None, repr=False)

    @property
    def is_connected(self) -> bool:
        return self.voice is not None

    @property
    def has_active_player(self) -> bool:
        return self.player_task is not None and not self.player_task.done()

    def head(self) -> QueueEntry | None:
        return self.entries[0] if self.entries else None

    def pop_head(self, entry: QueueEntry) -> bool:
        """Remove ``entry`` only if it is still the head."""
        if self.head() is not entry:
            return False
        del self.entries[0]
        return True

    def append(self, entries: list[QueueEntry]) -> int:
        """Append entries in order and return the position of the first one."""
        position = len(self.entries)
        self.entries.extend(entries)
        return position

    def remove(self, entry: QueueEntry) -> bool:
        for index, queued in enumerate(self.entries):
            if queued is entry:
                del self.entries[index]
                return True
        return False

    def clear_waiting(self) -> int:
        """Drop every entry except the one currently streaming.

        Dropped entries are settled as failed so a scheduler waiting on one of
        them moves on instead of waiting for its download.
        """
        dropped = [e for e in self.entries if e is not self.now_playing]
        for entry in dropped:
            entry.mark_failed("cleared")
        self.entries = [e for e in self.entries if e is self.now_playing]
        return len(dropped)

    def request_skip(self) -> bool:
        if not self.state.is_streaming:
            return False
        self.skip_requested = True
        self.skip_signal.set()
        return True

    def consume_skip(self) -> bool:
        """Read and clear the skip flag in one step."""
        requested = self.skip_requested
        self.skip_requested = False
        self.skip_signal.clear()
        return requested

    def transition_to(self, new_state: PlaybackState) -> None:
        if not self.state.can_transition_to(new_state):
            raise InvalidStateTransitionError(self.state.value, new_state.value)
        self.state = new_state
