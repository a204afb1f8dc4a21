"""DTOs for the session registry and play requests."""

from __future__ import annotations

from pydantic import BaseModel

from ...domain.music.value_objects import EntryStatus, PlaybackState
from ...domain.shared.messages import DiscordUIMessages
from ...domain.shared.types import NonNegativeInt


class QueueSnapshotItem(BaseModel):
    """Display copy of one queue entry."""

    position: NonNegativeInt
    request: str
    requested_by: str
    status: EntryStatus
    title: str | None = None
    duration: str | None = None
    is_playing: bool = False

    @property
    def is_pending(self) -> bool:
        return self.title is None

    @property
    def display_title(self) -> str:
        if self.title is None:
            return DiscordUIMessages.QUEUE_PLACEHOLDER
        if self.status == EntryStatus.DOWNLOADING:
            return self.title + DiscordUIMessages.QUEUE_DOWNLOADING_SUFFIX
        return self.title


class QueueSnapshot(BaseModel):
    """Consistent copy of a guild queue taken under the session guard."""

    guild_id: int
    state: PlaybackState
    items: list[QueueSnapshotItem]

    @property
    def now_playing(self) -> QueueSnapshotItem | None:
        for item in self.items:
            if item.is_playing:
                return item
        return None

    @property
    def upcoming(self) -> list[QueueSnapshotItem]:
        return [item for item in self.items if not item.is_playing]

    @property
    def total_length(self) -> int:
        return len(self.items)

    @property
    def is_empty(self) -> bool:
        return not self.items


class PlayRequestResult(BaseModel):
    """Outcome of a play request, returned to the chat surface."""

    query: str
    position: NonNegativeInt
    count: NonNegativeInt
    first_title: str | None = None
