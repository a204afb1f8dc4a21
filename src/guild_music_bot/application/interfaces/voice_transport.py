"""Port interface for Discord voice operations."""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path

from guild_music_bot.domain.shared.types import ChannelIdField, DiscordSnowflake


@dataclass(frozen=True)
class VoiceHandle:
    """Opaque token for an established voice connection."""

    guild_id: int
    channel_id: int


class VoiceTransport(ABC):
    """Interface for Discord voice channel operations."""

    @abstractmethod
    async def connect(self, guild_id: DiscordSnowflake, channel_id: ChannelIdField) -> VoiceHandle:
        """Connect to (or move to) a voice channel. Raises TransportError on failure."""
        ...

    @abstractmethod
    async def disconnect(self, handle: VoiceHandle) -> None:
        """Release the voice connection."""
        ...

    @abstractmethod
    async def stream(self, handle: VoiceHandle, path: Path) -> asyncio.Future[None]:
        """Start streaming the file at ``path``.

        Returns a future resolved when playback ends, naturally or via stop().
        Raises TransportError if playback cannot start.
        """
        ...

    @abstractmethod
    async def stop(self, handle: VoiceHandle) -> None:
        """Stop the current stream, resolving its future."""
        ...

    @abstractmethod
    def is_connected(self, handle: VoiceHandle) -> bool:
        ...
