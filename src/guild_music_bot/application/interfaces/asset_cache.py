"""Port interface for the persistent converted-asset cache."""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING

from guild_music_bot.domain.shared.types import AssetKeyStr, NonEmptyStr

if TYPE_CHECKING:
    from ...domain.music.entities import TrackDescriptor
    from ...domain.music.value_objects import TrackIdentity


class AssetCache(ABC):
    """Interface for looking up and recording converted audio assets.

    An entry for a key implies the converted file exists at ``asset_path(key)``.
    """

    @abstractmethod
    async def lookup_by_link(self, link: NonEmptyStr) -> "TrackDescriptor | None":
        """Find a cached descriptor by the exact link a user supplied."""
        ...

    @abstractmethod
    async def lookup_by_identity(self, identity: "TrackIdentity") -> "TrackDescriptor | None":
        """Find a cached descriptor by upstream identity."""
        ...

    @abstractmethod
    async def record(self, descriptor: "TrackDescriptor", link: NonEmptyStr | None = None) -> None:
        """Upsert a descriptor, additionally indexing it by ``link`` when given."""
        ...

    @abstractmethod
    def asset_path(self, asset_key: AssetKeyStr) -> Path:
        """Return the on-disk location of the converted file for a key."""
        ...

    @abstractmethod
    async def forget(self, asset_key: AssetKeyStr) -> bool:
        """Remove an entry and its link index rows."""
        ...

    @abstractmethod
    async def count(self) -> int:
        ...
