"""Port interface for the third-party playlist API."""

from __future__ import annotations

from abc import ABC, abstractmethod

from pydantic import BaseModel, ConfigDict

from guild_music_bot.domain.shared.types import NonEmptyStr


class PlaylistItem(BaseModel):
    """A playlist track reduced to what a search needs."""

    model_config = ConfigDict(frozen=True)

    title: NonEmptyStr
    artist: str = ""

    @property
    def search_query(self) -> str:
        if not self.artist:
            return self.title
        return f"{self.title} - {self.artist}"


class PlaylistClient(ABC):
    """Interface for authenticating to and reading playlists from a playlist API."""

    @abstractmethod
    async def authenticate(self) -> None:
        """Acquire an access token. Raises ExternalAPIError on failure."""
        ...

    @abstractmethod
    async def get_playlist_tracks(self, playlist_id: NonEmptyStr) -> list[PlaylistItem]:
        """Return the playlist's items in playlist order."""
        ...

    @abstractmethod
    async def close(self) -> None:
        ...
