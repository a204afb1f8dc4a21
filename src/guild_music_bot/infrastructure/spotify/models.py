"""Pydantic models for Spotify Web API payloads."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from guild_music_bot.application.interfaces.playlist_client import PlaylistItem


class SpotifyToken(BaseModel):
    """Client-credentials token response."""

    model_config = ConfigDict(extra="ignore")

    access_token: str = Field(..., min_length=1)
    token_type: str = "Bearer"
    expires_in: int = Field(default=3600, ge=0)


class SpotifyArtist(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str = ""


class SpotifyTrack(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str = ""
    artists: list[SpotifyArtist] = Field(default_factory=list)

    def to_item(self) -> PlaylistItem | None:
        if not self.name.strip():
            return None
        artist = self.artists[0].name if self.artists else ""
        return PlaylistItem(title=self.name, artist=artist)


class SpotifyPlaylistEntry(BaseModel):
    model_config = ConfigDict(extra="ignore")

    # Local files and removed tracks come back as null
    track: SpotifyTrack | None = None


class SpotifyPlaylistPage(BaseModel):
    model_config = ConfigDict(extra="ignore")

    items: list[SpotifyPlaylistEntry] = Field(default_factory=list)
    next: str | None = None
