"""Spotify Web API integration for playlist requests."""

from guild_music_bot.infrastructure.spotify.playlist_client import SpotifyPlaylistClient

__all__ = ["SpotifyPlaylistClient"]
