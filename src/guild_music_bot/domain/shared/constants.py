"""Centralized constants for SQLite pragmas, file layout and external endpoints.

This module provides reusable constants that reduce magic strings and improve maintainability.
"""

from __future__ import annotations


class SQLPragmas:
    """SQLite PRAGMA statements for database configuration.

    These pragmas are applied to each connection to ensure consistent behavior.
    """

    JOURNAL_MODE_WAL = "PRAGMA journal_mode=WAL"
    FOREIGN_KEYS_ON = "PRAGMA foreign_keys=ON"
    BUSY_TIMEOUT = "PRAGMA busy_timeout={timeout}"


class AssetFiles:
    """File naming for converted assets and scratch downloads."""

    CONVERTED_SUFFIX = ".opus"
    PARTIAL_SUFFIX = ".part"
    SCRATCH_SUFFIX = ".m4a"


class SpotifyEndpoints:
    TOKEN_URL = "https://accounts.spotify.com/api/token"
    API_BASE_URL = "https://api.spotify.com/v1"
    PLAYLIST_TRACKS_PATH = "/playlists/{playlist_id}/tracks"
