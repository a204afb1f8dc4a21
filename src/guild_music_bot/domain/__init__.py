# ruff: noqa: N999
"""
Domain Layer

Contains pure playback-engine state organized by bounded contexts:
- shared/: Cross-cutting types, messages and exceptions
- music/: Track identity, queue entries and guild session state
"""

from guild_music_bot.domain.shared.exceptions import MusicBotError

__all__ = [
    "MusicBotError",
]
