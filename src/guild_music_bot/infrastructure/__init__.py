"""Infrastructure layer - external systems integration.

This layer contains implementations for:
- Persistence (SQLite asset cache)
- Discord (bot, cogs, voice adapter)
- Audio (yt-dlp, FFmpeg)
- Spotify (playlist client)
"""

from guild_music_bot.infrastructure.discord.adapters.voice_adapter import DiscordVoiceAdapter
from guild_music_bot.infrastructure.discord.bot import create_bot
from guild_music_bot.infrastructure.persistence.database import Database

__all__ = [
    "create_bot",
    "DiscordVoiceAdapter",
    "Database",
]
