"""Discord cogs - command handlers."""

from guild_music_bot.infrastructure.discord.cogs.music_cog import MusicCog

__all__ = [
    "MusicCog",
]
