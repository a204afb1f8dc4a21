"""Voice channel guard functions for Discord cogs."""

from guild_music_bot.infrastructure.discord.guards.voice_guards import (
    delete_invocation,
    ensure_user_in_voice,
    get_member,
    send_transient,
)

__all__ = [
    "delete_invocation",
    "ensure_user_in_voice",
    "get_member",
    "send_transient",
]
