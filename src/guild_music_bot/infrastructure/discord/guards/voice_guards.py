"""Reusable guard and reply helpers for prefix commands.

These are free functions that accept the command context explicitly rather
than relying on a specific cog instance, making them usable from any cog.
"""

from __future__ import annotations

import logging

import discord
from discord.ext import commands

from guild_music_bot.domain.shared.messages import DiscordUIMessages, LogTemplates

logger = logging.getLogger(__name__)

REPLY_DELETE_AFTER: float = 15.0
HELP_DELETE_AFTER: float = 30.0


async def send_transient(
    ctx: commands.Context, message: str, *, delete_after: float = REPLY_DELETE_AFTER
) -> None:
    """Send a status reply that removes itself after ``delete_after`` seconds."""
    await ctx.send(message, delete_after=delete_after)


async def delete_invocation(ctx: commands.Context) -> None:
    """Remove the message that invoked the command; missing permissions are only logged."""
    try:
        await ctx.message.delete()
    except (discord.Forbidden, discord.NotFound, discord.HTTPException) as e:
        logger.debug(LogTemplates.COMMAND_DELETE_FAILED, getattr(ctx.guild, "id", None), e)


def get_member(ctx: commands.Context) -> discord.Member | None:
    author = ctx.author
    return author if isinstance(author, discord.Member) else None


async def ensure_user_in_voice(
    ctx: commands.Context,
) -> discord.VoiceChannel | discord.StageChannel | None:
    """Return the author's voice channel, replying with an error when there is none."""
    member = get_member(ctx)
    if member is None or ctx.guild is None or not member.voice or not member.voice.channel:
        await send_transient(ctx, DiscordUIMessages.ERROR_NOT_IN_VOICE)
        return None

    return member.voice.channel
