"""Prefix-command music cog delegating to application services."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import discord
from discord.ext import commands

from guild_music_bot.domain.shared.exceptions import ResolutionError, TransportError
from guild_music_bot.domain.shared.messages import DiscordUIMessages, ErrorMessages, LogTemplates
from guild_music_bot.infrastructure.discord.guards.voice_guards import (
    HELP_DELETE_AFTER,
    delete_invocation,
    ensure_user_in_voice,
    send_transient,
)
from guild_music_bot.utils.reply import format_queue, split_shuffle_flag, truncate

if TYPE_CHECKING:
    from ....application.services.queue_models import PlayRequestResult
    from ....config.container import Container

logger = logging.getLogger(__name__)


class MusicCog(commands.Cog):
    def __init__(self, bot: commands.Bot, container: Container) -> None:
        self.bot = bot
        self.container = container

    async def cog_load(self) -> None:
        self.container.playback_scheduler.set_notifier(self._notify)

    async def cog_unload(self) -> None:
        self.container.playback_scheduler.set_notifier(None)

    async def cog_before_invoke(self, ctx: commands.Context) -> None:
        await delete_invocation(ctx)

    # ─────────────────────────────────────────────────────────────────
    # Guild Events
    # ─────────────────────────────────────────────────────────────────

    @commands.Cog.listener()
    async def on_guild_available(self, guild: discord.Guild) -> None:
        self.container.session_registry.get_or_create(guild.id)

    @commands.Cog.listener()
    async def on_guild_join(self, guild: discord.Guild) -> None:
        self.container.session_registry.get_or_create(guild.id)

    # ─────────────────────────────────────────────────────────────────
    # Commands
    # ─────────────────────────────────────────────────────────────────

    @commands.command(name="play", aliases=["p"])
    @commands.guild_only()
    async def play(self, ctx: commands.Context, *, arguments: str = "") -> None:
        channel = await ensure_user_in_voice(ctx)
        if channel is None:
            return

        shuffle, query = split_shuffle_flag(arguments)
        if not query:
            await send_transient(ctx, DiscordUIMessages.ERROR_MISSING_QUERY.format(prefix=ctx.clean_prefix))
            return

        guild_id = ctx.guild.id  # type: ignore[union-attr]
        self.container.session_registry.get_or_create(guild_id).text_channel_id = ctx.channel.id

        try:
            result = await self.container.play_request_service.play(
                guild_id=guild_id,
                channel_id=channel.id,
                query=query,
                requested_by=ctx.author.display_name,
                shuffle=shuffle,
            )
        except TransportError as e:
            logger.warning(LogTemplates.PLAY_REQUEST_FAILED, query, guild_id, e.message)
            await send_transient(ctx, DiscordUIMessages.ERROR_COULD_NOT_JOIN_VOICE)
            return
        except ResolutionError as e:
            logger.warning(LogTemplates.PLAY_REQUEST_FAILED, query, guild_id, e.message)
            await send_transient(
                ctx, DiscordUIMessages.ERROR_TRACK_NOT_FOUND.format(query=truncate(query, 200))
            )
            return

        await send_transient(ctx, self._queued_message(result))

    @staticmethod
    def _queued_message(result: PlayRequestResult) -> str:
        if result.count > 1:
            return DiscordUIMessages.SUCCESS_QUEUED_MANY.format(
                count=result.count, position=result.position + 1
            )
        if result.first_title:
            return DiscordUIMessages.SUCCESS_QUEUED_ONE.format(
                title=result.first_title, position=result.position + 1
            )
        return DiscordUIMessages.SUCCESS_QUEUED_PENDING.format(
            request=truncate(result.query, 200), position=result.position + 1
        )

    @commands.command(name="skip", aliases=["s"])
    @commands.guild_only()
    async def skip(self, ctx: commands.Context) -> None:
        skipped = await self.container.session_registry.request_skip(ctx.guild.id)  # type: ignore[union-attr]
        if skipped:
            await send_transient(ctx, DiscordUIMessages.ACTION_SKIPPED)
        else:
            await send_transient(ctx, DiscordUIMessages.ERROR_NOTHING_PLAYING)

    @commands.command(name="clear", aliases=["c"])
    @commands.guild_only()
    async def clear(self, ctx: commands.Context) -> None:
        count = await self.container.session_registry.clear(ctx.guild.id)  # type: ignore[union-attr]
        await send_transient(ctx, DiscordUIMessages.SUCCESS_QUEUE_CLEARED.format(count=count))

    @commands.command(name="queue", aliases=["q"])
    @commands.guild_only()
    async def queue(self, ctx: commands.Context) -> None:
        snapshot = await self.container.session_registry.snapshot(ctx.guild.id)  # type: ignore[union-attr]
        await send_transient(ctx, format_queue(snapshot))

    @commands.command(name="disconnect", aliases=["d"])
    @commands.guild_only()
    async def disconnect(self, ctx: commands.Context) -> None:
        released = await self.container.playback_scheduler.disconnect(ctx.guild.id)  # type: ignore[union-attr]
        if released:
            await send_transient(ctx, DiscordUIMessages.ACTION_DISCONNECTED)
        else:
            await send_transient(ctx, DiscordUIMessages.ERROR_NOT_CONNECTED)

    @commands.command(name="summon")
    @commands.guild_only()
    async def summon(self, ctx: commands.Context) -> None:
        channel = await ensure_user_in_voice(ctx)
        if channel is None:
            return

        guild_id = ctx.guild.id  # type: ignore[union-attr]
        self.container.session_registry.get_or_create(guild_id).text_channel_id = ctx.channel.id
        try:
            await self.container.playback_scheduler.summon(guild_id, channel.id)
        except TransportError as e:
            logger.warning(LogTemplates.PLAY_REQUEST_FAILED, "summon", guild_id, e.message)
            await send_transient(ctx, DiscordUIMessages.ERROR_COULD_NOT_JOIN_VOICE)
            return

        await send_transient(ctx, DiscordUIMessages.SUCCESS_SUMMONED.format(channel=channel.name))

    @commands.command(name="help", aliases=["h"])
    async def help(self, ctx: commands.Context) -> None:
        await send_transient(
            ctx,
            DiscordUIMessages.HELP_TEXT.format(prefix=ctx.clean_prefix),
            delete_after=HELP_DELETE_AFTER,
        )

    # ─────────────────────────────────────────────────────────────────
    # Scheduler notifications
    # ─────────────────────────────────────────────────────────────────

    async def _notify(self, guild_id: int, message: str) -> None:
        session = self.container.session_registry.get(guild_id)
        if session is None or session.text_channel_id is None:
            return

        channel = self.bot.get_channel(session.text_channel_id)
        if isinstance(channel, discord.abc.Messageable):
            await channel.send(message)


async def setup(bot: commands.Bot) -> None:
    container = getattr(bot, "container", None)
    if container is None:
        raise RuntimeError(ErrorMessages.CONTAINER_NOT_FOUND)

    await bot.add_cog(MusicCog(bot, container))
