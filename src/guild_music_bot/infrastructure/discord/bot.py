"""Prefix-command bot that owns the container lifecycle.

The container is initialized in ``setup_hook`` before any cog loads, and torn
down in ``close`` before the gateway connection goes away, so voice sessions
are released while the client can still talk to Discord.
"""

from __future__ import annotations

import asyncio
import logging
import signal
from typing import TYPE_CHECKING

import discord
from discord.ext import commands

from guild_music_bot.domain.shared.messages import DiscordUIMessages, LogTemplates
from guild_music_bot.infrastructure.discord.guards.voice_guards import send_transient

if TYPE_CHECKING:
    from ...config.container import Container
    from ...config.settings import Settings

logger = logging.getLogger(__name__)

COGS = ("guild_music_bot.infrastructure.discord.cogs.music_cog",)

_SILENT_ERRORS = (commands.CommandNotFound, commands.NoPrivateMessage)


def _music_intents() -> discord.Intents:
    # Prefix commands need message content; voice moves need voice states.
    intents = discord.Intents.default()
    intents.guilds = True
    intents.message_content = True
    intents.voice_states = True
    return intents


class MusicBot(commands.Bot):
    def __init__(self, container: Container, settings: Settings, **kwargs) -> None:
        self.container = container
        self.settings = settings
        super().__init__(
            command_prefix=settings.discord.command_prefix,
            intents=_music_intents(),
            help_command=None,
            **kwargs,
        )
        container.set_bot(self)

    async def setup_hook(self) -> None:
        logger.info(LogTemplates.BOT_SETUP)
        try:
            await self.container.initialize()
        except Exception as e:
            logger.exception(LogTemplates.BOT_CONTAINER_INIT_FAILED, e)
            raise
        logger.info(LogTemplates.BOT_CONTAINER_INITIALIZED)

        for extension in COGS:
            try:
                await self.load_extension(extension)
            except commands.ExtensionError as e:
                logger.exception(LogTemplates.BOT_COG_LOAD_FAILED, extension, e)
                raise
            logger.info(LogTemplates.BOT_COG_LOADED, extension)

        logger.info(LogTemplates.BOT_SETUP_COMPLETE)

    async def on_ready(self) -> None:
        user = self.user
        logger.info(LogTemplates.BOT_READY, user, user.id if user else "?")
        logger.info(LogTemplates.BOT_CONNECTED_GUILDS, len(self.guilds))

        prefix = self.settings.discord.command_prefix
        await self.change_presence(
            activity=discord.Activity(type=discord.ActivityType.listening, name=f"{prefix}help")
        )

    async def on_command_error(self, ctx: commands.Context, error: commands.CommandError) -> None:
        """Log failed commands and tell the invoker; unknown commands stay silent."""
        if isinstance(error, _SILENT_ERRORS):
            return

        cause = getattr(error, "original", error)
        command_name = ctx.command.qualified_name if ctx.command else "<unknown>"
        logger.error(LogTemplates.BOT_COMMAND_ERROR, command_name, cause, exc_info=cause)

        try:
            await send_transient(ctx, DiscordUIMessages.ERROR_COMMAND_FAILED_SEE_LOGS)
        except discord.HTTPException:
            logger.warning(LogTemplates.BOT_ERROR_MESSAGE_SEND_FAILED)

    async def close(self) -> None:
        logger.info(LogTemplates.BOT_SHUTTING_DOWN)
        try:
            await self.container.shutdown()
        except Exception as e:
            logger.warning(LogTemplates.BOT_CONTAINER_SHUTDOWN_ERROR, e)
        else:
            logger.info(LogTemplates.BOT_CONTAINER_SHUTDOWN)

        await super().close()
        logger.info(LogTemplates.BOT_SHUTDOWN_COMPLETE)

    async def _close_within(self, timeout: float) -> None:
        try:
            await asyncio.wait_for(self.close(), timeout=timeout)
        except TimeoutError:
            logger.warning(LogTemplates.BOT_SHUTDOWN_TIMEOUT, timeout)

    def _install_signal_handlers(self, timeout: float) -> None:
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, lambda: asyncio.create_task(self._close_within(timeout)))
            except NotImplementedError:
                # Unsupported on Windows event loops.
                return

    def run_with_graceful_shutdown(self, token: str, *, shutdown_timeout: float = 30.0) -> None:
        """Run until SIGINT or SIGTERM, then close within ``shutdown_timeout`` seconds."""

        async def runner() -> None:
            async with self:
                self._install_signal_handlers(shutdown_timeout)
                await self.start(token)

        asyncio.run(runner())


def create_bot(container: Container, settings: Settings) -> MusicBot:
    return MusicBot(container=container, settings=settings)
