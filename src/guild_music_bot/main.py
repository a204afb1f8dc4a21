#!/usr/bin/env python3
"""Main entry point for the Guild Music Bot."""

from __future__ import annotations

import json
import logging
import logging.config
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from guild_music_bot.domain.shared.exceptions import ExternalAPIError
from guild_music_bot.domain.shared.messages import ErrorMessages, LogTemplates

if TYPE_CHECKING:
    from guild_music_bot.infrastructure.discord.bot import MusicBot

_LOGGING_CONFIG_PATH = Path(__file__).resolve().parents[2] / "logging_config.json"
_FALLBACK_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

logger = logging.getLogger(__name__)


def setup_logging(log_level: str = "INFO", config_path: Path = _LOGGING_CONFIG_PATH) -> None:
    """Apply ``logging_config.json``, then force the root level from settings."""
    level = getattr(logging, log_level.upper(), logging.INFO)

    try:
        with open(config_path) as f:
            logging.config.dictConfig(json.load(f))
    except (FileNotFoundError, json.JSONDecodeError, ValueError):
        logging.basicConfig(level=level, format=_FALLBACK_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
        logging.warning(LogTemplates.LOGGING_CONFIG_FALLBACK, config_path)

    logging.getLogger().setLevel(level)


def _run(bot: MusicBot, token: str) -> int:
    try:
        logger.info(LogTemplates.BOT_STARTING_RUN)
        bot.run_with_graceful_shutdown(token)
    except KeyboardInterrupt:
        logger.info(LogTemplates.BOT_KEYBOARD_INTERRUPT)
    except ExternalAPIError as e:
        # Rejected playlist credentials surface here from setup_hook.
        logger.error(LogTemplates.BOT_STARTUP_API_FAILED, e.message)
        return 1
    except Exception as e:
        logger.exception(LogTemplates.BOT_FATAL_ERROR, e)
        return 1
    else:
        logger.info(LogTemplates.BOT_STOPPED)
    return 0


def main() -> int:
    from guild_music_bot.config.settings import get_settings

    settings = get_settings()
    setup_logging(settings.log_level)

    token = settings.discord.token.get_secret_value()
    if not token:
        logger.error(ErrorMessages.DISCORD_TOKEN_REQUIRED)
        return 1

    logger.info(LogTemplates.BOT_STARTING.format(environment=settings.environment))

    from guild_music_bot.config.container import create_container
    from guild_music_bot.infrastructure.discord.bot import create_bot

    bot = create_bot(create_container(settings), settings)
    return _run(bot, token)


def cli() -> None:
    """Console script entry point (``guild-music-bot``)."""
    sys.exit(main())


if __name__ == "__main__":
    cli()  # pragma: no cover
