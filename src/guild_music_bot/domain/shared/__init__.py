"""
Shared Domain Kernel

Contains types, exceptions and message templates shared across the bot.
"""

from guild_music_bot.domain.shared.exceptions import (
    ExternalAPIError,
    InvalidStateTransitionError,
    MusicBotError,
    PipelineError,
    ResolutionError,
    TransportError,
)
from guild_music_bot.domain.shared.messages import DiscordUIMessages, ErrorMessages, LogTemplates

__all__ = [
    # Exceptions
    "MusicBotError",
    "ResolutionError",
    "PipelineError",
    "TransportError",
    "ExternalAPIError",
    "InvalidStateTransitionError",
    # Messages
    "ErrorMessages",
    "LogTemplates",
    "DiscordUIMessages",
]
