"""Utility functions for formatting chat replies and parsing command arguments."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..domain.shared.messages import DiscordUIMessages

if TYPE_CHECKING:
    from ..application.services.queue_models import QueueSnapshot

SHUFFLE_FLAGS = frozenset({"-r", "--shuffle"})
DISCORD_MESSAGE_LIMIT = 2000
QUEUE_DISPLAY_LIMIT = 15


def truncate(text: str, max_length: int, suffix: str = "...") -> str:
    if len(text) <= max_length:
        return text
    return text[: max(max_length - len(suffix), 0)] + suffix


def split_shuffle_flag(arguments: str) -> tuple[bool, str]:
    """Strip leading shuffle flags from a play argument string.

    ``"-r https://..."`` becomes ``(True, "https://...")``.
    """
    words = arguments.split()
    shuffle = False
    while words and words[0].lower() in SHUFFLE_FLAGS:
        shuffle = True
        words.pop(0)
    return shuffle, " ".join(words)


def format_queue(snapshot: QueueSnapshot, limit: int = QUEUE_DISPLAY_LIMIT) -> str:
    """Render a queue snapshot as the plain-text listing shown in chat."""
    if snapshot.is_empty:
        return DiscordUIMessages.QUEUE_EMPTY

    lines: list[str] = []
    now_playing = snapshot.now_playing
    if now_playing is not None:
        lines.append(DiscordUIMessages.QUEUE_CURRENTLY_PLAYING.format(title=now_playing.display_title))

    upcoming = snapshot.upcoming
    for number, item in enumerate(upcoming[:limit], start=1):
        lines.append(
            DiscordUIMessages.QUEUE_ENTRY.format(
                position=number,
                title=item.display_title,
                duration=item.duration or "?",
                user=item.requested_by,
            )
        )
    if len(upcoming) > limit:
        lines.append(DiscordUIMessages.QUEUE_MORE.format(count=len(upcoming) - limit))

    return truncate("\n".join(lines), DISCORD_MESSAGE_LIMIT)
