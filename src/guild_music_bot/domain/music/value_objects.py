"""Immutable value objects for the music bounded context."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

from guild_music_bot.domain.shared.messages import ErrorMessages

_UNSAFE_KEY_CHARS = re.compile(r"[^A-Za-z0-9_.\-]+")


@dataclass(frozen=True)
class TrackIdentity:
    """Upstream identity of a track: the source ID plus the extractor that owns it.

    Two requests that land on the same upstream asset (direct link, search hit,
    playlist item) produce the same identity, and therefore the same asset key.
    """

    source_id: str
    extractor: str

    def __post_init__(self) -> None:
        if not self.source_id or not self.source_id.strip():
            raise ValueError(ErrorMessages.EMPTY_SOURCE_ID)
        if not self.extractor or not self.extractor.strip():
            raise ValueError(ErrorMessages.EMPTY_EXTRACTOR)

    def __str__(self) -> str:
        return f"{self.extractor}:{self.source_id}"

    @property
    def asset_key(self) -> str:
        """Filesystem-safe cache key, e.g. ``dQw4w9WgXcQ-youtube``."""
        source = _UNSAFE_KEY_CHARS.sub("_", self.source_id.strip())
        extractor = _UNSAFE_KEY_CHARS.sub("_", self.extractor.strip().lower())
        return f"{source}-{extractor}"


class PlaybackState(Enum):
    """Per-guild scheduler state with enforced transitions.

    State transitions:
    - IDLE -> AWAITING_ASSET (queue gained a head)
    - AWAITING_ASSET -> PLAYING (head became playback-ready)
    - PLAYING -> SKIPPING (skip flag observed)
    - PLAYING / SKIPPING -> AWAITING_ASSET | IDLE (track ended, head popped)
    - Any -> DISCONNECTED (voice released while entries remain)
    - DISCONNECTED -> IDLE | AWAITING_ASSET (new connection)
    """

    IDLE = "idle"
    AWAITING_ASSET = "awaiting_asset"
    PLAYING = "playing"
    SKIPPING = "skipping"
    DISCONNECTED = "disconnected"

    def can_transition_to(self, target: PlaybackState) -> bool:
        """Check if transition to target state is valid."""
        valid_transitions = {
            PlaybackState.IDLE: {
                PlaybackState.IDLE,
                PlaybackState.AWAITING_ASSET,
                PlaybackState.DISCONNECTED,
            },
            PlaybackState.AWAITING_ASSET: {
                PlaybackState.AWAITING_ASSET,
                PlaybackState.PLAYING,
                PlaybackState.IDLE,
                PlaybackState.DISCONNECTED,
            },
            PlaybackState.PLAYING: {
                PlaybackState.SKIPPING,
                PlaybackState.AWAITING_ASSET,
                PlaybackState.IDLE,
                PlaybackState.DISCONNECTED,
            },
            PlaybackState.SKIPPING: {
                PlaybackState.AWAITING_ASSET,
                PlaybackState.IDLE,
                PlaybackState.DISCONNECTED,
            },
            PlaybackState.DISCONNECTED: {
                PlaybackState.DISCONNECTED,
                PlaybackState.IDLE,
                PlaybackState.AWAITING_ASSET,
            },
        }
        return target in valid_transitions.get(self, set())

    @property
    def is_streaming(self) -> bool:
        return self in {PlaybackState.PLAYING, PlaybackState.SKIPPING}


class EntryStatus(Enum):
    """Lifecycle of a single queue slot."""

    RESOLVING = "resolving"
    DOWNLOADING = "downloading"
    READY = "ready"
    FAILED = "failed"

    @property
    def is_settled(self) -> bool:
        return self in {EntryStatus.READY, EntryStatus.FAILED}


class RequestKind(Enum):
    """Shape of a play request."""

    LINK = "link"
    SEARCH = "search"
    PLAYLIST = "playlist"
