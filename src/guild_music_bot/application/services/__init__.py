"""
Application Services

Orchestrate resolution, asset preparation, queueing and playback.
"""

from guild_music_bot.application.services.asset_pipeline import AssetPipeline
from guild_music_bot.application.services.play_request import PlayRequestService
from guild_music_bot.application.services.playback_scheduler import PlaybackScheduler
from guild_music_bot.application.services.queue_models import (
    PlayRequestResult,
    QueueSnapshot,
    QueueSnapshotItem,
)
from guild_music_bot.application.services.session_registry import SessionRegistry
from guild_music_bot.application.services.track_resolver import (
    PendingTrack,
    ResolvedTrack,
    TrackResolver,
    classify,
)

__all__ = [
    "AssetPipeline",
    "PendingTrack",
    "PlayRequestResult",
    "PlayRequestService",
    "PlaybackScheduler",
    "QueueSnapshot",
    "QueueSnapshotItem",
    "ResolvedTrack",
    "SessionRegistry",
    "TrackResolver",
    "classify",
]
