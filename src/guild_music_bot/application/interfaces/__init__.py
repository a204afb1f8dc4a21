"""
Application Interfaces (Ports)

Abstract interfaces that define contracts between the application
layer and infrastructure adapters. These are the "ports" in
hexagonal architecture.
"""

from guild_music_bot.application.interfaces.asset_cache import AssetCache
from guild_music_bot.application.interfaces.audio_converter import AudioConverter
from guild_music_bot.application.interfaces.metadata_extractor import (
    ExtractedRecord,
    MetadataExtractor,
)
from guild_music_bot.application.interfaces.playlist_client import PlaylistClient, PlaylistItem
from guild_music_bot.application.interfaces.voice_transport import VoiceHandle, VoiceTransport

__all__ = [
    "AssetCache",
    "AudioConverter",
    "ExtractedRecord",
    "MetadataExtractor",
    "PlaylistClient",
    "PlaylistItem",
    "VoiceHandle",
    "VoiceTransport",
]
