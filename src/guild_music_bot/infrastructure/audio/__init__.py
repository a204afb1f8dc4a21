"""Audio infrastructure - yt-dlp extractor and FFmpeg converter."""

from guild_music_bot.infrastructure.audio.ffmpeg_converter import FFmpegConverter
from guild_music_bot.infrastructure.audio.models import YtDlpOpts, YtDlpTrackInfo
from guild_music_bot.infrastructure.audio.ytdlp_extractor import YtDlpExtractor

__all__ = [
    "FFmpegConverter",
    "YtDlpExtractor",
    "YtDlpOpts",
    "YtDlpTrackInfo",
]
