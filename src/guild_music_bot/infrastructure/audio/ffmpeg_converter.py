"""
FFmpeg Audio Converter

Transcodes downloaded audio into Ogg/Opus files that Discord can stream
without re-encoding.
"""

from __future__ import annotations

import asyncio
import logging
import shlex
import sys
from dataclasses import dataclass
from pathlib import Path

from guild_music_bot.application.interfaces.audio_converter import AudioConverter
from guild_music_bot.config.settings import AudioSettings
from guild_music_bot.domain.shared.exceptions import PipelineError
from guild_music_bot.domain.shared.messages import ErrorMessages, LogTemplates

logger = logging.getLogger(__name__)

STDERR_TRUNCATE = 500


def default_ffmpeg_executable(platform: str | None = None) -> str:
    """Pick the ffmpeg binary name for the host OS."""
    platform = platform or sys.platform
    return "ffmpeg.exe" if platform.startswith("win") else "ffmpeg"


@dataclass
class FFmpegConfig:
    """Configuration for FFmpeg audio conversion."""

    bitrate: str = "128k"
    sample_rate: int = 48000
    channels: int = 2
    codec: str = "libopus"
    container: str = "ogg"

    def get_arguments(self, source: Path, destination: Path) -> list[str]:
        return [
            "-hide_banner",
            "-loglevel", "error",
            "-nostdin",
            "-y",
            "-i", str(source),
            "-vn",
            "-map_metadata", "-1",
            "-c:a", self.codec,
            "-b:a", self.bitrate,
            "-ar", str(self.sample_rate),
            "-ac", str(self.channels),
            "-f", self.container,
            str(destination),
        ]


class FFmpegConverter(AudioConverter):
    """Runs ffmpeg as an asyncio subprocess."""

    def __init__(self, settings: AudioSettings | None = None) -> None:
        settings = settings or AudioSettings()
        self._executable = settings.ffmpeg_path or default_ffmpeg_executable()
        self._config = FFmpegConfig(bitrate=settings.opus_bitrate)

    @property
    def executable(self) -> str:
        return self._executable

    def build_command(self, source: Path, destination: Path) -> list[str]:
        return [self._executable, *self._config.get_arguments(source, destination)]

    async def convert(self, source: Path, destination: Path) -> None:
        command = self.build_command(source, destination)
        logger.debug(LogTemplates.FFMPEG_COMMAND, shlex.join(command))

        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError as exc:
            raise PipelineError(
                destination.stem,
                "convert",
                ErrorMessages.FFMPEG_NOT_FOUND.format(path=self._executable),
            ) from exc

        try:
            _, stderr = await process.communicate()
        except asyncio.CancelledError:
            process.kill()
            await process.wait()
            raise

        if process.returncode != 0:
            detail = stderr.decode(errors="replace").strip()[:STDERR_TRUNCATE]
            raise PipelineError(
                destination.stem,
                "convert",
                ErrorMessages.CONVERT_FAILED.format(returncode=process.returncode, stderr=detail),
            )
