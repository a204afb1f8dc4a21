"""Port interface for the audio transcoder."""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path


class AudioConverter(ABC):
    """Interface for converting raw downloads into the playback format."""

    @abstractmethod
    async def convert(self, source: Path, destination: Path) -> None:
        """Convert ``source`` into Ogg/Opus at ``destination``."""
        ...
