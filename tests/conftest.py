import asyncio
from pathlib import Path

import pytest
import pytest_asyncio

from guild_music_bot.application.interfaces.asset_cache import AssetCache
from guild_music_bot.application.interfaces.audio_converter import AudioConverter
from guild_music_bot.application.interfaces.metadata_extractor import (
    ExtractedRecord,
    MetadataExtractor,
)
from guild_music_bot.application.interfaces.playlist_client import PlaylistClient, PlaylistItem
from guild_music_bot.application.interfaces.voice_transport import VoiceHandle, VoiceTransport
from guild_music_bot.domain.music.entities import TrackDescriptor
from guild_music_bot.domain.shared.exceptions import TransportError

# ============================================================================
# Fakes for the external collaborators
# ============================================================================


def make_record(source_id: str, title: str | None = None, extractor: str = "youtube") -> ExtractedRecord:
    return ExtractedRecord(
        source_id=source_id,
        extractor=extractor,
        title=title or f"Track {source_id}",
        webpage_url=f"https://www.youtube.com/watch?v={source_id}",
        duration_seconds=180,
    )


def make_descriptor(source_id: str = "abc123", **overrides) -> TrackDescriptor:
    fields = {
        "source_id": source_id,
        "extractor": "youtube",
        "title": f"Track {source_id}",
        "webpage_url": f"https://www.youtube.com/watch?v={source_id}",
        "duration_seconds": 180,
        "requested_by": "tester",
    }
    fields.update(overrides)
    return TrackDescriptor(**fields)


class FakeAssetCache(AssetCache):
    """Dict-backed asset cache that honours the file-exists invariant."""

    def __init__(self, cache_dir: Path) -> None:
        self.cache_dir = cache_dir
        self.assets: dict[str, TrackDescriptor] = {}
        self.links: dict[str, str] = {}
        self.record_calls: list[tuple[str, str | None]] = []

    def asset_path(self, asset_key: str) -> Path:
        return self.cache_dir / f"{asset_key}.opus"

    def _checked(self, key: str | None, link: str | None = None) -> TrackDescriptor | None:
        if key is None or key not in self.assets:
            return None
        if not self.asset_path(key).is_file():
            self.assets.pop(key, None)
            return None
        return self.assets[key].with_link(link)

    async def lookup_by_link(self, link: str) -> TrackDescriptor | None:
        return self._checked(self.links.get(link), link)

    async def lookup_by_identity(self, identity) -> TrackDescriptor | None:
        return self._checked(identity.asset_key)

    async def record(self, descriptor: TrackDescriptor, link: str | None = None) -> None:
        self.record_calls.append((descriptor.asset_key, link))
        self.assets[descriptor.asset_key] = descriptor.model_copy(
            update={"link": None, "requested_by": None}
        )
        if link:
            self.links[link] = descriptor.asset_key

    async def forget(self, asset_key: str) -> bool:
        return self.assets.pop(asset_key, None) is not None

    async def count(self) -> int:
        return len(self.assets)

    def seed(self, descriptor: TrackDescriptor, link: str | None = None) -> Path:
        """Put a converted file on disk and index it, as a finished pipeline would."""
        path = self.asset_path(descriptor.asset_key)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(b"OggS")
        self.assets[descriptor.asset_key] = descriptor.model_copy(
            update={"link": None, "requested_by": None}
        )
        if link:
            self.links[link] = descriptor.asset_key
        return path


class FakeExtractor(MetadataExtractor):
    """In-memory extractor.

    ``records`` maps a link to the records it yields, ``search_results`` maps a
    query to source IDs. Links in ``failing`` raise on extract, source IDs in
    ``failing_downloads`` raise on download. ``download_gate`` lets a test hold
    every download until it is set.
    """

    def __init__(self) -> None:
        self.records: dict[str, list[ExtractedRecord]] = {}
        self.search_results: dict[str, list[str]] = {}
        self.failing: set[str] = set()
        self.failing_downloads: set[str] = set()
        self.download_gate: asyncio.Event | None = None
        self.extract_calls: list[str] = []
        self.search_calls: list[tuple[str, int]] = []
        self.download_calls: list[str] = []

    def add_video(self, source_id: str, title: str | None = None) -> str:
        record = make_record(source_id, title)
        self.records[record.webpage_url] = [record]
        return record.webpage_url

    async def extract(self, link: str) -> list[ExtractedRecord]:
        self.extract_calls.append(link)
        await asyncio.sleep(0)
        if link in self.failing:
            raise RuntimeError(f"extract failed for {link}")
        return list(self.records.get(link, []))

    async def search(self, query: str, limit: int = 1) -> list[str]:
        self.search_calls.append((query, limit))
        await asyncio.sleep(0)
        return list(self.search_results.get(query, []))[:limit]

    async def download(self, link: str, destination: Path) -> Path:
        self.download_calls.append(link)
        if self.download_gate is not None:
            await self.download_gate.wait()
        await asyncio.sleep(0)
        if any(link.endswith(f"v={sid}") for sid in self.failing_downloads):
            raise RuntimeError(f"download failed for {link}")
        destination.parent.mkdir(parents=True, exist_ok=True)
        destination.write_bytes(b"raw audio")
        return destination


class FakeConverter(AudioConverter):
    def __init__(self) -> None:
        self.calls: list[tuple[Path, Path]] = []
        self.fail = False

    async def convert(self, source: Path, destination: Path) -> None:
        self.calls.append((source, destination))
        await asyncio.sleep(0)
        if self.fail:
            destination.write_bytes(b"half")
            raise RuntimeError("ffmpeg exited with 1")
        destination.write_bytes(b"OggS" + source.read_bytes())


class FakePlaylistClient(PlaylistClient):
    def __init__(self, playlists: dict[str, list[PlaylistItem]] | None = None) -> None:
        self.playlists = playlists or {}
        self.authenticated = False
        self.closed = False

    async def authenticate(self) -> None:
        self.authenticated = True

    async def get_playlist_tracks(self, playlist_id: str) -> list[PlaylistItem]:
        return list(self.playlists.get(playlist_id, []))

    async def close(self) -> None:
        self.closed = True


class FakeTransport(VoiceTransport):
    """Voice transport that records what was streamed.

    With ``auto_finish`` each stream ends on the next loop iterations; otherwise
    the test ends it with ``finish(guild_id)``.
    """

    def __init__(self, *, auto_finish: bool = True, play_ticks: int = 3) -> None:
        self.auto_finish = auto_finish
        self.play_ticks = play_ticks
        self.played: dict[int, list[Path]] = {}
        self.streams: dict[int, asyncio.Future[None]] = {}
        self.connected: dict[int, int] = {}
        self.stop_calls = 0
        self.fail_connect = False
        self.active: dict[int, int] = {}
        self.max_active: dict[int, int] = {}

    async def connect(self, guild_id: int, channel_id: int) -> VoiceHandle:
        if self.fail_connect:
            raise TransportError(guild_id, "cannot join")
        self.connected[guild_id] = channel_id
        return VoiceHandle(guild_id=guild_id, channel_id=channel_id)

    async def disconnect(self, handle: VoiceHandle) -> None:
        self.connected.pop(handle.guild_id, None)
        self._end(handle.guild_id)

    async def stream(self, handle: VoiceHandle, path: Path) -> asyncio.Future[None]:
        guild_id = handle.guild_id
        loop = asyncio.get_running_loop()
        future: asyncio.Future[None] = loop.create_future()
        self.played.setdefault(guild_id, []).append(path)
        self.streams[guild_id] = future
        self.active[guild_id] = self.active.get(guild_id, 0) + 1
        self.max_active[guild_id] = max(self.max_active.get(guild_id, 0), self.active[guild_id])
        future.add_done_callback(lambda _: self._release(guild_id))
        if self.auto_finish:
            loop.create_task(self._finish_later(guild_id, future))
        return future

    async def _finish_later(self, guild_id: int, future: asyncio.Future[None]) -> None:
        for _ in range(self.play_ticks):
            await asyncio.sleep(0)
        if not future.done():
            future.set_result(None)

    def _release(self, guild_id: int) -> None:
        self.active[guild_id] -= 1

    def _end(self, guild_id: int) -> None:
        future = self.streams.get(guild_id)
        if future is not None and not future.done():
            future.set_result(None)

    def finish(self, guild_id: int) -> None:
        self._end(guild_id)

    async def stop(self, handle: VoiceHandle) -> None:
        self.stop_calls += 1
        self._end(handle.guild_id)

    def is_connected(self, handle: VoiceHandle) -> bool:
        return self.connected.get(handle.guild_id) == handle.channel_id


# ============================================================================
# Fixtures
# ============================================================================


@pytest_asyncio.fixture
async def in_memory_database():
    """Create an in-memory SQLite database for testing."""
    from guild_music_bot.infrastructure.persistence.database import Database

    db = Database(":memory:")
    await db.initialize()
    yield db
    await db.close()


@pytest_asyncio.fixture
async def file_database(tmp_path):
    """File-backed database, the mode the bot runs in."""
    from guild_music_bot.infrastructure.persistence.database import Database

    db = Database(f"sqlite:///{tmp_path}/data/assets.db")
    await db.initialize()
    yield db
    await db.close()


@pytest_asyncio.fixture
async def sqlite_asset_cache(file_database, tmp_path):
    from guild_music_bot.infrastructure.persistence.asset_cache_repository import SQLiteAssetCache

    return SQLiteAssetCache(file_database, tmp_path / "audio_cache")


@pytest.fixture
def fake_cache(tmp_path):
    return FakeAssetCache(tmp_path / "audio_cache")


@pytest.fixture
def fake_extractor():
    return FakeExtractor()


@pytest.fixture
def fake_converter():
    return FakeConverter()


@pytest.fixture
def fake_transport():
    return FakeTransport()


@pytest.fixture
def scratch_dir(tmp_path):
    return tmp_path / "download"


@pytest.fixture
def sample_descriptor():
    return make_descriptor("dQw4w9WgXcQ", title="Never Gonna Give You Up", duration_seconds=213)
