"""
Integration Tests for PlayRequestService

Exercises the whole engine (resolver, pipeline, registry and scheduler) with
in-memory collaborators:
- Playlists keep order and survive a failing item
- Identical links share one pipeline run
- Cached links never touch the extractor
- Voice failures abort before anything is queued
"""

import asyncio

import pytest

from guild_music_bot.application.interfaces.playlist_client import PlaylistItem
from guild_music_bot.application.services.asset_pipeline import AssetPipeline
from guild_music_bot.application.services.play_request import PlayRequestService
from guild_music_bot.application.services.playback_scheduler import PlaybackScheduler
from guild_music_bot.application.services.session_registry import SessionRegistry
from guild_music_bot.application.services.track_resolver import TrackResolver
from guild_music_bot.domain.music.value_objects import PlaybackState
from guild_music_bot.domain.shared.exceptions import ResolutionError, TransportError

from conftest import FakePlaylistClient, make_descriptor

GUILD = 9001
CHANNEL = 55


async def _until(predicate, timeout: float = 3.0) -> None:
    async with asyncio.timeout(timeout):
        while not predicate():
            await asyncio.sleep(0)


@pytest.fixture
def playlist_client():
    return FakePlaylistClient()


@pytest.fixture
def engine(fake_cache, fake_extractor, fake_converter, fake_transport, scratch_dir, playlist_client):
    registry = SessionRegistry()
    scheduler = PlaybackScheduler(registry=registry, voice_transport=fake_transport)
    pipeline = AssetPipeline(
        asset_cache=fake_cache,
        metadata_extractor=fake_extractor,
        audio_converter=fake_converter,
        scratch_dir=scratch_dir,
    )
    resolver = TrackResolver(
        asset_cache=fake_cache,
        metadata_extractor=fake_extractor,
        playlist_client=playlist_client,
    )
    service = PlayRequestService(
        registry=registry, resolver=resolver, pipeline=pipeline, scheduler=scheduler
    )
    return service, registry, pipeline


async def _drain(service, registry) -> None:
    await _until(
        lambda: service.pending_preparations == 0
        and not registry.get(GUILD).has_active_player
    )


class TestPlaylistRequests:
    async def test_failing_item_is_skipped_and_order_kept(
        self, engine, playlist_client, fake_extractor, fake_transport
    ):
        """A five-item playlist whose third item fails plays the other four in order."""
        service, registry, _ = engine
        items = [PlaylistItem(title=f"Song {i}", artist="Band") for i in range(5)]
        playlist_client.playlists["mix"] = items
        for i, item in enumerate(items):
            fake_extractor.search_results[item.search_query] = [f"s{i}"]
            fake_extractor.add_video(f"s{i}")
        fake_extractor.failing_downloads.add("s2")

        result = await service.play(
            guild_id=GUILD,
            channel_id=CHANNEL,
            query="spotify:playlist:mix",
            requested_by="alice",
        )
        await _drain(service, registry)

        assert result.count == 5
        assert result.position == 0
        assert result.first_title is None
        played = [p.stem for p in fake_transport.played[GUILD]]
        assert played == ["s0-youtube", "s1-youtube", "s3-youtube", "s4-youtube"]
        assert registry.get(GUILD).entries == []
        assert registry.get(GUILD).state == PlaybackState.IDLE

    async def test_entries_are_queued_before_downloads_finish(
        self, engine, playlist_client, fake_extractor
    ):
        service, registry, _ = engine
        items = [PlaylistItem(title=f"Song {i}", artist="Band") for i in range(3)]
        playlist_client.playlists["mix"] = items
        for i, item in enumerate(items):
            fake_extractor.search_results[item.search_query] = [f"s{i}"]
            fake_extractor.add_video(f"s{i}")
        fake_extractor.download_gate = asyncio.Event()

        await service.play(
            guild_id=GUILD, channel_id=CHANNEL, query="spotify:playlist:mix", requested_by="alice"
        )

        snapshot = await registry.snapshot(GUILD)
        assert [item.request for item in snapshot.items] == [i.search_query for i in items]

        fake_extractor.download_gate.set()
        await _drain(service, registry)


class TestLinkRequests:
    async def test_same_link_twice_shares_one_pipeline_run(
        self, engine, fake_extractor, fake_converter, fake_transport
    ):
        service, registry, pipeline = engine
        link = fake_extractor.add_video("abc")
        fake_extractor.download_gate = asyncio.Event()

        first = await service.play(guild_id=GUILD, channel_id=CHANNEL, query=link, requested_by="alice")
        second = await service.play(guild_id=GUILD, channel_id=CHANNEL, query=link, requested_by="bob")
        await _until(lambda: pipeline.inflight_count == 1 and len(fake_extractor.download_calls) == 1)
        await asyncio.sleep(0.01)
        fake_extractor.download_gate.set()
        await _drain(service, registry)

        assert (first.position, second.position) == (0, 1)
        assert first.first_title == "Track abc"
        assert len(fake_extractor.download_calls) == 1
        assert len(fake_converter.calls) == 1
        assert [p.stem for p in fake_transport.played[GUILD]] == ["abc-youtube", "abc-youtube"]

    async def test_cached_link_makes_zero_extractor_calls(
        self, engine, fake_cache, fake_extractor, fake_transport
    ):
        service, registry, _ = engine
        link = "https://youtu.be/cached1"
        path = fake_cache.seed(make_descriptor("cached1"), link=link)

        await service.play(guild_id=GUILD, channel_id=CHANNEL, query=link, requested_by="alice")
        await _drain(service, registry)

        assert fake_extractor.extract_calls == []
        assert fake_extractor.search_calls == []
        assert fake_extractor.download_calls == []
        assert fake_transport.played[GUILD] == [path]

    async def test_second_request_hits_the_link_index(self, engine, fake_extractor, fake_transport):
        service, registry, _ = engine
        link = fake_extractor.add_video("again")

        await service.play(guild_id=GUILD, channel_id=CHANNEL, query=link, requested_by="alice")
        await _drain(service, registry)
        await service.play(guild_id=GUILD, channel_id=CHANNEL, query=link, requested_by="alice")
        await _drain(service, registry)

        assert fake_extractor.extract_calls == [link]
        assert len(fake_transport.played[GUILD]) == 2


class TestFailures:
    async def test_voice_failure_queues_nothing(self, engine, fake_transport, fake_extractor):
        service, registry, _ = engine
        fake_transport.fail_connect = True
        link = fake_extractor.add_video("abc")

        with pytest.raises(TransportError):
            await service.play(guild_id=GUILD, channel_id=CHANNEL, query=link, requested_by="alice")

        assert fake_extractor.extract_calls == []
        session = registry.get(GUILD)
        assert session is None or session.entries == []

    async def test_unresolvable_request_raises(self, engine):
        service, registry, _ = engine

        with pytest.raises(ResolutionError):
            await service.play(
                guild_id=GUILD, channel_id=CHANNEL, query="no such song", requested_by="alice"
            )

        assert registry.get(GUILD).entries == []

    async def test_shutdown_cancels_preparations(self, engine, fake_extractor):
        service, _, _ = engine
        link = fake_extractor.add_video("slow")
        fake_extractor.download_gate = asyncio.Event()

        await service.play(guild_id=GUILD, channel_id=CHANNEL, query=link, requested_by="alice")
        await _until(lambda: len(fake_extractor.download_calls) == 1)

        await service.shutdown()

        assert service.pending_preparations == 0
