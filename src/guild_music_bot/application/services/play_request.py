"""Play Request Service - wires resolution, queueing and asset preparation together."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from ...domain.music.entities import QueueEntry
from ...domain.shared.exceptions import MusicBotError
from ...domain.shared.messages import LogTemplates
from ...domain.shared.types import ChannelIdField, DiscordSnowflake, NonEmptyStr
from .queue_models import PlayRequestResult

if TYPE_CHECKING:
    from .asset_pipeline import AssetPipeline
    from .playback_scheduler import PlaybackScheduler
    from .session_registry import SessionRegistry
    from .track_resolver import PendingTrack, TrackResolver

logger = logging.getLogger(__name__)


class PlayRequestService:
    """Handles a ``play`` request end to end without waiting for downloads.

    Entries are enqueued in request order as soon as classification succeeds.
    Each entry then resolves and downloads in its own task; the scheduler only
    waits for the entry at the head of the queue.
    """

    def __init__(
        self,
        *,
        registry: SessionRegistry,
        resolver: TrackResolver,
        pipeline: AssetPipeline,
        scheduler: PlaybackScheduler,
    ) -> None:
        self._registry = registry
        self._resolver = resolver
        self._pipeline = pipeline
        self._scheduler = scheduler
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def pending_preparations(self) -> int:
        return len(self._tasks)

    async def play(
        self,
        *,
        guild_id: DiscordSnowflake,
        channel_id: ChannelIdField,
        query: NonEmptyStr,
        requested_by: NonEmptyStr,
        shuffle: bool = False,
    ) -> PlayRequestResult:
        """Connect, resolve and enqueue.

        Raises TransportError if voice cannot be joined and ResolutionError if
        the request as a whole yields nothing.
        """
        await self._scheduler.ensure_connected(guild_id, channel_id)

        pending = await self._resolver.resolve(query, requested_by, shuffle=shuffle)
        entries = [QueueEntry(request=track.label, requested_by=requested_by) for track in pending]
        for entry, track in zip(entries, pending):
            if track.descriptor is not None:
                entry.mark_resolved(track.descriptor)

        position = await self._registry.enqueue(guild_id, entries)

        for entry, track in zip(entries, pending):
            task = asyncio.create_task(self._prepare(guild_id, entry, track))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)

        await self._scheduler.kick(guild_id)

        return PlayRequestResult(
            query=query,
            position=position,
            count=len(entries),
            first_title=entries[0].title if entries else None,
        )

    async def _prepare(self, guild_id: int, entry: QueueEntry, track: PendingTrack) -> None:
        try:
            resolved = await track.resolve()
            entry.mark_resolved(resolved.descriptor)
            asset_path = resolved.asset_path
            if asset_path is None:
                asset_path = await self._pipeline.ensure_asset(resolved.descriptor)
            entry.mark_ready(asset_path, resolved.descriptor)
        except MusicBotError as exc:
            entry.mark_failed(exc.message)
            await self._registry.discard(guild_id, entry)
            logger.warning(LogTemplates.TRACK_DROPPED, entry.request, guild_id, exc.message)
        except Exception as exc:
            entry.mark_failed(str(exc))
            await self._registry.discard(guild_id, entry)
            logger.exception(LogTemplates.TRACK_DROPPED, entry.request, guild_id, exc)

    async def shutdown(self) -> None:
        for task in list(self._tasks):
            task.cancel()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
