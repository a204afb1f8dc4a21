"""Track Resolver - turns a play request into an ordered list of pending tracks."""

from __future__ import annotations

import logging
import random
import re
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from ...domain.music.entities import TrackDescriptor
from ...domain.music.value_objects import RequestKind
from ...domain.shared.exceptions import ExternalAPIError, ResolutionError
from ...domain.shared.messages import ErrorMessages, LogTemplates
from ...domain.shared.types import NonEmptyStr, SearchLimit

if TYPE_CHECKING:
    from ..interfaces.asset_cache import AssetCache
    from ..interfaces.metadata_extractor import ExtractedRecord, MetadataExtractor
    from ..interfaces.playlist_client import PlaylistClient

logger = logging.getLogger(__name__)

_LINK_PREFIXES = ("http://", "https://", "www.")
_PLAYLIST_PATTERNS = (
    re.compile(r"^spotify:playlist:(?P<id>[A-Za-z0-9]+)$"),
    re.compile(r"^https?://open\.spotify\.com/(?:[\w-]+/)?playlist/(?P<id>[A-Za-z0-9]+)"),
)
WATCH_URL = "https://www.youtube.com/watch?v={source_id}"


@dataclass(frozen=True)
class ResolvedTrack:
    """A fully resolved candidate; ``asset_path`` is set when the asset is already cached."""

    descriptor: TrackDescriptor
    asset_path: Path | None = None


@dataclass
class PendingTrack:
    """One queue slot produced by the resolver.

    ``label`` is shown while the slot resolves. ``descriptor`` is filled in
    eagerly when metadata was already known at classification time.
    """

    label: str
    _resolver: Callable[[], Awaitable[ResolvedTrack]] = field(repr=False)
    descriptor: TrackDescriptor | None = None

    async def resolve(self) -> ResolvedTrack:
        return await self._resolver()


def classify(query: str) -> tuple[RequestKind, str]:
    """Classify a request; returns the kind and the normalized payload."""
    text = query.strip()
    for pattern in _PLAYLIST_PATTERNS:
        match = pattern.match(text)
        if match:
            return RequestKind.PLAYLIST, match.group("id")
    if text.lower().startswith(_LINK_PREFIXES):
        return RequestKind.LINK, text
    return RequestKind.SEARCH, text


def _ready(descriptor: TrackDescriptor, asset_path: Path | None) -> Callable[[], Awaitable[ResolvedTrack]]:
    async def _resolved() -> ResolvedTrack:
        return ResolvedTrack(descriptor=descriptor, asset_path=asset_path)

    return _resolved


class TrackResolver:
    """Classifies requests as link, search or playlist and resolves their candidates.

    Link requests consult the asset cache first and only call the extractor on
    a miss. Search and playlist requests are broken into per-candidate pending
    tracks so one bad candidate never sinks the whole request.
    """

    def __init__(
        self,
        *,
        asset_cache: AssetCache,
        metadata_extractor: MetadataExtractor,
        playlist_client: PlaylistClient | None = None,
        search_limit: SearchLimit = 1,
        rng: random.Random | None = None,
    ) -> None:
        self._cache = asset_cache
        self._extractor = metadata_extractor
        self._playlists = playlist_client
        self._search_limit = search_limit
        self._rng = rng or random.Random()

    async def resolve(
        self, query: NonEmptyStr, requested_by: NonEmptyStr, *, shuffle: bool = False
    ) -> list[PendingTrack]:
        """Return pending tracks in play order.

        Raises ResolutionError when the request as a whole yields nothing.
        """
        if not query or not query.strip():
            raise ResolutionError(query, ErrorMessages.EMPTY_QUERY)

        kind, payload = classify(query)
        logger.info(LogTemplates.RESOLVE_REQUEST, kind.value, payload, shuffle)

        if kind == RequestKind.LINK:
            pending = await self._resolve_link(payload, requested_by, shuffle)
        elif kind == RequestKind.PLAYLIST:
            pending = await self._resolve_playlist(payload, requested_by, shuffle)
        else:
            pending = await self._resolve_search(payload, requested_by, shuffle, self._search_limit)

        logger.info(LogTemplates.RESOLVE_COMPLETED, query, len(pending))
        return pending

    # ── Link ────────────────────────────────────────────────────────

    async def _resolve_link(self, link: str, requested_by: str, shuffle: bool) -> list[PendingTrack]:
        cached = await self._cache.lookup_by_link(link)
        if cached is not None:
            logger.debug(LogTemplates.CACHE_HIT_URL, link)
            descriptor = cached.with_requester(requested_by)
            asset_path = self._cache.asset_path(descriptor.asset_key)
            return [PendingTrack(descriptor.title, _ready(descriptor, asset_path), descriptor)]

        logger.debug(LogTemplates.CACHE_MISS_URL, link)
        records = await self._extract(link)
        if not records:
            raise ResolutionError(link, ErrorMessages.NO_EXTRACTED_RECORDS.format(link=link))

        records = self._maybe_shuffle(records, shuffle)
        # The link only identifies the asset when it named exactly one item.
        attached_link = link if len(records) == 1 else None
        pending = []
        for record in records:
            descriptor = _to_descriptor(record, requested_by, attached_link)
            pending.append(
                PendingTrack(descriptor.title, self._cached_or_new(descriptor), descriptor)
            )
        return pending

    def _cached_or_new(self, descriptor: TrackDescriptor) -> Callable[[], Awaitable[ResolvedTrack]]:
        async def _lookup() -> ResolvedTrack:
            cached = await self._cache.lookup_by_identity(descriptor.identity)
            if cached is None:
                return ResolvedTrack(descriptor=descriptor)
            if descriptor.link:
                await self._cache.record(cached, link=descriptor.link)
            return ResolvedTrack(
                descriptor=descriptor, asset_path=self._cache.asset_path(descriptor.asset_key)
            )

        return _lookup

    # ── Search ──────────────────────────────────────────────────────

    async def _resolve_search(
        self, query: str, requested_by: str, shuffle: bool, limit: int
    ) -> list[PendingTrack]:
        try:
            source_ids = await self._extractor.search(query, limit)
        except Exception as exc:
            raise ResolutionError(query, str(exc)) from exc
        if not source_ids:
            raise ResolutionError(query, ErrorMessages.NO_SEARCH_RESULTS.format(query=query))

        source_ids = self._maybe_shuffle(source_ids, shuffle)
        return [
            PendingTrack(query, self._candidate(WATCH_URL.format(source_id=sid), requested_by))
            for sid in source_ids
        ]

    def _candidate(self, link: str, requested_by: str) -> Callable[[], Awaitable[ResolvedTrack]]:
        """Resolve one canonical link through the link cache, then the extractor."""

        async def _resolve_candidate() -> ResolvedTrack:
            cached = await self._cache.lookup_by_link(link)
            if cached is not None:
                descriptor = cached.with_requester(requested_by)
                return ResolvedTrack(descriptor, self._cache.asset_path(descriptor.asset_key))

            records = await self._extract(link)
            if not records:
                raise ResolutionError(link, ErrorMessages.NO_EXTRACTED_RECORDS.format(link=link))
            descriptor = _to_descriptor(records[0], requested_by, link)
            return await self._cached_or_new(descriptor)()

        return _resolve_candidate

    # ── Playlist ────────────────────────────────────────────────────

    async def _resolve_playlist(
        self, playlist_id: str, requested_by: str, shuffle: bool
    ) -> list[PendingTrack]:
        if self._playlists is None:
            raise ResolutionError(playlist_id, ErrorMessages.PLAYLISTS_DISABLED)
        try:
            items = await self._playlists.get_playlist_tracks(playlist_id)
        except ExternalAPIError as exc:
            raise ResolutionError(
                playlist_id,
                ErrorMessages.PLAYLIST_FETCH_FAILED.format(playlist_id=playlist_id, error=exc.message),
            ) from exc
        if not items:
            raise ResolutionError(playlist_id, ErrorMessages.PLAYLIST_EMPTY.format(playlist_id=playlist_id))

        items = self._maybe_shuffle(items, shuffle)
        return [
            PendingTrack(item.search_query, self._search_candidate(item.search_query, requested_by))
            for item in items
        ]

    def _search_candidate(self, query: str, requested_by: str) -> Callable[[], Awaitable[ResolvedTrack]]:
        async def _resolve_item() -> ResolvedTrack:
            pending = await self._resolve_search(query, requested_by, shuffle=False, limit=1)
            return await pending[0].resolve()

        return _resolve_item

    # ── Helpers ─────────────────────────────────────────────────────

    async def _extract(self, link: str) -> list[ExtractedRecord]:
        try:
            return await self._extractor.extract(link)
        except Exception as exc:
            raise ResolutionError(
                link, ErrorMessages.CANDIDATE_FAILED.format(link=link, error=exc)
            ) from exc

    def _maybe_shuffle(self, items: list, shuffle: bool) -> list:
        items = list(items)
        if shuffle:
            self._rng.shuffle(items)
        return items


def _to_descriptor(record: ExtractedRecord, requested_by: str, link: str | None) -> TrackDescriptor:
    return TrackDescriptor(
        source_id=record.source_id,
        extractor=record.extractor,
        title=record.title,
        webpage_url=record.webpage_url,
        duration_seconds=record.duration_seconds,
        link=link,
        requested_by=requested_by,
    )

