"""PlaylistClient implementation for the Spotify Web API."""

from __future__ import annotations

import asyncio
import logging
import time

import httpx
from pydantic import ValidationError

from guild_music_bot.application.interfaces.playlist_client import PlaylistClient, PlaylistItem
from guild_music_bot.config.settings import SpotifySettings
from guild_music_bot.domain.shared.constants import SpotifyEndpoints
from guild_music_bot.domain.shared.exceptions import ExternalAPIError
from guild_music_bot.domain.shared.messages import ErrorMessages, LogTemplates

from .models import SpotifyPlaylistPage, SpotifyToken

logger = logging.getLogger(__name__)

SERVICE_NAME = "Spotify"
SPOTIFY_TIMEOUT: float = 15.0
PAGE_LIMIT: int = 100
# Renew slightly before the advertised expiry
TOKEN_EXPIRY_MARGIN: float = 30.0


class SpotifyPlaylistClient(PlaylistClient):
    """Client-credentials Spotify client.

    The token is acquired once at startup and only renewed after it expires.
    """

    def __init__(
        self,
        settings: SpotifySettings | None = None,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._settings = settings or SpotifySettings()
        self._client = http_client
        self._owns_client = http_client is None
        self._token: SpotifyToken | None = None
        self._token_expires_at: float = 0.0
        self._auth_lock = asyncio.Lock()

    @property
    def is_authenticated(self) -> bool:
        return self._token is not None and time.monotonic() < self._token_expires_at

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=SPOTIFY_TIMEOUT)
        return self._client

    async def authenticate(self) -> None:
        if not self._settings.enabled:
            raise ExternalAPIError(SERVICE_NAME, ErrorMessages.SPOTIFY_NOT_CONFIGURED)

        client = self._get_client()
        try:
            response = await client.post(
                SpotifyEndpoints.TOKEN_URL,
                data={"grant_type": "client_credentials"},
                auth=(
                    self._settings.client_id or "",
                    self._settings.client_secret.get_secret_value(),
                ),
            )
            response.raise_for_status()
            token = SpotifyToken.model_validate(response.json())
        except (httpx.HTTPError, ValidationError, ValueError) as exc:
            raise ExternalAPIError(
                SERVICE_NAME, ErrorMessages.SPOTIFY_AUTH_FAILED.format(error=exc)
            ) from exc

        self._token = token
        self._token_expires_at = time.monotonic() + max(token.expires_in - TOKEN_EXPIRY_MARGIN, 0)
        logger.info(LogTemplates.SPOTIFY_AUTHENTICATED, token.expires_in)

    async def _access_token(self) -> str:
        async with self._auth_lock:
            if not self.is_authenticated:
                if self._token is not None:
                    logger.info(LogTemplates.SPOTIFY_TOKEN_EXPIRED)
                await self.authenticate()
            token = self._token
        if token is None:
            raise ExternalAPIError(SERVICE_NAME, ErrorMessages.SPOTIFY_NOT_CONFIGURED)
        return token.access_token

    async def get_playlist_tracks(self, playlist_id: str) -> list[PlaylistItem]:
        client = self._get_client()
        url: str | None = SpotifyEndpoints.API_BASE_URL + SpotifyEndpoints.PLAYLIST_TRACKS_PATH.format(
            playlist_id=playlist_id
        )
        params: dict[str, str | int] | None = {
            "limit": PAGE_LIMIT,
            "fields": "items(track(name,artists(name))),next",
        }

        items: list[PlaylistItem] = []
        while url:
            token = await self._access_token()
            try:
                response = await client.get(
                    url, params=params, headers={"Authorization": f"Bearer {token}"}
                )
                response.raise_for_status()
                page = SpotifyPlaylistPage.model_validate(response.json())
            except (httpx.HTTPError, ValidationError, ValueError) as exc:
                raise ExternalAPIError(
                    SERVICE_NAME, ErrorMessages.SPOTIFY_REQUEST_FAILED.format(error=exc)
                ) from exc

            for entry in page.items:
                item = entry.track.to_item() if entry.track else None
                if item is not None:
                    items.append(item)

            # The ``next`` URL already carries the query string
            url = page.next
            params = None

        logger.info(LogTemplates.SPOTIFY_PLAYLIST_FETCHED, len(items), playlist_id)
        return items

    async def close(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
        self._client = None
