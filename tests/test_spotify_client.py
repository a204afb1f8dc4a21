"""
Unit Tests for SpotifyPlaylistClient

Uses httpx.MockTransport in place of the Spotify Web API:
- Client-credentials authentication
- Token reuse and renewal after expiry
- Pagination through ``next`` links
- Null tracks (local files, removed items) are skipped
- HTTP and payload failures surface as ExternalAPIError
"""

import httpx
import pytest
import pytest_asyncio
from pydantic import SecretStr

from guild_music_bot.config.settings import SpotifySettings
from guild_music_bot.domain.shared.exceptions import ExternalAPIError
from guild_music_bot.infrastructure.spotify.playlist_client import SpotifyPlaylistClient

CREDENTIALS = SpotifySettings(client_id="client-id", client_secret=SecretStr("client-secret"))


def _track(name: str, artist: str | None = "Band") -> dict:
    return {"track": {"name": name, "artists": [{"name": artist}] if artist else []}}


class FakeSpotify:
    """Minimal Spotify API that serves one two-page playlist."""

    def __init__(self, *, expires_in: int = 3600, token_status: int = 200) -> None:
        self.expires_in = expires_in
        self.token_status = token_status
        self.token_requests = 0
        self.page_requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        if request.url.host == "accounts.spotify.com":
            self.token_requests += 1
            if self.token_status != 200:
                return httpx.Response(self.token_status, json={"error": "invalid_client"})
            return httpx.Response(
                200,
                json={
                    "access_token": f"token-{self.token_requests}",
                    "token_type": "Bearer",
                    "expires_in": self.expires_in,
                },
            )

        self.page_requests.append(request)
        if request.url.path == "/v1/playlists/missing/tracks":
            return httpx.Response(404, json={"error": {"status": 404}})
        if request.url.path == "/v1/playlists/broken/tracks":
            return httpx.Response(200, json={"items": "not a list"})
        if request.url.params.get("offset") == "100":
            return httpx.Response(200, json={"items": [_track("Third"), _track("Fourth", None)], "next": None})
        return httpx.Response(
            200,
            json={
                "items": [_track("First"), {"track": None}, _track("Second"), _track("   ")],
                "next": "https://api.spotify.com/v1/playlists/pl1/tracks?offset=100&limit=100",
            },
        )


@pytest.fixture
def spotify():
    return FakeSpotify()


@pytest_asyncio.fixture
async def http_client(spotify):
    client = httpx.AsyncClient(transport=httpx.MockTransport(spotify))
    yield client
    await client.aclose()


@pytest.fixture
def client(http_client):
    return SpotifyPlaylistClient(CREDENTIALS, http_client=http_client)


class TestAuthentication:
    async def test_authenticate_acquires_token(self, client, spotify):
        await client.authenticate()

        assert client.is_authenticated
        assert spotify.token_requests == 1

    async def test_authenticate_without_credentials_raises(self, http_client):
        client = SpotifyPlaylistClient(SpotifySettings(), http_client=http_client)

        with pytest.raises(ExternalAPIError):
            await client.authenticate()

    async def test_rejected_credentials_raise(self, http_client, spotify):
        spotify.token_status = 401
        client = SpotifyPlaylistClient(CREDENTIALS, http_client=http_client)

        with pytest.raises(ExternalAPIError) as exc_info:
            await client.authenticate()

        assert exc_info.value.service == "Spotify"
        assert not client.is_authenticated

    async def test_token_is_reused_while_valid(self, client, spotify):
        await client.authenticate()

        await client.get_playlist_tracks("pl1")
        await client.get_playlist_tracks("pl1")

        assert spotify.token_requests == 1
        assert all(r.headers["Authorization"] == "Bearer token-1" for r in spotify.page_requests)

    async def test_expired_token_is_renewed(self, http_client, spotify):
        spotify.expires_in = 0
        client = SpotifyPlaylistClient(CREDENTIALS, http_client=http_client)

        await client.get_playlist_tracks("pl1")

        assert spotify.token_requests == 2
        assert spotify.page_requests[-1].headers["Authorization"] == "Bearer token-2"


class TestPlaylistTracks:
    async def test_pages_are_followed_in_order(self, client, spotify):
        items = await client.get_playlist_tracks("pl1")

        assert [item.title for item in items] == ["First", "Second", "Third", "Fourth"]
        assert items[0].search_query == "First - Band"
        assert items[3].search_query == "Fourth"
        assert len(spotify.page_requests) == 2

    async def test_first_page_requests_limit_and_fields(self, client, spotify):
        await client.get_playlist_tracks("pl1")

        first = spotify.page_requests[0]
        assert first.url.params["limit"] == "100"
        assert "next" in first.url.params["fields"]

    async def test_http_error_raises_external_api_error(self, client):
        with pytest.raises(ExternalAPIError):
            await client.get_playlist_tracks("missing")

    async def test_malformed_payload_raises_external_api_error(self, client):
        with pytest.raises(ExternalAPIError):
            await client.get_playlist_tracks("broken")


class TestLifecycle:
    async def test_close_leaves_injected_client_open(self, client, http_client):
        await client.close()

        assert not http_client.is_closed

    async def test_close_owned_client(self):
        client = SpotifyPlaylistClient(CREDENTIALS)
        owned = client._get_client()

        await client.close()

        assert owned.is_closed
