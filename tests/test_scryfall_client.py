"""Tests for the Scryfall HTTP client and bulk data manifest."""

from pathlib import Path

import httpx
import pytest
import respx

from cardkeeper.services.errors import BulkDataNotFoundError, DownloadError, RemoteApiError
from cardkeeper.services.rate_limiter import RateLimiter
from cardkeeper.services.scryfall_client import (
    USER_AGENT,
    BulkDataCatalog,
    BulkDataInfo,
    ScryfallClient,
)

MANIFEST_URL = "https://api.scryfall.com/bulk-data"
DOWNLOAD_URL = "https://data.scryfall.io/default-cards/default-cards-20240101.json"


@pytest.fixture
def client() -> ScryfallClient:
    return ScryfallClient(rate_limiter=RateLimiter(0))


@pytest.fixture
def manifest() -> dict:
    """Sample Scryfall bulk data manifest."""
    return {
        "object": "list",
        "has_more": False,
        "data": [
            {
                "object": "bulk_data",
                "type": "oracle_cards",
                "name": "Oracle Cards",
                "description": "One card object per Oracle ID.",
                "download_uri": "https://data.scryfall.io/oracle-cards/oracle-cards.json",
                "size": 161_000_000,
                "content_type": "application/json",
                "updated_at": "2024-01-01T10:02:00.000+00:00",
            },
            {
                "object": "bulk_data",
                "type": "default_cards",
                "name": "Default Cards",
                "description": "Every card object on Scryfall in English.",
                "download_uri": DOWNLOAD_URL,
                "size": 480_000_000,
                "content_type": "application/json",
                "updated_at": "2024-01-01T10:05:00.000+00:00",
            },
        ],
    }


class TestFetchJson:
    @respx.mock
    async def test_returns_decoded_body(self, client: ScryfallClient) -> None:
        """Successful responses are decoded as JSON."""
        respx.get(MANIFEST_URL).mock(return_value=httpx.Response(200, json={"data": []}))

        assert await client.fetch_json(MANIFEST_URL) == {"data": []}

    @respx.mock
    async def test_sends_user_agent_and_accept(self, client: ScryfallClient) -> None:
        """Scryfall requires a User-Agent and an Accept header."""
        route = respx.get(MANIFEST_URL).mock(return_value=httpx.Response(200, json={}))

        await client.fetch_json(MANIFEST_URL)

        request = route.calls.last.request
        assert request.headers["User-Agent"] == USER_AGENT
        assert request.headers["Accept"] == "application/json"

    @respx.mock
    async def test_error_status_raises_remote_api_error(self, client: ScryfallClient) -> None:
        """Non-success status carries the status code and body."""
        respx.get(MANIFEST_URL).mock(return_value=httpx.Response(503, text="maintenance"))

        with pytest.raises(RemoteApiError, match="503 - maintenance") as exc_info:
            await client.fetch_json(MANIFEST_URL)

        assert exc_info.value.status_code == 503

    @respx.mock
    async def test_transport_error_raises_remote_api_error(self, client: ScryfallClient) -> None:
        """Connection failures are wrapped."""
        respx.get(MANIFEST_URL).mock(side_effect=httpx.ConnectError("refused"))

        with pytest.raises(RemoteApiError) as exc_info:
            await client.fetch_json(MANIFEST_URL)

        assert exc_info.value.status_code is None
        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)

    @respx.mock
    async def test_invalid_json_raises_remote_api_error(self, client: ScryfallClient) -> None:
        """A success status with a non-JSON body is still an API error."""
        respx.get(MANIFEST_URL).mock(return_value=httpx.Response(200, text="<html>"))

        with pytest.raises(RemoteApiError):
            await client.fetch_json(MANIFEST_URL)


class TestDownloadToFile:
    @respx.mock
    async def test_streams_body_to_disk(self, client: ScryfallClient, tmp_path: Path) -> None:
        """The response body is written to the destination file."""
        body = b'[{"object": "card"}]' * 1000
        respx.get(DOWNLOAD_URL).mock(return_value=httpx.Response(200, content=body))

        destination = tmp_path / "bulk.json"
        result = await client.download_to_file(DOWNLOAD_URL, destination)

        assert result == destination
        assert destination.read_bytes() == body

    @respx.mock
    async def test_follows_redirects(self, client: ScryfallClient, tmp_path: Path) -> None:
        """Download URLs that redirect to a CDN are followed."""
        cdn_url = "https://cdn.scryfall.io/default-cards.json"
        respx.get(DOWNLOAD_URL).mock(
            return_value=httpx.Response(302, headers={"Location": cdn_url})
        )
        respx.get(cdn_url).mock(return_value=httpx.Response(200, content=b"[]"))

        destination = tmp_path / "bulk.json"
        await client.download_to_file(DOWNLOAD_URL, destination)

        assert destination.read_bytes() == b"[]"

    @respx.mock
    async def test_error_status_raises_download_error(
        self, client: ScryfallClient, tmp_path: Path
    ) -> None:
        """Non-success status aborts the download."""
        respx.get(DOWNLOAD_URL).mock(return_value=httpx.Response(404))

        with pytest.raises(DownloadError, match="HTTP 404"):
            await client.download_to_file(DOWNLOAD_URL, tmp_path / "bulk.json")

    @respx.mock
    async def test_transport_error_raises_download_error(
        self, client: ScryfallClient, tmp_path: Path
    ) -> None:
        """Network failures are wrapped in DownloadError."""
        respx.get(DOWNLOAD_URL).mock(side_effect=httpx.ReadTimeout("timed out"))

        with pytest.raises(DownloadError, match="Failed to download file from"):
            await client.download_to_file(DOWNLOAD_URL, tmp_path / "bulk.json")

    @respx.mock
    async def test_uses_injected_http_client(self, tmp_path: Path) -> None:
        """A caller-provided httpx client is reused."""
        respx.get(DOWNLOAD_URL).mock(return_value=httpx.Response(200, content=b"[]"))

        async with httpx.AsyncClient() as http_client:
            client = ScryfallClient(rate_limiter=RateLimiter(0), http_client=http_client)
            await client.download_to_file(DOWNLOAD_URL, tmp_path / "bulk.json")
            assert not http_client.is_closed


class TestBulkDataCatalog:
    @respx.mock
    async def test_list_available(self, client: ScryfallClient, manifest: dict) -> None:
        """Manifest entries are returned as BulkDataInfo."""
        respx.get(MANIFEST_URL).mock(return_value=httpx.Response(200, json=manifest))

        entries = await BulkDataCatalog(client, MANIFEST_URL).list_available()

        assert [entry.type for entry in entries] == ["oracle_cards", "default_cards"]
        assert entries[1].size == 480_000_000

    @respx.mock
    async def test_resolve_url(self, client: ScryfallClient, manifest: dict) -> None:
        """The download URL of the requested type is returned."""
        respx.get(MANIFEST_URL).mock(return_value=httpx.Response(200, json=manifest))

        url = await BulkDataCatalog(client, MANIFEST_URL).resolve_url("default_cards")

        assert url == DOWNLOAD_URL

    @respx.mock
    async def test_resolve_unknown_type(self, client: ScryfallClient, manifest: dict) -> None:
        """Types missing from the manifest raise BulkDataNotFoundError."""
        respx.get(MANIFEST_URL).mock(return_value=httpx.Response(200, json=manifest))

        with pytest.raises(BulkDataNotFoundError, match="'all_cards' not found"):
            await BulkDataCatalog(client, MANIFEST_URL).resolve_url("all_cards")

    @respx.mock
    async def test_manifest_without_data_array(self, client: ScryfallClient) -> None:
        """A manifest without a data list is an invalid response."""
        respx.get(MANIFEST_URL).mock(return_value=httpx.Response(200, json={"object": "error"}))

        with pytest.raises(RemoteApiError, match="Invalid bulk data response"):
            await BulkDataCatalog(client, MANIFEST_URL).list_available()


class TestBulkDataInfo:
    def test_to_dict_round_trips_fields(self, manifest: dict) -> None:
        """to_dict exposes every manifest field the API reports."""
        info = BulkDataInfo.from_dict(manifest["data"][0])

        assert info.to_dict() == {
            "type": "oracle_cards",
            "name": "Oracle Cards",
            "description": "One card object per Oracle ID.",
            "download_uri": "https://data.scryfall.io/oracle-cards/oracle-cards.json",
            "size": 161_000_000,
            "content_type": "application/json",
            "updated_at": "2024-01-01T10:02:00.000+00:00",
        }
