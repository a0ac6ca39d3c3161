"""
Scryfall API client.

Rate-limited JSON queries and streaming bulk file downloads, plus the
bulk data manifest lookup.

Bulk data: https://scryfall.com/docs/api/bulk-data
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import httpx

from cardkeeper.config import settings
from cardkeeper.services.errors import BulkDataNotFoundError, DownloadError, RemoteApiError
from cardkeeper.services.rate_limiter import RateLimiter, get_rate_limiter

logger = logging.getLogger(__name__)

USER_AGENT = f"{settings.app_name}/1.0 (MTG Collection API)"


class ScryfallClient:
    """
    HTTP access to Scryfall with the headers and pacing the API requires.

    Args:
        rate_limiter: Limiter shared by every client that talks to Scryfall.
            Defaults to the process-wide limiter.
        http_client: Optional httpx client for connection reuse. When omitted
            a short-lived client is opened per request.
    """

    def __init__(
        self,
        rate_limiter: RateLimiter | None = None,
        http_client: httpx.AsyncClient | None = None,
        *,
        request_timeout: float | None = None,
        download_timeout: float | None = None,
    ) -> None:
        self.rate_limiter = rate_limiter if rate_limiter is not None else get_rate_limiter()
        self._http_client = http_client
        self.request_timeout = request_timeout or settings.scryfall_request_timeout
        self.download_timeout = download_timeout or settings.scryfall_download_timeout

    @asynccontextmanager
    async def _client(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._http_client is not None:
            yield self._http_client
            return
        async with httpx.AsyncClient() as client:
            yield client

    async def fetch_json(self, url: str) -> Any:
        """
        GET a Scryfall API endpoint and decode the JSON body.

        Raises:
            RemoteApiError: On a non-success status, a transport failure,
                or a body that is not JSON
        """
        headers = {"User-Agent": USER_AGENT, "Accept": "application/json"}

        async with self.rate_limiter.slot():
            try:
                async with self._client() as client:
                    response = await client.get(
                        url, headers=headers, timeout=self.request_timeout
                    )
            except httpx.RequestError as e:
                raise RemoteApiError(url, None, str(e)) from e

        if not response.is_success:
            raise RemoteApiError(url, response.status_code, response.text)

        try:
            return response.json()
        except ValueError as e:
            raise RemoteApiError(url, response.status_code, "response is not valid JSON") from e

    async def download_to_file(self, url: str, destination: Path) -> Path:
        """
        Stream a (potentially multi-gigabyte) file to disk.

        The caller owns ``destination`` and must remove it once consumed.

        Raises:
            DownloadError: On a non-success status or a transport failure
        """
        headers = {
            "User-Agent": USER_AGENT,
            "Accept": "application/json, application/octet-stream",
        }
        logger.info("Downloading Scryfall data from %s", url)

        async with self.rate_limiter.slot():
            try:
                async with (
                    self._client() as client,
                    client.stream(
                        "GET",
                        url,
                        headers=headers,
                        timeout=self.download_timeout,
                        follow_redirects=True,
                    ) as response,
                ):
                    if not response.is_success:
                        raise DownloadError(url, f"HTTP {response.status_code}")
                    with open(destination, "wb") as f:
                        async for chunk in response.aiter_bytes(8192):
                            f.write(chunk)
            except httpx.RequestError as e:
                raise DownloadError(url, str(e)) from e

        logger.info("Downloaded %s to %s", url, destination)
        return destination


@dataclass(frozen=True, slots=True)
class BulkDataInfo:
    """One downloadable dataset from the Scryfall bulk data manifest."""

    type: str
    name: str
    description: str
    download_uri: str
    size: int
    content_type: str
    updated_at: str

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "BulkDataInfo":
        return cls(
            type=str(data.get("type", "")),
            name=str(data.get("name", "")),
            description=str(data.get("description", "")),
            download_uri=str(data.get("download_uri", "")),
            size=int(data.get("size") or 0),
            content_type=str(data.get("content_type", "")),
            updated_at=str(data.get("updated_at", "")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "name": self.name,
            "description": self.description,
            "download_uri": self.download_uri,
            "size": self.size,
            "content_type": self.content_type,
            "updated_at": self.updated_at,
        }


class BulkDataCatalog:
    """Resolves bulk data types to download URLs using the Scryfall manifest."""

    def __init__(self, client: ScryfallClient, manifest_url: str | None = None) -> None:
        self.client = client
        self.manifest_url = manifest_url or settings.scryfall_bulk_data_url

    async def list_available(self) -> list[BulkDataInfo]:
        """
        Fetch every bulk dataset Scryfall currently offers.

        Raises:
            RemoteApiError: If the request fails or the manifest has no data array
        """
        payload = await self.client.fetch_json(self.manifest_url)

        entries = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(entries, list):
            raise RemoteApiError(
                self.manifest_url, None, "Invalid bulk data response from Scryfall"
            )

        return [BulkDataInfo.from_dict(entry) for entry in entries if isinstance(entry, dict)]

    async def resolve_url(self, data_type: str = "default_cards") -> str:
        """
        Find the download URL for a bulk data type.

        Raises:
            BulkDataNotFoundError: If no manifest entry has this type
            RemoteApiError: If the manifest cannot be fetched
        """
        for info in await self.list_available():
            if info.type == data_type:
                logger.info("Resolved bulk data %s to %s", data_type, info.download_uri)
                return info.download_uri

        raise BulkDataNotFoundError(data_type)
