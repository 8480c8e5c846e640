"""Photo listing API client."""

from dataclasses import dataclass
from typing import Protocol

import httpx


class PhotoListingClient(Protocol):
    """Interface for the photo listing endpoint."""

    async def fetch_listing(self) -> object:
        """Return the decoded JSON body of the listing endpoint."""


@dataclass
class HttpxPhotoListingClient(PhotoListingClient):
    """HTTPX-backed listing client."""

    endpoint: str
    http_client: httpx.AsyncClient

    @classmethod
    def create(cls, endpoint: str) -> "HttpxPhotoListingClient":
        """Create a listing client with a managed httpx session."""
        return cls(endpoint=endpoint, http_client=httpx.AsyncClient())

    async def fetch_listing(self) -> object:
        """Issue a single GET against the listing endpoint."""
        response = await self.http_client.get(self.endpoint, timeout=None)
        response.raise_for_status()
        return response.json()

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
