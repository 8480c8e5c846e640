"""Object storage upload client."""

from collections.abc import AsyncIterator, Callable
from dataclasses import dataclass
from typing import Protocol

import httpx

_CHUNK_SIZE = 64 * 1024

ProgressCallback = Callable[[int], None]


class StorageUploadClient(Protocol):
    """Interface for direct PUT uploads to the storage write endpoint."""

    async def put_object(
        self,
        url: str,
        content: bytes,
        content_type: str,
        token: str | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> None:
        """Upload raw bytes, reporting percent progress when the size is known."""


@dataclass
class HttpxStorageUploadClient(StorageUploadClient):
    """Storage upload client implemented with httpx."""

    http_client: httpx.AsyncClient
    chunk_size: int = _CHUNK_SIZE

    @classmethod
    def create(cls) -> "HttpxStorageUploadClient":
        """Create an upload client with a managed httpx session."""
        return cls(http_client=httpx.AsyncClient())

    async def put_object(
        self,
        url: str,
        content: bytes,
        content_type: str,
        token: str | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> None:
        """PUT the bytes; raises ``httpx.HTTPStatusError`` on non-2xx."""
        headers = {
            "Content-Type": content_type,
            "Content-Length": str(len(content)),
        }
        if token:
            headers["Authorization"] = f"Bearer {token}"
        response = await self.http_client.put(
            url,
            content=self._stream(content, on_progress),
            headers=headers,
            timeout=None,
        )
        response.raise_for_status()

    async def _stream(
        self, content: bytes, on_progress: ProgressCallback | None
    ) -> AsyncIterator[bytes]:
        total = len(content)
        sent = 0
        for start in range(0, total, self.chunk_size):
            chunk = content[start : start + self.chunk_size]
            yield chunk
            sent += len(chunk)
            # An empty body has no computable length, so nothing is reported.
            if on_progress is not None and total:
                on_progress(round(sent / total * 100))

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
