"""Full-resolution image preloading."""

import io
from dataclasses import dataclass
from typing import Protocol

import httpx
from PIL import Image, UnidentifiedImageError


class ImageLoadError(RuntimeError):
    """Raised when an image cannot be fetched or decoded."""


class ImageLoader(Protocol):
    """Interface for loading an image out-of-band before display."""

    async def load(self, url: str) -> None:
        """Fetch and decode the image, raising ``ImageLoadError`` on failure."""


@dataclass
class HttpxImageLoader(ImageLoader):
    """Downloads an image with httpx and checks it decodes with Pillow."""

    http_client: httpx.AsyncClient

    @classmethod
    def create(cls) -> "HttpxImageLoader":
        """Create an image loader with a managed httpx session."""
        return cls(http_client=httpx.AsyncClient(follow_redirects=True))

    async def load(self, url: str) -> None:
        try:
            response = await self.http_client.get(url, timeout=30)
            response.raise_for_status()
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise ImageLoadError(f"Failed to fetch image: {exc}") from exc
        try:
            with Image.open(io.BytesIO(response.content)) as image:
                image.verify()
        except (
            UnidentifiedImageError,
            Image.DecompressionBombError,
            OSError,
            SyntaxError,
        ) as exc:
            raise ImageLoadError(f"Failed to decode image: {exc}") from exc

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
