"""Gallery data access: fetch and normalize the photo listing."""

import logging
from dataclasses import dataclass

import httpx
from pydantic import ValidationError

from photo_gallery.adapters.listing_client import PhotoListingClient
from photo_gallery.domain.listing import ListingResponse
from photo_gallery.domain.photos import Photo

UNEXPECTED_FORMAT_MESSAGE = "Unexpected API response format"

_logger = logging.getLogger(__name__)


class ListingFetchError(RuntimeError):
    """Raised when the listing cannot be fetched or understood."""


@dataclass
class GalleryService:
    """Reads the remote photo listing into ``Photo`` models."""

    listing_client: PhotoListingClient

    async def fetch_photos(self) -> list[Photo]:
        """Fetch the full listing once; never retries."""
        try:
            payload = await self.listing_client.fetch_listing()
        except httpx.HTTPStatusError as exc:
            raise ListingFetchError(
                f"Failed to fetch photos: HTTP {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            raise ListingFetchError(f"Failed to fetch photos: {exc}") from exc
        except ValueError as exc:
            raise ListingFetchError(
                f"Failed to fetch photos: invalid JSON ({exc})"
            ) from exc

        try:
            listing = ListingResponse.model_validate(payload)
        except ValidationError as exc:
            _logger.error("Unexpected API response format: %s", exc)
            raise ListingFetchError(UNEXPECTED_FORMAT_MESSAGE) from exc

        photos = listing.to_photos()
        _logger.info("Fetched photo listing: count=%s", len(photos))
        return photos
