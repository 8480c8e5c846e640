"""Tests for listing parsing and the gallery service."""

import asyncio

import httpx
import pytest

from photo_gallery.domain.listing import ListingResponse
from photo_gallery.domain.photos import PhotoMetadata
from photo_gallery.services.gallery import (
    UNEXPECTED_FORMAT_MESSAGE,
    GalleryService,
    ListingFetchError,
)
from tests.conftest import FakeListingClient, listing_item


def test_listing_unwraps_typed_fields() -> None:
    payload = {
        "Items": [
            listing_item(
                "img-1",
                {
                    "Format": {"S": "JPEG"},
                    "Mode": {"S": "RGB"},
                    "Size": {"L": [{"N": "4032"}, {"N": "3024"}]},
                },
            )
        ]
    }

    photos = ListingResponse.model_validate(payload).to_photos()

    assert len(photos) == 1
    photo = photos[0]
    assert photo.id == "img-1"
    assert photo.thumbnail_url == "https://cdn.test/thumbs/img-1.jpg"
    assert photo.url == "https://cdn.test/originals/img-1.jpg"
    assert photo.metadata == PhotoMetadata(
        format="JPEG", mode="RGB", width=4032, height=3024
    )


@pytest.mark.parametrize(
    "metadata",
    [
        None,
        {},
        {"Format": {"S": "PNG"}},
        {"Size": {"L": [{"N": "640"}]}},
        {"Size": {"L": [{"N": "640"}, {"N": "wide"}]}},
        {"Mode": {"N": "1"}},
    ],
)
def test_listing_tolerates_missing_metadata(metadata) -> None:
    photos = ListingResponse.model_validate(
        {"Items": [listing_item("img-2", metadata)]}
    ).to_photos()

    photo = photos[0]
    assert photo.metadata.width is None
    assert photo.metadata.height is None
    assert photo.metadata.mode is None


def test_listing_item_without_urls_yields_empty_strings() -> None:
    photos = ListingResponse.model_validate({"Items": [{}]}).to_photos()

    assert photos[0].id == ""
    assert photos[0].thumbnail_url == ""
    assert photos[0].url == ""


def test_fetch_photos_preserves_listing_order() -> None:
    client = FakeListingClient(
        payloads=[{"Items": [listing_item("b"), listing_item("a"), listing_item("c")]}]
    )

    photos = asyncio.run(GalleryService(client).fetch_photos())

    assert [photo.id for photo in photos] == ["b", "a", "c"]
    assert client.calls == 1


def test_fetch_photos_empty_listing() -> None:
    photos = asyncio.run(GalleryService(FakeListingClient()).fetch_photos())

    assert photos == []


@pytest.mark.parametrize(
    "payload",
    [
        {"Items": "not-a-list"},
        {"Count": 0},
        ["Items"],
        None,
        {"Items": [{"ThumbnailURL": {"S": 12}}]},
    ],
)
def test_fetch_photos_rejects_unexpected_shapes(payload) -> None:
    service = GalleryService(FakeListingClient(payloads=[payload]))

    with pytest.raises(ListingFetchError, match=UNEXPECTED_FORMAT_MESSAGE):
        asyncio.run(service.fetch_photos())


def test_fetch_photos_wraps_network_errors() -> None:
    service = GalleryService(
        FakeListingClient(payloads=[httpx.ConnectError("connection refused")])
    )

    with pytest.raises(ListingFetchError) as excinfo:
        asyncio.run(service.fetch_photos())

    assert str(excinfo.value) == "Failed to fetch photos: connection refused"


def test_fetch_photos_reports_http_status() -> None:
    request = httpx.Request("GET", "https://api.test/photos/")
    error = httpx.HTTPStatusError(
        "Server error",
        request=request,
        response=httpx.Response(503, request=request),
    )
    service = GalleryService(FakeListingClient(payloads=[error]))

    with pytest.raises(ListingFetchError, match="HTTP 503"):
        asyncio.run(service.fetch_photos())
