"""Pydantic models for the photo listing payload.

The listing API returns raw DynamoDB items, so every field arrives wrapped in
a type descriptor (``{"S": ...}``, ``{"N": ...}``, ``{"L": [...]}``,
``{"M": {...}}``).
"""

from pydantic import BaseModel, Field

from photo_gallery.domain.photos import Photo, PhotoMetadata


class AttributeValue(BaseModel):
    """A single typed attribute wrapper."""

    s: str | None = Field(default=None, alias="S")
    n: str | None = Field(default=None, alias="N")
    l: list["AttributeValue"] | None = Field(default=None, alias="L")  # noqa: E741
    m: dict[str, "AttributeValue"] | None = Field(default=None, alias="M")

    def as_int(self) -> int | None:
        """Return the numeric value as an int, if it parses."""
        if not self.n:
            return None
        try:
            return int(self.n)
        except ValueError:
            return None


class ListingItem(BaseModel):
    """One image metadata record from the listing endpoint."""

    thumbnail_url: AttributeValue | None = Field(default=None, alias="ThumbnailURL")
    original_image_url: AttributeValue | None = Field(
        default=None, alias="OriginalImageURL"
    )
    image_metadata_pk: AttributeValue | None = Field(
        default=None, alias="ImageMetadataPK"
    )
    metadata: AttributeValue | None = Field(default=None, alias="Metadata")

    def to_photo(self) -> Photo:
        """Unwrap the typed fields into a plain photo."""
        return Photo(
            id=_string(self.image_metadata_pk),
            thumbnail_url=_string(self.thumbnail_url),
            url=_string(self.original_image_url),
            metadata=self._photo_metadata(),
        )

    def _photo_metadata(self) -> PhotoMetadata:
        fields = self.metadata.m if self.metadata and self.metadata.m else {}
        width = height = None
        size = fields.get("Size")
        if size and size.l and len(size.l) >= 2:  # noqa: PLR2004
            width = size.l[0].as_int()
            height = size.l[1].as_int()
            if width is None or height is None:
                width = height = None
        return PhotoMetadata(
            format=_optional_string(fields.get("Format")),
            mode=_optional_string(fields.get("Mode")),
            width=width,
            height=height,
        )


class ListingResponse(BaseModel):
    """Top-level listing payload."""

    items: list[ListingItem] = Field(alias="Items")

    def to_photos(self) -> list[Photo]:
        return [item.to_photo() for item in self.items]


def _string(value: AttributeValue | None) -> str:
    if value is None:
        return ""
    return value.s or ""


def _optional_string(value: AttributeValue | None) -> str | None:
    if value is None or not value.s:
        return None
    return value.s
