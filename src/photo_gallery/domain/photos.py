"""Domain models for gallery photos."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class PhotoMetadata:
    """Optional image metadata indexed by the processing backend."""

    format: str | None = None
    mode: str | None = None
    width: int | None = None
    height: int | None = None


@dataclass(frozen=True)
class Photo:
    """A listing entry with thumbnail and full-resolution references."""

    id: str
    thumbnail_url: str
    url: str
    metadata: PhotoMetadata = field(default_factory=PhotoMetadata)
