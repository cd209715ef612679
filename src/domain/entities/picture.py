from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime

# Boxes narrower or shorter than this are not kept as a tag's spatial binding.
MIN_TAG_EXTENT = 50


def blob_path(origin: str, name: str) -> str:
    """Storage path of a picture's raster inside the bucket."""
    return f"{origin}/{name}"


def as_utc(value: datetime) -> datetime:
    # naive timestamps are taken to be UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


@dataclass(frozen=True)
class Box:
    left: int
    top: int
    width: int
    height: int

    def __post_init__(self) -> None:
        if min(self.left, self.top, self.width, self.height) < 0:
            raise ValueError(f"Box values must be non-negative: {self}")

    @property
    def right(self) -> int:
        return self.left + self.width

    @property
    def bottom(self) -> int:
        return self.top + self.height


@dataclass(frozen=True)
class PictureSize:
    creation_date: datetime
    box: Box  # absolute, in the coordinate space of the previous raster


@dataclass(frozen=True)
class BoxInformation:
    image_size_id: str  # back-reference into Picture.sizes
    box: Box


@dataclass(frozen=True)
class PictureTag:
    name: str
    origin: str  # reviewer or tagger that supplied the annotation
    creation_date: datetime
    box_information: BoxInformation | None = None  # None for image-level tags


@dataclass(frozen=True)
class Picture:
    origin: str
    name: str
    origin_id: str
    extension: str  # jpg | jpeg | png
    creation_date: datetime
    sizes: dict[str, PictureSize] = field(default_factory=dict)
    tags: dict[str, PictureTag] = field(default_factory=dict)

    @property
    def key(self) -> tuple[str, str]:
        return (self.origin, self.name)

    @property
    def blob_path(self) -> str:
        return blob_path(self.origin, self.name)

    @property
    def current_size_id(self) -> str | None:
        """Id of the most recently recorded size, i.e. the current raster."""
        if not self.sizes:
            return None
        # max() keeps the first of equal dates, so iterate newest-inserted first
        return max(
            reversed(self.sizes), key=lambda size_id: as_utc(self.sizes[size_id].creation_date)
        )
