from __future__ import annotations

from dataclasses import replace
from datetime import UTC, datetime

from src.domain.entities.picture import (
    MIN_TAG_EXTENT,
    Box,
    BoxInformation,
    Picture,
    PictureSize,
    PictureTag,
)
from src.domain.errors import UncroppableRegionError
from src.domain.ports.codec import RasterCodec


class SpatialService:
    """Pure crop geometry. No I/O: callers hand in pictures and raster bytes.

    A crop only ever shrinks or removes a tag box, it never grows or moves one
    outside the new raster.
    """

    # Append the crop as a new size and re-anchor every spatial tag onto it.
    @staticmethod
    def recompute_annotations(
        crop_box: Box, picture: Picture, new_size_id: str, now: datetime | None = None
    ) -> Picture:
        now = now or datetime.now(UTC)
        sizes = dict(picture.sizes)
        sizes[new_size_id] = PictureSize(creation_date=now, box=crop_box)

        tags: dict[str, PictureTag] = {}
        for tag_id, tag in picture.tags.items():
            info = tag.box_information
            if info is None:
                tags[tag_id] = tag
                continue
            box = SpatialService.clip_box(info.box, crop_box)
            if box is None:
                continue
            tags[tag_id] = replace(
                tag, box_information=BoxInformation(image_size_id=new_size_id, box=box)
            )
        return replace(picture, sizes=sizes, tags=tags)

    # Tag box expressed relative to the crop, or None when it must be dropped.
    # x is resolved first; a drop on x skips y.
    @staticmethod
    def clip_box(box: Box, crop_box: Box) -> Box | None:
        x = SpatialService.clip_axis(box.left, box.width, crop_box.left, crop_box.width)
        if x is None:
            return None
        y = SpatialService.clip_axis(box.top, box.height, crop_box.top, crop_box.height)
        if y is None:
            return None
        return Box(left=x[0], top=y[0], width=x[1], height=y[1])

    # One axis: tag (start, extent) against crop (crop_start, crop_extent).
    @staticmethod
    def clip_axis(
        start: int, extent: int, crop_start: int, crop_extent: int
    ) -> tuple[int, int] | None:
        crop_end = crop_start + crop_extent
        end = start + extent
        # starts past the crop's far edge
        if start > crop_end:
            return None
        if start < crop_start:
            # ends before the crop's near edge
            if end < crop_start:
                new_extent = 0
            else:
                new_extent = min(end, crop_end) - crop_start
            new_start = 0
        else:
            new_extent = min(end, crop_end) - start
            new_start = start - crop_start
        if new_extent < MIN_TAG_EXTENT:
            return None
        return new_start, new_extent

    # Crop the raster bytes, re-encoded with the container of `extension`.
    @staticmethod
    def recompute_raster(
        crop_box: Box, data: bytes, codec: RasterCodec, extension: str
    ) -> bytes:
        grid = codec.decode(data)
        region = SpatialService.intersect_bounds(crop_box, grid.shape[1], grid.shape[0])
        return codec.encode(codec.subregion(grid, region), extension)

    # Crop box limited to the raster's true extent; metadata and blob may have drifted.
    @staticmethod
    def intersect_bounds(crop_box: Box, width: int, height: int) -> Box:
        left = max(crop_box.left, 0)
        top = max(crop_box.top, 0)
        right = min(crop_box.right, width)
        bottom = min(crop_box.bottom, height)
        if right <= left or bottom <= top:
            raise UncroppableRegionError(crop_box, width, height)
        return Box(left=left, top=top, width=right - left, height=bottom - top)
