from __future__ import annotations

from io import BytesIO

import numpy as np
from PIL import Image, UnidentifiedImageError

from src.domain.entities.picture import Box
from src.domain.errors import DecodeError, EncodeError, UnsupportedContainerError

# extension -> (Pillow format, content type)
CONTAINERS: dict[str, tuple[str, str]] = {
    "jpg": ("JPEG", "image/jpeg"),
    "jpeg": ("JPEG", "image/jpeg"),
    "png": ("PNG", "image/png"),
}


def container_for(extension: str) -> tuple[str, str]:
    try:
        return CONTAINERS[extension.lower().lstrip(".")]
    except KeyError as exc:
        raise UnsupportedContainerError(extension) from exc


def content_type_for(extension: str) -> str:
    return container_for(extension)[1]


class PillowCodec:
    """Raster codec backed by Pillow. Pixel grids are uint8 NumPy arrays."""

    def decode(self, data: bytes) -> np.ndarray:
        try:
            img = Image.open(BytesIO(data))
            if img.mode not in ("L", "RGB", "RGBA"):
                img = img.convert("RGB")
            return np.asarray(img)
        except (UnidentifiedImageError, OSError) as exc:
            raise DecodeError(f"Raster decode failed: {exc}") from exc

    def encode(self, grid: np.ndarray, container_kind: str) -> bytes:
        fmt, _ = container_for(container_kind)
        arr = grid.astype(np.uint8, copy=False)
        try:
            img = Image.fromarray(arr)
            if fmt == "JPEG" and img.mode == "RGBA":
                img = img.convert("RGB")
            buf = BytesIO()
            img.save(buf, format=fmt, quality=95)
        except (ValueError, TypeError, OSError) as exc:
            raise EncodeError(f"{fmt} encode failed: {exc}") from exc
        return buf.getvalue()

    # Slicing returns a view that shares storage with `grid`.
    def subregion(self, grid: np.ndarray, box: Box) -> np.ndarray:
        return grid[box.top : box.bottom, box.left : box.right]
