from __future__ import annotations

from typing import Protocol

import numpy as np

from src.domain.entities.picture import Box


class RasterCodec(Protocol):
    """Decode bytes to a pixel grid of shape (H, W) or (H, W, C) and back."""

    def decode(self, data: bytes) -> np.ndarray: ...

    def encode(self, grid: np.ndarray, container_kind: str) -> bytes: ...

    def subregion(self, grid: np.ndarray, box: Box) -> np.ndarray: ...
