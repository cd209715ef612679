from __future__ import annotations

from typing import Protocol


class BlobStore(Protocol):
    """Byte-level storage of raw rasters keyed by ``{origin}/{name}``."""

    def put(self, bucket: str, path: str, data: bytes, content_type: str | None = None) -> None: ...

    def get(self, bucket: str, path: str) -> bytes: ...

    # Succeeds when the blob is already gone.
    def delete(self, bucket: str, path: str) -> None: ...

    def copy(self, bucket: str, source_path: str, destination_path: str) -> None: ...
