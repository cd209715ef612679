from __future__ import annotations

import os
import shutil
from pathlib import Path

from supabase import Client

from src.domain.errors import BlobNotFoundError


class SupabaseStorage:
    """Blob storage adapter for Supabase Storage with a local fake fallback.

    The local fallback lays blobs out as ``{local_dir}/{bucket}/{origin}/{name}``.
    """

    def __init__(self, client: Client | None) -> None:
        self.client = client
        self.bucket = os.getenv("SUPABASE_STORAGE_BUCKET", "pictures")
        self.disabled = os.getenv("SUPABASE_DISABLED", "0") == "1"
        self.local_dir = Path(os.getenv("SUPABASE_STORAGE_LOCAL_DIR", ".local_storage"))
        if self.disabled:
            self.local_dir.mkdir(parents=True, exist_ok=True)

    @property
    def local(self) -> bool:
        return self.disabled or self.client is None

    def _local_path(self, bucket: str, path: str) -> Path:
        return self.local_dir / bucket / path

    def put(self, bucket: str, path: str, data: bytes, content_type: str | None = None) -> None:
        if self.local:
            full_path = self._local_path(bucket, path)
            full_path.parent.mkdir(parents=True, exist_ok=True)
            full_path.write_bytes(data)
            return
        options = {"upsert": "true"}
        if content_type:
            options["content-type"] = content_type
        try:  # pragma: no cover - network
            self.client.storage.from_(bucket).upload(path=path, file=data, file_options=options)
        except Exception as exc:  # pragma: no cover
            raise RuntimeError(f"Storage upload failed: {exc}") from exc

    def get(self, bucket: str, path: str) -> bytes:
        if self.local:
            full_path = self._local_path(bucket, path)
            if not full_path.exists():
                raise BlobNotFoundError(bucket, path)
            return full_path.read_bytes()
        try:  # pragma: no cover - network
            return self.client.storage.from_(bucket).download(path)
        except Exception as exc:  # pragma: no cover
            if "not found" in str(exc).lower():
                raise BlobNotFoundError(bucket, path) from exc
            raise RuntimeError(f"Storage download failed: {exc}") from exc

    def delete(self, bucket: str, path: str) -> None:
        if self.local:
            full_path = self._local_path(bucket, path)
            if full_path.exists():
                full_path.unlink()
            return
        # Supabase reports success for missing objects
        try:  # pragma: no cover - network
            self.client.storage.from_(bucket).remove([path])
        except Exception as exc:  # pragma: no cover
            raise RuntimeError(f"Storage delete failed: {exc}") from exc

    def copy(self, bucket: str, source_path: str, destination_path: str) -> None:
        if self.local:
            source = self._local_path(bucket, source_path)
            if not source.exists():
                raise BlobNotFoundError(bucket, source_path)
            destination = self._local_path(bucket, destination_path)
            destination.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(source, destination)
            return
        try:  # pragma: no cover - network
            self.client.storage.from_(bucket).copy(source_path, destination_path)
        except Exception as exc:  # pragma: no cover
            raise RuntimeError(f"Storage copy failed: {exc}") from exc
