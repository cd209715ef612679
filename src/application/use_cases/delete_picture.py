from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable

from src.application.stage_stores import StageStores
from src.domain.entities.picture import blob_path
from src.domain.entities.stage import Stage
from src.domain.errors import NotFoundError, OrphanBlobError
from src.domain.ports.blob_store import BlobStore

logger = logging.getLogger(__name__)


@dataclass
class DeletePictureUseCase:
    stores: StageStores
    storage: BlobStore
    bucket: str

    def execute(self, stage: Stage | str, origin: str, name: str) -> None:
        store = self.stores.get(stage)
        if not store.delete(origin, name):
            raise NotFoundError(origin, name, store.stage)
        logger.info("Deleted picture %s/%s from %s", origin, name, store.stage)

    def with_blob(self, stage: Stage | str, origin: str, name: str) -> None:
        """
        Delete the record, then its raster.

        There is no rollback: when the blob delete fails the record is already
        gone and OrphanBlobError reports the leftover path.
        """
        self.execute(stage, origin, name)
        path = blob_path(origin, name)
        try:
            self.storage.delete(self.bucket, path)
        except Exception as exc:
            stage_name = self.stores.get(stage).stage
            logger.warning(
                "Orphan blob %s:%s left after deleting %s/%s from %s: %s",
                self.bucket, path, origin, name, stage_name, exc,
            )
            raise OrphanBlobError(stage_name, origin, name, path, exc) from exc

    def many_with_blob(self, stage: Stage | str, keys: Iterable[tuple[str, str]]) -> int:
        """Delete several pictures with their rasters, stopping at the first failure."""
        count = 0
        for origin, name in keys:
            self.with_blob(stage, origin, name)
            count += 1
        return count
