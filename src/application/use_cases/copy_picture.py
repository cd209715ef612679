from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import UTC, datetime

from src.application.stage_stores import StageStores
from src.domain.entities.picture import Picture
from src.domain.entities.stage import Stage
from src.domain.errors import AlreadyExistsError, NotFoundError
from src.domain.ports.blob_store import BlobStore

logger = logging.getLogger(__name__)


@dataclass
class CopyPictureUseCase:
    stores: StageStores
    storage: BlobStore
    bucket: str

    def execute(
        self, origin: str, name: str, stage: Stage | str = Stage.PENDING, now: datetime | None = None
    ) -> Picture:
        """
        Duplicate a picture under a new name within the same stage.

        The new name is ``{origin_id}_{timestamp}``; a collision raises
        AlreadyExistsError and is not retried.
        """
        store = self.stores.get(stage)
        picture = store.read(origin, name)
        if picture is None:
            raise NotFoundError(origin, name, store.stage)

        now = now or datetime.now(UTC)
        copy = replace(
            picture,
            name=f"{picture.origin_id}_{now.isoformat(timespec='seconds')}",
            creation_date=now,
        )
        # checked before the blob copy, which would overwrite the holder's raster
        if store.read(copy.origin, copy.name) is not None:
            raise AlreadyExistsError(copy.origin, copy.name, store.stage)

        self.storage.copy(self.bucket, picture.blob_path, copy.blob_path)
        created = store.create(copy)
        logger.info("Copied picture %s/%s to %s in %s", origin, name, created.name, store.stage)
        return created
