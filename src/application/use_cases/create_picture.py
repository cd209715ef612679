from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import UTC, datetime

from src.application.stage_stores import StageStores
from src.domain.entities.picture import Picture
from src.domain.entities.stage import Stage
from src.domain.ports.blob_store import BlobStore
from src.infrastructure.codec.pillow_codec import content_type_for

logger = logging.getLogger(__name__)


@dataclass
class CreatePictureUseCase:
    stores: StageStores
    storage: BlobStore
    bucket: str

    def execute(self, stage: Stage | str, picture: Picture, raster: bytes | None = None) -> Picture:
        """
        Store a new picture record, then its raster when one is given.

        The record goes first so a key collision (AlreadyExistsError) never
        overwrites the raster of the picture already holding the key.
        """
        store = self.stores.get(stage)
        content_type = content_type_for(picture.extension) if raster is not None else None
        created = store.create(replace(picture, creation_date=datetime.now(UTC)))
        logger.info("Created picture %s/%s in %s", created.origin, created.name, store.stage)
        if raster is not None:
            self.storage.put(self.bucket, created.blob_path, raster, content_type)
        return created
