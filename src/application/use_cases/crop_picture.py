from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, replace
from datetime import UTC, datetime

from src.application.stage_stores import StageStores
from src.domain.entities.picture import Box, Picture
from src.domain.entities.stage import Stage
from src.domain.errors import NotFoundError
from src.domain.ports.blob_store import BlobStore
from src.domain.ports.codec import RasterCodec
from src.domain.services.spatial_service import SpatialService
from src.infrastructure.codec.pillow_codec import content_type_for

logger = logging.getLogger(__name__)


@dataclass
class CropPictureUseCase:
    stores: StageStores
    storage: BlobStore
    codec: RasterCodec
    bucket: str
    spatial: SpatialService

    def execute(
        self,
        origin: str,
        name: str,
        crop_box: Box,
        stage: Stage | str = Stage.PENDING,
        size_id: str | None = None,
        now: datetime | None = None,
    ) -> Picture:
        """
        Crop a picture in place.

        WORKFLOW:
        1. Read the record and its current raster
        2. Crop the raster (fails with UncroppableRegionError before any write)
        3. Append the crop as a new size and re-anchor the tags onto it
        4. Overwrite the raster at the same path, then update the record

        The stage and the (origin, name) key never change; the new size entry
        and the rewritten record share one creation date. Earlier rasters are
        not kept, only their size entries remain in the record.
        """
        store = self.stores.get(stage)
        picture = store.read(origin, name)
        if picture is None:
            raise NotFoundError(origin, name, store.stage)

        raster = self.storage.get(self.bucket, picture.blob_path)
        new_raster = self.spatial.recompute_raster(crop_box, raster, self.codec, picture.extension)

        size_id = size_id or str(uuid.uuid4())
        now = now or datetime.now(UTC)
        cropped = self.spatial.recompute_annotations(crop_box, picture, size_id, now=now)

        self.storage.put(
            self.bucket, picture.blob_path, new_raster, content_type_for(picture.extension)
        )
        updated = store.update(replace(cropped, creation_date=now))
        logger.info(
            "Cropped picture %s/%s in %s to %s, %d of %d tags kept",
            origin, name, store.stage, crop_box, len(updated.tags), len(picture.tags),
        )
        return updated
