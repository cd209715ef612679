from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import UTC, datetime

from src.application.stage_stores import StageStores
from src.domain.entities.picture import Picture
from src.domain.entities.stage import Stage
from src.domain.errors import InvalidTransitionError, NotFoundError, PartialTransferError
from src.domain.ports.blob_store import BlobStore

logger = logging.getLogger(__name__)


@dataclass
class BlockPictureUseCase:
    """
    Move a picture into the terminal blocked stage and drop its raster.

    Order: delete blob -> write blocked record -> delete source record. The
    blob goes first so a half-failed block never leaves a reachable raster
    behind a record that claims to be blocked.
    """

    stores: StageStores
    storage: BlobStore
    bucket: str

    def execute(self, origin: str, name: str, stage: Stage | str = Stage.PENDING) -> Picture:
        stage = Stage.parse(stage)
        if not stage.is_review:
            raise InvalidTransitionError(stage.value, Stage.BLOCKED.value)

        source = self.stores.get(stage)
        picture = source.read(origin, name)
        if picture is None:
            raise NotFoundError(origin, name, stage.value)

        self.storage.delete(self.bucket, picture.blob_path)
        blocked = self.stores.get(Stage.BLOCKED).create(
            replace(picture, creation_date=datetime.now(UTC))
        )

        try:
            source.delete(origin, name)
        except Exception as exc:
            logger.warning(
                "Picture %s/%s blocked but still present in %s: %s", origin, name, stage.value, exc
            )
            raise PartialTransferError(stage.value, Stage.BLOCKED.value, origin, name, exc) from exc

        logger.info("Blocked picture %s/%s from %s", origin, name, stage.value)
        return blocked
