from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import UTC, datetime

from src.application.stage_stores import StageStores
from src.domain.entities.picture import Picture
from src.domain.entities.stage import Stage
from src.domain.errors import InvalidTransitionError, NotFoundError, PartialTransferError

logger = logging.getLogger(__name__)


@dataclass
class TransferPictureUseCase:
    """
    Move a picture record between two review stages.

    The move is read -> write destination -> delete source, across two stores
    that share no transaction. If the source delete fails after the
    destination write, the picture exists in both stages and the caller gets
    PartialTransferError to reconcile it; nothing is undone here.
    """

    stores: StageStores

    def execute(
        self, source: Stage | str, destination: Stage | str, origin: str, name: str
    ) -> Picture:
        source, destination = Stage.parse(source), Stage.parse(destination)
        if source == destination or not source.is_review or not destination.is_review:
            raise InvalidTransitionError(source.value, destination.value)

        from_store = self.stores.get(source)
        to_store = self.stores.get(destination)

        picture = from_store.read(origin, name)
        if picture is None:
            raise NotFoundError(origin, name, source.value)

        moved = to_store.create(replace(picture, creation_date=datetime.now(UTC)))

        try:
            deleted = from_store.delete(origin, name)
        except Exception as exc:
            logger.warning(
                "Picture %s/%s duplicated in %s and %s: %s",
                origin, name, source.value, destination.value, exc,
            )
            raise PartialTransferError(source.value, destination.value, origin, name, exc) from exc
        if not deleted:
            # removed from the source by someone else in the meantime
            logger.warning("Picture %s/%s vanished from %s during transfer", origin, name, source.value)

        logger.info("Transferred picture %s/%s from %s to %s", origin, name, source.value, destination.value)
        return moved
