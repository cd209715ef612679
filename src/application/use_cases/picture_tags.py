from __future__ import annotations

import uuid
from dataclasses import dataclass

from src.application.stage_stores import StageStores
from src.domain.entities.picture import Picture, PictureTag
from src.domain.entities.stage import Stage
from src.domain.errors import InvalidTagError, NotFoundError


@dataclass
class PictureTagsUseCase:
    """Annotation CRUD on a picture record. Never touches the raster or the key."""

    stores: StageStores

    def create(self, stage: Stage | str, origin: str, name: str, tag: PictureTag) -> str:
        store = self.stores.get(stage)
        self._check_size_reference(self._read(stage, origin, name), tag)
        tag_id = str(uuid.uuid4())
        store.create_tag(origin, name, tag_id, tag)
        return tag_id

    def update(self, stage: Stage | str, origin: str, name: str, tag_id: str, tag: PictureTag) -> None:
        store = self.stores.get(stage)
        self._check_size_reference(self._read(stage, origin, name), tag)
        store.update_tag(origin, name, tag_id, tag)

    def delete(self, stage: Stage | str, origin: str, name: str, tag_id: str) -> None:
        self.stores.get(stage).delete_tag(origin, name, tag_id)

    def _read(self, stage: Stage | str, origin: str, name: str) -> Picture:
        store = self.stores.get(stage)
        picture = store.read(origin, name)
        if picture is None:
            raise NotFoundError(origin, name, store.stage)
        return picture

    @staticmethod
    def _check_size_reference(picture: Picture, tag: PictureTag) -> None:
        info = tag.box_information
        if info is not None and info.image_size_id not in picture.sizes:
            raise InvalidTagError(
                f"Tag box refers to unknown size '{info.image_size_id}' of picture "
                f"{picture.origin}/{picture.name}"
            )
