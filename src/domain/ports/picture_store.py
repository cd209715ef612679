from __future__ import annotations

from typing import Callable, Protocol

from src.domain.entities.picture import Picture, PictureTag

PictureFilter = Callable[[Picture], bool]


class PictureStore(Protocol):
    """CRUD over the picture records of a single review stage.

    ``create`` never overwrites: it raises ``AlreadyExistsError`` when the key
    is taken. ``update`` is the explicit overwrite and raises ``NotFoundError``
    when the key is absent.
    """

    stage: str

    def create(self, picture: Picture) -> Picture: ...

    def read(self, origin: str, name: str) -> Picture | None: ...

    def update(self, picture: Picture) -> Picture: ...

    def delete(self, origin: str, name: str) -> bool: ...

    def list(self, origin: str, filter: PictureFilter | None = None) -> list[Picture]: ...

    def create_tag(self, origin: str, name: str, tag_id: str, tag: PictureTag) -> None: ...

    def update_tag(self, origin: str, name: str, tag_id: str, tag: PictureTag) -> None: ...

    def delete_tag(self, origin: str, name: str, tag_id: str) -> None: ...
