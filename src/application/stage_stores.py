from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping

from src.domain.entities.stage import Stage
from src.domain.ports.picture_store import PictureStore


@dataclass(frozen=True)
class StageStores:
    """Fixed lookup table from each review stage to its picture store."""

    stores: Mapping[Stage, PictureStore]

    def __post_init__(self) -> None:
        missing = [stage.value for stage in Stage if stage not in self.stores]
        if missing:
            raise ValueError(f"No picture store configured for stages: {', '.join(missing)}")

    def get(self, stage: Stage | str) -> PictureStore:
        return self.stores[Stage.parse(stage)]
