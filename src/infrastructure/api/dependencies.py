from __future__ import annotations

import os

from src.application.stage_stores import StageStores
from src.domain.entities.stage import Stage
from src.domain.services.spatial_service import SpatialService
from src.infrastructure.codec.pillow_codec import PillowCodec
from src.infrastructure.database.repositories.picture_repository import PictureRepository
from src.infrastructure.database.supabase_client import get_supabase_client
from src.infrastructure.storage.supabase_storage import SupabaseStorage


def _table_for(stage: Stage) -> str:
    return os.getenv(f"PICTURES_TABLE_{stage.name}", f"pictures_{stage.value}")


def get_stage_stores() -> StageStores:
    client = get_supabase_client()
    return StageStores(
        {stage: PictureRepository(client, table=_table_for(stage), stage=stage.value) for stage in Stage}
    )


def get_storage() -> SupabaseStorage:
    return SupabaseStorage(get_supabase_client())


def get_codec() -> PillowCodec:
    return PillowCodec()


def get_spatial_service() -> SpatialService:
    return SpatialService()
