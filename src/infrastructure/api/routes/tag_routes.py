from __future__ import annotations

from fastapi import APIRouter, Depends, status

from src.application.dtos.common_dto import SuccessResponse
from src.application.dtos.picture_dto import TagCreatedResponse, TagModel
from src.application.stage_stores import StageStores
from src.application.use_cases.picture_tags import PictureTagsUseCase
from src.domain.errors import PictureError
from src.infrastructure.api.dependencies import get_stage_stores
from src.infrastructure.api.errors import to_http_exception

router = APIRouter(
    prefix="/pictures/{stage}/{origin}/{name}/tags",
    tags=["Picture Tags"],
    responses={
        400: {"description": "Bad Request - Unknown stage or tag box bound to an unknown size"},
        404: {"description": "Not Found - Picture or tag does not exist"},
        422: {"description": "Validation Error - Invalid request format"},
    },
)


@router.post(
    "",
    response_model=TagCreatedResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create Tag",
    description="Add a tag to a picture. A tag box must refer to one of the picture's sizes.",
)
async def create_tag(
    stage: str,
    origin: str,
    name: str,
    body: TagModel,
    stores: StageStores = Depends(get_stage_stores),
):
    try:
        tag_id = PictureTagsUseCase(stores=stores).create(stage, origin, name, body.to_entity())
    except PictureError as exc:
        raise to_http_exception(exc) from exc
    return TagCreatedResponse(tag_id=tag_id)


@router.put("/{tag_id}", response_model=SuccessResponse, summary="Update Tag")
async def update_tag(
    stage: str,
    origin: str,
    name: str,
    tag_id: str,
    body: TagModel,
    stores: StageStores = Depends(get_stage_stores),
):
    try:
        PictureTagsUseCase(stores=stores).update(stage, origin, name, tag_id, body.to_entity())
    except PictureError as exc:
        raise to_http_exception(exc) from exc
    return SuccessResponse()


@router.delete("/{tag_id}", response_model=SuccessResponse, summary="Delete Tag")
async def delete_tag(
    stage: str,
    origin: str,
    name: str,
    tag_id: str,
    stores: StageStores = Depends(get_stage_stores),
):
    try:
        PictureTagsUseCase(stores=stores).delete(stage, origin, name, tag_id)
    except PictureError as exc:
        raise to_http_exception(exc) from exc
    return SuccessResponse()
