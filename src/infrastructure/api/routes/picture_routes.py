from __future__ import annotations

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile, status
from fastapi.responses import Response
from pydantic import ValidationError

from src.application.dtos.common_dto import SuccessResponse
from src.application.dtos.picture_dto import (
    CropRequest,
    DeletePicturesRequest,
    ListPicturesResponse,
    PictureKeyRequest,
    PictureModel,
    PictureResponse,
    TransferRequest,
)
from src.application.stage_stores import StageStores
from src.application.use_cases.block_picture import BlockPictureUseCase
from src.application.use_cases.copy_picture import CopyPictureUseCase
from src.application.use_cases.create_picture import CreatePictureUseCase
from src.application.use_cases.crop_picture import CropPictureUseCase
from src.application.use_cases.delete_picture import DeletePictureUseCase
from src.application.use_cases.transfer_picture import TransferPictureUseCase
from src.domain.entities.stage import Stage
from src.domain.errors import NotFoundError, PictureError
from src.domain.services.spatial_service import SpatialService
from src.infrastructure.api.dependencies import (
    get_codec,
    get_spatial_service,
    get_stage_stores,
    get_storage,
)
from src.infrastructure.api.errors import to_http_exception
from src.infrastructure.codec.pillow_codec import PillowCodec, content_type_for
from src.infrastructure.storage.supabase_storage import SupabaseStorage

router = APIRouter(
    prefix="/pictures",
    tags=["Picture Lifecycle"],
    responses={
        400: {"description": "Bad Request - Unknown stage, invalid transition or crop box"},
        404: {"description": "Not Found - Picture does not exist in the given stage"},
        409: {"description": "Conflict - Picture key already taken in the target stage"},
        422: {"description": "Validation Error - Invalid request format"},
        500: {"description": "Partial failure - see detail for the step that failed"},
    },
)


@router.post(
    "/transfer",
    response_model=PictureResponse,
    summary="Transfer Picture",
    description="""
    Move a picture between review stages (`pending`, `validated`, `published`).

    The record is read from the source, written to the destination and then
    deleted from the source. When the last step fails the picture exists in
    both stages and a 500 names both of them for manual reconciliation.
    """,
)
async def transfer_picture(
    body: TransferRequest,
    stores: StageStores = Depends(get_stage_stores),
):
    uc = TransferPictureUseCase(stores=stores)
    try:
        picture = uc.execute(body.source, body.destination, body.origin, body.name)
    except PictureError as exc:
        raise to_http_exception(exc) from exc
    return PictureResponse(picture=PictureModel.from_entity(picture), stage=Stage.parse(body.destination).value)


@router.post(
    "/copy",
    response_model=PictureResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Copy Picture",
    description="Duplicate a picture and its file under a new name derived from its origin id.",
)
async def copy_picture(
    body: PictureKeyRequest,
    stores: StageStores = Depends(get_stage_stores),
    storage: SupabaseStorage = Depends(get_storage),
):
    uc = CopyPictureUseCase(stores=stores, storage=storage, bucket=storage.bucket)
    try:
        picture = uc.execute(body.origin, body.name, stage=body.stage)
    except PictureError as exc:
        raise to_http_exception(exc) from exc
    return PictureResponse(picture=PictureModel.from_entity(picture), stage=Stage.parse(body.stage).value)


@router.post(
    "/block",
    response_model=PictureResponse,
    summary="Block Picture",
    description="Delete the picture file and move its record to the `blocked` stage.",
)
async def block_picture(
    body: PictureKeyRequest,
    stores: StageStores = Depends(get_stage_stores),
    storage: SupabaseStorage = Depends(get_storage),
):
    uc = BlockPictureUseCase(stores=stores, storage=storage, bucket=storage.bucket)
    try:
        picture = uc.execute(body.origin, body.name, stage=body.stage)
    except PictureError as exc:
        raise to_http_exception(exc) from exc
    return PictureResponse(picture=PictureModel.from_entity(picture), stage=Stage.BLOCKED.value)


@router.post(
    "/crop",
    response_model=PictureResponse,
    summary="Crop Picture",
    description="""
    Crop the picture file in place and re-anchor its tags.

    - A new size entry records the crop box
    - Tag boxes are clipped to the crop; tags narrower or shorter than 50 px are dropped
    - The previous file is overwritten; the stage and name never change
    """,
)
async def crop_picture(
    body: CropRequest,
    stores: StageStores = Depends(get_stage_stores),
    storage: SupabaseStorage = Depends(get_storage),
    codec: PillowCodec = Depends(get_codec),
    spatial: SpatialService = Depends(get_spatial_service),
):
    uc = CropPictureUseCase(
        stores=stores, storage=storage, codec=codec, bucket=storage.bucket, spatial=spatial
    )
    try:
        picture = uc.execute(
            body.origin, body.name, body.box.to_entity(), stage=body.stage, size_id=body.size_id
        )
    except PictureError as exc:
        raise to_http_exception(exc) from exc
    return PictureResponse(picture=PictureModel.from_entity(picture), stage=Stage.parse(body.stage).value)


@router.post(
    "/delete",
    response_model=SuccessResponse,
    summary="Delete Pictures With Files",
    description="Delete several pictures and their files. Stops at the first failure.",
)
async def delete_pictures(
    body: DeletePicturesRequest,
    stores: StageStores = Depends(get_stage_stores),
    storage: SupabaseStorage = Depends(get_storage),
):
    uc = DeletePictureUseCase(stores=stores, storage=storage, bucket=storage.bucket)
    try:
        deleted = uc.many_with_blob(body.stage, [(key.origin, key.name) for key in body.keys])
    except PictureError as exc:
        raise to_http_exception(exc) from exc
    return SuccessResponse(message=f"{deleted} pictures deleted")


@router.post(
    "/{stage}",
    response_model=PictureResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create Picture",
    description="""
    Store a new picture record in a stage, with its file when one is uploaded.

    `metadata` is the JSON picture record (origin, name, origin_id, extension,
    sizes, tags). The server sets `creation_date`.
    """,
)
async def create_picture(
    stage: str,
    metadata: str = Form(..., description="Picture record as JSON"),
    file: UploadFile | None = File(None, description="Raster file of the picture"),
    stores: StageStores = Depends(get_stage_stores),
    storage: SupabaseStorage = Depends(get_storage),
):
    try:
        model = PictureModel.model_validate_json(metadata)
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail=f"Invalid picture metadata: {exc}") from exc
    raster = await file.read() if file is not None else None

    uc = CreatePictureUseCase(stores=stores, storage=storage, bucket=storage.bucket)
    try:
        picture = uc.execute(stage, model.to_entity(), raster)
    except PictureError as exc:
        raise to_http_exception(exc) from exc
    return PictureResponse(picture=PictureModel.from_entity(picture), stage=Stage.parse(stage).value)


@router.get(
    "/{stage}",
    response_model=ListPicturesResponse,
    summary="List Pictures",
    description="List the pictures of one origin in a stage, newest first.",
)
async def list_pictures(
    stage: str,
    origin: str = Query(..., description="Origin to list pictures for"),
    tag: str | None = Query(None, description="Only pictures carrying a tag with this name"),
    stores: StageStores = Depends(get_stage_stores),
):
    def has_tag(picture) -> bool:
        return any(t.name == tag for t in picture.tags.values())

    try:
        pictures = stores.get(stage).list(origin, filter=has_tag if tag else None)
    except PictureError as exc:
        raise to_http_exception(exc) from exc
    return ListPicturesResponse(
        pictures=[PictureModel.from_entity(p) for p in pictures], total=len(pictures)
    )


@router.get(
    "/{stage}/{origin}/{name}",
    response_model=PictureResponse,
    summary="Get Picture",
)
async def get_picture(
    stage: str,
    origin: str,
    name: str,
    stores: StageStores = Depends(get_stage_stores),
):
    try:
        picture = stores.get(stage).read(origin, name)
        if picture is None:
            raise NotFoundError(origin, name, stage)
    except PictureError as exc:
        raise to_http_exception(exc) from exc
    return PictureResponse(picture=PictureModel.from_entity(picture), stage=Stage.parse(stage).value)


@router.get(
    "/{stage}/{origin}/{name}/file",
    summary="Download Picture File",
    response_class=Response,
)
async def download_picture(
    stage: str,
    origin: str,
    name: str,
    stores: StageStores = Depends(get_stage_stores),
    storage: SupabaseStorage = Depends(get_storage),
):
    try:
        picture = stores.get(stage).read(origin, name)
        if picture is None:
            raise NotFoundError(origin, name, stage)
        data = storage.get(storage.bucket, picture.blob_path)
        media_type = content_type_for(picture.extension)
    except PictureError as exc:
        raise to_http_exception(exc) from exc
    return Response(content=data, media_type=media_type)


@router.delete(
    "/{stage}/{origin}/{name}",
    response_model=SuccessResponse,
    summary="Delete Picture",
    description="Delete a picture record; pass `with_file=true` to delete its file as well.",
)
async def delete_picture(
    stage: str,
    origin: str,
    name: str,
    with_file: bool = Query(False, description="Also delete the picture file"),
    stores: StageStores = Depends(get_stage_stores),
    storage: SupabaseStorage = Depends(get_storage),
):
    uc = DeletePictureUseCase(stores=stores, storage=storage, bucket=storage.bucket)
    try:
        if with_file:
            uc.with_blob(stage, origin, name)
        else:
            uc.execute(stage, origin, name)
    except PictureError as exc:
        raise to_http_exception(exc) from exc
    return SuccessResponse()
