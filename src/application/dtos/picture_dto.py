from __future__ import annotations

from datetime import UTC, datetime
from typing import Annotated

from pydantic import AfterValidator, BaseModel, Field

from src.domain.entities.picture import (
    Box,
    BoxInformation,
    Picture,
    PictureSize,
    PictureTag,
    as_utc,
)

# naive timestamps from clients are read as UTC
UtcDatetime = Annotated[datetime, AfterValidator(as_utc)]


class BoxModel(BaseModel):
    """Pixel rectangle; left/top are relative to the raster it is expressed in."""
    left: int = Field(..., description="Left edge in pixels", examples=[50], ge=0)
    top: int = Field(..., description="Top edge in pixels", examples=[0], ge=0)
    width: int = Field(..., description="Width in pixels", examples=[200], ge=0)
    height: int = Field(..., description="Height in pixels", examples=[200], ge=0)

    def to_entity(self) -> Box:
        return Box(left=self.left, top=self.top, width=self.width, height=self.height)

    @classmethod
    def from_entity(cls, box: Box) -> BoxModel:
        return cls(left=box.left, top=box.top, width=box.width, height=box.height)


class SizeModel(BaseModel):
    creation_date: UtcDatetime = Field(..., description="When this raster size was recorded")
    box: BoxModel = Field(..., description="Absolute crop box in the previous raster's coordinates")


class BoxInformationModel(BaseModel):
    image_size_id: str = Field(..., description="Id of the size entry the box is expressed in")
    box: BoxModel


class TagModel(BaseModel):
    """Annotation of a picture, optionally bound to a box."""
    name: str = Field(..., description="Label of the tag", examples=["dog"])
    origin: str = Field("", description="Reviewer or tagger that supplied the tag", examples=["reviewer"])
    creation_date: UtcDatetime | None = Field(None, description="Defaults to now when omitted")
    box_information: BoxInformationModel | None = Field(
        None, description="Spatial binding; omit for image-level tags"
    )

    def to_entity(self) -> PictureTag:
        info = self.box_information
        return PictureTag(
            name=self.name,
            origin=self.origin,
            creation_date=self.creation_date or datetime.now(UTC),
            box_information=None
            if info is None
            else BoxInformation(image_size_id=info.image_size_id, box=info.box.to_entity()),
        )

    @classmethod
    def from_entity(cls, tag: PictureTag) -> TagModel:
        info = tag.box_information
        return cls(
            name=tag.name,
            origin=tag.origin,
            creation_date=tag.creation_date,
            box_information=None
            if info is None
            else BoxInformationModel(image_size_id=info.image_size_id, box=BoxModel.from_entity(info.box)),
        )


class PictureModel(BaseModel):
    """Full picture record as stored in a stage."""
    origin: str = Field(..., description="Source the picture was scraped from", examples=["flickr"])
    name: str = Field(..., description="Name, unique within the origin", examples=["51234_2023-01-01T00:00:00"])
    origin_id: str = Field(..., description="Identifier in the source system", examples=["51234"])
    extension: str = Field(..., description="Raster container", examples=["jpg"], pattern="^(jpg|jpeg|png)$")
    creation_date: UtcDatetime | None = Field(None, description="Set by the server on every write")
    sizes: dict[str, SizeModel] = Field(default_factory=dict, description="Raster size history by size id")
    tags: dict[str, TagModel] = Field(default_factory=dict, description="Annotations by tag id")

    def to_entity(self) -> Picture:
        return Picture(
            origin=self.origin,
            name=self.name,
            origin_id=self.origin_id,
            extension=self.extension,
            creation_date=self.creation_date or datetime.now(UTC),
            sizes={
                size_id: PictureSize(creation_date=size.creation_date, box=size.box.to_entity())
                for size_id, size in self.sizes.items()
            },
            tags={tag_id: tag.to_entity() for tag_id, tag in self.tags.items()},
        )

    @classmethod
    def from_entity(cls, picture: Picture) -> PictureModel:
        return cls(
            origin=picture.origin,
            name=picture.name,
            origin_id=picture.origin_id,
            extension=picture.extension,
            creation_date=picture.creation_date,
            sizes={
                size_id: SizeModel(creation_date=size.creation_date, box=BoxModel.from_entity(size.box))
                for size_id, size in picture.sizes.items()
            },
            tags={tag_id: TagModel.from_entity(tag) for tag_id, tag in picture.tags.items()},
        )


class PictureResponse(BaseModel):
    picture: PictureModel
    stage: str = Field(..., description="Stage the picture is stored in", examples=["pending"])


class ListPicturesResponse(BaseModel):
    pictures: list[PictureModel]
    total: int = Field(..., description="Number of pictures returned", ge=0)


class TransferRequest(BaseModel):
    """Request model for moving a picture between review stages."""
    origin: str = Field(..., examples=["flickr"])
    name: str = Field(..., examples=["51234"])
    source: str = Field(..., description="Current stage", examples=["pending"])
    destination: str = Field(..., description="Target stage", examples=["validated"])


class PictureRefModel(BaseModel):
    origin: str = Field(..., examples=["flickr"])
    name: str = Field(..., examples=["51234"])


class PictureKeyRequest(PictureRefModel):
    """Request model addressing one picture in a stage."""
    stage: str = Field("pending", description="Stage the picture is stored in")


class CropRequest(PictureKeyRequest):
    """Request model for cropping a picture and re-anchoring its tags."""
    box: BoxModel = Field(..., description="Crop rectangle in the current raster's coordinates")
    size_id: str | None = Field(None, description="Id for the new size entry; generated when omitted")


class DeletePicturesRequest(BaseModel):
    stage: str = Field("pending", description="Stage the pictures are stored in")
    keys: list[PictureRefModel] = Field(..., description="Pictures to delete along with their files")


class TagCreatedResponse(BaseModel):
    tag_id: str = Field(..., description="Id of the new tag")
