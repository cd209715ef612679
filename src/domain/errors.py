"""Failures raised by the picture lifecycle and the spatial recompute engine.

Every error carries enough structured context (stages, key, failed step) for a
caller to decide on remediation. Nothing here is retried automatically.
"""
from __future__ import annotations


class PictureError(Exception):
    """Base class for all picture lifecycle failures."""


class NotFoundError(PictureError):
    def __init__(self, origin: str, name: str, stage: str | None = None, detail: str | None = None) -> None:
        self.origin = origin
        self.name = name
        self.stage = stage
        where = f" in stage '{stage}'" if stage else ""
        message = detail or f"Picture {origin}/{name} not found{where}"
        super().__init__(message)


class BlobNotFoundError(PictureError):
    def __init__(self, bucket: str, path: str) -> None:
        self.bucket = bucket
        self.path = path
        super().__init__(f"Blob {bucket}:{path} not found")


class AlreadyExistsError(PictureError):
    def __init__(self, origin: str, name: str, stage: str | None = None) -> None:
        self.origin = origin
        self.name = name
        self.stage = stage
        where = f" in stage '{stage}'" if stage else ""
        super().__init__(f"Picture {origin}/{name} already exists{where}")


class UncroppableRegionError(PictureError):
    def __init__(self, box: object, width: int, height: int) -> None:
        self.box = box
        self.width = width
        self.height = height
        super().__init__(f"Crop box {box} does not intersect a {width}x{height} raster")


class UnsupportedContainerError(PictureError):
    def __init__(self, extension: str) -> None:
        self.extension = extension
        super().__init__(f"No raster container matching extension '{extension}'")


class DecodeError(PictureError):
    pass


class EncodeError(PictureError):
    pass


class InvalidStageError(PictureError):
    def __init__(self, stage: str) -> None:
        self.stage = stage
        super().__init__(
            f"Stage '{stage}' not available. Choose 'pending', 'validated', 'published' or 'blocked'"
        )


class InvalidTransitionError(PictureError):
    def __init__(self, source: str, destination: str) -> None:
        self.source = source
        self.destination = destination
        super().__init__(f"Cannot move a picture from '{source}' to '{destination}'")


class InvalidTagError(PictureError):
    pass


class PartialTransferError(PictureError):
    """The destination write succeeded but deleting from the source failed.

    The picture is now present in both stores and must be reconciled by hand.
    """

    def __init__(self, source: str, destination: str, origin: str, name: str, cause: Exception) -> None:
        self.source = source
        self.destination = destination
        self.origin = origin
        self.name = name
        self.step = "delete_source"
        self.cause = cause
        super().__init__(
            f"Picture {origin}/{name} written to '{destination}' but not deleted from "
            f"'{source}': {cause}"
        )


class OrphanBlobError(PictureError):
    """The picture record was deleted but its blob could not be."""

    def __init__(self, stage: str, origin: str, name: str, path: str, cause: Exception) -> None:
        self.stage = stage
        self.origin = origin
        self.name = name
        self.path = path
        self.step = "delete_blob"
        self.cause = cause
        super().__init__(
            f"Picture {origin}/{name} deleted from '{stage}' but blob '{path}' remains: {cause}"
        )
