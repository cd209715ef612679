from __future__ import annotations

from fastapi import HTTPException, status

from src.domain.errors import (
    AlreadyExistsError,
    BlobNotFoundError,
    InvalidStageError,
    InvalidTagError,
    InvalidTransitionError,
    NotFoundError,
    PictureError,
    UncroppableRegionError,
    UnsupportedContainerError,
)

# Everything else (partial transfer, orphan blob, codec failures) is a 500.
_STATUS_BY_ERROR: list[tuple[type[PictureError], int]] = [
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (BlobNotFoundError, status.HTTP_404_NOT_FOUND),
    (AlreadyExistsError, status.HTTP_409_CONFLICT),
    (InvalidStageError, status.HTTP_400_BAD_REQUEST),
    (InvalidTransitionError, status.HTTP_400_BAD_REQUEST),
    (InvalidTagError, status.HTTP_400_BAD_REQUEST),
    (UncroppableRegionError, status.HTTP_400_BAD_REQUEST),
    (UnsupportedContainerError, status.HTTP_400_BAD_REQUEST),
]


def to_http_exception(exc: PictureError) -> HTTPException:
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return HTTPException(status_code=status_code, detail=str(exc))
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))
