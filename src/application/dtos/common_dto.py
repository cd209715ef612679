"""Common DTOs for API responses."""
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class SuccessResponse(BaseModel):
    """Standard success response model."""
    ok: bool = Field(True, description="Indicates the operation was successful")
    message: Optional[str] = Field(None, description="Optional success message")


class HealthResponse(BaseModel):
    status: str = Field(..., description="Health status", examples=["healthy"])


class RootResponse(BaseModel):
    status: str = Field(..., description="API status", examples=["ok"])
    service: str = Field(..., description="Service name", examples=["picture-review-backend"])
    version: str = Field(..., description="API version", examples=["0.1.0"])
