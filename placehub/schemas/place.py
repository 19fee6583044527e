"""
PlaceHub Backend: Pydantic Request/Response Schemas
====================================================

What:  Pydantic models defining the API contract for places.
How:   Routes build attribute models from multipart form fields, services
       return response models built from ORM rows (from_attributes).

Schemas are separate from the SQLAlchemy model: the ORM row stores images
as plain dicts in a JSON column, the API exposes them as ImageHandle.
"""

import math
from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class PlaceType(str, Enum):
    """Category of a place."""
    RESTAURANT = "RESTAURANT"
    BAR = "BAR"
    HOTEL = "HOTEL"


class ImageHandle(BaseModel):
    """
    One image stored on the media host.

    `public_id` is the only thing needed to delete the remote object;
    `url` is what clients render.
    """
    url: str = Field(description="Public HTTPS address of the stored image")
    public_id: str = Field(description="Media host identifier, used for deletion")


# ══════════════════════════════════════════════════════════════════════════
# Input Models: built by the routes from multipart form fields
# ══════════════════════════════════════════════════════════════════════════


class PlaceCreate(BaseModel):
    """Attributes required to create a place (images travel separately)."""
    name: str = Field(min_length=1, max_length=255, examples=["Bom de Prato"])
    type: PlaceType = Field(examples=["RESTAURANT"])
    phone: str = Field(max_length=50, examples=["(88) 98804-5421"])
    latitude: float = Field(ge=-90, le=90, examples=[-3.7327])
    longitude: float = Field(ge=-180, le=180, examples=[-38.5267])


class PlaceUpdate(BaseModel):
    """
    Partial attribute update.

    Only fields the client actually sent are applied; PlaceService reads
    them with `model_dump(exclude_unset=True)`.
    """
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    type: Optional[PlaceType] = None
    phone: Optional[str] = Field(default=None, max_length=50)
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class PlaceResponse(BaseModel):
    """Full representation of a place."""
    id: str = Field(description="Unique place identifier")
    name: str
    type: PlaceType
    phone: str
    latitude: float
    longitude: float
    images: List[ImageHandle] = Field(description="Stored images, in upload order")
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class PlacePage(BaseModel):
    """
    One page of places, newest first.

    Offset pagination: page N covers rows (N-1)*limit .. N*limit-1.
    """
    items: List[PlaceResponse]
    page: int = Field(ge=1)
    limit: int = Field(ge=1)
    total: int = Field(ge=0, description="Total number of places")
    total_pages: int = Field(ge=0)

    @classmethod
    def build(cls, items: List[PlaceResponse], page: int, limit: int, total: int) -> "PlacePage":
        return cls(
            items=items,
            page=page,
            limit=limit,
            total=total,
            total_pages=math.ceil(total / limit) if total else 0,
        )


# ══════════════════════════════════════════════════════════════════════════
# Error / Health Models
# ══════════════════════════════════════════════════════════════════════════


class ErrorResponse(BaseModel):
    """
    Standardized error response format for all API errors.

    Example:
        {
            "error": "not_found",
            "message": "place with ID 'p1' was not found",
            "request_id": "a1b2c3d4"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """Health check response showing service and dependency status."""
    status: str = Field(description="Overall service status: healthy, degraded, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    storage: str = Field(description="Media host status: available, unavailable")
    uptime_seconds: float = Field(description="Seconds since service started")
