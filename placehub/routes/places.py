"""
PlaceHub Backend: Place Route Handlers
=======================================

What:  CRUD endpoints for places under /api/places.
How:   Extract form fields and files, run the upload boundary, delegate the
       workflow to PlaceService, shape the response.

Endpoints:
    GET    /api/places               all places, newest first
    GET    /api/places/paginated     one page (page/limit clamped, never rejected)
    GET    /api/places/{id}          single place
    POST   /api/places               multipart: attributes + 1..3 images → 201
    PUT    /api/places/{id}          multipart: any attributes + 0..3 images
    DELETE /api/places/{id}          remove images remotely, then the row → 204

On PUT, sending images replaces ALL current images; sending none keeps them.
"""

import logging
from typing import List, Optional, Type, TypeVar

import pydantic
from fastapi import APIRouter, Depends, File, Form, Query, Response, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from placehub.config import settings
from placehub.database import get_db_session
from placehub.dependencies import get_place_service
from placehub.exceptions import ValidationError
from placehub.schemas.place import (
    ErrorResponse,
    PlaceCreate,
    PlacePage,
    PlaceResponse,
    PlaceType,
    PlaceUpdate,
)
from placehub.services.place_service import PlaceService
from placehub.services.upload_service import upload_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Places"])

ModelT = TypeVar("ModelT", bound=pydantic.BaseModel)


def _build(model: Type[ModelT], **fields) -> ModelT:
    """Form fields → attribute model; rule violations become a 400."""
    try:
        return model(**fields)
    except pydantic.ValidationError as e:
        errors = e.errors(include_url=False, include_context=False, include_input=False)
        raise ValidationError(
            message="Invalid place attributes",
            context={"errors": errors},
        ) from e


def clamp_pagination(page: int, limit: int) -> tuple[int, int]:
    """page >= 1, 1 <= limit <= MAX_PAGE_SIZE."""
    return max(1, page), min(settings.max_page_size, max(1, limit))


@router.get(
    "/places",
    response_model=List[PlaceResponse],
    summary="List all places",
)
async def list_places(
    db: AsyncSession = Depends(get_db_session),
    service: PlaceService = Depends(get_place_service),
) -> List[PlaceResponse]:
    return await service.list_all(db)


@router.get(
    "/places/paginated",
    response_model=PlacePage,
    summary="List places page by page",
    description=(
        "Out-of-range values are clamped: page below 1 becomes 1, limit is "
        "kept between 1 and the configured maximum page size."
    ),
)
async def list_places_paginated(
    page: int = Query(default=1, description="Page number, starting at 1"),
    limit: int = Query(default=settings.default_page_size, description="Items per page"),
    db: AsyncSession = Depends(get_db_session),
    service: PlaceService = Depends(get_place_service),
) -> PlacePage:
    page, limit = clamp_pagination(page, limit)
    return await service.list_page(db, page=page, limit=limit)


@router.get(
    "/places/{place_id}",
    response_model=PlaceResponse,
    responses={404: {"description": "Place not found", "model": ErrorResponse}},
    summary="Get a single place",
)
async def get_place(
    place_id: str,
    db: AsyncSession = Depends(get_db_session),
    service: PlaceService = Depends(get_place_service),
) -> PlaceResponse:
    return await service.get(db, place_id)


@router.post(
    "/places",
    status_code=201,
    response_model=PlaceResponse,
    responses={
        400: {"description": "Invalid attributes or images", "model": ErrorResponse},
        502: {"description": "Image host failed", "model": ErrorResponse},
    },
    summary="Create a place with its images",
)
async def create_place(
    name: str = Form(...),
    place_type: PlaceType = Form(..., alias="type"),
    phone: str = Form(...),
    latitude: float = Form(...),
    longitude: float = Form(...),
    images: Optional[List[UploadFile]] = File(
        default=None,
        description=f"1 to {settings.max_images_per_place} images",
    ),
    db: AsyncSession = Depends(get_db_session),
    service: PlaceService = Depends(get_place_service),
) -> PlaceResponse:
    attributes = _build(
        PlaceCreate,
        name=name,
        type=place_type,
        phone=phone,
        latitude=latitude,
        longitude=longitude,
    )
    blobs = await upload_service.read_images(images, required=True)

    logger.info("Create place '%s' with %d image(s)", attributes.name, len(blobs))
    return await service.create(db, attributes, blobs)


@router.put(
    "/places/{place_id}",
    response_model=PlaceResponse,
    responses={
        400: {"description": "Invalid attributes or images", "model": ErrorResponse},
        404: {"description": "Place not found", "model": ErrorResponse},
        502: {"description": "Image host failed", "model": ErrorResponse},
    },
    summary="Update a place",
    description=(
        "Every field is optional. Images, when sent, replace all current "
        f"images (max {settings.max_images_per_place})."
    ),
)
async def update_place(
    place_id: str,
    name: Optional[str] = Form(default=None),
    place_type: Optional[PlaceType] = Form(default=None, alias="type"),
    phone: Optional[str] = Form(default=None),
    latitude: Optional[float] = Form(default=None),
    longitude: Optional[float] = Form(default=None),
    images: Optional[List[UploadFile]] = File(default=None),
    db: AsyncSession = Depends(get_db_session),
    service: PlaceService = Depends(get_place_service),
) -> PlaceResponse:
    sent = {
        "name": name,
        "type": place_type,
        "phone": phone,
        "latitude": latitude,
        "longitude": longitude,
    }
    # Only fields present in the form count as set
    attributes = _build(PlaceUpdate, **{k: v for k, v in sent.items() if v is not None})
    blobs = await upload_service.read_images(images, required=False)

    return await service.update(db, place_id, attributes, blobs or None)


@router.delete(
    "/places/{place_id}",
    status_code=204,
    response_class=Response,
    responses={
        404: {"description": "Place not found", "model": ErrorResponse},
        502: {"description": "Image host failed", "model": ErrorResponse},
    },
    summary="Delete a place and its images",
)
async def delete_place(
    place_id: str,
    db: AsyncSession = Depends(get_db_session),
    service: PlaceService = Depends(get_place_service),
) -> Response:
    await service.delete(db, place_id)
    return Response(status_code=204)
