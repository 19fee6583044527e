"""
PlaceHub Backend: FastAPI Dependencies
=======================================

What:  Builds the process-wide storage client and place service, and exposes
       them to route handlers through Depends().
When:  First use in a request; the same instances are reused afterwards.

Tests replace these with `app.dependency_overrides[get_place_service]`.
"""

from functools import lru_cache

from placehub.config import settings
from placehub.services.cloudinary_service import CloudinaryStorage
from placehub.services.place_service import PlaceService
from placehub.services.storage_base import ObjectStorage


@lru_cache
def get_storage() -> ObjectStorage:
    """The single Cloudinary client, configured from settings."""
    return CloudinaryStorage(
        cloud_name=settings.cloudinary_cloud_name,
        api_key=settings.cloudinary_api_key,
        api_secret=settings.cloudinary_api_secret,
        folder=settings.cloudinary_folder,
        timeout=settings.cloudinary_timeout,
    )


@lru_cache
def get_place_service() -> PlaceService:
    """PlaceService bound to the process-wide storage client."""
    return PlaceService(storage=get_storage())
