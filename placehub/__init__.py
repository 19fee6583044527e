"""
PlaceHub Backend: Application Package Initializer
==================================================

What: Marks the `placehub` directory as a Python package.
Who:  Imported by uvicorn (`placehub.main:app`), pytest and the route modules.

Architecture Note:
    The backend is layered the same way top to bottom:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← form fields, files, status codes
    ├─────────────────────────────────────┤
    │   Services (Workflows & Boundary)   │  ← PlaceService, UploadService
    ├─────────────────────────────────────┤
    │   Object Storage     │  ORM models  │  ← Cloudinary  │  SQLAlchemy
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘

    Routes never talk to Cloudinary or the session directly for writes;
    every mutation of a place goes through PlaceService.
"""

__version__ = "1.0.0"
