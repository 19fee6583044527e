"""
PlaceHub Backend: Custom Exception Hierarchy
=============================================

What:  Application-specific exceptions for the place workflows.
How:   Each exception class carries a message and optional context dict.
       Global exception handlers (registered in main.py) catch these and
       return structured JSON error responses with correct HTTP status codes.
Who:   Raised by services and the upload boundary; caught by global handlers.

Exception Hierarchy:
    PlaceHubError (base)
    ├── ValidationError          → 400 Bad Request (client can fix)
    ├── NotFoundError            → 404 Not Found
    ├── StorageError             → 502 Bad Gateway (media host failed)
    │   ├── UploadFailedError
    │   └── DeleteFailedError
    └── DatabaseError            → 500 Internal Server Error
"""

from typing import Any, Dict, Optional


class PlaceHubError(Exception):
    """
    Base exception for all PlaceHub application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged but NOT returned to client)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(PlaceHubError):
    """
    Raised when client input fails a business rule at the request boundary.

    When:    No images on create, more than the allowed number of images,
             a file that is empty, too large, or not an image.
    HTTP:    400 Bad Request

    The workflow engine never raises this; it trusts the boundary.
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class NotFoundError(PlaceHubError):
    """
    Raised when a requested resource does not exist.

    SQLAlchemy returns None for missing records. PlaceService converts that
    None into NotFoundError before issuing any call to the media host.
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class StorageError(PlaceHubError):
    """
    Raised when the remote media host rejects or fails an operation.

    HTTP:    502 Bad Gateway

    The response never says which images made it; partial state is
    described in the logs only.
    """

    def __init__(
        self,
        message: str = "Image storage service failed. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class UploadFailedError(StorageError):
    """
    Raised when one or more image uploads fail.

    Raised by the storage client for a single upload, and by PlaceService
    for a whole upload group (context then holds `failed` and `total`).
    """

    def __init__(
        self,
        message: str = "Image upload failed. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DeleteFailedError(StorageError):
    """
    Raised when one or more remote image deletions fail.

    Deletions are never rolled back; context lists the public ids that
    could not be removed so they can be cleaned up by hand.
    """

    def __init__(
        self,
        message: str = "Image removal failed. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(PlaceHubError):
    """
    Raised when database operations fail unexpectedly.

    HTTP:    500 Internal Server Error

    The message returned to the client is always generic. Detailed error
    info (SQL, constraint name) is logged server-side only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
