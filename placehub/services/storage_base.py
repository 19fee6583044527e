"""
PlaceHub Backend: Abstract Object Storage Interface
====================================================

What:  Abstract base class for the remote image host used by PlaceService.
How:   Concrete implementations inherit from ObjectStorage and implement
       upload(), delete() and health_check().
Who:   CloudinaryStorage in production, in-memory fakes in the tests.

PlaceService receives an ObjectStorage instance in its constructor and
never imports a concrete implementation.
"""

from abc import ABC, abstractmethod

from placehub.schemas.place import ImageHandle


class ObjectStorage(ABC):
    """
    Contract for a remote object store holding place images.

    Contract:
        - upload() stores one blob and returns its handle
        - delete() removes one object by public id
        - Implementation-specific errors are wrapped in UploadFailedError /
          DeleteFailedError; nothing else escapes
        - Calls are independent; callers may run many of them concurrently
    """

    @abstractmethod
    async def upload(self, blob: bytes) -> ImageHandle:
        """
        Store one image.

        Args:
            blob: Raw image bytes, already validated by the upload boundary.

        Returns:
            ImageHandle with the public URL and the public id of the new object.

        Raises:
            UploadFailedError: The host rejected the upload or was unreachable.
        """
        ...

    @abstractmethod
    async def delete(self, public_id: str) -> None:
        """
        Remove one stored image.

        An object that is already gone counts as deleted.

        Raises:
            DeleteFailedError: The host reported an error or was unreachable.
        """
        ...

    @abstractmethod
    async def health_check(self) -> bool:
        """Lightweight reachability probe. True if the host answers."""
        ...
