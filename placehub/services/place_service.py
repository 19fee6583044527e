"""
PlaceHub Backend: Place Service (Workflow Engine)
==================================================

What:  Orchestrates the create / update / delete workflows of a place across
       the media host (ObjectStorage) and the database (AsyncSession).
Who:   Called by the place routes; receives its storage client by injection.

Workflows:
    create:  upload all blobs (concurrently) ─▶ INSERT
    update:  SELECT ─▶ [delete all old images ─▶ upload all new blobs] ─▶ UPDATE
    delete:  SELECT ─▶ delete all images ─▶ DELETE

Concurrency:
    Each bracketed step is a *group* of independent remote calls started
    together with asyncio.gather and awaited as a whole. The workflow never
    looks at partial results; it moves on only after every call in the group
    has settled. In update, the delete group has fully settled before the
    first upload starts.

Failure Semantics:
    A failed member fails its group, and the workflow stops after the group
    has settled. The raised error covers every failure of the group.

    Compensation is applied only where an undo exists:
    - upload group partially fails   → successful siblings are deleted
    - persisting (flush + commit) fails after uploads → the new uploads
      are deleted
    - delete group partially fails   → nothing can be undone, error raised
    - row removal fails after images were deleted → not undone
    Compensation is best effort; its own failures are logged and never
    replace the original error.

    There is no per-place locking. Two concurrent updates of one place race
    and the last flush wins; images uploaded by the losing request stay on
    the media host unreferenced.
"""

import asyncio
import logging
from typing import Any, Awaitable, Dict, List, Optional, Sequence, Tuple

from sqlalchemy import desc, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from placehub.exceptions import (
    DatabaseError,
    DeleteFailedError,
    NotFoundError,
    UploadFailedError,
)
from placehub.models.place import Place
from placehub.schemas.place import (
    ImageHandle,
    PlaceCreate,
    PlacePage,
    PlaceResponse,
    PlaceUpdate,
)
from placehub.services.storage_base import ObjectStorage

logger = logging.getLogger(__name__)


async def _settle(calls: Sequence[Awaitable[Any]]) -> Tuple[List[Any], List[BaseException]]:
    """
    Run a group of awaitables concurrently and wait for all of them.

    Returns (results, failures). `results` is index-aligned with `calls`;
    a failed slot holds its exception. Cancellation is not swallowed.
    """
    results = await asyncio.gather(*calls, return_exceptions=True)
    for outcome in results:
        if isinstance(outcome, asyncio.CancelledError):
            raise outcome
    failures = [r for r in results if isinstance(r, BaseException)]
    return list(results), failures


class PlaceService:
    """
    Business logic layer for place operations.

    Holds no per-request state: the database session comes in with every
    call, the storage client is fixed at construction.
    """

    def __init__(self, storage: ObjectStorage):
        self.storage = storage

    # ══════════════════════════════════════════════════════════════════════
    # Remote image groups
    # ══════════════════════════════════════════════════════════════════════

    async def _upload_all(self, blobs: Sequence[bytes]) -> List[ImageHandle]:
        """
        Upload every blob concurrently; handles come back in input order.

        On any failure the handles that did upload are deleted again before
        UploadFailedError is raised.
        """
        results, failures = await _settle([self.storage.upload(blob) for blob in blobs])
        if not failures:
            return results

        uploaded = [r for r in results if isinstance(r, ImageHandle)]
        logger.error(
            "Upload group failed: %d of %d uploads failed, removing %d orphan(s)",
            len(failures),
            len(blobs),
            len(uploaded),
        )
        await self._discard(uploaded)
        raise UploadFailedError(
            context={
                "failed": len(failures),
                "total": len(blobs),
                "errors": [str(f) for f in failures],
            },
        ) from failures[0]

    async def _delete_all(self, handles: Sequence[ImageHandle]) -> None:
        """
        Delete every handle concurrently. No rollback is possible.

        Raises DeleteFailedError listing every public id that failed.
        """
        if not handles:
            return
        results, failures = await _settle(
            [self.storage.delete(handle.public_id) for handle in handles]
        )
        if not failures:
            logger.info("Deleted %d remote image(s)", len(handles))
            return

        failed_ids = [
            handle.public_id
            for handle, outcome in zip(handles, results)
            if isinstance(outcome, BaseException)
        ]
        logger.error(
            "Delete group failed: %d of %d deletions failed: %s",
            len(failures),
            len(handles),
            ", ".join(failed_ids),
        )
        raise DeleteFailedError(
            context={"failed_public_ids": failed_ids, "total": len(handles)},
        ) from failures[0]

    async def _discard(self, handles: Sequence[ImageHandle]) -> None:
        """Best-effort removal of uploads that no row will reference."""
        if not handles:
            return
        results, failures = await _settle(
            [self.storage.delete(handle.public_id) for handle in handles]
        )
        for handle, outcome in zip(handles, results):
            if isinstance(outcome, BaseException):
                logger.error(
                    "Could not remove orphaned image %s: %s", handle.public_id, outcome
                )

    # ══════════════════════════════════════════════════════════════════════
    # Record store helpers
    # ══════════════════════════════════════════════════════════════════════

    async def _find(self, db: AsyncSession, place_id: str) -> Optional[Place]:
        """Point lookup. Absence is a normal result here."""
        try:
            result = await db.execute(select(Place).where(Place.id == place_id))
        except SQLAlchemyError as e:
            logger.error("Database error fetching place %s: %s", place_id, str(e))
            raise DatabaseError(
                message="Could not retrieve the place. Please try again.",
                context={"place_id": place_id},
            ) from e
        return result.scalar_one_or_none()

    async def _get_or_404(self, db: AsyncSession, place_id: str) -> Place:
        place = await self._find(db, place_id)
        if place is None:
            raise NotFoundError(resource="place", resource_id=place_id)
        return place

    @staticmethod
    def _handles(place: Place) -> List[ImageHandle]:
        return [ImageHandle.model_validate(image) for image in (place.images or [])]

    # ══════════════════════════════════════════════════════════════════════
    # Workflows
    # ══════════════════════════════════════════════════════════════════════

    async def create(
        self,
        db: AsyncSession,
        attributes: PlaceCreate,
        blobs: Sequence[bytes],
    ) -> PlaceResponse:
        """
        Upload the images, then insert the place.

        Args:
            db: Async database session; committed here so the commit is covered
                by the upload compensation
            attributes: Validated place attributes
            blobs: Image bytes, 1..3 entries, validated by the boundary

        Returns:
            The persisted place including its new id.

        Raises:
            UploadFailedError: Any upload failed; no row was written.
            DatabaseError: The INSERT failed; the uploads were removed again.
        """
        images = await self._upload_all(blobs)

        place = Place(
            **attributes.model_dump(mode="json"),
            images=[image.model_dump() for image in images],
        )
        try:
            db.add(place)
            await db.flush()
            await db.commit()
        except SQLAlchemyError as e:
            logger.error("Failed to insert place: %s", str(e), exc_info=True)
            await self._discard(images)
            raise DatabaseError(
                message="Could not save the place. Please try again.",
                context={"error_type": type(e).__name__},
            ) from e

        logger.info("Place %s created with %d image(s)", place.id, len(images))
        return PlaceResponse.model_validate(place)

    async def update(
        self,
        db: AsyncSession,
        place_id: str,
        attributes: PlaceUpdate,
        blobs: Optional[Sequence[bytes]] = None,
    ) -> PlaceResponse:
        """
        Apply attribute changes and, when blobs are given, replace all images.

        Steps (with blobs):
            1. delete every current image, wait for all deletions
            2. upload every new blob, wait for all uploads
            3. write attributes + the new image list in one UPDATE

        Between step 1 and step 3 the row still references the deleted
        images; a crash in that window leaves dangling handles.

        Raises:
            NotFoundError: No place with this id (no remote call was made).
            DeleteFailedError: Step 1 failed; nothing was uploaded.
            UploadFailedError: Step 2 failed; old images are already gone.
            DatabaseError: Step 3 failed; new uploads were removed again.
        """
        place = await self._get_or_404(db, place_id)
        changes: Dict[str, Any] = attributes.model_dump(mode="json", exclude_unset=True)

        new_images: List[ImageHandle] = []
        if blobs:
            old_images = self._handles(place)
            logger.info(
                "Replacing %d image(s) of place %s with %d new one(s)",
                len(old_images),
                place_id,
                len(blobs),
            )
            await self._delete_all(old_images)
            new_images = await self._upload_all(blobs)
            changes["images"] = [image.model_dump() for image in new_images]

        try:
            for field, value in changes.items():
                setattr(place, field, value)
            await db.flush()
            await db.commit()
        except SQLAlchemyError as e:
            logger.error("Failed to update place %s: %s", place_id, str(e), exc_info=True)
            await self._discard(new_images)
            raise DatabaseError(
                message="Could not update the place. Please try again.",
                context={"place_id": place_id, "error_type": type(e).__name__},
            ) from e

        logger.info("Place %s updated (%s)", place_id, ", ".join(sorted(changes)) or "no changes")
        return PlaceResponse.model_validate(place)

    async def delete(self, db: AsyncSession, place_id: str) -> None:
        """
        Remove every image of the place remotely, then delete the row.

        Raises:
            NotFoundError: No place with this id (no remote call was made).
            DeleteFailedError: Some images could not be removed; the row is kept.
            DatabaseError: Row removal failed after the images were deleted.
        """
        place = await self._get_or_404(db, place_id)

        await self._delete_all(self._handles(place))

        try:
            await db.delete(place)
            await db.flush()
            await db.commit()
        except SQLAlchemyError as e:
            logger.error(
                "Images of place %s were deleted but the row could not be: %s",
                place_id,
                str(e),
                exc_info=True,
            )
            raise DatabaseError(
                message="Could not delete the place. Please try again.",
                context={"place_id": place_id, "error_type": type(e).__name__},
            ) from e

        logger.info("Place %s deleted", place_id)

    # ══════════════════════════════════════════════════════════════════════
    # Reads
    # ══════════════════════════════════════════════════════════════════════

    async def get(self, db: AsyncSession, place_id: str) -> PlaceResponse:
        """Single place by id, NotFoundError when absent."""
        return PlaceResponse.model_validate(await self._get_or_404(db, place_id))

    async def list_all(self, db: AsyncSession) -> List[PlaceResponse]:
        """Every place, newest first."""
        try:
            result = await db.execute(select(Place).order_by(desc(Place.created_at)))
        except SQLAlchemyError as e:
            logger.error("Database error listing places: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not retrieve places. Please try again.",
                context={"error_type": type(e).__name__},
            ) from e
        return [PlaceResponse.model_validate(p) for p in result.scalars().all()]

    async def list_page(self, db: AsyncSession, page: int, limit: int) -> PlacePage:
        """
        One page of places, newest first.

        `page` and `limit` are expected to be clamped by the caller already.
        """
        try:
            result = await db.execute(
                select(Place)
                .order_by(desc(Place.created_at))
                .offset((page - 1) * limit)
                .limit(limit)
            )
            places = list(result.scalars().all())

            count_result = await db.execute(select(func.count(Place.id)))
            total = count_result.scalar() or 0
        except SQLAlchemyError as e:
            logger.error("Database error paginating places: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not retrieve places. Please try again.",
                context={"page": page, "limit": limit},
            ) from e

        return PlacePage.build(
            items=[PlaceResponse.model_validate(p) for p in places],
            page=page,
            limit=limit,
            total=total,
        )
