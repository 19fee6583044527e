"""
PlaceHub Backend: Place SQLAlchemy Model
=========================================

What:  ORM model representing the `places` table.
Who:   Used by PlaceService for every read and write of a place.

Table Design:
    - id: UUID4 text, generated in Python so it exists before the INSERT
    - type: short enum-like string (RESTAURANT, BAR, HOTEL)
    - images: JSON array of {"url", "public_id"} objects, in upload order,
      0 to 3 entries. JSONB on PostgreSQL, plain JSON elsewhere.
    - created_at / updated_at: UTC with timezone
"""

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List

from sqlalchemy import JSON, Float, Index, String, text
from sqlalchemy.dialects.postgresql import JSONB, TIMESTAMP
from sqlalchemy.orm import Mapped, mapped_column

from placehub.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Place(Base):
    """
    A point of interest with up to three remotely hosted images.

    Lifecycle:
        1. Inserted by PlaceService.create after every image is uploaded
        2. Updated by PlaceService.update (attributes and/or full image replace)
        3. Deleted by PlaceService.delete after its images are removed remotely

    Every `public_id` in `images` is expected to exist on the media host.
    """

    __tablename__ = "places"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
        comment="Opaque identifier (UUID4 text), immutable",
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    type: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        comment="Category: RESTAURANT, BAR, HOTEL",
    )

    phone: Mapped[str] = mapped_column(String(50), nullable=False, default="")

    latitude: Mapped[float] = mapped_column(Float, nullable=False)
    longitude: Mapped[float] = mapped_column(Float, nullable=False)

    # Whole-list assignment only: the column is not mutation-tracked, so
    # appending to the list in place would not be flushed
    images: Mapped[List[Dict[str, Any]]] = mapped_column(
        JSON().with_variant(JSONB(), "postgresql"),
        nullable=False,
        default=list,
        comment="Ordered image handles: [{url, public_id}, ...]",
    )

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=_utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    __table_args__ = (
        Index("idx_places_created_at", created_at.desc()),
    )

    def __repr__(self) -> str:
        return (
            f"<Place(id={self.id}, name='{self.name}', "
            f"images={len(self.images or [])})>"
        )
