from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import JSON, DateTime, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all database models."""


class TripState(Base):
    """Per-trip pathway state for one user.

    Stores:
    - schedule_blocks: The trip's schedule blocks (manual and generated), wire format
    - pathway: The last finalized pathway plan, wire format (nullable)
    - updated_at: Timestamp of the last write
    """

    __tablename__ = "trip_states"

    user_id: Mapped[str] = mapped_column(String, primary_key=True)
    trip_id: Mapped[str] = mapped_column(String, primary_key=True)
    schedule_blocks: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    pathway: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
