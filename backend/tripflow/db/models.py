"""SQLAlchemy ORM models for trip persistence."""

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, Boolean, DateTime, Index, Integer, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.sql import func

# JSONB on Postgres, plain JSON elsewhere (sqlite in tests)
JsonColumn = JSON().with_variant(JSONB(), "postgresql")


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


class Trip(Base):
    """Trip table - one row per planned trip, structured fields as JSON."""

    __tablename__ = "trip"
    __table_args__ = (Index("idx_trip_status_updated", "status", "updated_at"),)

    trip_id: Mapped[str] = mapped_column(Text, primary_key=True)
    theme: Mapped[str | None] = mapped_column(Text, nullable=True)
    intake: Mapped[dict[str, Any]] = mapped_column(JsonColumn, nullable=False, default=dict)
    status: Mapped[str] = mapped_column(Text, nullable=False)

    # Phase 1: Research
    research_destinations: Mapped[list[dict[str, Any]] | None] = mapped_column(
        JsonColumn, nullable=True
    )
    research_summary: Mapped[dict[str, Any] | None] = mapped_column(JsonColumn, nullable=True)
    destinations_confirmed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    confirmed_destinations: Mapped[list[str]] = mapped_column(
        JsonColumn, nullable=False, default=list
    )
    preferences: Mapped[dict[str, Any]] = mapped_column(JsonColumn, nullable=False, default=dict)

    # Phase 2: Trip building
    options: Mapped[list[dict[str, Any]] | None] = mapped_column(JsonColumn, nullable=True)
    selected_option_index: Mapped[int | None] = mapped_column(Integer, nullable=True)
    itinerary: Mapped[dict[str, Any] | None] = mapped_column(JsonColumn, nullable=True)
    variants: Mapped[dict[str, Any]] = mapped_column(JsonColumn, nullable=False, default=dict)
    handoff_payload: Mapped[dict[str, Any] | None] = mapped_column(JsonColumn, nullable=True)

    # User-facing progress
    progress_step: Mapped[str] = mapped_column(Text, nullable=False, default="intake")
    progress_message: Mapped[str] = mapped_column(Text, nullable=False, default="")
    progress_percent: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Optimistic concurrency token
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
