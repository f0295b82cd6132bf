"""SQL implementation of the TripStore interface."""

from datetime import UTC, datetime
from typing import Any

from sqlalchemy import select, text, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from backend.tripflow.db.models import Trip
from backend.tripflow.db.repositories import MUTABLE_TRIP_FIELDS, TripRecord
from backend.tripflow.workflow.errors import StorageFailure


def _aware(value: datetime) -> datetime:
    # SQLite drops tzinfo on DateTime(timezone=True) columns
    return value if value.tzinfo is not None else value.replace(tzinfo=UTC)


def _to_record(row: Trip) -> TripRecord:
    return TripRecord(
        trip_id=row.trip_id,
        theme=row.theme,
        intake=row.intake or {},
        status=row.status,
        created_at=_aware(row.created_at),
        updated_at=_aware(row.updated_at),
        research_destinations=row.research_destinations,
        research_summary=row.research_summary,
        destinations_confirmed=bool(row.destinations_confirmed),
        confirmed_destinations=row.confirmed_destinations or [],
        preferences=row.preferences or {},
        options=row.options,
        selected_option_index=row.selected_option_index,
        itinerary=row.itinerary,
        variants=row.variants or {},
        handoff_payload=row.handoff_payload,
        progress_step=row.progress_step,
        progress_message=row.progress_message,
        progress_percent=row.progress_percent,
        version=row.version,
    )


class SqlTripStore:
    """SQL implementation of TripStore.

    Each call runs in its own short-lived session. Guarded updates are a
    single UPDATE ... WHERE version = :expected statement, so the database's
    row-level atomicity is what enforces the write-once invariants.
    """

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory

    def create(self, record: TripRecord) -> None:
        """Persist a new trip record."""
        row = Trip(
            trip_id=record.trip_id,
            theme=record.theme,
            intake=record.intake,
            status=record.status,
            research_destinations=record.research_destinations,
            research_summary=record.research_summary,
            destinations_confirmed=record.destinations_confirmed,
            confirmed_destinations=record.confirmed_destinations,
            preferences=record.preferences,
            options=record.options,
            selected_option_index=record.selected_option_index,
            itinerary=record.itinerary,
            variants=record.variants,
            handoff_payload=record.handoff_payload,
            progress_step=record.progress_step,
            progress_message=record.progress_message,
            progress_percent=record.progress_percent,
            version=record.version,
            created_at=record.created_at,
            updated_at=record.updated_at,
        )

        try:
            with self._session_factory() as session:
                session.add(row)
                session.commit()
        except SQLAlchemyError as e:
            raise StorageFailure(f"Failed to create trip {record.trip_id}: {type(e).__name__}") from e

    def get(self, trip_id: str) -> TripRecord | None:
        """Get trip by ID."""
        try:
            with self._session_factory() as session:
                row = session.execute(select(Trip).where(Trip.trip_id == trip_id)).scalar_one_or_none()
                if row is None:
                    return None
                return _to_record(row)
        except SQLAlchemyError as e:
            raise StorageFailure(f"Failed to read trip {trip_id}: {type(e).__name__}") from e

    def list_by_status(self, status: str) -> list[TripRecord]:
        """List trips with the given status, newest created first."""
        stmt = (
            select(Trip)
            .where(Trip.status == status)
            .order_by(Trip.created_at.desc(), Trip.trip_id)
        )
        try:
            with self._session_factory() as session:
                return [_to_record(row) for row in session.execute(stmt).scalars()]
        except SQLAlchemyError as e:
            raise StorageFailure(f"Failed to list trips with status {status}: {type(e).__name__}") from e

    def update(
        self,
        trip_id: str,
        fields: dict[str, Any],
        *,
        expected_version: int | None = None,
    ) -> bool:
        """Apply a partial update atomically."""
        unknown = set(fields) - MUTABLE_TRIP_FIELDS
        if unknown:
            raise ValueError(f"Unknown trip fields: {sorted(unknown)}")

        values = dict(fields)
        values["updated_at"] = datetime.now(UTC)

        stmt = update(Trip).where(Trip.trip_id == trip_id)
        if expected_version is not None:
            stmt = stmt.where(Trip.version == expected_version)
            values["version"] = Trip.version + 1
        stmt = stmt.values(**values)

        try:
            with self._session_factory() as session:
                result = session.execute(stmt)
                session.commit()
                return result.rowcount == 1
        except SQLAlchemyError as e:
            raise StorageFailure(f"Failed to update trip {trip_id}: {type(e).__name__}") from e

    def ping(self) -> bool:
        """Check database connectivity."""
        try:
            with self._session_factory() as session:
                session.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError:
            return False
