"""In-memory implementation of the TripStore interface."""

import copy
import threading
from datetime import UTC, datetime
from typing import Any

from backend.tripflow.db.repositories import MUTABLE_TRIP_FIELDS, TripRecord
from backend.tripflow.workflow.errors import StorageFailure


class InMemoryTripStore:
    """In-memory implementation of TripStore.

    A single lock serializes writes, giving per-trip atomic conditional
    updates. Records are deep-copied on the way in and out so callers never
    share mutable state with the store.
    """

    def __init__(self) -> None:
        self._trips: dict[str, TripRecord] = {}
        self._lock = threading.Lock()

    def create(self, record: TripRecord) -> None:
        """Persist a new trip record."""
        with self._lock:
            if record.trip_id in self._trips:
                raise StorageFailure(f"Trip {record.trip_id} already exists")
            self._trips[record.trip_id] = copy.deepcopy(record)

    def get(self, trip_id: str) -> TripRecord | None:
        """Get trip by ID."""
        with self._lock:
            record = self._trips.get(trip_id)
            return copy.deepcopy(record) if record is not None else None

    def list_by_status(self, status: str) -> list[TripRecord]:
        """List trips with the given status, newest created first."""
        with self._lock:
            matches = sorted(
                (r for r in self._trips.values() if r.status == status),
                key=lambda r: r.trip_id,
            )
            matches.sort(key=lambda r: r.created_at, reverse=True)
            return [copy.deepcopy(r) for r in matches]

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

        with self._lock:
            record = self._trips.get(trip_id)
            if record is None:
                return False

            if expected_version is not None and record.version != expected_version:
                return False

            for name, value in fields.items():
                setattr(record, name, copy.deepcopy(value))

            if expected_version is not None:
                record.version += 1
            record.updated_at = datetime.now(UTC)
            return True

    def ping(self) -> bool:
        """In-memory store is always reachable."""
        return True
