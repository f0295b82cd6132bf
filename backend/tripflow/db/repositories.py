"""Repository protocol interfaces for trip storage."""

from dataclasses import dataclass, field, fields
from datetime import datetime
from typing import Any, Protocol


@dataclass
class TripRecord:
    """Persisted trip record.

    Phase is never stored; it is derived from the flags below (see
    backend.tripflow.workflow.phase.derive_phase). `version` is the optimistic
    concurrency token bumped by every guarded write.
    """

    trip_id: str
    theme: str | None
    intake: dict[str, Any]
    status: str
    created_at: datetime
    updated_at: datetime

    # Phase 1: Research
    research_destinations: list[dict[str, Any]] | None = None
    research_summary: dict[str, Any] | None = None
    destinations_confirmed: bool = False
    confirmed_destinations: list[str] = field(default_factory=list)
    preferences: dict[str, Any] = field(default_factory=dict)

    # Phase 2: Trip building
    options: list[dict[str, Any]] | None = None
    selected_option_index: int | None = None
    itinerary: dict[str, Any] | None = None
    variants: dict[str, Any] = field(default_factory=dict)
    handoff_payload: dict[str, Any] | None = None

    # User-facing progress (volatile)
    progress_step: str = "intake"
    progress_message: str = "Understanding your preferences..."
    progress_percent: int = 0

    version: int = 0


# Fields a caller may write through TripStore.update
MUTABLE_TRIP_FIELDS = frozenset(
    f.name for f in fields(TripRecord) if f.name not in ("trip_id", "created_at", "version")
)


class TripStore(Protocol):
    """Durable keyed storage for trip records."""

    def create(self, record: TripRecord) -> None:
        """Persist a new trip record.

        Args:
            record: Fully populated record (version 0)

        Raises:
            StorageFailure: If the backend cannot complete the write
        """
        ...

    def get(self, trip_id: str) -> TripRecord | None:
        """Get trip by ID.

        Args:
            trip_id: Trip ID

        Returns:
            A detached copy of the trip record or None if not found

        Raises:
            StorageFailure: If the backend cannot complete the read
        """
        ...

    def list_by_status(self, status: str) -> list[TripRecord]:
        """List trips with the given status, newest created first.

        Raises:
            StorageFailure: If the backend cannot complete the read
        """
        ...

    def update(
        self,
        trip_id: str,
        fields: dict[str, Any],
        *,
        expected_version: int | None = None,
    ) -> bool:
        """Apply a partial update atomically.

        When expected_version is given the write only succeeds if the stored
        version still matches, and the version is bumped. When it is None the
        write is unconditional and leaves the version untouched (used for
        progress, which must never conflict with phase writes).

        `updated_at` is refreshed on every successful write.

        Args:
            trip_id: Trip ID
            fields: Mapping of TripRecord attribute names to new values
            expected_version: Optional optimistic concurrency token

        Returns:
            True if the write was applied, False if the trip is missing or
            the version no longer matches

        Raises:
            StorageFailure: If the backend cannot complete the write
        """
        ...

    def ping(self) -> bool:
        """Check backend reachability."""
        ...
