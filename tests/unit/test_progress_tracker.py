"""Unit tests for the progress tracker."""

from collections.abc import Callable
from typing import Any

import pytest
from prometheus_client import REGISTRY

from backend.tripflow.db.inmemory import InMemoryTripStore
from backend.tripflow.db.repositories import TripRecord
from backend.tripflow.models.trip import ProgressUpdate
from backend.tripflow.workflow.errors import StorageFailure, TripNotFound
from backend.tripflow.workflow.progress import PROGRESS_STEPS, ProgressTracker, research_message


class FailingStore(InMemoryTripStore):
    """Store whose writes always fail."""

    def update(self, trip_id: str, fields: dict[str, Any], *, expected_version: int | None = None) -> bool:
        raise StorageFailure("disk full")


@pytest.fixture
def tracker(store: InMemoryTripStore) -> ProgressTracker:
    return ProgressTracker(store)


class TestUpdateProgress:
    def test_writes_step_message_percent(
        self, tracker: ProgressTracker, store: InMemoryTripStore, make_trip: Callable[..., TripRecord]
    ) -> None:
        trip = make_trip()

        tracker.update_progress(trip.trip_id, ProgressUpdate(step="research", message="Looking...", percent=40))

        stored = store.get(trip.trip_id)
        assert stored is not None
        assert (stored.progress_step, stored.progress_message, stored.progress_percent) == (
            "research",
            "Looking...",
            40,
        )

    def test_does_not_bump_version(
        self, tracker: ProgressTracker, store: InMemoryTripStore, make_trip: Callable[..., TripRecord]
    ) -> None:
        trip = make_trip()

        tracker.update_progress(trip.trip_id, PROGRESS_STEPS["options"])

        stored = store.get(trip.trip_id)
        assert stored is not None
        assert stored.version == trip.version
        assert stored.updated_at > trip.updated_at

    def test_regression_does_not_crash(
        self, tracker: ProgressTracker, store: InMemoryTripStore, make_trip: Callable[..., TripRecord]
    ) -> None:
        trip = make_trip()

        tracker.update_progress(trip.trip_id, ProgressUpdate(step="research", message="a", percent=40))
        tracker.update_progress(trip.trip_id, ProgressUpdate(step="research", message="b", percent=30))

        stored = store.get(trip.trip_id)
        assert stored is not None
        assert stored.progress_percent == 30

    def test_unknown_trip_is_ignored(self, tracker: ProgressTracker) -> None:
        tracker.update_progress("nope", PROGRESS_STEPS["intake"])

    def test_storage_failure_is_swallowed_and_counted(self) -> None:
        store = FailingStore()
        tracker = ProgressTracker(store)
        before = REGISTRY.get_sample_value("progress_write_failures_total") or 0.0

        tracker.update_progress("any", PROGRESS_STEPS["intake"])

        assert REGISTRY.get_sample_value("progress_write_failures_total") == before + 1

    def test_percent_bounds_enforced_by_model(self) -> None:
        with pytest.raises(ValueError):
            ProgressUpdate(step="x", message="x", percent=101)


class TestGetProgress:
    def test_unknown_trip(self, tracker: ProgressTracker) -> None:
        with pytest.raises(TripNotFound):
            tracker.get_progress("nope")

    def test_not_complete_before_options(self, tracker: ProgressTracker, confirmed_trip: TripRecord) -> None:
        view = tracker.get_progress(confirmed_trip.trip_id)
        assert view.complete is False
        assert view.phase == "destinations_confirmed"
        assert view.status == "building_trip"

    @pytest.mark.parametrize("fixture_name", ["options_trip", "selected_trip"])
    def test_complete_at_or_after_options(
        self, tracker: ProgressTracker, fixture_name: str, request: pytest.FixtureRequest
    ) -> None:
        trip: TripRecord = request.getfixturevalue(fixture_name)
        assert tracker.get_progress(trip.trip_id).complete is True

    def test_reports_last_written(self, tracker: ProgressTracker, make_trip: Callable[..., TripRecord]) -> None:
        trip = make_trip()
        tracker.update_progress(trip.trip_id, PROGRESS_STEPS["research"])

        view = tracker.get_progress(trip.trip_id)

        assert view.step == "research"
        assert view.percent == 40
        assert view.message == "Researching destinations..."


class TestSteps:
    def test_canonical_percents_increase(self) -> None:
        percents = [step.percent for step in PROGRESS_STEPS.values()]
        assert percents == [10, 40, 70, 95, 100]

    @pytest.mark.parametrize(
        ("theme", "message"),
        [
            ("heritage", "Researching family heritage sites..."),
            ("tvmovie", "Finding filming locations..."),
            ("culinary", "Finding culinary destinations..."),
            ("unknown", "Researching destinations..."),
            (None, "Researching destinations..."),
        ],
    )
    def test_research_message(self, theme: str | None, message: str) -> None:
        assert research_message(theme) == message
