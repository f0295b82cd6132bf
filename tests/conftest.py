"""Shared pytest fixtures for all test suites."""

from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

import pytest

from backend.tripflow.config import Settings
from backend.tripflow.db.inmemory import InMemoryTripStore
from backend.tripflow.db.repositories import TripRecord
from backend.tripflow.providers.fixtures import FixtureOptionsGenerator, FixtureResearchProvider
from backend.tripflow.workflow.engine import TripWorkflowEngine

RESEARCH_DESTINATIONS = [
    {"name": "Dublin", "country": "Ireland"},
    {"name": "Cork", "country": "Ireland"},
    {"name": "Galway", "country": "Ireland"},
]

OPTIONS = [
    {
        "option_index": 1,
        "title": "Classic Dublin & Cork",
        "hotels": [
            {"name": "Dublin Comfort Hotel", "city": "Dublin", "nights": 2},
            {"name": "Cork Comfort Hotel", "city": "Cork", "nights": 1},
        ],
    },
    {
        "option_index": 2,
        "title": "Premier Dublin & Cork",
        "hotels": [
            {"name": "Dublin Luxury Hotel", "city": "Dublin", "nights": 3},
        ],
    },
]


@pytest.fixture
def settings() -> Settings:
    """In-memory settings with default commission bounds."""
    return Settings(database_url=None)


@pytest.fixture
def store() -> InMemoryTripStore:
    return InMemoryTripStore()


@pytest.fixture
def engine(store: InMemoryTripStore, settings: Settings) -> TripWorkflowEngine:
    """Engine over the in-memory store with fixture providers."""
    return TripWorkflowEngine(
        store,
        FixtureResearchProvider(),
        FixtureOptionsGenerator(),
        settings,
    )


@pytest.fixture
def make_trip(store: InMemoryTripStore) -> Callable[..., TripRecord]:
    """Seed a trip directly into the store.

    Keyword arguments override TripRecord fields, so a test can place a trip
    in any phase without driving the whole pipeline.

    Usage:
        trip = make_trip(destinations_confirmed=True, options=OPTIONS)
    """
    counter = {"n": 0}

    def _make(**overrides: Any) -> TripRecord:
        counter["n"] += 1
        now = datetime(2025, 3, 1, 12, 0, tzinfo=UTC)
        fields: dict[str, Any] = {
            "trip_id": f"trip-{counter['n']}",
            "theme": "heritage",
            "intake": {"surnames": ["Murphy"], "suspected_origins": ["Cork"], "duration_days": 7},
            "status": "researching",
            "created_at": now,
            "updated_at": now,
        }
        fields.update(overrides)
        trip = TripRecord(**fields)
        store.create(trip)
        return trip

    return _make


@pytest.fixture
def researched_trip(make_trip: Callable[..., TripRecord]) -> TripRecord:
    """Trip with research results awaiting confirmation."""
    return make_trip(research_destinations=RESEARCH_DESTINATIONS, status="awaiting_confirmation")


@pytest.fixture
def confirmed_trip(make_trip: Callable[..., TripRecord]) -> TripRecord:
    """Trip in phase 2 with no options yet."""
    return make_trip(
        research_destinations=RESEARCH_DESTINATIONS,
        destinations_confirmed=True,
        confirmed_destinations=["Dublin", "Cork"],
        status="building_trip",
    )


@pytest.fixture
def options_trip(make_trip: Callable[..., TripRecord]) -> TripRecord:
    """Trip with generated options and no selection."""
    return make_trip(
        research_destinations=RESEARCH_DESTINATIONS,
        destinations_confirmed=True,
        confirmed_destinations=["Dublin", "Cork"],
        options=OPTIONS,
        status="options_ready",
    )


@pytest.fixture
def selected_trip(make_trip: Callable[..., TripRecord]) -> TripRecord:
    """Trip with option 1 selected and an itinerary."""
    return make_trip(
        research_destinations=RESEARCH_DESTINATIONS,
        destinations_confirmed=True,
        confirmed_destinations=["Dublin", "Cork"],
        options=OPTIONS,
        selected_option_index=1,
        itinerary={"days": [{"day": 1, "city": "Dublin"}], "hotels_shown": OPTIONS[0]["hotels"]},
        variants={"hotels_selected": [{"name": "Dublin Comfort Hotel"}]},
        status="option_selected",
    )
