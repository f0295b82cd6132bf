"""Unit tests for deterministic fixture providers."""

from collections.abc import Callable

import pytest

from backend.tripflow.db.repositories import TripRecord
from backend.tripflow.providers.fixtures import (
    DEFAULT_DESTINATIONS,
    FixtureOptionsGenerator,
    FixtureResearchProvider,
)


class TestFixtureResearchProvider:
    @pytest.mark.asyncio
    async def test_theme_destinations(self, make_trip: Callable[..., TripRecord]) -> None:
        result = await FixtureResearchProvider().research(make_trip(theme="culinary"))

        assert [d["name"] for d in result.destinations] == ["Lyon", "San Sebastian", "Bologna"]
        assert result.summary["sources"] == ["fixtures"]

    @pytest.mark.asyncio
    async def test_unknown_theme_falls_back(self, make_trip: Callable[..., TripRecord]) -> None:
        result = await FixtureResearchProvider().research(make_trip(theme="space"))
        assert result.destinations == DEFAULT_DESTINATIONS

    @pytest.mark.asyncio
    async def test_deterministic(self, make_trip: Callable[..., TripRecord]) -> None:
        trip = make_trip()
        provider = FixtureResearchProvider()
        assert await provider.research(trip) == await provider.research(trip)

    @pytest.mark.asyncio
    async def test_results_do_not_alias_fixture_data(self, make_trip: Callable[..., TripRecord]) -> None:
        result = await FixtureResearchProvider().research(make_trip(theme="space"))
        result.destinations[0]["name"] = "Changed"
        assert DEFAULT_DESTINATIONS[0]["name"] == "Lisbon"


class TestFixtureOptionsGenerator:
    @pytest.mark.asyncio
    async def test_one_hotel_per_confirmed_city(self, confirmed_trip: TripRecord) -> None:
        options = await FixtureOptionsGenerator(nights_per_city=2).generate_options(confirmed_trip)

        assert len(options) == 3
        for option in options:
            assert [h["city"] for h in option["hotels"]] == ["Dublin", "Cork"]
            assert option["total_nights"] == 4
            assert "option_index" not in option

    @pytest.mark.asyncio
    async def test_itinerary_covers_nights(self, confirmed_trip: TripRecord) -> None:
        generator = FixtureOptionsGenerator(nights_per_city=2)
        option = (await generator.generate_options(confirmed_trip))[0]

        itinerary = await generator.build_itinerary(confirmed_trip, option)

        assert len(itinerary["days"]) == 5
        assert itinerary["hotels_shown"] == option["hotels"]
