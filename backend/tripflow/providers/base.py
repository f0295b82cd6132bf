"""Collaborator protocols for research and option generation."""

from typing import Any, Protocol

from backend.tripflow.db.repositories import TripRecord
from backend.tripflow.models.trip import ResearchResult


class ResearchProvider(Protocol):
    """Protocol for destination research implementations."""

    async def research(self, trip: TripRecord) -> ResearchResult:
        """Research candidate destinations for a trip.

        Args:
            trip: Trip snapshot (theme and intake drive the research)

        Returns:
            ResearchResult with destination dicts (each carrying a name) and
            a summary of queries and sources
        """
        ...


class OptionsGenerator(Protocol):
    """Protocol for trip option and itinerary generation."""

    async def generate_options(self, trip: TripRecord) -> list[dict[str, Any]]:
        """Generate ordered trip options for the confirmed destinations."""
        ...

    async def build_itinerary(self, trip: TripRecord, option: dict[str, Any]) -> dict[str, Any]:
        """Build a detailed itinerary ({days, hotels_shown}) for the selected option."""
        ...
