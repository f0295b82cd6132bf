"""Deterministic fixture providers (no network, no API keys).

Output depends only on the trip's theme, intake and confirmed destinations,
so the full pipeline can run end to end in tests and local dev.
"""

from typing import Any

from backend.tripflow.db.repositories import TripRecord
from backend.tripflow.models.trip import ResearchResult
from backend.tripflow.workflow.handoff import default_itinerary

# Candidate destinations per theme
THEME_DESTINATIONS: dict[str, list[dict[str, Any]]] = {
    "heritage": [
        {"name": "Dublin", "country": "Ireland", "rationale": "National archives and genealogy centre"},
        {"name": "Cork", "country": "Ireland", "rationale": "Emigration port of Cobh nearby"},
        {"name": "Galway", "country": "Ireland", "rationale": "Parish records of the west"},
    ],
    "culinary": [
        {"name": "Lyon", "country": "France", "rationale": "Bouchons and Les Halles"},
        {"name": "San Sebastian", "country": "Spain", "rationale": "Pintxos bars"},
        {"name": "Bologna", "country": "Italy", "rationale": "Fresh pasta and markets"},
    ],
    "adventure": [
        {"name": "Queenstown", "country": "New Zealand", "rationale": "Bungy and alpine trails"},
        {"name": "Interlaken", "country": "Switzerland", "rationale": "Paragliding and canyoning"},
    ],
}

DEFAULT_DESTINATIONS: list[dict[str, Any]] = [
    {"name": "Lisbon", "country": "Portugal", "rationale": "Walkable historic centre"},
    {"name": "Porto", "country": "Portugal", "rationale": "Riverside old town"},
]

# (label, hotel type, nightly_low, nightly_high) per option tier
_OPTION_TIERS: list[tuple[str, str, float, float]] = [
    ("Classic", "Comfort", 100.0, 150.0),
    ("Signature", "Boutique", 160.0, 240.0),
    ("Premier", "Luxury", 280.0, 420.0),
]


def _candidates(theme: str | None) -> list[dict[str, Any]]:
    return [dict(d) for d in THEME_DESTINATIONS.get(theme or "", DEFAULT_DESTINATIONS)]


class FixtureResearchProvider:
    """Research provider returning canned destinations per theme."""

    async def research(self, trip: TripRecord) -> ResearchResult:
        destinations = _candidates(trip.theme)
        surnames = (trip.intake or {}).get("surnames") or []
        queries = [f"{trip.theme or 'travel'} destinations {' '.join(surnames)}".strip()]
        return ResearchResult(
            destinations=destinations,
            summary={
                "queries": queries,
                "sources": ["fixtures"],
                "summary": f"{len(destinations)} candidate destinations for {trip.theme or 'travel'}",
            },
        )


class FixtureOptionsGenerator:
    """Options generator building tiered options over the confirmed destinations."""

    def __init__(self, nights_per_city: int = 3) -> None:
        self.nights_per_city = nights_per_city

    async def generate_options(self, trip: TripRecord) -> list[dict[str, Any]]:
        cities = list(trip.confirmed_destinations or [])
        options = []
        for label, hotel_type, low, high in _OPTION_TIERS:
            hotels = [
                {
                    "name": f"{city} {hotel_type} Hotel",
                    "city": city,
                    "nights": self.nights_per_city,
                    "nightly_low": low,
                    "nightly_high": high,
                }
                for city in cities
            ]
            options.append(
                {
                    "title": f"{label} {' & '.join(cities)}",
                    "cities": cities,
                    "hotels": hotels,
                    "total_nights": self.nights_per_city * len(cities),
                }
            )
        return options

    async def build_itinerary(self, trip: TripRecord, option: dict[str, Any]) -> dict[str, Any]:
        return default_itinerary(option)
