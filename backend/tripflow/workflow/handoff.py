"""Handoff assembly - pure builders for the agent handoff and quote payload.

Nothing here touches the store. The engine loads the trip, calls these
builders on the snapshot and persists whatever needs persisting.
"""

import json
from datetime import datetime
from typing import Any

from backend.tripflow.config import Settings
from backend.tripflow.db.repositories import TripRecord
from backend.tripflow.models.handoff import (
    AgentQuote,
    HandoffDocument,
    HandoffIntake,
    QuoteRequestSummary,
    TravelerForm,
)
from backend.tripflow.workflow.errors import ValidationError


def normalize_intake(intake: dict[str, Any] | None) -> HandoffIntake:
    """Project a free-form intake dict onto the handoff intake fields.

    Values are copied untouched; only missing or empty collections default.
    """
    intake = intake or {}
    return HandoffIntake(
        surnames=intake.get("surnames") or [],
        suspected_origins=intake.get("suspected_origins") or [],
        immigration_window=intake.get("immigration_window"),
        party=intake.get("party") or {},
        duration_days=intake.get("duration_days"),
        target_month=intake.get("target_month"),
        departure_airport=intake.get("departure_airport"),
        transport_pref=intake.get("transport_pref"),
        hotel_type=intake.get("hotel_type"),
        luxury_level=intake.get("luxury_level"),
        activity_level=intake.get("activity_level"),
        interests=intake.get("interests") or [],
    )


def selected_option(trip: TripRecord) -> dict[str, Any] | None:
    """The option matching selected_option_index, if any."""
    if trip.selected_option_index is None or not trip.options:
        return None
    for option in trip.options:
        if option.get("option_index") == trip.selected_option_index:
            return option
    return None


def assemble_handoff_document(trip: TripRecord, generated_at: datetime) -> HandoffDocument:
    """Build the handoff snapshot for a trip.

    Output depends only on the trip record and generated_at, so two
    assemblies of an unchanged trip differ in generated_at alone.
    """
    intake = trip.intake or {}
    itinerary = trip.itinerary or {}
    variants = trip.variants or {}

    return HandoffDocument(
        trip_id=trip.trip_id,
        created_at=trip.created_at,
        generated_at=generated_at,
        theme=trip.theme,
        status=trip.status,
        intake=normalize_intake(intake),
        ancestry_context=intake.get("ancestry_context"),
        confirmed_destinations=list(trip.confirmed_destinations or []),
        selected_option=selected_option(trip),
        itinerary=itinerary,
        hotels_shown=itinerary.get("hotels_shown") or [],
        hotels_selected=variants.get("hotels_selected") or [],
        airfare_estimate=variants.get("airfare_estimate"),
        cost_estimate=variants.get("cost_estimate"),
    )


def render_handoff_json(doc: HandoffDocument) -> str:
    """Serialize a handoff document for download (2-space indent, field order kept)."""
    return json.dumps(doc.model_dump(mode="json"), indent=2, ensure_ascii=False)


def validate_traveler_form(form: TravelerForm) -> None:
    """Check the fields an agent needs to make contact.

    Raises:
        ValidationError: If primary_name or email is missing, or email has no '@'
    """
    if not form.primary_name or not form.primary_name.strip():
        raise ValidationError("primary_name", "primary_name is required")
    if not form.email or not form.email.strip():
        raise ValidationError("email", "email is required")
    if "@" not in form.email:
        raise ValidationError("email", "Please provide a valid email address")


def build_quote_payload(
    trip: TripRecord,
    form: TravelerForm,
    requested_at: datetime,
    settings: Settings,
) -> dict[str, Any]:
    """Build the handoff payload stored with a quote request."""
    return {
        "traveler": {
            "primary_name": form.primary_name,
            "email": form.email,
            "phone": form.phone or None,
            "all_travelers": form.travelers or None,
            "passport_status": form.passport_status or None,
            "restrictions": form.restrictions or None,
            "airline_loyalty": form.airline_loyalty or None,
            "hotel_loyalty": form.hotel_loyalty or None,
            "contact_method": form.contact_method or settings.handoff_contact_method_default,
        },
        "trip": {
            "theme": trip.theme,
            "intake": trip.intake or {},
            "research": {
                "destinations": trip.research_destinations or [],
                "summary": trip.research_summary or {},
                "confirmed_destinations": list(trip.confirmed_destinations or []),
            },
            "itinerary": trip.itinerary or {},
            "variants": trip.variants or {},
        },
        "requested_at": requested_at.isoformat(),
        "agency_id": form.agency_id or settings.handoff_agency_default,
    }


def validate_agent_quote(agent_id: str, quote_usd: float) -> None:
    """Check an agent quote before it touches the store.

    Raises:
        ValidationError: If agent_id is blank or quote_usd is not positive
    """
    if not agent_id or not agent_id.strip():
        raise ValidationError("agent_id", "agent_id is required")
    if quote_usd <= 0:
        raise ValidationError("quote_usd", "Quote must be greater than 0")


def summarize_quote_request(trip: TripRecord) -> QuoteRequestSummary:
    """Agent-facing view of a trip with a stored quote request."""
    payload = trip.handoff_payload or {}
    traveler = payload.get("traveler") or {}
    estimate = (trip.variants or {}).get("cost_estimate") or {}
    agent_quote = payload.get("agent_quote")

    return QuoteRequestSummary(
        trip_id=trip.trip_id,
        theme=trip.theme,
        created_at=trip.created_at,
        requested_at=payload.get("requested_at"),
        agency_id=payload.get("agency_id"),
        primary_name=traveler.get("primary_name"),
        email=traveler.get("email"),
        contact_method=traveler.get("contact_method"),
        confirmed_destinations=list(trip.confirmed_destinations or []),
        total_per_person=estimate.get("total_per_person"),
        quote_status="quoted" if agent_quote else "pending",
        agent_quote=AgentQuote.model_validate(agent_quote) if agent_quote else None,
    )


def default_itinerary(option: dict[str, Any]) -> dict[str, Any]:
    """Day-by-day skeleton derived from an option's hotel nights.

    One day per night plus a departure day; each day is placed in the city of
    the hotel covering that night.
    """
    hotels: list[dict[str, Any]] = option.get("hotels") or []
    total_days = sum(int(h.get("nights") or 0) for h in hotels) + 1

    days = []
    hotel_idx = 0
    nights_in_hotel = 0
    for day in range(1, total_days + 1):
        hotel = hotels[hotel_idx] if hotel_idx < len(hotels) else None
        days.append(
            {
                "day": day,
                "date": None,
                "city": (hotel or {}).get("city") or "Unknown",
                "activities": [
                    {
                        "time": "Morning",
                        "description": "Arrival and hotel check-in" if day == 1 else "Explore local area",
                        "type": "free time",
                        "cost_usd": None,
                    },
                    {
                        "time": "Afternoon",
                        "description": "Departure" if day == total_days else "Scheduled tour or activity",
                        "type": "tour",
                        "cost_usd": None,
                    },
                ],
                "hotel": {"name": hotel.get("name"), "address": hotel.get("city")} if hotel else None,
                "meals_included": ["Breakfast"],
                "estimated_cost_usd": 0,
            }
        )

        nights_in_hotel += 1
        if hotel is not None and nights_in_hotel >= int(hotel.get("nights") or 0):
            hotel_idx += 1
            nights_in_hotel = 0

    return {"days": days, "hotels_shown": hotels}
