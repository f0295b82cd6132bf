"""Handoff models - traveler intake form and agent handoff document."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class TravelerForm(BaseModel):
    """Traveler contact form submitted with a quote request.

    primary_name and email are optional at the schema level; the engine
    validates them so that missing fields surface as a workflow ValidationError.
    """

    primary_name: str | None = None
    email: str | None = None
    phone: str | None = None
    travelers: str | None = None  # All travelers with ages, free text
    passport_status: str | None = None
    restrictions: str | None = None  # Dietary/medical
    airline_loyalty: str | None = None
    hotel_loyalty: str | None = None
    contact_method: str | None = None
    agency_id: str | None = None  # White-label routing


class HandoffIntake(BaseModel):
    """Intake fields carried into a handoff.

    Intake is free-form traveler input, so values pass through as given
    (a duration of "7-10", a single surname string, a numeric month).
    """

    surnames: Any = Field(default_factory=list)
    suspected_origins: Any = Field(default_factory=list)
    immigration_window: Any = None
    party: Any = Field(default_factory=dict)
    duration_days: Any = None
    target_month: Any = None
    departure_airport: Any = None
    transport_pref: Any = None
    hotel_type: Any = None
    luxury_level: Any = None
    activity_level: Any = None
    interests: Any = Field(default_factory=list)


class HandoffDocument(BaseModel):
    """Self-contained snapshot handed to a travel professional.

    generated_at is the only field that differs between two assemblies of an
    unchanged trip.
    """

    trip_id: str
    created_at: datetime
    generated_at: datetime
    theme: str | None
    status: str
    intake: HandoffIntake
    ancestry_context: Any | None = None
    confirmed_destinations: list[str] = Field(default_factory=list)
    selected_option: dict[str, Any] | None = None
    itinerary: dict[str, Any] = Field(default_factory=dict)
    hotels_shown: list[dict[str, Any]] = Field(default_factory=list)
    hotels_selected: list[dict[str, Any]] = Field(default_factory=list)
    airfare_estimate: dict[str, Any] | None = None
    cost_estimate: dict[str, Any] | None = None


class AgentQuote(BaseModel):
    """A travel professional's answer to a quote request."""

    agent_id: str
    quote_usd: float
    notes: str | None = None
    quoted_at: datetime


class QuoteRequestSummary(BaseModel):
    """One outstanding quote request as an agent sees it."""

    trip_id: str
    theme: str | None
    created_at: datetime
    requested_at: str | None = None
    agency_id: str | None = None
    primary_name: str | None = None
    email: str | None = None
    contact_method: str | None = None
    confirmed_destinations: list[str] = Field(default_factory=list)
    total_per_person: list[int] | None = None
    quote_status: str  # pending | quoted
    agent_quote: AgentQuote | None = None
