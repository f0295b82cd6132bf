"""Trip endpoints - lifecycle operations, progress, cost and handoff.

Each phase-2 route declares the gate it needs as a dependency; the engine
re-checks the same preconditions inside its conditional write.
"""

from datetime import datetime
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel, Field

from backend.tripflow.api.deps import EngineDep, require_gate, validated_traveler_form
from backend.tripflow.db.repositories import TripRecord
from backend.tripflow.models.cost import CostEstimate, CostEstimateInput
from backend.tripflow.models.handoff import TravelerForm
from backend.tripflow.models.trip import Progress, ProgressView, Selections
from backend.tripflow.workflow.handoff import render_handoff_json
from backend.tripflow.workflow.phase import derive_phase

router = APIRouter(prefix="/trips", tags=["trips"])


class CreateTripRequest(BaseModel):
    """Request body for POST /trips."""

    theme: str | None = Field(None, description="Trip theme, e.g. heritage or culinary")
    intake: dict[str, Any] = Field(default_factory=dict, description="Free-form intake answers")


class ConfirmDestinationsRequest(BaseModel):
    """Request body for POST /trips/{trip_id}/confirm-destinations."""

    confirmed_destinations: list[str]
    preferences: dict[str, Any] | None = None


class SelectOptionRequest(BaseModel):
    """Request body for POST /trips/{trip_id}/select."""

    option_index: int


class TripResponse(BaseModel):
    """Trip state as returned by every trip endpoint."""

    trip_id: str
    theme: str | None
    status: str
    phase: str
    intake: dict[str, Any]
    research_destinations: list[dict[str, Any]] | None
    research_summary: dict[str, Any] | None
    destinations_confirmed: bool
    confirmed_destinations: list[str]
    preferences: dict[str, Any]
    options: list[dict[str, Any]] | None
    selected_option_index: int | None
    itinerary: dict[str, Any] | None
    variants: dict[str, Any]
    quote_requested: bool
    progress: Progress
    version: int
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_record(cls, trip: TripRecord) -> "TripResponse":
        return cls(
            trip_id=trip.trip_id,
            theme=trip.theme,
            status=trip.status,
            phase=derive_phase(trip).value,
            intake=trip.intake,
            research_destinations=trip.research_destinations,
            research_summary=trip.research_summary,
            destinations_confirmed=trip.destinations_confirmed,
            confirmed_destinations=trip.confirmed_destinations,
            preferences=trip.preferences,
            options=trip.options,
            selected_option_index=trip.selected_option_index,
            itinerary=trip.itinerary,
            variants=trip.variants,
            quote_requested=trip.handoff_payload is not None,
            progress=Progress(
                step=trip.progress_step,
                message=trip.progress_message,
                percent=trip.progress_percent,
            ),
            version=trip.version,
            created_at=trip.created_at,
            updated_at=trip.updated_at,
        )


class QuoteRequestResponse(BaseModel):
    """Response for POST /trips/{trip_id}/request-quote."""

    success: bool
    message: str
    trip_id: str
    status: str


@router.post("", response_model=TripResponse, status_code=status.HTTP_201_CREATED)
def create_trip(request: CreateTripRequest, engine: EngineDep) -> TripResponse:
    """Create a trip in the intake phase."""
    return TripResponse.from_record(engine.create_trip(request.theme, request.intake))


@router.get("/{trip_id}", response_model=TripResponse)
def get_trip(trip_id: str, engine: EngineDep) -> TripResponse:
    """Get a trip by ID."""
    return TripResponse.from_record(engine.get_trip(trip_id))


@router.post("/{trip_id}/research", response_model=TripResponse)
async def run_research(trip_id: str, engine: EngineDep) -> TripResponse:
    """Run destination research (phase 1, repeatable until confirmation)."""
    return TripResponse.from_record(await engine.run_research(trip_id))


@router.post("/{trip_id}/confirm-destinations", response_model=TripResponse)
def confirm_destinations(
    trip_id: str,
    request: ConfirmDestinationsRequest,
    engine: EngineDep,
    _trip: Annotated[TripRecord, Depends(require_gate("confirmation"))],
) -> TripResponse:
    """Confirm destinations and unlock phase 2."""
    trip = engine.confirm_destinations(trip_id, request.confirmed_destinations, request.preferences)
    return TripResponse.from_record(trip)


@router.post("/{trip_id}/options", response_model=TripResponse)
async def generate_options(
    trip_id: str,
    engine: EngineDep,
    _trip: Annotated[TripRecord, Depends(require_gate("phase2"))],
) -> TripResponse:
    """Generate trip options for the confirmed destinations."""
    return TripResponse.from_record(await engine.generate_options(trip_id))


@router.post("/{trip_id}/select", response_model=TripResponse)
async def select_option(
    trip_id: str,
    request: SelectOptionRequest,
    engine: EngineDep,
    _trip: Annotated[TripRecord, Depends(require_gate("selection"))],
) -> TripResponse:
    """Select one option (write-once) and build its itinerary."""
    return TripResponse.from_record(await engine.select_option(trip_id, request.option_index))


@router.post("/{trip_id}/selections", response_model=TripResponse)
def record_selections(
    trip_id: str,
    request: Selections,
    engine: EngineDep,
    _trip: Annotated[TripRecord, Depends(require_gate("phase2"))],
) -> TripResponse:
    """Record hotel and airfare selections."""
    trip = engine.record_selections(
        trip_id,
        hotels_selected=request.hotels_selected,
        airfare_estimate=request.airfare_estimate,
    )
    return TripResponse.from_record(trip)


@router.get("/{trip_id}/progress", response_model=ProgressView)
def get_progress(trip_id: str, engine: EngineDep) -> ProgressView:
    """Poll generation progress."""
    return engine.get_progress(trip_id)


@router.post("/{trip_id}/cost-estimate", response_model=CostEstimate)
def estimate_trip_cost(trip_id: str, request: CostEstimateInput, engine: EngineDep) -> CostEstimate:
    """Compute and store a cost estimate for the trip."""
    return engine.estimate_trip_cost(trip_id, request)


@router.get("/{trip_id}/handoff")
def get_handoff(trip_id: str, engine: EngineDep) -> Response:
    """Download the travel professional handoff document."""
    doc = engine.assemble_handoff(trip_id)
    return Response(
        content=render_handoff_json(doc),
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="trip-{trip_id}-handoff.json"'},
    )


@router.post("/{trip_id}/request-quote", response_model=QuoteRequestResponse)
def request_quote(
    trip_id: str,
    form: Annotated[TravelerForm, Depends(validated_traveler_form)],
    engine: EngineDep,
    _trip: Annotated[TripRecord, Depends(require_gate("quote"))],
) -> QuoteRequestResponse:
    """Submit traveler details and hand the trip to a travel professional."""
    trip = engine.submit_quote_request(trip_id, form)
    return QuoteRequestResponse(
        success=True,
        message="Quote request submitted successfully",
        trip_id=trip.trip_id,
        status=trip.status,
    )


@router.post("/{trip_id}/book", response_model=TripResponse)
def mark_booked(trip_id: str, engine: EngineDep) -> TripResponse:
    """Mark a quoted trip as booked."""
    return TripResponse.from_record(engine.mark_booked(trip_id))
