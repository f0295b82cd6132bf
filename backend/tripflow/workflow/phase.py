"""Trip phase model - explicit tagged state with an exhaustive transition table.

The phase of a trip is never stored. It is derived from the record's flags so
that the persisted booleans/nullables remain the single source of truth, and
every transition is checked against TRANSITIONS rather than by ad hoc flag
inspection.
"""

from enum import Enum
from typing import Literal

from backend.tripflow.db.repositories import TripRecord

WorkflowHalf = Literal["phase1", "phase2"]


class TripPhase(str, Enum):
    """Lifecycle phase of a trip."""

    intake = "intake"
    research = "research"
    destinations_confirmed = "destinations_confirmed"
    options_ready = "options_ready"
    selected = "selected"
    quote_requested = "quote_requested"
    booked = "booked"


class TripStatus(str, Enum):
    """Coarse status persisted alongside the phase flags."""

    researching = "researching"
    awaiting_confirmation = "awaiting_confirmation"
    building_trip = "building_trip"
    options_ready = "options_ready"
    option_selected = "option_selected"
    quote_requested = "quote_requested"
    booked = "booked"


# Lifecycle order, used for "at or beyond" comparisons
PHASE_ORDER: tuple[TripPhase, ...] = (
    TripPhase.intake,
    TripPhase.research,
    TripPhase.destinations_confirmed,
    TripPhase.options_ready,
    TripPhase.selected,
    TripPhase.quote_requested,
    TripPhase.booked,
)

PHASE_HALF: dict[TripPhase, WorkflowHalf] = {
    TripPhase.intake: "phase1",
    TripPhase.research: "phase1",
    TripPhase.destinations_confirmed: "phase2",
    TripPhase.options_ready: "phase2",
    TripPhase.selected: "phase2",
    TripPhase.quote_requested: "phase2",
    TripPhase.booked: "phase2",
}

# Allowed forward transitions. Self-loops are re-runs of the same phase
# (research again before confirmation, options regenerated before selection).
TRANSITIONS: dict[TripPhase, frozenset[TripPhase]] = {
    TripPhase.intake: frozenset({TripPhase.research}),
    TripPhase.research: frozenset({TripPhase.research, TripPhase.destinations_confirmed}),
    TripPhase.destinations_confirmed: frozenset(
        {TripPhase.options_ready, TripPhase.quote_requested}
    ),
    TripPhase.options_ready: frozenset(
        {TripPhase.options_ready, TripPhase.selected, TripPhase.quote_requested}
    ),
    TripPhase.selected: frozenset({TripPhase.quote_requested}),
    TripPhase.quote_requested: frozenset({TripPhase.booked}),
    TripPhase.booked: frozenset(),
}


def derive_phase(trip: TripRecord) -> TripPhase:
    """Classify a trip record into its lifecycle phase."""
    if trip.status == TripStatus.booked.value:
        return TripPhase.booked
    if trip.handoff_payload is not None:
        return TripPhase.quote_requested
    if trip.selected_option_index is not None:
        return TripPhase.selected
    if trip.options is not None:
        return TripPhase.options_ready
    if trip.destinations_confirmed:
        return TripPhase.destinations_confirmed
    if trip.research_destinations is not None:
        return TripPhase.research
    return TripPhase.intake


def phase_half(phase: TripPhase) -> WorkflowHalf:
    """Map a phase onto the pre/post confirmation halves."""
    return PHASE_HALF[phase]


def is_transition_allowed(current: TripPhase, target: TripPhase) -> bool:
    """Check a transition against the table."""
    return target in TRANSITIONS[current]


def is_at_or_beyond(phase: TripPhase, threshold: TripPhase) -> bool:
    """True if phase is threshold or later in the lifecycle."""
    return PHASE_ORDER.index(phase) >= PHASE_ORDER.index(threshold)
