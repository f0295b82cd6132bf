"""Phase gate - read-only precondition checks guarding trip transitions.

Gate checks never mutate trip state, so any code path may call them as a
pre-flight. They are a fast-fail for friendly errors; the engine's conditional
writes are what actually enforce the invariants under concurrency.
"""

from dataclasses import dataclass

from backend.tripflow.db.repositories import TripRecord, TripStore
from backend.tripflow.utils.logging import StructuredWorkflowLogger
from backend.tripflow.utils.metrics import PrometheusWorkflowMetrics
from backend.tripflow.workflow.errors import PhaseCode, PhaseViolation, TripNotFound
from backend.tripflow.workflow.phase import (
    TripPhase,
    WorkflowHalf,
    derive_phase,
    is_transition_allowed,
)


@dataclass(frozen=True)
class GateError:
    """Why a gate blocked an operation."""

    code: PhaseCode
    message: str
    requires_confirmation: bool = False


@dataclass(frozen=True)
class GateResult:
    """Outcome of a gate check, with the trip snapshot it was evaluated on."""

    allowed: bool
    trip: TripRecord | None = None
    error: GateError | None = None

    @property
    def code(self) -> PhaseCode | None:
        return self.error.code if self.error else None

    def raise_for_error(self, trip_id: str) -> TripRecord:
        """Return the trip if allowed, else raise the matching workflow error.

        Raises:
            TripNotFound: If the trip does not exist
            PhaseViolation: If the gate blocked the operation
        """
        if self.allowed and self.trip is not None:
            return self.trip

        assert self.error is not None
        if self.error.code == PhaseCode.TRIP_NOT_FOUND:
            raise TripNotFound(trip_id)
        raise PhaseViolation(
            self.error.code,
            self.error.message,
            requires_confirmation=self.error.requires_confirmation,
        )


def _not_found() -> GateResult:
    return GateResult(
        allowed=False,
        error=GateError(PhaseCode.TRIP_NOT_FOUND, "Trip not found"),
    )


def _deny(trip: TripRecord, code: PhaseCode, message: str, requires_confirmation: bool = False) -> GateResult:
    return GateResult(
        allowed=False,
        trip=trip,
        error=GateError(code, message, requires_confirmation),
    )


# Pure evaluators: operate on a snapshot the caller already holds


def evaluate_trip_exists(trip: TripRecord | None) -> GateResult:
    """Ungated operations only need the trip to exist."""
    if trip is None:
        return _not_found()
    return GateResult(allowed=True, trip=trip)


def evaluate_phase2_access(trip: TripRecord | None) -> GateResult:
    """Phase 2 is open iff destinations are confirmed."""
    if trip is None:
        return _not_found()
    if not trip.destinations_confirmed:
        return _deny(
            trip,
            PhaseCode.DESTINATIONS_NOT_CONFIRMED,
            "Destinations must be confirmed before trip building",
            requires_confirmation=True,
        )
    return GateResult(allowed=True, trip=trip)


def evaluate_confirmation_eligibility(trip: TripRecord | None) -> GateResult:
    """Confirmation needs research results and happens at most once."""
    if trip is None:
        return _not_found()
    if trip.destinations_confirmed:
        return _deny(trip, PhaseCode.ALREADY_CONFIRMED, "Destinations already confirmed")
    if not trip.research_destinations:
        return _deny(
            trip,
            PhaseCode.NO_RESEARCH_DESTINATIONS,
            "No destinations to confirm. Complete research phase first.",
        )
    return GateResult(allowed=True, trip=trip)


def evaluate_option_selection_eligibility(trip: TripRecord | None) -> GateResult:
    """Selection needs confirmed destinations, generated options and no prior pick."""
    if trip is None:
        return _not_found()
    if not trip.destinations_confirmed:
        return _deny(
            trip,
            PhaseCode.DESTINATIONS_NOT_CONFIRMED,
            "Destinations must be confirmed before selecting options",
            requires_confirmation=True,
        )
    if trip.options is None:
        return _deny(
            trip,
            PhaseCode.OPTIONS_NOT_READY,
            "Trip options not yet generated. Please wait for trip building to complete.",
        )
    if trip.selected_option_index is not None:
        return _deny(
            trip,
            PhaseCode.ALREADY_SELECTED,
            f"Option {trip.selected_option_index} already selected",
        )
    if trip.handoff_payload is not None:
        return _deny(trip, PhaseCode.QUOTE_ALREADY_REQUESTED, "Quote already requested for this trip")
    return GateResult(allowed=True, trip=trip)


def evaluate_research_eligibility(trip: TripRecord | None) -> GateResult:
    """Research may run (and re-run) until destinations are confirmed."""
    if trip is None:
        return _not_found()
    if trip.destinations_confirmed:
        return _deny(
            trip,
            PhaseCode.ALREADY_CONFIRMED,
            "Destinations already confirmed; research can no longer change",
        )
    return GateResult(allowed=True, trip=trip)


def evaluate_options_generation(trip: TripRecord | None) -> GateResult:
    """Options may be (re)generated in phase 2 until one is selected."""
    result = evaluate_phase2_access(trip)
    if not result.allowed:
        return result
    assert trip is not None
    if trip.selected_option_index is not None:
        return _deny(
            trip,
            PhaseCode.ALREADY_SELECTED,
            f"Option {trip.selected_option_index} already selected; options are frozen",
        )
    if not is_transition_allowed(derive_phase(trip), TripPhase.options_ready):
        return _deny(trip, PhaseCode.QUOTE_ALREADY_REQUESTED, "Quote already requested for this trip")
    return result


def evaluate_booking_eligibility(trip: TripRecord | None) -> GateResult:
    """Only a trip with an outstanding quote request can be booked."""
    if trip is None:
        return _not_found()
    if derive_phase(trip) != TripPhase.quote_requested:
        return _deny(trip, PhaseCode.QUOTE_NOT_REQUESTED, "Trip has no outstanding quote request")
    return GateResult(allowed=True, trip=trip)


def evaluate_agent_quote_eligibility(trip: TripRecord | None) -> GateResult:
    """Agents can only quote trips whose quote request is still outstanding."""
    if trip is None:
        return _not_found()
    if derive_phase(trip) != TripPhase.quote_requested:
        return _deny(trip, PhaseCode.QUOTE_NOT_REQUESTED, "Trip has no outstanding quote request to answer")
    return GateResult(allowed=True, trip=trip)


def evaluate_quote_eligibility(trip: TripRecord | None) -> GateResult:
    """A quote may be requested once, from any phase-2 state before booking."""
    result = evaluate_phase2_access(trip)
    if not result.allowed:
        return result
    assert trip is not None
    if not is_transition_allowed(derive_phase(trip), TripPhase.quote_requested):
        return _deny(trip, PhaseCode.QUOTE_ALREADY_REQUESTED, "Quote already requested for this trip")
    return result


class PhaseGate:
    """Store-backed phase gate."""

    def __init__(
        self,
        store: TripStore,
        logger: StructuredWorkflowLogger | None = None,
        metrics: PrometheusWorkflowMetrics | None = None,
    ) -> None:
        self._store = store
        self._logger = logger or StructuredWorkflowLogger()
        self._metrics = metrics or PrometheusWorkflowMetrics()

    def record(self, gate: str, trip_id: str, result: GateResult) -> GateResult:
        """Log and count a denial; pass the result through unchanged."""
        if not result.allowed and result.error is not None:
            self._logger.log_gate_denial(trip_id, gate, result.error.code.value)
            self._metrics.inc_gate_denial(gate, result.error.code.value)
        else:
            self._logger.log("debug", f"[gate:{gate}] trip {trip_id} allowed", {"trip_id": trip_id})
        return result

    def check_phase2_access(self, trip_id: str) -> GateResult:
        """Check if phase 2 operations are allowed."""
        return self.record("phase2", trip_id, evaluate_phase2_access(self._store.get(trip_id)))

    def check_confirmation_eligibility(self, trip_id: str) -> GateResult:
        """Check if the trip can have its destinations confirmed."""
        return self.record(
            "confirmation", trip_id, evaluate_confirmation_eligibility(self._store.get(trip_id))
        )

    def check_option_selection_eligibility(self, trip_id: str) -> GateResult:
        """Check if an option can be selected.

        Selection is write-once: once an index is stored every later call is
        denied with ALREADY_SELECTED, whatever index the caller has in mind.
        """
        return self.record(
            "selection", trip_id, evaluate_option_selection_eligibility(self._store.get(trip_id))
        )

    def check_quote_eligibility(self, trip_id: str) -> GateResult:
        """Check if a quote can be requested."""
        return self.record("quote", trip_id, evaluate_quote_eligibility(self._store.get(trip_id)))

    @staticmethod
    def get_current_phase(trip: TripRecord) -> WorkflowHalf:
        """Classify the trip as phase1 or phase2."""
        return "phase2" if trip.destinations_confirmed else "phase1"

    @staticmethod
    def can_transition_to(trip: TripRecord, target: WorkflowHalf) -> bool:
        """Validate a coarse phase transition.

        Into phase1 is always allowed (no-op), phase1 -> phase2 needs
        confirmation, and anything within phase2 is allowed since the specific
        gates re-validate.
        """
        if target == "phase1":
            return True
        if PhaseGate.get_current_phase(trip) == "phase1":
            return trip.destinations_confirmed
        return True

