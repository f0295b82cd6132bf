"""Request dependencies - engine lookup and per-route phase gates."""

from collections.abc import Callable
from typing import Annotated, Literal

from fastapi import Depends, Request

from backend.tripflow.db.repositories import TripRecord
from backend.tripflow.models.handoff import TravelerForm
from backend.tripflow.workflow.engine import TripWorkflowEngine
from backend.tripflow.workflow.gate import GateResult, PhaseGate
from backend.tripflow.workflow.handoff import validate_traveler_form

GateName = Literal["phase2", "confirmation", "selection", "quote"]

_GATE_CHECKS: dict[GateName, Callable[[PhaseGate, str], GateResult]] = {
    "phase2": PhaseGate.check_phase2_access,
    "confirmation": PhaseGate.check_confirmation_eligibility,
    "selection": PhaseGate.check_option_selection_eligibility,
    "quote": PhaseGate.check_quote_eligibility,
}


def get_engine(request: Request) -> TripWorkflowEngine:
    """Workflow engine built at app startup."""
    engine: TripWorkflowEngine = request.app.state.engine
    return engine


EngineDep = Annotated[TripWorkflowEngine, Depends(get_engine)]


def require_gate(name: GateName) -> Callable[[str, TripWorkflowEngine], TripRecord]:
    """Build a dependency that runs the named phase gate for {trip_id}.

    The handler only runs if the gate allows the operation; otherwise the
    dependency raises TripNotFound or PhaseViolation.
    """
    check = _GATE_CHECKS[name]

    def dependency(trip_id: str, engine: EngineDep) -> TripRecord:
        return check(engine.gate, trip_id).raise_for_error(trip_id)

    dependency.__name__ = f"require_{name}_gate"
    return dependency


def validated_traveler_form(form: TravelerForm) -> TravelerForm:
    """Reject incomplete contact details before any trip lookup."""
    validate_traveler_form(form)
    return form
