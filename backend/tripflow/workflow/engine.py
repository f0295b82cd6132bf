"""Trip workflow engine - the state machine over a trip's lifecycle.

Every mutating operation runs the same loop: read the trip, gate on that
snapshot, compute the new fields, then write them conditionally on the
snapshot's version. A lost race re-reads and re-gates, so a precondition that
a concurrent writer invalidated surfaces as a precise PhaseViolation instead
of a silent overwrite.
"""

import dataclasses
import logging
import uuid
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

from backend.tripflow.config import Settings, get_settings
from backend.tripflow.db.repositories import TripRecord, TripStore
from backend.tripflow.models.cost import CostEstimate, CostEstimateInput
from backend.tripflow.models.handoff import HandoffDocument, QuoteRequestSummary, TravelerForm
from backend.tripflow.models.trip import ProgressView, ResearchResult
from backend.tripflow.providers.base import OptionsGenerator, ResearchProvider
from backend.tripflow.utils.logging import StructuredWorkflowLogger
from backend.tripflow.utils.metrics import PrometheusWorkflowMetrics
from backend.tripflow.workflow import cost as cost_estimator
from backend.tripflow.workflow.errors import (
    PhaseCode,
    ProviderFailure,
    StorageFailure,
    TripNotFound,
    ValidationError,
    WorkflowError,
)
from backend.tripflow.workflow.gate import (
    GateError,
    GateResult,
    PhaseGate,
    evaluate_agent_quote_eligibility,
    evaluate_booking_eligibility,
    evaluate_confirmation_eligibility,
    evaluate_option_selection_eligibility,
    evaluate_options_generation,
    evaluate_phase2_access,
    evaluate_quote_eligibility,
    evaluate_research_eligibility,
    evaluate_trip_exists,
)
from backend.tripflow.workflow.handoff import (
    assemble_handoff_document,
    build_quote_payload,
    default_itinerary,
    summarize_quote_request,
    validate_agent_quote,
    validate_traveler_form,
)
from backend.tripflow.workflow.phase import TripPhase, TripStatus, derive_phase, is_transition_allowed
from backend.tripflow.workflow.progress import PROGRESS_STEPS, ProgressTracker, research_message

logger = logging.getLogger(__name__)

Evaluator = Callable[[TripRecord | None], GateResult]
FieldsBuilder = Callable[[TripRecord], dict[str, Any]]

# Code reported when the transition table rejects a move into a phase
_TRANSITION_DENIAL_CODES: dict[TripPhase, PhaseCode] = {
    TripPhase.research: PhaseCode.ALREADY_CONFIRMED,
    TripPhase.destinations_confirmed: PhaseCode.ALREADY_CONFIRMED,
    TripPhase.options_ready: PhaseCode.ALREADY_SELECTED,
    TripPhase.selected: PhaseCode.ALREADY_SELECTED,
    TripPhase.quote_requested: PhaseCode.QUOTE_ALREADY_REQUESTED,
    TripPhase.booked: PhaseCode.QUOTE_NOT_REQUESTED,
}


def _utcnow() -> datetime:
    return datetime.now(UTC)


class TripWorkflowEngine:
    """Drives trips from intake to handoff.

    The engine is stateless between calls; the store owns every record.
    """

    def __init__(
        self,
        store: TripStore,
        research_provider: ResearchProvider,
        options_generator: OptionsGenerator,
        settings: Settings | None = None,
        *,
        workflow_logger: StructuredWorkflowLogger | None = None,
        metrics: PrometheusWorkflowMetrics | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.store = store
        self.research_provider = research_provider
        self.options_generator = options_generator
        self.settings = settings or get_settings()
        self.workflow_logger = workflow_logger or StructuredWorkflowLogger()
        self.metrics = metrics or PrometheusWorkflowMetrics()
        self.clock = clock

        self.gate = PhaseGate(store, self.workflow_logger, self.metrics)
        self.progress = ProgressTracker(store, self.metrics)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _load(self, trip_id: str) -> TripRecord:
        trip = self.store.get(trip_id)
        if trip is None:
            raise TripNotFound(trip_id)
        return trip

    def _reload(self, trip_id: str, fallback: TripRecord) -> TripRecord:
        """Stored record after a write, so store-managed fields like updated_at are current."""
        return self.store.get(trip_id) or fallback

    def _check(self, gate: str, trip_id: str, evaluate: Evaluator) -> TripRecord:
        """Fast-fail pre-flight on a fresh snapshot."""
        result = self.gate.record(gate, trip_id, evaluate(self.store.get(trip_id)))
        return result.raise_for_error(trip_id)

    def _commit(
        self,
        operation: str,
        trip_id: str,
        gate: str,
        evaluate: Evaluator,
        build_fields: FieldsBuilder,
        target: TripPhase | None = None,
    ) -> TripRecord:
        """Gate-and-write loop with optimistic concurrency.

        Args:
            operation: Operation name for logs and metrics
            trip_id: Trip ID
            gate: Gate name for denial logs and metrics
            evaluate: Gate evaluator run on every snapshot read
            build_fields: Computes the fields to write from the snapshot
            target: Phase the write moves the trip into, checked against the
                transition table (None for writes that do not move the phase)

        Returns:
            The trip as stored after the write

        Raises:
            TripNotFound: If the trip does not exist
            PhaseViolation: If the gate or transition table rejects the write
            StorageFailure: If the write kept losing to concurrent writers
        """
        for attempt in range(1, self.settings.max_write_attempts + 1):
            result = self.gate.record(gate, trip_id, evaluate(self.store.get(trip_id)))
            trip = result.raise_for_error(trip_id)

            from_phase = derive_phase(trip)
            if target is not None and not is_transition_allowed(from_phase, target):
                denial = GateResult(
                    allowed=False,
                    trip=trip,
                    error=GateError(
                        _TRANSITION_DENIAL_CODES[target],
                        f"Cannot move trip from {from_phase.value} to {target.value}",
                    ),
                )
                self.gate.record(gate, trip_id, denial).raise_for_error(trip_id)

            fields = build_fields(trip)
            if self.store.update(trip_id, fields, expected_version=trip.version):
                written = dataclasses.replace(trip, **fields, version=trip.version + 1)
                to_phase = derive_phase(written)
                if target is not None:
                    self.workflow_logger.log_transition(trip_id, operation, from_phase.value, to_phase.value)
                    self.metrics.record_transition(from_phase.value, to_phase.value)
                return self._reload(trip_id, written)

            self.metrics.inc_write_conflict(operation)
            logger.info(
                f"[engine] {operation} lost write race on {trip_id} "
                f"(attempt {attempt}/{self.settings.max_write_attempts})"
            )

        raise StorageFailure(
            f"{operation} on trip {trip_id} failed after "
            f"{self.settings.max_write_attempts} conflicting writes"
        )

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_trip(self, trip_id: str) -> TripRecord:
        """Load a trip or raise TripNotFound."""
        return self._load(trip_id)

    def get_phase(self, trip_id: str) -> TripPhase:
        """Current derived phase of a trip."""
        return derive_phase(self._load(trip_id))

    def get_progress(self, trip_id: str) -> ProgressView:
        return self.progress.get_progress(trip_id)

    # ------------------------------------------------------------------
    # Phase 1
    # ------------------------------------------------------------------

    def create_trip(self, theme: str | None, intake: dict[str, Any] | None = None) -> TripRecord:
        """Create a trip in the intake phase."""
        now = self.clock()
        trip = TripRecord(
            trip_id=uuid.uuid4().hex,
            theme=theme,
            intake=dict(intake or {}),
            status=TripStatus.researching.value,
            created_at=now,
            updated_at=now,
        )
        self.store.create(trip)
        self.workflow_logger.log(
            "info",
            f"[engine] created trip {trip.trip_id}",
            {"trip_id": trip.trip_id, "theme": theme},
        )
        return trip

    async def run_research(self, trip_id: str) -> TripRecord:
        """Research candidate destinations for a trip.

        Re-running before confirmation replaces the previous results.

        Raises:
            TripNotFound: If the trip does not exist
            PhaseViolation: ALREADY_CONFIRMED once destinations are confirmed
            ProviderFailure: If the research provider fails (nothing is written)
        """
        trip = self._check("research", trip_id, evaluate_research_eligibility)

        self.progress.update_progress(trip_id, PROGRESS_STEPS["intake"])
        research_step = PROGRESS_STEPS["research"].model_copy(
            update={"message": research_message(trip.theme)}
        )
        self.progress.update_progress(trip_id, research_step)

        research = await self._call_research(trip)

        return self._commit(
            "run_research",
            trip_id,
            "research",
            evaluate_research_eligibility,
            lambda _trip: {
                "research_destinations": research.destinations,
                "research_summary": research.summary,
                "status": TripStatus.awaiting_confirmation.value,
            },
            target=TripPhase.research,
        )

    async def _call_research(self, trip: TripRecord) -> ResearchResult:
        try:
            return await self.research_provider.research(trip)
        except WorkflowError:
            raise
        except Exception as e:
            logger.error(f"[engine] research provider failed for {trip.trip_id}: {e}")
            raise ProviderFailure("research", str(e)) from e

    def confirm_destinations(
        self,
        trip_id: str,
        names: list[str],
        preferences: dict[str, Any] | None = None,
    ) -> TripRecord:
        """Confirm destinations chosen from the research results.

        Names match research destinations case-insensitively and are stored
        with the research spelling.

        Raises:
            TripNotFound: If the trip does not exist
            PhaseViolation: ALREADY_CONFIRMED or NO_RESEARCH_DESTINATIONS
            ValidationError: If names is empty or names an unknown destination
        """
        if not names:
            raise ValidationError("confirmed_destinations", "At least one destination must be confirmed")

        def build_fields(trip: TripRecord) -> dict[str, Any]:
            known = {
                str(d.get("name", "")).strip().lower(): d.get("name")
                for d in trip.research_destinations or []
            }
            confirmed = []
            for name in names:
                canonical = known.get(name.strip().lower())
                if canonical is None:
                    raise ValidationError(
                        "confirmed_destinations",
                        f"Unknown destination '{name}'. Available: {', '.join(str(n) for n in known.values())}",
                    )
                if canonical not in confirmed:
                    confirmed.append(canonical)

            return {
                "destinations_confirmed": True,
                "confirmed_destinations": confirmed,
                "preferences": {**trip.preferences, **(preferences or {})},
                "status": TripStatus.building_trip.value,
            }

        return self._commit(
            "confirm_destinations",
            trip_id,
            "confirmation",
            evaluate_confirmation_eligibility,
            build_fields,
            target=TripPhase.destinations_confirmed,
        )

    # ------------------------------------------------------------------
    # Phase 2
    # ------------------------------------------------------------------

    async def generate_options(self, trip_id: str) -> TripRecord:
        """Generate (or regenerate) trip options.

        Raises:
            TripNotFound: If the trip does not exist
            PhaseViolation: DESTINATIONS_NOT_CONFIRMED, or ALREADY_SELECTED
                once an option has been picked
            ProviderFailure: If the options generator fails
        """
        trip = self._check("options", trip_id, evaluate_options_generation)

        self.progress.update_progress(trip_id, PROGRESS_STEPS["options"])
        try:
            generated = await self.options_generator.generate_options(trip)
        except WorkflowError:
            raise
        except Exception as e:
            logger.error(f"[engine] options generator failed for {trip_id}: {e}")
            raise ProviderFailure("options", str(e)) from e

        options = []
        for i, option in enumerate(generated, start=1):
            option = dict(option)
            option.setdefault("option_index", i)
            options.append(option)

        self.progress.update_progress(trip_id, PROGRESS_STEPS["finalizing"])
        written = self._commit(
            "generate_options",
            trip_id,
            "options",
            evaluate_options_generation,
            lambda _trip: {"options": options, "status": TripStatus.options_ready.value},
            target=TripPhase.options_ready,
        )
        self.progress.update_progress(trip_id, PROGRESS_STEPS["complete"])
        return self._reload(trip_id, written)

    async def select_option(self, trip_id: str, option_index: int) -> TripRecord:
        """Select one generated option and build its itinerary.

        Selection is write-once. If the itinerary generator fails, a day
        skeleton built from the option's hotel nights is stored instead.

        Raises:
            TripNotFound: If the trip does not exist
            PhaseViolation: DESTINATIONS_NOT_CONFIRMED, OPTIONS_NOT_READY or
                ALREADY_SELECTED
            ValidationError: If option_index is < 1 or not among the options
        """
        trip = self._check("selection", trip_id, evaluate_option_selection_eligibility)
        option = self._find_option(trip, option_index)

        try:
            itinerary = await self.options_generator.build_itinerary(trip, option)
        except Exception as e:  # noqa: BLE001
            logger.warning(
                f"[engine] itinerary generation failed for {trip_id}, using day skeleton: {e}"
            )
            itinerary = default_itinerary(option)

        def build_fields(current: TripRecord) -> dict[str, Any]:
            # Options may have been regenerated since the pre-flight read
            if self._find_option(current, option_index) != option:
                raise ValidationError("option_index", f"Option {option_index} changed during selection")
            return {
                "selected_option_index": option_index,
                "itinerary": itinerary,
                "status": TripStatus.option_selected.value,
            }

        return self._commit(
            "select_option",
            trip_id,
            "selection",
            evaluate_option_selection_eligibility,
            build_fields,
            target=TripPhase.selected,
        )

    @staticmethod
    def _find_option(trip: TripRecord, option_index: int) -> dict[str, Any]:
        if option_index < 1:
            raise ValidationError("option_index", "option_index must be >= 1")
        for option in trip.options or []:
            if option.get("option_index") == option_index:
                return option
        available = ", ".join(str(o.get("option_index")) for o in trip.options or [])
        raise ValidationError(
            "option_index",
            f"Option {option_index} not found. Available options: {available}",
        )

    def record_selections(
        self,
        trip_id: str,
        hotels_selected: list[dict[str, Any]] | None = None,
        airfare_estimate: dict[str, Any] | None = None,
    ) -> TripRecord:
        """Merge hotel and airfare selections into the trip's variants.

        Raises:
            ValidationError: If neither selection is given (checked before the
                store is touched)
        """
        updates: dict[str, Any] = {}
        if hotels_selected is not None:
            updates["hotels_selected"] = hotels_selected
        if airfare_estimate is not None:
            updates["airfare_estimate"] = airfare_estimate
        if not updates:
            raise ValidationError("selections", "Provide hotels_selected or airfare_estimate")

        return self._commit(
            "record_selections",
            trip_id,
            "phase2",
            evaluate_phase2_access,
            lambda trip: {"variants": {**trip.variants, **updates}},
        )

    # ------------------------------------------------------------------
    # Cost estimation
    # ------------------------------------------------------------------

    def calculate_cost_estimate(self, estimate_input: CostEstimateInput) -> CostEstimate:
        """Pure cost estimate using the engine's settings and clock."""
        return cost_estimator.calculate_cost_estimate(
            estimate_input, settings=self.settings, now=self.clock()
        )

    def estimate_trip_cost(self, trip_id: str, estimate_input: CostEstimateInput) -> CostEstimate:
        """Compute a cost estimate and store it as variants.cost_estimate.

        A previous estimate is replaced, not merged. If the write fails the
        estimate is discarded and the error raised.
        """
        estimate = self.calculate_cost_estimate(estimate_input)
        payload = estimate.model_dump(mode="json")

        self._commit(
            "estimate_trip_cost",
            trip_id,
            "cost",
            evaluate_trip_exists,
            lambda trip: {"variants": {**trip.variants, "cost_estimate": payload}},
        )
        return estimate

    # ------------------------------------------------------------------
    # Handoff
    # ------------------------------------------------------------------

    def assemble_handoff(self, trip_id: str) -> HandoffDocument:
        """Assemble the agent handoff document (read-only)."""
        return assemble_handoff_document(self._load(trip_id), self.clock())

    def submit_quote_request(self, trip_id: str, form: TravelerForm) -> TripRecord:
        """Store the traveler form and trip snapshot for a travel professional.

        The payload and the quote_requested status are written together.

        Raises:
            ValidationError: If primary_name or email is missing or invalid
                (checked before the store is touched)
            TripNotFound: If the trip does not exist
            PhaseViolation: DESTINATIONS_NOT_CONFIRMED or QUOTE_ALREADY_REQUESTED
        """
        validate_traveler_form(form)
        requested_at = self.clock()

        written = self._commit(
            "submit_quote_request",
            trip_id,
            "quote",
            evaluate_quote_eligibility,
            lambda trip: {
                "handoff_payload": build_quote_payload(trip, form, requested_at, self.settings),
                "status": TripStatus.quote_requested.value,
            },
            target=TripPhase.quote_requested,
        )
        logger.info(f"[engine] quote requested for trip {trip_id}")
        return written

    def mark_booked(self, trip_id: str) -> TripRecord:
        """Close out a trip whose quote has been turned into a booking.

        Raises:
            TripNotFound: If the trip does not exist
            PhaseViolation: QUOTE_NOT_REQUESTED unless a quote is outstanding
        """
        return self._commit(
            "mark_booked",
            trip_id,
            "booking",
            evaluate_booking_eligibility,
            lambda _trip: {"status": TripStatus.booked.value},
            target=TripPhase.booked,
        )

    # ------------------------------------------------------------------
    # Agent quotes
    # ------------------------------------------------------------------

    def list_quote_requests(
        self,
        *,
        agent_id: str | None = None,
        quote_status: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[QuoteRequestSummary]:
        """List outstanding quote requests, newest trip first.

        Args:
            agent_id: Only requests quoted by this agent
            quote_status: "pending" or "quoted" (None for both)
            limit: Page size
            offset: Items to skip
        """
        summaries = [
            summarize_quote_request(trip)
            for trip in self.store.list_by_status(TripStatus.quote_requested.value)
        ]
        if quote_status is not None:
            summaries = [s for s in summaries if s.quote_status == quote_status]
        if agent_id is not None:
            summaries = [s for s in summaries if s.agent_quote and s.agent_quote.agent_id == agent_id]
        return summaries[offset : offset + limit]

    def submit_agent_quote(
        self,
        trip_id: str,
        agent_id: str,
        quote_usd: float,
        notes: str | None = None,
    ) -> TripRecord:
        """Record a travel professional's quote against a quote request.

        The trip stays in quote_requested; a later quote replaces this one.

        Raises:
            ValidationError: If agent_id is blank or quote_usd is not positive
                (checked before the store is touched)
            TripNotFound: If the trip does not exist
            PhaseViolation: QUOTE_NOT_REQUESTED unless a quote is outstanding
        """
        validate_agent_quote(agent_id, quote_usd)
        agent_quote = {
            "agent_id": agent_id,
            "quote_usd": quote_usd,
            "notes": notes or None,
            "quoted_at": self.clock().isoformat(),
        }

        written = self._commit(
            "submit_agent_quote",
            trip_id,
            "agent_quote",
            evaluate_agent_quote_eligibility,
            lambda trip: {"handoff_payload": {**(trip.handoff_payload or {}), "agent_quote": agent_quote}},
        )
        self.workflow_logger.log(
            "info",
            f"[engine] agent {agent_id} quoted trip {trip_id}",
            {"trip_id": trip_id, "agent_id": agent_id, "quote_usd": quote_usd},
        )
        return written
