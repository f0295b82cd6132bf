"""Unit tests for phase derivation and the transition table."""

from collections.abc import Callable

import pytest

from backend.tripflow.db.repositories import TripRecord
from backend.tripflow.workflow.phase import (
    PHASE_HALF,
    PHASE_ORDER,
    TRANSITIONS,
    TripPhase,
    derive_phase,
    is_at_or_beyond,
    is_transition_allowed,
    phase_half,
)


class TestDerivePhase:
    """Phase derivation from record flags, first match wins."""

    def test_fresh_trip_is_intake(self, make_trip: Callable[..., TripRecord]) -> None:
        assert derive_phase(make_trip()) == TripPhase.intake

    def test_research_results_mean_research(self, researched_trip: TripRecord) -> None:
        assert derive_phase(researched_trip) == TripPhase.research

    def test_empty_research_list_is_still_research(self, make_trip: Callable[..., TripRecord]) -> None:
        assert derive_phase(make_trip(research_destinations=[])) == TripPhase.research

    def test_confirmed(self, confirmed_trip: TripRecord) -> None:
        assert derive_phase(confirmed_trip) == TripPhase.destinations_confirmed

    def test_options_ready(self, options_trip: TripRecord) -> None:
        assert derive_phase(options_trip) == TripPhase.options_ready

    def test_selected(self, selected_trip: TripRecord) -> None:
        assert derive_phase(selected_trip) == TripPhase.selected

    def test_handoff_payload_means_quote_requested(self, make_trip: Callable[..., TripRecord]) -> None:
        trip = make_trip(destinations_confirmed=True, handoff_payload={"traveler": {}})
        assert derive_phase(trip) == TripPhase.quote_requested

    def test_booked_status_wins(self, make_trip: Callable[..., TripRecord]) -> None:
        trip = make_trip(destinations_confirmed=True, handoff_payload={}, status="booked")
        assert derive_phase(trip) == TripPhase.booked


class TestTransitions:
    """Transition table shape and lookups."""

    def test_table_is_exhaustive(self) -> None:
        assert set(TRANSITIONS) == set(TripPhase)
        assert set(PHASE_HALF) == set(TripPhase)
        assert set(PHASE_ORDER) == set(TripPhase)

    def test_transitions_never_go_backwards(self) -> None:
        for current, targets in TRANSITIONS.items():
            for target in targets:
                assert is_at_or_beyond(target, current), (current, target)

    def test_booked_is_terminal(self) -> None:
        assert TRANSITIONS[TripPhase.booked] == frozenset()

    @pytest.mark.parametrize(
        ("current", "target", "allowed"),
        [
            (TripPhase.intake, TripPhase.research, True),
            (TripPhase.research, TripPhase.research, True),
            (TripPhase.research, TripPhase.options_ready, False),
            (TripPhase.destinations_confirmed, TripPhase.research, False),
            (TripPhase.options_ready, TripPhase.options_ready, True),
            (TripPhase.selected, TripPhase.selected, False),
            (TripPhase.selected, TripPhase.options_ready, False),
            (TripPhase.destinations_confirmed, TripPhase.quote_requested, True),
            (TripPhase.quote_requested, TripPhase.quote_requested, False),
            (TripPhase.quote_requested, TripPhase.booked, True),
        ],
    )
    def test_is_transition_allowed(self, current: TripPhase, target: TripPhase, allowed: bool) -> None:
        assert is_transition_allowed(current, target) is allowed

    def test_halves(self) -> None:
        assert phase_half(TripPhase.intake) == "phase1"
        assert phase_half(TripPhase.research) == "phase1"
        assert phase_half(TripPhase.destinations_confirmed) == "phase2"
        assert phase_half(TripPhase.booked) == "phase2"
