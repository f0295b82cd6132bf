"""Unit tests for the cost estimator.

Tests cover:
1. Worked example (hotels + airfare only)
2. Commission bounds (rejected, never clamped) and default
3. Upper-bound markup for every allowed commission
4. Tours/transport summation and empty lists
"""

import math
from datetime import UTC, datetime
from fractions import Fraction

import pytest

from backend.tripflow.config import Settings
from backend.tripflow.models.cost import (
    AirfareRange,
    CostEstimateInput,
    HotelStay,
    TourCost,
    TransportCost,
)
from backend.tripflow.workflow.cost import calculate_cost_estimate
from backend.tripflow.workflow.errors import InvalidCommission, ValidationError

NOW = datetime(2025, 3, 1, 12, 0, tzinfo=UTC)


def _input(commission_pct: float | None = None, **kwargs: object) -> CostEstimateInput:
    return CostEstimateInput(
        airfare=AirfareRange(low=400, high=600),
        hotels=[HotelStay(nights=3, nightly_low=100, nightly_high=150)],
        commission_pct=commission_pct,
        **kwargs,
    )


@pytest.fixture
def settings() -> Settings:
    return Settings(database_url=None)


class TestWorkedExample:
    """Hotels 3x(100-150) plus airfare 400-600."""

    def test_breakdown(self, settings: Settings) -> None:
        estimate = calculate_cost_estimate(_input(), settings=settings, now=NOW)

        assert estimate.hotels == (300, 450)
        assert estimate.airfare == (400, 600)
        assert estimate.tours == (0, 0)
        assert estimate.transport == (0, 0)
        assert estimate.subtotal == (700, 1050)

    def test_total_applies_commission_to_high_only(self, settings: Settings) -> None:
        estimate = calculate_cost_estimate(_input(), settings=settings, now=NOW)

        assert estimate.total_per_person == (700, 1208)
        assert estimate.commission_pct == 15
        assert estimate.commission_included is True

    def test_metadata(self, settings: Settings) -> None:
        estimate = calculate_cost_estimate(_input(), settings=settings, now=NOW)

        assert estimate.currency == "USD"
        assert estimate.disclaimer == "final quote by travel professional"
        assert estimate.estimate_date == NOW


class TestCommission:
    """Commission validation and markup."""

    @pytest.mark.parametrize("pct", [9, 16, 0, 9.99, 15.01])
    def test_out_of_range_rejected(self, settings: Settings, pct: float) -> None:
        with pytest.raises(InvalidCommission) as exc_info:
            calculate_cost_estimate(_input(pct), settings=settings, now=NOW)

        assert isinstance(exc_info.value, ValidationError)
        assert exc_info.value.field == "commission_pct"

    def test_default_is_fifteen(self, settings: Settings) -> None:
        estimate = calculate_cost_estimate(_input(None), settings=settings, now=NOW)
        assert estimate.commission_pct == 15

    def test_total_high_for_every_allowed_commission(self, settings: Settings) -> None:
        subtotals = [0, 1, 99, 700, 1000, 1050, 2345, 99999]
        for pct in range(10, 16):
            for high in subtotals:
                estimate = calculate_cost_estimate(
                    CostEstimateInput(
                        airfare=AirfareRange(low=high / 2, high=high),
                        hotels=[],
                        commission_pct=pct,
                    ),
                    settings=settings,
                    now=NOW,
                )
                expected_high = math.ceil(Fraction(high) * (100 + pct) / 100)

                assert estimate.total_per_person[0] == estimate.subtotal[0]
                assert estimate.total_per_person[1] == expected_high, (pct, high)

    def test_round_subtotal_is_not_bumped_by_float_error(self, settings: Settings) -> None:
        estimate = calculate_cost_estimate(
            CostEstimateInput(airfare=AirfareRange(low=0, high=1000), hotels=[], commission_pct=10),
            settings=settings,
            now=NOW,
        )
        assert estimate.total_per_person == (0, 1100)

    def test_bounds_come_from_settings(self) -> None:
        narrow = Settings(database_url=None, min_commission_pct=12, max_commission_pct=13, default_commission_pct=12)

        with pytest.raises(InvalidCommission):
            calculate_cost_estimate(_input(15), settings=narrow, now=NOW)
        assert calculate_cost_estimate(_input(), settings=narrow, now=NOW).commission_pct == 12


class TestComponents:
    """Tours and transport sum component-wise."""

    def test_tours_and_transport_included_in_subtotal(self, settings: Settings) -> None:
        estimate = calculate_cost_estimate(
            _input(
                10,
                tours=[TourCost(price_low=50, price_high=80), TourCost(price_low=20, price_high=20)],
                transport=[TransportCost(price_low=30, price_high=60, type="train", route="Dublin-Cork")],
            ),
            settings=settings,
            now=NOW,
        )

        assert estimate.tours == (70, 100)
        assert estimate.transport == (30, 60)
        assert estimate.subtotal == (800, 1210)
        assert estimate.total_per_person == (800, 1331)

    def test_multiple_hotels_weighted_by_nights(self, settings: Settings) -> None:
        estimate = calculate_cost_estimate(
            CostEstimateInput(
                airfare=AirfareRange(low=0, high=0),
                hotels=[
                    HotelStay(nights=2, nightly_low=100, nightly_high=200, city="Dublin"),
                    HotelStay(nights=1, nightly_low=80, nightly_high=90, city="Cork"),
                ],
            ),
            settings=settings,
            now=NOW,
        )

        assert estimate.hotels == (280, 490)

    def test_airfare_accepts_price_aliases(self) -> None:
        airfare = AirfareRange.model_validate({"price_low": 400, "price_high": 600})
        assert (airfare.low, airfare.high) == (400, 600)

    def test_deterministic_apart_from_date(self, settings: Settings) -> None:
        first = calculate_cost_estimate(_input(12), settings=settings, now=NOW)
        second = calculate_cost_estimate(_input(12), settings=settings, now=datetime(2026, 1, 1, tzinfo=UTC))

        assert first.model_dump(exclude={"estimate_date"}) == second.model_dump(exclude={"estimate_date"})
