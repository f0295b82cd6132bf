"""Cost estimator - pure arithmetic over itemized price ranges.

Commission is applied to the upper bound only: the low end of the
per-person total is the bare subtotal, the high end leaves headroom for the
travel professional's fee.
"""

import math
from collections.abc import Iterable
from datetime import UTC, datetime

from backend.tripflow.config import Settings, get_settings
from backend.tripflow.models.cost import CostEstimate, CostEstimateInput, PriceRange
from backend.tripflow.workflow.errors import InvalidCommission


def _sum_ranges(ranges: Iterable[PriceRange]) -> PriceRange:
    low = 0.0
    high = 0.0
    for r_low, r_high in ranges:
        low += r_low
        high += r_high
    return (low, high)


def validate_commission(commission_pct: float | None, settings: Settings) -> float:
    """Resolve the commission percentage, applying the configured default.

    Raises:
        InvalidCommission: If the value is outside the allowed range
    """
    if commission_pct is None:
        commission_pct = settings.default_commission_pct
    if not settings.min_commission_pct <= commission_pct <= settings.max_commission_pct:
        raise InvalidCommission(
            commission_pct,
            low=settings.min_commission_pct,
            high=settings.max_commission_pct,
        )
    return commission_pct


def calculate_cost_estimate(
    estimate_input: CostEstimateInput,
    *,
    settings: Settings | None = None,
    now: datetime | None = None,
) -> CostEstimate:
    """Compute a per-person cost estimate.

    Args:
        estimate_input: Airfare, hotel, tour and transport price ranges
        settings: Commission bounds, currency and disclaimer (defaults to env settings)
        now: Timestamp for estimate_date (defaults to current UTC time)

    Returns:
        CostEstimate whose total low equals the subtotal low and whose total
        high is the subtotal high marked up by commission, rounded up.

    Raises:
        InvalidCommission: If commission_pct is outside [min, max]
    """
    settings = settings or get_settings()
    commission_pct = validate_commission(estimate_input.commission_pct, settings)

    airfare = (estimate_input.airfare.low, estimate_input.airfare.high)
    hotels = _sum_ranges(
        (h.nightly_low * h.nights, h.nightly_high * h.nights) for h in estimate_input.hotels
    )
    tours = _sum_ranges((t.price_low, t.price_high) for t in estimate_input.tours)
    transport = _sum_ranges((t.price_low, t.price_high) for t in estimate_input.transport)

    subtotal = _sum_ranges([airfare, hotels, tours, transport])
    # Round off float noise first so 1000 at 10% stays 1100, not 1101
    total_high = math.ceil(round(subtotal[1] * (1 + commission_pct / 100), 6))

    return CostEstimate(
        airfare=airfare,
        hotels=hotels,
        tours=tours,
        transport=transport,
        subtotal=subtotal,
        total_per_person=(subtotal[0], total_high),
        commission_included=True,
        commission_pct=commission_pct,
        currency=settings.currency,
        disclaimer=settings.cost_disclaimer,
        estimate_date=now or datetime.now(UTC),
    )
