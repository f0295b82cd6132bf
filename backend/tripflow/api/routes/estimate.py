"""Standalone cost estimate endpoint (no trip required)."""

from fastapi import APIRouter

from backend.tripflow.api.deps import EngineDep
from backend.tripflow.models.cost import CostEstimate, CostEstimateInput

router = APIRouter(prefix="/estimate", tags=["estimate"])


@router.post("/cost", response_model=CostEstimate)
def estimate_cost(request: CostEstimateInput, engine: EngineDep) -> CostEstimate:
    """Calculate a commissioned per-person estimate from price ranges.

    Out-of-range commission_pct is rejected with 422, never clamped.
    """
    return engine.calculate_cost_estimate(request)
