"""Models package - re-exports for convenience."""

from backend.tripflow.models.cost import (
    AirfareRange,
    CostEstimate,
    CostEstimateInput,
    HotelStay,
    PriceRange,
    TourCost,
    TransportCost,
)
from backend.tripflow.models.handoff import HandoffDocument, HandoffIntake, TravelerForm
from backend.tripflow.models.trip import (
    Progress,
    ProgressUpdate,
    ProgressView,
    ResearchResult,
    Selections,
)

__all__ = [
    # Cost
    "AirfareRange",
    "HotelStay",
    "TourCost",
    "TransportCost",
    "CostEstimateInput",
    "CostEstimate",
    "PriceRange",
    # Trip
    "Progress",
    "ProgressUpdate",
    "ProgressView",
    "ResearchResult",
    "Selections",
    # Handoff
    "TravelerForm",
    "HandoffIntake",
    "HandoffDocument",
]
