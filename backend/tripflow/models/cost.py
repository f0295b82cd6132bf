"""Cost estimate models - itemized price ranges in, commissioned range out."""

from datetime import datetime
from typing import Literal

from pydantic import AliasChoices, BaseModel, Field

# (low, high) in whole currency units
PriceRange = tuple[float, float]


class AirfareRange(BaseModel):
    """Per-person airfare range."""

    low: float = Field(..., ge=0, validation_alias=AliasChoices("low", "price_low"))
    high: float = Field(..., ge=0, validation_alias=AliasChoices("high", "price_high"))


class HotelStay(BaseModel):
    """Hotel stay priced per night."""

    nights: int = Field(..., ge=0)
    nightly_low: float = Field(..., ge=0)
    nightly_high: float = Field(..., ge=0)
    city: str | None = None


class TourCost(BaseModel):
    """Tour price range."""

    price_low: float = Field(..., ge=0)
    price_high: float = Field(..., ge=0)
    name: str | None = None


class TransportCost(BaseModel):
    """Ground transport leg price range."""

    price_low: float = Field(..., ge=0)
    price_high: float = Field(..., ge=0)
    type: Literal["train", "car_rental", "driver", "taxi", "bus", "ferry"] | None = None
    route: str | None = None
    days: int | None = None


class CostEstimateInput(BaseModel):
    """Input to the cost estimator.

    commission_pct is validated by the estimator itself (not here) so that an
    out-of-range value surfaces as InvalidCommission rather than a schema error.
    """

    airfare: AirfareRange
    hotels: list[HotelStay]
    tours: list[TourCost] = Field(default_factory=list)
    transport: list[TransportCost] = Field(default_factory=list)
    commission_pct: float | None = None


class CostEstimate(BaseModel):
    """Per-person cost estimate with commission headroom on the upper bound."""

    airfare: PriceRange
    hotels: PriceRange
    tours: PriceRange
    transport: PriceRange
    subtotal: PriceRange
    total_per_person: PriceRange
    commission_included: bool = True
    commission_pct: float
    currency: str
    disclaimer: str
    estimate_date: datetime
