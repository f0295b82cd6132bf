"""Trip lifecycle models - progress, research results and selections."""

from typing import Any

from pydantic import BaseModel, Field


class Progress(BaseModel):
    """Last-written progress for a trip."""

    step: str = "intake"
    message: str = "Understanding your preferences..."
    percent: int = Field(0, ge=0, le=100)


class ProgressUpdate(BaseModel):
    """A single progress write."""

    step: str
    message: str
    percent: int = Field(..., ge=0, le=100)


class ProgressView(BaseModel):
    """Progress as seen by pollers."""

    step: str
    message: str
    percent: int
    complete: bool
    status: str
    phase: str


class ResearchResult(BaseModel):
    """Destination research returned by a research provider."""

    destinations: list[dict[str, Any]]
    summary: dict[str, Any] = Field(default_factory=dict)


class Selections(BaseModel):
    """Hotel/airfare selections recorded into variant data."""

    hotels_selected: list[dict[str, Any]] | None = None
    airfare_estimate: dict[str, Any] | None = None
