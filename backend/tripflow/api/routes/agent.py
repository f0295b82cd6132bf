"""Agent endpoints - outstanding quote requests and agent quotes."""

from datetime import datetime
from typing import Literal

from fastapi import APIRouter, Query
from pydantic import BaseModel, Field

from backend.tripflow.api.deps import EngineDep
from backend.tripflow.models.handoff import AgentQuote, QuoteRequestSummary

router = APIRouter(prefix="/agent", tags=["agent"])


class AgentQuoteRequest(BaseModel):
    """Request body for POST /agent/quotes."""

    trip_id: str
    agent_id: str
    quote_usd: float = Field(..., description="Quoted trip price in USD, must be > 0")
    notes: str | None = None


class AgentQuoteResponse(BaseModel):
    """Response for POST /agent/quotes."""

    success: bool
    message: str
    trip_id: str
    quote_usd: float
    quoted_at: datetime


class QuoteRequestList(BaseModel):
    """Response for GET /agent/quotes."""

    quotes: list[QuoteRequestSummary]
    count: int


@router.get("/quotes", response_model=QuoteRequestList)
def list_quote_requests(
    engine: EngineDep,
    agent_id: str | None = None,
    status: Literal["pending", "quoted", "all"] = "all",
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
) -> QuoteRequestList:
    """List outstanding quote requests, optionally only those an agent quoted."""
    quotes = engine.list_quote_requests(
        agent_id=agent_id,
        quote_status=None if status == "all" else status,
        limit=limit,
        offset=offset,
    )
    return QuoteRequestList(quotes=quotes, count=len(quotes))


@router.post("/quotes", response_model=AgentQuoteResponse)
def submit_agent_quote(request: AgentQuoteRequest, engine: EngineDep) -> AgentQuoteResponse:
    """Answer a quote request with an agent's price."""
    trip = engine.submit_agent_quote(request.trip_id, request.agent_id, request.quote_usd, request.notes)
    quote = AgentQuote.model_validate((trip.handoff_payload or {})["agent_quote"])
    return AgentQuoteResponse(
        success=True,
        message="Quote submitted successfully",
        trip_id=trip.trip_id,
        quote_usd=quote.quote_usd,
        quoted_at=quote.quoted_at,
    )
