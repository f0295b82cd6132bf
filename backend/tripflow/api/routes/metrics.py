"""Prometheus metrics endpoint."""

from fastapi import APIRouter, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

router = APIRouter()


@router.get("/metrics")
async def metrics() -> Response:
    """Prometheus metrics endpoint.

    Exposes workflow counters including:
    - phase_transitions_total{from_phase, to_phase}
    - gate_denials_total{gate, code}
    - progress_write_failures_total
    """
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
