"""Health check endpoints."""

from typing import Any

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from backend.tripflow.api.deps import EngineDep

router = APIRouter()


@router.get("/health")
async def health() -> dict[str, str]:
    """Simple health check for Docker/k8s.

    Returns:
        200 OK always (application is running)
    """
    return {"status": "ok"}


@router.get("/healthz", response_model=None)
def healthz(engine: EngineDep) -> dict[str, Any] | JSONResponse:
    """Health check including trip store reachability.

    Returns:
        200 with component status if the store answers
        503 if it does not
    """
    try:
        store_ok = engine.store.ping()
    except Exception:  # noqa: BLE001
        store_ok = False

    response_body = {
        "status": "ok" if store_ok else "degraded",
        "components": {"store": "ok" if store_ok else "error"},
    }

    if not store_ok:
        return JSONResponse(content=response_body, status_code=503)

    return response_body
