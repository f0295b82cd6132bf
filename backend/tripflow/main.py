"""FastAPI application - trip workflow API."""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from backend.tripflow.api.routes.agent import router as agent_router
from backend.tripflow.api.routes.estimate import router as estimate_router
from backend.tripflow.api.routes.health import router as health_router
from backend.tripflow.api.routes.metrics import router as metrics_router
from backend.tripflow.api.routes.trips import router as trips_router
from backend.tripflow.config import Settings, get_settings
from backend.tripflow.db.engine import create_trip_store
from backend.tripflow.db.repositories import TripStore
from backend.tripflow.providers.base import OptionsGenerator, ResearchProvider
from backend.tripflow.providers.fixtures import FixtureOptionsGenerator, FixtureResearchProvider
from backend.tripflow.workflow.engine import TripWorkflowEngine
from backend.tripflow.workflow.errors import (
    PhaseViolation,
    ProviderFailure,
    StorageFailure,
    TripNotFound,
    ValidationError,
)

logger = logging.getLogger(__name__)


async def trip_not_found_handler(request: Request, exc: TripNotFound) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content={"detail": str(exc), "code": "TRIP_NOT_FOUND"},
    )


async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=422,
        content={"detail": exc.message, "field": exc.field},
    )


async def phase_violation_handler(request: Request, exc: PhaseViolation) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content={
            "detail": exc.message,
            "code": exc.code.value,
            "requires_confirmation": exc.requires_confirmation,
        },
    )


async def storage_failure_handler(request: Request, exc: StorageFailure) -> JSONResponse:
    # Backend details stay in the logs
    logger.error(f"[api] storage failure on {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": "Trip storage temporarily unavailable"},
    )


async def provider_failure_handler(request: Request, exc: ProviderFailure) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_502_BAD_GATEWAY,
        content={"detail": str(exc), "provider": exc.provider},
    )


def create_app(
    settings: Settings | None = None,
    store: TripStore | None = None,
    research_provider: ResearchProvider | None = None,
    options_generator: OptionsGenerator | None = None,
) -> FastAPI:
    """Build the API with its workflow engine.

    Args:
        settings: Settings (defaults to env settings)
        store: Trip store (defaults to the one DATABASE_URL selects)
        research_provider: Research collaborator (defaults to fixtures)
        options_generator: Options collaborator (defaults to fixtures)
    """
    settings = settings or get_settings()

    app = FastAPI(title="Trip Workflow API", version="0.1.0")
    app.state.engine = TripWorkflowEngine(
        store or create_trip_store(settings),
        research_provider or FixtureResearchProvider(),
        options_generator or FixtureOptionsGenerator(),
        settings,
    )

    app.add_exception_handler(TripNotFound, trip_not_found_handler)  # type: ignore[arg-type]
    app.add_exception_handler(ValidationError, validation_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(PhaseViolation, phase_violation_handler)  # type: ignore[arg-type]
    app.add_exception_handler(StorageFailure, storage_failure_handler)  # type: ignore[arg-type]
    app.add_exception_handler(ProviderFailure, provider_failure_handler)  # type: ignore[arg-type]

    # Register routes
    app.include_router(health_router, tags=["health"])
    app.include_router(metrics_router, tags=["metrics"])
    app.include_router(trips_router, tags=["trips"])
    app.include_router(estimate_router, tags=["estimate"])
    app.include_router(agent_router, tags=["agent"])

    @app.get("/")
    async def root() -> dict[str, str]:
        """Root endpoint."""
        return {"message": "Trip Workflow API", "version": "0.1.0"}

    return app


app = create_app()
