"""Progress tracking for long-running trip generation steps."""

import logging

from backend.tripflow.db.repositories import TripStore
from backend.tripflow.models.trip import ProgressUpdate, ProgressView
from backend.tripflow.utils.metrics import PrometheusWorkflowMetrics
from backend.tripflow.workflow.errors import TripNotFound
from backend.tripflow.workflow.phase import TripPhase, derive_phase, is_at_or_beyond

logger = logging.getLogger(__name__)

# Canonical step sequence for research and option generation
PROGRESS_STEPS: dict[str, ProgressUpdate] = {
    "intake": ProgressUpdate(step="intake", message="Understanding your preferences...", percent=10),
    "research": ProgressUpdate(step="research", message="Researching destinations...", percent=40),
    "options": ProgressUpdate(step="options", message="Creating trip options...", percent=70),
    "finalizing": ProgressUpdate(step="finalizing", message="Finalizing itinerary...", percent=95),
    "complete": ProgressUpdate(step="complete", message="Trip ready!", percent=100),
}

_RESEARCH_MESSAGES = {
    "heritage": "Researching family heritage sites...",
    "tvmovie": "Finding filming locations...",
    "historical": "Researching historical sites...",
    "culinary": "Finding culinary destinations...",
    "adventure": "Finding adventure destinations...",
}


def research_message(theme: str | None) -> str:
    """Theme-specific message for the research step."""
    return _RESEARCH_MESSAGES.get(theme or "", PROGRESS_STEPS["research"].message)


class ProgressTracker:
    """Best-effort progress reporting backed by the trip store.

    Writes are unconditional and never bump the trip version, so a progress
    update can never make a concurrent phase write lose its version check.
    """

    def __init__(self, store: TripStore, metrics: PrometheusWorkflowMetrics | None = None) -> None:
        self._store = store
        self._metrics = metrics or PrometheusWorkflowMetrics()

    def update_progress(self, trip_id: str, update: ProgressUpdate) -> None:
        """Record step/message/percent for a trip.

        Never raises: a failed write is logged and swallowed so that progress
        reporting can never abort the phase it is reporting on. Regressions
        are not rejected here; callers own ordering.
        """
        try:
            applied = self._store.update(
                trip_id,
                {
                    "progress_step": update.step,
                    "progress_message": update.message,
                    "progress_percent": update.percent,
                },
            )
        except Exception as e:  # noqa: BLE001
            self._metrics.inc_progress_failure()
            logger.warning(f"[progress] Failed to update progress for {trip_id}: {e}")
            return

        if not applied:
            logger.warning(f"[progress] Trip {trip_id} not found, progress dropped")
            return

        logger.info(f"[progress] {trip_id}: {update.percent}% - {update.message}")

    def get_progress(self, trip_id: str) -> ProgressView:
        """Last-written progress plus a derived completion flag.

        Raises:
            TripNotFound: If the trip does not exist
        """
        trip = self._store.get(trip_id)
        if trip is None:
            raise TripNotFound(trip_id)

        phase = derive_phase(trip)
        return ProgressView(
            step=trip.progress_step or "unknown",
            message=trip.progress_message or "Processing...",
            percent=trip.progress_percent or 0,
            complete=is_at_or_beyond(phase, TripPhase.options_ready),
            status=trip.status,
            phase=phase.value,
        )
