"""Structured logging for workflow operations."""

import logging
from typing import Any

logger = logging.getLogger(__name__)

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
}


class StructuredWorkflowLogger:
    """Structured logger accepting {level, message, metadata}.

    Logging is best-effort: a failure inside a handler or formatter must never
    reach the operation being logged.
    """

    def __init__(self, name: str = "backend.tripflow.workflow") -> None:
        self._logger = logging.getLogger(name)

    def log(self, level: str, message: str, metadata: dict[str, Any] | None = None) -> None:
        """Emit a structured log record."""
        try:
            self._logger.log(
                _LEVELS.get(level.lower(), logging.INFO),
                message,
                extra={"structured": metadata or {}},
            )
        except Exception:  # noqa: BLE001
            pass

    def log_transition(
        self, trip_id: str, operation: str, from_phase: str, to_phase: str
    ) -> None:
        """Log a committed phase transition."""
        self.log(
            "info",
            f"[{operation}] trip {trip_id}: {from_phase} -> {to_phase}",
            {
                "trip_id": trip_id,
                "operation": operation,
                "from_phase": from_phase,
                "to_phase": to_phase,
            },
        )

    def log_gate_denial(self, trip_id: str, gate: str, code: str) -> None:
        """Log a blocked operation."""
        self.log(
            "warn",
            f"[gate:{gate}] trip {trip_id} blocked: {code}",
            {"trip_id": trip_id, "gate": gate, "code": code},
        )
