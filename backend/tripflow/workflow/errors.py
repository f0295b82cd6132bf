"""Workflow error taxonomy.

Every error raised by the workflow engine derives from WorkflowError so the
transport layer can map the whole family in one place.
"""

from enum import Enum


class PhaseCode(str, Enum):
    """Machine-usable codes for gate denials and phase violations."""

    TRIP_NOT_FOUND = "TRIP_NOT_FOUND"
    DESTINATIONS_NOT_CONFIRMED = "DESTINATIONS_NOT_CONFIRMED"
    ALREADY_CONFIRMED = "ALREADY_CONFIRMED"
    NO_RESEARCH_DESTINATIONS = "NO_RESEARCH_DESTINATIONS"
    OPTIONS_NOT_READY = "OPTIONS_NOT_READY"
    ALREADY_SELECTED = "ALREADY_SELECTED"
    QUOTE_ALREADY_REQUESTED = "QUOTE_ALREADY_REQUESTED"
    QUOTE_NOT_REQUESTED = "QUOTE_NOT_REQUESTED"


class WorkflowError(Exception):
    """Base class for all workflow errors."""

    pass


class TripNotFound(WorkflowError):
    """No trip exists for the given id."""

    def __init__(self, trip_id: str) -> None:
        super().__init__(f"Trip {trip_id} not found")
        self.trip_id = trip_id


class ValidationError(WorkflowError):
    """Malformed or out-of-range input.

    Carries the name of the offending field so callers can point at it.
    """

    def __init__(self, field: str, message: str) -> None:
        super().__init__(message)
        self.field = field
        self.message = message


class InvalidCommission(ValidationError):
    """Commission percentage outside the allowed range."""

    def __init__(self, commission_pct: float, low: int = 10, high: int = 15) -> None:
        super().__init__(
            "commission_pct",
            f"Commission percentage must be between {low} and {high} (got {commission_pct})",
        )
        self.commission_pct = commission_pct


class PhaseViolation(WorkflowError):
    """Operation not permitted in the trip's current phase."""

    def __init__(
        self,
        code: PhaseCode,
        message: str,
        *,
        requires_confirmation: bool = False,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.requires_confirmation = requires_confirmation


class StorageFailure(WorkflowError):
    """The trip store could not complete a read or write."""

    pass


class ProviderFailure(WorkflowError):
    """A research or options collaborator failed."""

    def __init__(self, provider: str, message: str) -> None:
        super().__init__(f"{provider}: {message}")
        self.provider = provider
