"""Prometheus metrics for the trip workflow."""

from prometheus_client import Counter

phase_transitions_total = Counter(
    "phase_transitions_total",
    "Committed trip phase transitions",
    ["from_phase", "to_phase"],
)

gate_denials_total = Counter(
    "gate_denials_total",
    "Operations blocked by a phase gate",
    ["gate", "code"],
)

write_conflicts_total = Counter(
    "write_conflicts_total",
    "Conditional trip writes lost to a concurrent update",
    ["operation"],
)

progress_write_failures_total = Counter(
    "progress_write_failures_total",
    "Progress updates that failed and were swallowed",
)


class PrometheusWorkflowMetrics:
    """Prometheus-based workflow metrics implementation."""

    def record_transition(self, from_phase: str, to_phase: str) -> None:
        """Record a committed transition."""
        phase_transitions_total.labels(from_phase=from_phase, to_phase=to_phase).inc()

    def inc_gate_denial(self, gate: str, code: str) -> None:
        """Increment gate denial counter."""
        gate_denials_total.labels(gate=gate, code=code).inc()

    def inc_write_conflict(self, operation: str) -> None:
        """Increment conditional write conflict counter."""
        write_conflicts_total.labels(operation=operation).inc()

    def inc_progress_failure(self) -> None:
        """Increment swallowed progress failure counter."""
        progress_write_failures_total.inc()
