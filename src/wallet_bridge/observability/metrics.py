"""Prometheus metrics for the wallet bridge.

Metrics include:

- Relay operation outcomes (created, claimed, not_found, conflict, ...)
- Pairing state transitions
- Store failures by store operation
- Relay operation latency, including the store round trips

Examples:
    Recording a claim::

        from wallet_bridge.observability.metrics import record_operation, record_transition

        record_operation("claim_request", "claimed")
        record_transition("initialized", "retrieved")
"""

from prometheus_client import Counter, Histogram

# Labels: operation (create_request, claim_request, ...), outcome
operations_total = Counter(
    "bridge_operations_total",
    "Total number of relay operations by outcome",
    ["operation", "outcome"],
)

# Labels: from_state ("new" for creation), to_state
state_transitions_total = Counter(
    "bridge_state_transitions_total",
    "Total number of pairing state transitions",
    ["from_state", "to_state"],
)

store_errors_total = Counter(
    "bridge_store_errors_total",
    "Total number of relay operations failed by the key-value store",
    ["operation"],
)

operation_duration_seconds = Histogram(
    "bridge_operation_duration_seconds",
    "Relay operation duration in seconds",
    ["operation"],
    buckets=[0.001, 0.0025, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 5.0],
)


def record_operation(operation: str, outcome: str) -> None:
    """Record the outcome of a relay operation.

    Examples:
        >>> record_operation("submit_response", "conflict")
    """
    operations_total.labels(operation=operation, outcome=outcome).inc()


def record_transition(from_state: str, to_state: str) -> None:
    """Record a pairing state transition.

    Examples:
        >>> record_transition("new", "initialized")
    """
    state_transitions_total.labels(from_state=from_state, to_state=to_state).inc()


def record_store_error(operation: str) -> None:
    """Record a relay operation that failed in the store."""
    store_errors_total.labels(operation=operation).inc()


def record_duration(operation: str, seconds: float) -> None:
    """Record how long a relay operation took."""
    operation_duration_seconds.labels(operation=operation).observe(seconds)
