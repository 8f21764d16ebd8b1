"""Observability utilities for the wallet bridge.

This package provides:
- Structured logging with contextual information
- Prometheus metrics for relay outcomes, transitions and store failures
"""

from wallet_bridge.observability.logging import configure_logging, get_logger
from wallet_bridge.observability.metrics import (
    record_duration,
    record_operation,
    record_store_error,
    record_transition,
)

__all__ = [
    "configure_logging",
    "get_logger",
    "record_operation",
    "record_transition",
    "record_store_error",
    "record_duration",
]
