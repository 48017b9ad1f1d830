"""
Observability module - Logging, Metrics, and Tracing.
"""

from mdrg.observability.logging import get_logger, log_context, setup_logging
from mdrg.observability.metrics import metrics
from mdrg.observability.tracing import setup_tracing

__all__ = [
    "get_logger",
    "log_context",
    "setup_logging",
    "metrics",
    "setup_tracing",
]
