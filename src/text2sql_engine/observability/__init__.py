"""
Observability Module
====================

Structured logging, Prometheus metrics and OpenTelemetry tracing.
"""

from text2sql_engine.observability.logging_config import (
    bind_context,
    clear_context,
    get_logger,
    setup_logging,
)
from text2sql_engine.observability.metrics import track_answer_metrics
from text2sql_engine.observability.tracing import get_tracer, setup_tracing, target_span

__all__ = [
    "bind_context",
    "clear_context",
    "get_logger",
    "setup_logging",
    "track_answer_metrics",
    "get_tracer",
    "setup_tracing",
    "target_span",
]
