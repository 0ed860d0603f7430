"""
Distributed tracing using OpenTelemetry.

Instruments:
- Migration runs
- Per-table reconciliation
- Backend statements (select, delete, update)

Until ``initialize_tracing`` is called, spans go to the OpenTelemetry API's
default (no-op) tracer provider.
"""

from .context import record_counts, trace_operation, trace_statement
from .tracer import get_tracer, initialize_tracing, shutdown_tracing

__all__ = [
    "initialize_tracing",
    "get_tracer",
    "shutdown_tracing",
    "trace_operation",
    "trace_statement",
    "record_counts",
]
