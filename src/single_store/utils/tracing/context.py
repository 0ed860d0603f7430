"""
Span context managers for migration runs and database statements.
"""

from contextlib import contextmanager

from opentelemetry import trace

from .tracer import get_tracer


@contextmanager
def trace_operation(
    operation_name: str,
    kind: trace.SpanKind = trace.SpanKind.INTERNAL,
    **attributes
):
    """
    Context manager for tracing operations.

    Creates a span, attaches attributes, records any exception raised
    inside the block and re-raises it.

    Example:
        >>> with trace_operation("reconcile_table", table="catalog_product_entity_int") as span:
        ...     result = reconciler.reconcile(table, store_id)
        ...     record_counts(span, rows_updated=result.rows_updated)
    """
    tracer = get_tracer()

    with tracer.start_as_current_span(operation_name, kind=kind) as span:
        for key, value in attributes.items():
            span.set_attribute(key, str(value))

        try:
            yield span
        except Exception as e:
            span.set_attribute("error", True)
            span.set_attribute("error.type", type(e).__name__)
            span.set_attribute("error.message", str(e))
            span.record_exception(e)
            raise


@contextmanager
def trace_statement(db_system: str, operation: str, table: str):
    """Client span for one SQL statement, named ``db.<operation>``."""
    with trace_operation(
        f"db.{operation}",
        kind=trace.SpanKind.CLIENT,
        **{
            "db.system": db_system,
            "db.operation": operation.upper(),
            "db.sql.table": table,
        },
    ) as span:
        yield span


def record_counts(span: trace.Span, **counts: int) -> None:
    """Attach row counts to ``span`` as integer attributes."""
    if span.is_recording():
        for key, value in counts.items():
            span.set_attribute(key, int(value))
