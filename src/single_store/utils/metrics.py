"""
Prometheus metrics for single-store migration runs.

Tracks migration runs by outcome, rows deleted and re-scoped per table,
and run duration.

Usage:
    from single_store.utils.metrics import MigrationMetrics

    metrics = MigrationMetrics()
    metrics.record_table("catalog_product_entity_int", rows_deleted=3, rows_updated=12)
    metrics.record_run(status="success", duration=4.2)
    metrics.write_textfile("/var/lib/node_exporter/single_store.prom")
"""

import logging
import time
from typing import Callable, Optional, TypeVar

from prometheus_client import (
    REGISTRY,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    push_to_gateway,
    write_to_textfile,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

JOB_NAME = "single-store-migrate"


def get_or_create_metric(
    metric_factory: Callable[[], T],
    metric_name: str,
    registry: CollectorRegistry = REGISTRY,
) -> T:
    """
    Create a metric or return the one already registered under ``metric_name``.

    Lets several MigrationMetrics instances share the global registry.
    """
    try:
        return metric_factory()
    except ValueError:
        existing = registry._names_to_collectors.get(metric_name)
        if existing is not None:
            return existing
        raise


class MigrationMetrics:
    """
    Metrics for single-store migration runs
    """

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        """
        Args:
            registry: Custom Prometheus registry (default: global REGISTRY)
        """
        self.registry = registry or REGISTRY

        self.migration_runs_total = get_or_create_metric(
            lambda: Counter(
                "single_store_migration_runs_total",
                "Total number of single-store migration runs",
                ["status"],
                registry=self.registry,
            ),
            "single_store_migration_runs",
            self.registry,
        )

        self.migration_duration_seconds = get_or_create_metric(
            lambda: Histogram(
                "single_store_migration_duration_seconds",
                "Duration of single-store migration runs in seconds",
                buckets=(0.1, 0.5, 1, 5, 10, 30, 60, 120, 300, 600),
                registry=self.registry,
            ),
            "single_store_migration_duration_seconds",
            self.registry,
        )

        self.migration_last_run_timestamp = get_or_create_metric(
            lambda: Gauge(
                "single_store_migration_last_run_timestamp",
                "Timestamp of the last single-store migration run",
                ["status"],
                registry=self.registry,
            ),
            "single_store_migration_last_run_timestamp",
            self.registry,
        )

        self.rows_deleted_total = get_or_create_metric(
            lambda: Counter(
                "single_store_rows_deleted_total",
                "Default-store rows deleted because they collided with source-store rows",
                ["table_name"],
                registry=self.registry,
            ),
            "single_store_rows_deleted",
            self.registry,
        )

        self.rows_updated_total = get_or_create_metric(
            lambda: Counter(
                "single_store_rows_updated_total",
                "Source-store rows re-scoped to the default store",
                ["table_name"],
                registry=self.registry,
            ),
            "single_store_rows_updated",
            self.registry,
        )

    def record_table(self, table_name: str, rows_deleted: int, rows_updated: int) -> None:
        """Record the row counts of one reconciled table."""
        if rows_deleted:
            self.rows_deleted_total.labels(table_name=table_name).inc(rows_deleted)
        if rows_updated:
            self.rows_updated_total.labels(table_name=table_name).inc(rows_updated)

    def record_run(self, status: str, duration: float) -> None:
        """
        Record a migration run

        Args:
            status: Run outcome ("success", "no_op" or "failed")
            duration: Duration in seconds
        """
        self.migration_runs_total.labels(status=status).inc()
        self.migration_duration_seconds.observe(duration)
        self.migration_last_run_timestamp.labels(status=status).set(time.time())

        logger.debug(f"Recorded migration run: status={status}, duration={duration:.2f}s")

    def write_textfile(self, path: str) -> None:
        """Write the registry in Prometheus text format for a textfile collector."""
        write_to_textfile(path, self.registry)
        logger.info(f"Metrics written to {path}")

    def push(self, gateway: str, job: str = JOB_NAME) -> None:
        """
        Push the registry to a Prometheus Pushgateway

        Args:
            gateway: Pushgateway address, e.g. localhost:9091
            job: Job label of the pushed group
        """
        push_to_gateway(gateway, job=job, registry=self.registry)
        logger.info(f"Metrics pushed to {gateway} (job={job})")
