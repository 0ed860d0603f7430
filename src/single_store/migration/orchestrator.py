"""
All-or-nothing migration of the catalog EAV tables to the default store.

One transaction wraps every table. Either every table is reconciled and the
transaction commits, or the first failure rolls back all of them.
"""

import logging
import time
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any, Optional, Sequence

from opentelemetry import trace

from single_store.errors import MigrationFailedError
from single_store.storage.base import StorageBackend
from single_store.utils.metrics import MigrationMetrics
from single_store.utils.tracing import record_counts, trace_operation

from .reconciler import TablePlan, TableReconciler, TableResult
from .settings import MigrationSettings
from .tables import CATALOG_EAV_TABLES

logger = logging.getLogger(__name__)


class MigrationStatus(str, Enum):
    SUCCESS = "success"
    NO_OP = "no_op"
    FAILED = "failed"


@dataclass
class MigrationResult:
    """
    Outcome of one ``migrate`` call.

    On failure ``tables`` still lists the tables reconciled before the error,
    but their changes were rolled back.
    """

    source_store_id: int
    status: MigrationStatus = MigrationStatus.FAILED
    tables: list[TableResult] = field(default_factory=list)
    failed_table: Optional[str] = None
    error: Optional[BaseException] = None
    rollback_error: Optional[BaseException] = None
    started_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    duration_seconds: float = 0.0

    @property
    def succeeded(self) -> bool:
        return self.status is not MigrationStatus.FAILED

    @property
    def rows_deleted(self) -> int:
        return sum(t.rows_deleted for t in self.tables)

    @property
    def rows_updated(self) -> int:
        return sum(t.rows_updated for t in self.tables)

    def to_dict(self) -> dict[str, Any]:
        return {
            "source_store_id": self.source_store_id,
            "status": self.status.value,
            "started_at": self.started_at.isoformat(),
            "duration_seconds": round(self.duration_seconds, 3),
            "rows_deleted": self.rows_deleted,
            "rows_updated": self.rows_updated,
            "rolled_back": self.status is MigrationStatus.FAILED,
            "failed_table": self.failed_table,
            "error": f"{type(self.error).__name__}: {self.error}" if self.error else None,
            "rollback_error": str(self.rollback_error) if self.rollback_error else None,
            "tables": [t.to_dict() for t in self.tables],
        }


class MigrationOrchestrator:
    """Runs the table reconciler over every catalog EAV table in one transaction."""

    def __init__(
        self,
        backend: StorageBackend,
        settings: Optional[MigrationSettings] = None,
        tables: Sequence[str] = CATALOG_EAV_TABLES,
        metrics: Optional[MigrationMetrics] = None,
        reconciler: Optional[TableReconciler] = None,
    ):
        """
        Args:
            backend: Storage backend; its transaction spans the whole run
            settings: Migration settings (default: MigrationSettings())
            tables: Ordered logical table names to migrate
            metrics: Optional Prometheus metrics recorder
            reconciler: Reconciler override (default: built from settings)
        """
        self.backend = backend
        self.settings = settings or MigrationSettings()
        self.tables = tuple(tables)
        self.metrics = metrics
        self.reconciler = reconciler or TableReconciler(
            backend,
            default_store_id=self.settings.default_store_id,
            entity_column=self.settings.entity_column,
            batch_size=self.settings.batch_size,
        )

    def migrate(self, source_store_id: int) -> MigrationResult:
        """
        Move every value scoped to ``source_store_id`` onto the default store.

        Returns a result describing success, no-op or failure. When
        ``settings.raise_on_failure`` is set, a failure raises
        MigrationFailedError after the rollback instead.

        Raises:
            ValueError: If ``source_store_id`` is not a migratable store
            MigrationFailedError: On failure with ``raise_on_failure`` enabled
        """
        self.reconciler.validate_source_store_id(source_store_id)

        result = MigrationResult(source_store_id=source_store_id)
        start_time = time.monotonic()

        with trace_operation(
            "migrate_to_single_store",
            kind=trace.SpanKind.INTERNAL,
            source_store_id=source_store_id,
            table_count=len(self.tables),
        ) as span:
            logger.info(
                f"Migrating store {source_store_id} to default store "
                f"{self.settings.default_store_id} across {len(self.tables)} tables"
            )

            transaction_open = False
            current_table = None
            try:
                self.backend.begin()
                transaction_open = True

                for table in self.tables:
                    current_table = table
                    result.tables.append(self.reconciler.reconcile(table, source_store_id))
                current_table = None

                self.backend.commit()
                transaction_open = False
            except Exception as e:
                result.status = MigrationStatus.FAILED
                result.failed_table = current_table
                result.error = e
                logger.error(
                    f"Migration of store {source_store_id} failed"
                    f"{f' at {current_table}' if current_table else ''}, rolling back: {e}",
                    exc_info=True,
                )
                if transaction_open:
                    self._rollback(result)
            else:
                if any(t.candidates for t in result.tables):
                    result.status = MigrationStatus.SUCCESS
                else:
                    result.status = MigrationStatus.NO_OP
                logger.info(
                    f"Migration of store {source_store_id} committed: "
                    f"status={result.status.value}, deleted={result.rows_deleted}, "
                    f"updated={result.rows_updated}"
                )

            result.duration_seconds = time.monotonic() - start_time
            span.set_attribute("status", result.status.value)
            record_counts(span, rows_deleted=result.rows_deleted, rows_updated=result.rows_updated)

        self._record_metrics(result)

        if result.status is MigrationStatus.FAILED and self.settings.raise_on_failure:
            raise MigrationFailedError(
                f"Migration of store {source_store_id} was rolled back: {result.error}",
                result=result,
            ) from result.error

        return result

    def plan(self, source_store_id: int) -> list[TablePlan]:
        """Per-table counts of rows to re-scope and default-store rows to delete."""
        self.reconciler.validate_source_store_id(source_store_id)

        with trace_operation(
            "plan_single_store_migration",
            source_store_id=source_store_id,
            table_count=len(self.tables),
        ):
            return [self.reconciler.plan(table, source_store_id) for table in self.tables]

    def _rollback(self, result: MigrationResult) -> None:
        try:
            self.backend.rollback()
        except Exception as e:
            result.rollback_error = e
            logger.critical(
                f"Rollback of store {result.source_store_id} migration failed: {e}",
                exc_info=True,
            )
        else:
            logger.warning(
                f"Rolled back migration of store {result.source_store_id}; "
                f"no table was changed"
            )

    def _record_metrics(self, result: MigrationResult) -> None:
        if self.metrics is None:
            return

        if result.succeeded:
            for table_result in result.tables:
                self.metrics.record_table(
                    table_result.physical_table,
                    rows_deleted=table_result.rows_deleted,
                    rows_updated=table_result.rows_updated,
                )
        self.metrics.record_run(result.status.value, result.duration_seconds)
