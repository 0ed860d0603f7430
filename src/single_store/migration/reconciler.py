"""
Per-table reconciliation of store-scoped attribute values.

For one EAV table and one source store, rows scoped to the source store are
re-pointed at the default store. Default-store rows sharing an
(attribute, entity row) pair with any source row are deleted first, so the
table never holds two default-store values for the same pair.
"""

import logging
from dataclasses import dataclass
from typing import Any, Iterator, Sequence

from opentelemetry import trace

from single_store.errors import CouldNotPersistError, StorageError
from single_store.storage.base import StorageBackend
from single_store.storage.predicates import Equals, In, Where
from single_store.utils.tracing import record_counts, trace_operation

from .tables import ATTRIBUTE_ID, DEFAULT_ENTITY_COLUMN, DEFAULT_STORE_ID, STORE_ID, VALUE_ID

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CandidateRow:
    """Identifying fields of a row scoped to the source store."""

    value_id: int
    attribute_id: int
    row_id: int


@dataclass
class TableResult:
    """Outcome of reconciling one table."""

    table: str
    physical_table: str
    candidates: int = 0
    rows_deleted: int = 0
    rows_updated: int = 0

    @property
    def changed(self) -> bool:
        return bool(self.rows_deleted or self.rows_updated)

    def to_dict(self) -> dict[str, Any]:
        return {
            "table": self.table,
            "physical_table": self.physical_table,
            "candidates": self.candidates,
            "rows_deleted": self.rows_deleted,
            "rows_updated": self.rows_updated,
        }


@dataclass
class TablePlan:
    """Dry-run counts for one table."""

    table: str
    physical_table: str
    candidates: int
    conflicts: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "table": self.table,
            "physical_table": self.physical_table,
            "candidates": self.candidates,
            "conflicts": self.conflicts,
        }


def chunked(values: Sequence[Any], size: int) -> Iterator[Sequence[Any]]:
    """Yield consecutive slices of at most ``size`` items."""
    for start in range(0, len(values), size):
        yield values[start:start + size]


class TableReconciler:
    """Re-scopes one table's source-store rows onto the default store."""

    def __init__(
        self,
        backend: StorageBackend,
        default_store_id: int = DEFAULT_STORE_ID,
        entity_column: str = DEFAULT_ENTITY_COLUMN,
        batch_size: int = 1000,
    ):
        """
        Args:
            backend: Storage backend the statements run against
            default_store_id: Store id rows are re-scoped to
            entity_column: Entity link column ("row_id" or "entity_id")
            batch_size: Maximum number of ids rendered into one IN list
        """
        if batch_size < 1:
            raise ValueError(f"batch_size must be >= 1, got {batch_size}")

        self.backend = backend
        self.default_store_id = default_store_id
        self.entity_column = entity_column
        self.batch_size = batch_size

    def validate_source_store_id(self, source_store_id: int) -> None:
        if not isinstance(source_store_id, int) or isinstance(source_store_id, bool):
            raise ValueError(f"source_store_id must be an integer, got {source_store_id!r}")
        if source_store_id < 1:
            raise ValueError(f"source_store_id must be positive, got {source_store_id}")
        if source_store_id == self.default_store_id:
            raise ValueError(
                f"source_store_id {source_store_id} is the default store; nothing to migrate"
            )

    def fetch_candidates(self, table: str, source_store_id: int) -> list[CandidateRow]:
        """
        Return every row of ``table`` scoped to ``source_store_id``, ordered by value id.

        Raises:
            CouldNotPersistError: If the backend fails
        """
        self.validate_source_store_id(source_store_id)
        physical_table = self.backend.table_name(table)

        try:
            return self._fetch_candidates(physical_table, source_store_id)
        except StorageError as e:
            raise CouldNotPersistError(table, e) from e

    def reconcile(self, table: str, source_store_id: int) -> TableResult:
        """
        Delete colliding default-store rows, then re-scope the source rows.

        Raises:
            CouldNotPersistError: If fetching, deleting or updating fails
        """
        self.validate_source_store_id(source_store_id)
        physical_table = self.backend.table_name(table)
        result = TableResult(table=table, physical_table=physical_table)

        with trace_operation(
            "reconcile_table",
            kind=trace.SpanKind.INTERNAL,
            table=physical_table,
            source_store_id=source_store_id,
        ) as span:
            try:
                candidates = self._fetch_candidates(physical_table, source_store_id)
                result.candidates = len(candidates)

                if not candidates:
                    logger.debug(f"No rows for store {source_store_id} in {physical_table}")
                    return result

                attribute_ids = list(dict.fromkeys(c.attribute_id for c in candidates))
                row_ids = list(dict.fromkeys(c.row_id for c in candidates))
                value_ids = [c.value_id for c in candidates]

                # Every delete batch must run before the first update batch
                result.rows_deleted = self._delete_default_rows(
                    physical_table, attribute_ids, row_ids
                )
                result.rows_updated = self._rescope_rows(physical_table, value_ids)
            except StorageError as e:
                logger.error(f"Reconciliation of {physical_table} failed: {e}")
                raise CouldNotPersistError(table, e) from e

            record_counts(span, rows_deleted=result.rows_deleted, rows_updated=result.rows_updated)

        logger.info(
            f"Reconciled {physical_table}: {result.candidates} candidates, "
            f"{result.rows_deleted} default-store rows deleted, "
            f"{result.rows_updated} rows moved to store {self.default_store_id}"
        )
        return result

    def plan(self, table: str, source_store_id: int) -> TablePlan:
        """
        Count what ``reconcile`` would touch without writing.

        Raises:
            CouldNotPersistError: If the backend fails
        """
        self.validate_source_store_id(source_store_id)
        physical_table = self.backend.table_name(table)

        try:
            candidates = self._fetch_candidates(physical_table, source_store_id)
            conflicts = 0
            if candidates:
                attribute_ids = list(dict.fromkeys(c.attribute_id for c in candidates))
                row_ids = list(dict.fromkeys(c.row_id for c in candidates))
                for where in self._conflict_filters(attribute_ids, row_ids):
                    conflicts += self.backend.count_rows(physical_table, where)
        except StorageError as e:
            raise CouldNotPersistError(table, e) from e

        return TablePlan(
            table=table,
            physical_table=physical_table,
            candidates=len(candidates),
            conflicts=conflicts,
        )

    def _fetch_candidates(self, physical_table: str, source_store_id: int) -> list[CandidateRow]:
        rows = self.backend.select_rows(
            physical_table,
            [VALUE_ID, ATTRIBUTE_ID, self.entity_column],
            Where(Equals(STORE_ID, source_store_id)),
            order_by=[VALUE_ID],
        )
        return [
            CandidateRow(
                value_id=row[VALUE_ID],
                attribute_id=row[ATTRIBUTE_ID],
                row_id=row[self.entity_column],
            )
            for row in rows
        ]

    def _conflict_filter(self, attribute_ids: Sequence[int], row_ids: Sequence[int]) -> Where:
        return Where(
            Equals(STORE_ID, self.default_store_id),
            In(ATTRIBUTE_ID, attribute_ids),
            In(self.entity_column, row_ids),
        )

    def _conflict_filters(
        self, attribute_ids: Sequence[int], row_ids: Sequence[int]
    ) -> Iterator[Where]:
        """
        Split the conflict filter into statements within the backend's parameter limit.

        Row ids are split by ``batch_size``; attribute ids only when they alone
        would exhaust the limit. Each (attribute, row) pair lands in exactly
        one filter, so the union equals the unbatched filter.
        """
        attribute_batch = len(attribute_ids)
        row_batch = self.batch_size

        limit = self.backend.max_parameters
        if limit is not None:
            room = limit - 1  # store_id
            if attribute_batch >= room:
                attribute_batch = room // 2
            row_batch = min(row_batch, room - attribute_batch)
            if row_batch < self.batch_size:
                logger.debug(
                    f"Row batches capped at {row_batch} ids by the "
                    f"{limit}-parameter limit of {self.backend.db_type}"
                )

        for attribute_chunk in chunked(attribute_ids, attribute_batch):
            for row_chunk in chunked(row_ids, row_batch):
                yield self._conflict_filter(attribute_chunk, row_chunk)

    def _update_batch_size(self) -> int:
        limit = self.backend.max_parameters
        if limit is None:
            return self.batch_size
        return min(self.batch_size, limit - 1)

    def _delete_default_rows(
        self, physical_table: str, attribute_ids: Sequence[int], row_ids: Sequence[int]
    ) -> int:
        deleted = 0
        for where in self._conflict_filters(attribute_ids, row_ids):
            deleted += self.backend.delete_rows(physical_table, where)
        return deleted

    def _rescope_rows(self, physical_table: str, value_ids: Sequence[int]) -> int:
        updated = 0
        for value_batch in chunked(value_ids, self._update_batch_size()):
            updated += self.backend.update_rows(
                physical_table,
                {STORE_ID: self.default_store_id},
                Where(In(VALUE_ID, value_batch)),
            )
        return updated
