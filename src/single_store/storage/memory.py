"""
In-memory storage backend.

Holds tables as lists of row dictionaries, evaluates predicates directly
and implements transactions with a copy-on-begin snapshot. Every statement
is appended to ``journal`` so callers can count writes and check the order
in which statements ran.
"""

import copy
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Sequence

from single_store.errors import StorageError

from .base import StorageBackend
from .predicates import Where

logger = logging.getLogger(__name__)

WRITE_OPERATIONS = ("delete", "update")


@dataclass
class JournalEntry:
    """One statement executed against the in-memory store."""

    operation: str
    table: str
    rowcount: int = 0
    where: Optional[Where] = None
    assignments: dict[str, Any] = field(default_factory=dict)


class InMemoryBackend(StorageBackend):
    """Storage backend keeping every table in process memory."""

    db_type = "memory"

    def __init__(
        self,
        tables: Optional[dict[str, list[dict[str, Any]]]] = None,
        table_prefix: str = "",
        on_write: Optional[Callable[["InMemoryBackend", JournalEntry], None]] = None,
    ):
        """
        Args:
            tables: Initial rows keyed by physical table name
            table_prefix: Prefix applied by ``table_name``
            on_write: Callback invoked after every delete/update statement
        """
        super().__init__(table_prefix=table_prefix)
        self._tables: dict[str, list[dict[str, Any]]] = {}
        self._snapshot: Optional[dict[str, list[dict[str, Any]]]] = None
        self._faults: dict[tuple[str, str], Exception] = {}
        self.on_write = on_write
        self.journal: list[JournalEntry] = []

        for name, rows in (tables or {}).items():
            self.load(name, rows)

    # Fixture helpers

    def load(self, table: str, rows: Sequence[dict[str, Any]]) -> None:
        """Create or replace ``table`` with copies of ``rows``."""
        self._tables[table] = [dict(row) for row in rows]

    def rows(self, table: str) -> list[dict[str, Any]]:
        """Return a copy of the current rows of ``table``."""
        return [dict(row) for row in self._get_table(table)]

    def dump(self) -> dict[str, list[dict[str, Any]]]:
        """Return a deep copy of every table."""
        return copy.deepcopy(self._tables)

    def fail_on(self, table: str, operation: str, error: Optional[Exception] = None) -> None:
        """Make the next and all later ``operation`` statements on ``table`` raise."""
        self._faults[(table, operation)] = error or StorageError(
            f"Injected {operation} failure on {table}", operation=operation, table=table
        )

    def clear_faults(self) -> None:
        self._faults.clear()

    @property
    def writes(self) -> list[JournalEntry]:
        return [entry for entry in self.journal if entry.operation in WRITE_OPERATIONS]

    @property
    def in_transaction(self) -> bool:
        return self._snapshot is not None

    # Transaction control

    def begin(self) -> None:
        if self._snapshot is not None:
            raise StorageError("Transaction already open", operation="begin")
        self._snapshot = copy.deepcopy(self._tables)
        self.journal.append(JournalEntry(operation="begin", table=""))

    def commit(self) -> None:
        if self._snapshot is None:
            raise StorageError("No open transaction to commit", operation="commit")
        self._snapshot = None
        self.journal.append(JournalEntry(operation="commit", table=""))

    def rollback(self) -> None:
        if self._snapshot is None:
            raise StorageError("No open transaction to roll back", operation="rollback")
        self._tables = self._snapshot
        self._snapshot = None
        self.journal.append(JournalEntry(operation="rollback", table=""))
        logger.debug("In-memory transaction rolled back")

    # Statements

    def select_rows(
        self,
        table: str,
        columns: Sequence[str],
        where: Where,
        order_by: Sequence[str] | None = None,
    ) -> list[dict[str, Any]]:
        self._check_fault(table, "select")
        matched = [row for row in self._get_table(table) if where.matches(row)]
        if order_by:
            matched.sort(key=lambda row: tuple(row.get(column) for column in order_by))

        self.journal.append(
            JournalEntry(operation="select", table=table, rowcount=len(matched), where=where)
        )
        return [{column: row.get(column) for column in columns} for row in matched]

    def count_rows(self, table: str, where: Where) -> int:
        self._check_fault(table, "count")
        count = sum(1 for row in self._get_table(table) if where.matches(row))
        self.journal.append(JournalEntry(operation="count", table=table, rowcount=count, where=where))
        return count

    def delete_rows(self, table: str, where: Where) -> int:
        self._check_fault(table, "delete")
        rows = self._get_table(table)
        kept = [row for row in rows if not where.matches(row)]
        deleted = len(rows) - len(kept)
        self._tables[table] = kept

        self._record_write(JournalEntry(operation="delete", table=table, rowcount=deleted, where=where))
        return deleted

    def update_rows(self, table: str, assignments: dict[str, Any], where: Where) -> int:
        self._check_fault(table, "update")
        updated = 0
        for row in self._get_table(table):
            if where.matches(row):
                row.update(assignments)
                updated += 1

        self._record_write(
            JournalEntry(
                operation="update",
                table=table,
                rowcount=updated,
                where=where,
                assignments=dict(assignments),
            )
        )
        return updated

    def _record_write(self, entry: JournalEntry) -> None:
        self.journal.append(entry)
        if self.on_write is not None:
            self.on_write(self, entry)

    def _get_table(self, table: str) -> list[dict[str, Any]]:
        try:
            return self._tables[table]
        except KeyError:
            raise StorageError(f"Table {table} does not exist", table=table) from None

    def _check_fault(self, table: str, operation: str) -> None:
        fault = self._faults.get((table, operation))
        if fault is not None:
            raise fault
