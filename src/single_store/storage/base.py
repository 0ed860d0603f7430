"""
Storage backend contract for the migration.

A backend resolves logical table names, runs one transaction at a time
and executes bulk select/delete/update statements filtered by predicates.
"""

from abc import ABC, abstractmethod
from typing import Any, Sequence

from single_store.utils.sql_safety import DIALECTS, validate_identifier, validate_table_prefix

from .predicates import Where


class StorageBackend(ABC):
    """
    Base class for migration storage backends.

    Subclasses raise ``single_store.errors.StorageError`` for any failure
    of the underlying store.
    """

    db_type = "unknown"
    # Bound parameters one statement may carry; None for no limit
    max_parameters: int | None = None

    def __init__(self, table_prefix: str = ""):
        validate_table_prefix(table_prefix)
        self.table_prefix = table_prefix

    def table_name(self, logical_name: str) -> str:
        """Resolve a logical table name to its physical (prefixed) name."""
        physical_name = f"{self.table_prefix}{logical_name}"
        dialect = DIALECTS.get(self.db_type)
        validate_identifier(physical_name, max_length=dialect[2] if dialect else None)
        return physical_name

    @abstractmethod
    def begin(self) -> None:
        """Open a transaction."""

    @abstractmethod
    def commit(self) -> None:
        """Commit the open transaction."""

    @abstractmethod
    def rollback(self) -> None:
        """Discard every change made since ``begin``."""

    @abstractmethod
    def select_rows(
        self,
        table: str,
        columns: Sequence[str],
        where: Where,
        order_by: Sequence[str] | None = None,
    ) -> list[dict[str, Any]]:
        """Return matching rows projected to ``columns``."""

    @abstractmethod
    def count_rows(self, table: str, where: Where) -> int:
        """Return the number of matching rows."""

    @abstractmethod
    def delete_rows(self, table: str, where: Where) -> int:
        """Delete matching rows and return how many were removed."""

    @abstractmethod
    def update_rows(self, table: str, assignments: dict[str, Any], where: Where) -> int:
        """Apply ``assignments`` to matching rows and return how many changed."""

    def close(self) -> None:
        """Release backend resources."""
