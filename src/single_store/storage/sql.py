"""
Shared SQL rendering and execution for DB-API backends.

Predicates are rendered to parameterized WHERE clauses with validated,
dialect-quoted identifiers. Driver exceptions are translated into
StorageError so callers never depend on a specific driver.
"""

import logging
from contextlib import contextmanager
from typing import Any, Iterator, Sequence

from single_store.errors import StorageError
from single_store.utils.sql_safety import quote_identifier
from single_store.utils.tracing import trace_statement

from .base import StorageBackend
from .predicates import Equals, In, Where

logger = logging.getLogger(__name__)


class SqlBackend(StorageBackend):
    """
    Storage backend over a DB-API 2.0 connection.

    Subclasses set ``db_type``, ``placeholder`` and ``driver_errors``.
    """

    placeholder = "?"
    driver_errors: tuple[type[BaseException], ...] = ()

    def __init__(self, connection: Any, table_prefix: str = ""):
        super().__init__(table_prefix=table_prefix)
        self.connection = connection
        self.has_pending_writes = False

    def quote(self, identifier: str) -> str:
        return quote_identifier(identifier, self.db_type)

    def render_where(self, where: Where) -> tuple[str, list[Any]]:
        """
        Render a conjunction to ``(clause, params)``.

        An empty ``In`` renders as ``1 = 0`` so it matches nothing.
        """
        clauses = []
        params: list[Any] = []

        for predicate in where:
            column = self.quote(predicate.column)
            if isinstance(predicate, Equals):
                clauses.append(f"{column} = {self.placeholder}")
                params.append(predicate.value)
            elif isinstance(predicate, In):
                if not predicate.values:
                    clauses.append("1 = 0")
                    continue
                placeholders = ", ".join([self.placeholder] * len(predicate.values))
                clauses.append(f"{column} IN ({placeholders})")
                params.extend(predicate.values)

        return " AND ".join(clauses) or "1 = 1", params

    @contextmanager
    def _cursor(self, operation: str, table: str) -> Iterator[Any]:
        with trace_statement(self.db_type, operation, table):
            try:
                cursor = self.connection.cursor()
            except self.driver_errors as e:
                raise StorageError(
                    f"Could not open cursor for {operation} on {table}: {e}",
                    operation=operation,
                    table=table,
                ) from e

            try:
                yield cursor
            except self.driver_errors as e:
                raise StorageError(
                    f"{operation} on {table} failed: {e}",
                    operation=operation,
                    table=table,
                ) from e
            finally:
                cursor.close()

    def _connection_call(self, operation: str, func) -> None:
        try:
            func()
        except self.driver_errors as e:
            raise StorageError(f"{operation} failed: {e}", operation=operation) from e

    def begin(self) -> None:
        self._connection_call("begin", self._begin)

    def _begin(self) -> None:
        if self.connection.autocommit:
            self.connection.autocommit = False

    def commit(self) -> None:
        self._connection_call("commit", self.connection.commit)
        self.has_pending_writes = False

    def rollback(self) -> None:
        self._connection_call("rollback", self.connection.rollback)
        self.has_pending_writes = False

    def close(self) -> None:
        self._connection_call("close", self.connection.close)

    def select_rows(
        self,
        table: str,
        columns: Sequence[str],
        where: Where,
        order_by: Sequence[str] | None = None,
    ) -> list[dict[str, Any]]:
        column_list = ", ".join(self.quote(column) for column in columns)
        clause, params = self.render_where(where)
        query = f"SELECT {column_list} FROM {self.quote(table)} WHERE {clause}"
        if order_by:
            query += " ORDER BY " + ", ".join(self.quote(column) for column in order_by)

        with self._cursor("select", table) as cursor:
            cursor.execute(query, params)
            rows = cursor.fetchall()

        logger.debug(f"Selected {len(rows)} rows from {table}")
        return [dict(zip(columns, row)) for row in rows]

    def count_rows(self, table: str, where: Where) -> int:
        clause, params = self.render_where(where)
        query = f"SELECT COUNT(*) FROM {self.quote(table)} WHERE {clause}"

        with self._cursor("count", table) as cursor:
            cursor.execute(query, params)
            return int(cursor.fetchone()[0])

    def delete_rows(self, table: str, where: Where) -> int:
        if not len(where):
            raise ValueError(f"Refusing unfiltered DELETE on {table}")

        clause, params = self.render_where(where)
        query = f"DELETE FROM {self.quote(table)} WHERE {clause}"

        with self._cursor("delete", table) as cursor:
            cursor.execute(query, params)
            self.has_pending_writes = True
            return cursor.rowcount

    def update_rows(self, table: str, assignments: dict[str, Any], where: Where) -> int:
        if not assignments:
            raise ValueError(f"UPDATE on {table} needs at least one assignment")
        if not len(where):
            raise ValueError(f"Refusing unfiltered UPDATE on {table}")

        set_clause = ", ".join(
            f"{self.quote(column)} = {self.placeholder}" for column in assignments
        )
        clause, params = self.render_where(where)
        query = f"UPDATE {self.quote(table)} SET {set_clause} WHERE {clause}"

        with self._cursor("update", table) as cursor:
            cursor.execute(query, [*assignments.values(), *params])
            self.has_pending_writes = True
            return cursor.rowcount
