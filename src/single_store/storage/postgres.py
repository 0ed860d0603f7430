"""PostgreSQL storage backend."""

import logging
from typing import Any

import psycopg2
import psycopg2.extensions
from opentelemetry import trace

from single_store.errors import StorageError
from single_store.utils.retry import retry_database_operation
from single_store.utils.tracing import trace_operation

from .sql import SqlBackend

logger = logging.getLogger(__name__)


class PostgresBackend(SqlBackend):
    """Storage backend over a psycopg2 connection."""

    db_type = "postgresql"
    placeholder = "%s"
    max_parameters = 65535
    driver_errors = (psycopg2.Error,)

    def __init__(self, connection: psycopg2.extensions.connection, table_prefix: str = ""):
        super().__init__(connection, table_prefix=table_prefix)

    def _begin(self) -> None:
        # autocommit cannot change inside a transaction; reads before begin() open one
        status = self.connection.get_transaction_status()
        if status == psycopg2.extensions.TRANSACTION_STATUS_INTRANS and self.has_pending_writes:
            raise StorageError("Cannot begin: connection has uncommitted changes", operation="begin")
        if status == psycopg2.extensions.TRANSACTION_STATUS_INTRANS:
            logger.debug("Ending open read transaction before begin")
            self.connection.rollback()
        elif status != psycopg2.extensions.TRANSACTION_STATUS_IDLE:
            raise StorageError(
                f"Cannot begin: connection transaction status is {status}",
                operation="begin",
            )

        if self.connection.autocommit:
            self.connection.autocommit = False

    @classmethod
    def connect(
        cls,
        host: str,
        port: int,
        database: str,
        user: str,
        password: str,
        table_prefix: str = "",
        connect_timeout: int = 10,
        max_retries: int = 3,
    ) -> "PostgresBackend":
        """Open a connection, retrying transient failures with backoff."""

        @retry_database_operation(
            max_retries=max_retries, description=f"connect to PostgreSQL {host}:{port}"
        )
        def _connect() -> Any:
            with trace_operation(
                "postgres_connect",
                kind=trace.SpanKind.CLIENT,
                db_host=host,
                db_name=database,
            ):
                return psycopg2.connect(
                    host=host,
                    port=port,
                    database=database,
                    user=user,
                    password=password,
                    connect_timeout=connect_timeout,
                )

        connection = _connect()
        logger.info(f"Connected to PostgreSQL {host}:{port}/{database}")
        return cls(connection, table_prefix=table_prefix)
