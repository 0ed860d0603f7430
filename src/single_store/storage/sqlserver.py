"""SQL Server storage backend."""

import logging
from typing import Any

import pyodbc
from opentelemetry import trace

from single_store.utils.retry import retry_database_operation
from single_store.utils.tracing import trace_operation

from .sql import SqlBackend

logger = logging.getLogger(__name__)

DEFAULT_DRIVER = "ODBC Driver 18 for SQL Server"


def build_connection_string(
    server: str,
    port: int,
    database: str,
    user: str,
    password: str,
    driver: str = DEFAULT_DRIVER,
) -> str:
    return (
        f"DRIVER={{{driver}}};"
        f"SERVER={server},{port};"
        f"DATABASE={database};"
        f"UID={user};"
        f"PWD={password};"
        f"TrustServerCertificate=yes;"
        f"Encrypt=yes;"
    )


class SQLServerBackend(SqlBackend):
    """Storage backend over a pyodbc connection."""

    db_type = "sqlserver"
    placeholder = "?"
    max_parameters = 2100
    driver_errors = (pyodbc.Error,)

    def __init__(self, connection: pyodbc.Connection, table_prefix: str = ""):
        super().__init__(connection, table_prefix=table_prefix)

    @classmethod
    def connect(
        cls,
        server: str,
        port: int,
        database: str,
        user: str,
        password: str,
        driver: str = DEFAULT_DRIVER,
        table_prefix: str = "",
        timeout: int = 10,
        max_retries: int = 3,
    ) -> "SQLServerBackend":
        """Open a connection, retrying transient failures with backoff."""
        connection_string = build_connection_string(server, port, database, user, password, driver)

        @retry_database_operation(
            max_retries=max_retries, description=f"connect to SQL Server {server}:{port}"
        )
        def _connect() -> Any:
            with trace_operation(
                "sqlserver_connect",
                kind=trace.SpanKind.CLIENT,
                db_host=server,
                db_name=database,
            ):
                return pyodbc.connect(connection_string, timeout=timeout, autocommit=False)

        connection = _connect()
        logger.info(f"Connected to SQL Server {server}:{port}/{database}")
        return cls(connection, table_prefix=table_prefix)
