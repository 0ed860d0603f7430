"""
Unit tests for the SQL Server backend.
"""

from unittest.mock import MagicMock, patch

import pytest

pyodbc = pytest.importorskip("pyodbc")

from single_store.errors import StorageError  # noqa: E402
from single_store.storage import Equals, In, Where  # noqa: E402
from single_store.storage.sqlserver import SQLServerBackend, build_connection_string  # noqa: E402

TABLE = "catalog_category_entity_varchar"


@pytest.fixture
def connection():
    return MagicMock()


@pytest.fixture
def backend(connection):
    return SQLServerBackend(connection)


def test_bracket_quoting_and_qmark_placeholders(backend):
    clause, params = backend.render_where(
        Where(Equals("store_id", 0), In("attribute_id", [5, 6]))
    )

    assert clause == "[store_id] = ? AND [attribute_id] IN (?, ?)"
    assert params == [0, 5, 6]


def test_update_statement(backend, connection):
    cursor = connection.cursor.return_value
    cursor.rowcount = 1

    assert backend.update_rows(TABLE, {"store_id": 0}, Where(In("value_id", [9]))) == 1
    cursor.execute.assert_called_once_with(
        "UPDATE [catalog_category_entity_varchar] SET [store_id] = ? WHERE [value_id] IN (?)",
        [0, 9],
    )


def test_driver_error_translated(backend, connection):
    connection.cursor.return_value.execute.side_effect = pyodbc.Error("08S01", "Communication link failure")

    with pytest.raises(StorageError) as exc_info:
        backend.select_rows(TABLE, ["value_id"], Where(Equals("store_id", 1)))

    assert exc_info.value.operation == "select"


def test_rollback_error_translated(backend, connection):
    connection.rollback.side_effect = pyodbc.Error("HY000", "rollback failed")

    with pytest.raises(StorageError):
        backend.rollback()


def test_build_connection_string():
    conn_str = build_connection_string("sql", 1433, "magento", "sa", "pw")

    assert conn_str.startswith("DRIVER={ODBC Driver 18 for SQL Server};")
    assert "SERVER=sql,1433;" in conn_str
    assert "DATABASE=magento;" in conn_str


@patch("single_store.storage.sqlserver.pyodbc.connect")
def test_connect_disables_autocommit(mock_connect):
    backend = SQLServerBackend.connect(
        server="sql", port=1433, database="magento", user="sa", password="pw"
    )

    args, kwargs = mock_connect.call_args
    assert "SERVER=sql,1433;" in args[0]
    assert kwargs == {"timeout": 10, "autocommit": False}
    assert backend.connection is mock_connect.return_value
