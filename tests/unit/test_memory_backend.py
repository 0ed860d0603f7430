"""
Unit tests for the in-memory storage backend.
"""

import pytest

from single_store.errors import StorageError
from single_store.storage import Equals, In, InMemoryBackend, Where


@pytest.fixture
def backend(row_factory):
    return InMemoryBackend({
        "catalog_product_entity_int": [
            row_factory(1, 5, 10, 0),
            row_factory(2, 5, 10, 1),
            row_factory(3, 6, 11, 1),
        ]
    })


class TestTableName:
    """Test logical to physical table name resolution."""

    def test_without_prefix(self):
        assert InMemoryBackend().table_name("catalog_product_entity_int") == "catalog_product_entity_int"

    def test_with_prefix(self):
        backend = InMemoryBackend(table_prefix="mg_")
        assert backend.table_name("catalog_product_entity_int") == "mg_catalog_product_entity_int"

    def test_invalid_prefix_rejected(self):
        with pytest.raises(ValueError, match="Invalid SQL identifier"):
            InMemoryBackend(table_prefix="mg; DROP")

    def test_invalid_table_rejected(self):
        with pytest.raises(ValueError):
            InMemoryBackend().table_name("catalog product")


class TestStatements:
    """Test select/count/delete/update."""

    def test_select_projects_and_orders(self, backend):
        rows = backend.select_rows(
            "catalog_product_entity_int",
            ["value_id", "row_id"],
            Where(Equals("store_id", 1)),
            order_by=["value_id"],
        )
        assert rows == [{"value_id": 2, "row_id": 10}, {"value_id": 3, "row_id": 11}]

    def test_count(self, backend):
        assert backend.count_rows("catalog_product_entity_int", Where(In("attribute_id", [5]))) == 2

    def test_delete_returns_rowcount(self, backend):
        deleted = backend.delete_rows("catalog_product_entity_int", Where(Equals("store_id", 0)))

        assert deleted == 1
        assert [r["value_id"] for r in backend.rows("catalog_product_entity_int")] == [2, 3]

    def test_update_returns_rowcount(self, backend):
        updated = backend.update_rows(
            "catalog_product_entity_int", {"store_id": 0}, Where(In("value_id", [2, 3]))
        )

        assert updated == 2
        assert {r["store_id"] for r in backend.rows("catalog_product_entity_int")} == {0}

    def test_missing_table_raises_storage_error(self, backend):
        with pytest.raises(StorageError, match="does not exist"):
            backend.select_rows("missing", ["value_id"], Where())

    def test_rows_returns_copies(self, backend):
        backend.rows("catalog_product_entity_int")[0]["store_id"] = 99
        assert backend.rows("catalog_product_entity_int")[0]["store_id"] == 0

    def test_journal_records_writes(self, backend):
        backend.delete_rows("catalog_product_entity_int", Where(Equals("store_id", 0)))
        backend.update_rows("catalog_product_entity_int", {"store_id": 0}, Where(In("value_id", [2])))

        assert [(e.operation, e.rowcount) for e in backend.writes] == [("delete", 1), ("update", 1)]
        assert backend.writes[1].assignments == {"store_id": 0}

    def test_on_write_callback(self, row_factory):
        seen = []
        backend = InMemoryBackend(
            {"t": [row_factory(1, 5, 10, 1)]},
            on_write=lambda b, entry: seen.append((entry.operation, b.rows("t")[0]["store_id"])),
        )

        backend.update_rows("t", {"store_id": 0}, Where(In("value_id", [1])))

        assert seen == [("update", 0)]


class TestTransactions:
    """Test snapshot transactions."""

    def test_rollback_restores_snapshot(self, backend):
        before = backend.dump()

        backend.begin()
        backend.delete_rows("catalog_product_entity_int", Where(Equals("store_id", 0)))
        backend.rollback()

        assert backend.dump() == before
        assert not backend.in_transaction

    def test_commit_keeps_changes(self, backend):
        backend.begin()
        backend.delete_rows("catalog_product_entity_int", Where(Equals("store_id", 0)))
        backend.commit()

        assert len(backend.rows("catalog_product_entity_int")) == 2

    def test_nested_begin_rejected(self, backend):
        backend.begin()
        with pytest.raises(StorageError, match="already open"):
            backend.begin()

    def test_commit_without_transaction_rejected(self, backend):
        with pytest.raises(StorageError):
            backend.commit()

    def test_rollback_without_transaction_rejected(self, backend):
        with pytest.raises(StorageError):
            backend.rollback()


class TestFaultInjection:
    """Test fail_on."""

    def test_default_fault_is_storage_error(self, backend):
        backend.fail_on("catalog_product_entity_int", "update")

        with pytest.raises(StorageError, match="Injected update failure"):
            backend.update_rows("catalog_product_entity_int", {"store_id": 0}, Where(In("value_id", [2])))

    def test_custom_fault(self, backend):
        backend.fail_on("catalog_product_entity_int", "select", RuntimeError("boom"))

        with pytest.raises(RuntimeError, match="boom"):
            backend.select_rows("catalog_product_entity_int", ["value_id"], Where())

    def test_clear_faults(self, backend):
        backend.fail_on("catalog_product_entity_int", "select")
        backend.clear_faults()

        assert backend.select_rows("catalog_product_entity_int", ["value_id"], Where())
