"""
Unit tests for the migration orchestrator.

Covers the transaction boundary, the explicit result type, configurable
failure surfacing and idempotence across the eleven catalog tables.
"""

from unittest.mock import MagicMock

import pytest
from prometheus_client import CollectorRegistry

from single_store.errors import CouldNotPersistError, MigrationFailedError, StorageError
from single_store.migration import (
    CATALOG_EAV_TABLES,
    MigrationOrchestrator,
    MigrationSettings,
    MigrationStatus,
)
from single_store.migration.reconciler import TableReconciler
from single_store.utils.metrics import MigrationMetrics


class TestMigrate:
    """Test successful runs."""

    def test_migrates_every_table(self, catalog):
        result = MigrationOrchestrator(catalog).migrate(1)

        assert result.status is MigrationStatus.SUCCESS
        assert result.succeeded
        assert [t.table for t in result.tables] == list(CATALOG_EAV_TABLES)
        for table in CATALOG_EAV_TABLES:
            rows = {r["value_id"]: r for r in catalog.rows(table)}
            assert sorted(rows) == [2, 3, 4, 5]
            assert rows[2]["store_id"] == 0
            assert rows[3]["store_id"] == 0
            assert rows[5]["store_id"] == 2

    def test_totals(self, catalog):
        result = MigrationOrchestrator(catalog).migrate(1)

        assert result.rows_deleted == len(CATALOG_EAV_TABLES)
        assert result.rows_updated == 2 * len(CATALOG_EAV_TABLES)
        assert result.failed_table is None
        assert result.error is None

    def test_single_transaction(self, catalog):
        MigrationOrchestrator(catalog).migrate(1)

        operations = [e.operation for e in catalog.journal if e.operation in ("begin", "commit", "rollback")]
        assert operations == ["begin", "commit"]
        assert catalog.journal[0].operation == "begin"
        assert catalog.journal[-1].operation == "commit"

    def test_tables_processed_in_declared_order(self, catalog):
        MigrationOrchestrator(catalog).migrate(1)

        selected = [e.table for e in catalog.journal if e.operation == "select"]
        assert selected == list(CATALOG_EAV_TABLES)

    def test_no_candidates_is_no_op(self, catalog):
        result = MigrationOrchestrator(catalog).migrate(9)

        assert result.status is MigrationStatus.NO_OP
        assert result.succeeded
        assert catalog.writes == []

    def test_empty_catalog_is_no_op(self, empty_catalog):
        assert MigrationOrchestrator(empty_catalog).migrate(1).status is MigrationStatus.NO_OP

    def test_idempotent(self, catalog):
        orchestrator = MigrationOrchestrator(catalog)
        orchestrator.migrate(1)
        writes_after_first = len(catalog.writes)
        state_after_first = catalog.dump()

        second = orchestrator.migrate(1)

        assert second.status is MigrationStatus.NO_OP
        assert len(catalog.writes) == writes_after_first
        assert catalog.dump() == state_after_first

    def test_custom_table_list(self, catalog):
        tables = ("catalog_product_entity_int", "catalog_category_entity_int")

        result = MigrationOrchestrator(catalog, tables=tables).migrate(1)

        assert [t.table for t in result.tables] == list(tables)
        assert catalog.rows("catalog_product_entity_text")[1]["store_id"] == 1

    def test_settings_reach_reconciler(self, catalog):
        settings = MigrationSettings(default_store_id=0, entity_column="row_id", batch_size=1)

        orchestrator = MigrationOrchestrator(catalog, settings=settings)

        assert orchestrator.reconciler.batch_size == 1
        assert orchestrator.migrate(1).succeeded

    def test_invalid_store_raises_before_transaction(self, catalog):
        with pytest.raises(ValueError):
            MigrationOrchestrator(catalog).migrate(0)

        assert catalog.journal == []


class TestAllOrNothing:
    """Test rollback on failure."""

    def test_failure_on_fifth_table_rolls_back_everything(self, catalog):
        fifth = CATALOG_EAV_TABLES[4]
        before = catalog.dump()
        catalog.fail_on(fifth, "update")

        result = MigrationOrchestrator(catalog).migrate(1)

        assert result.status is MigrationStatus.FAILED
        assert not result.succeeded
        assert result.failed_table == fifth
        assert isinstance(result.error, CouldNotPersistError)
        assert [t.table for t in result.tables] == list(CATALOG_EAV_TABLES[:4])
        assert catalog.dump() == before
        assert not catalog.in_transaction

    def test_rollback_recorded_in_journal(self, catalog):
        catalog.fail_on(CATALOG_EAV_TABLES[0], "delete")

        MigrationOrchestrator(catalog).migrate(1)

        operations = [e.operation for e in catalog.journal if e.operation in ("begin", "commit", "rollback")]
        assert operations == ["begin", "rollback"]

    def test_unexpected_error_also_rolls_back(self, catalog):
        before = catalog.dump()
        catalog.fail_on(CATALOG_EAV_TABLES[7], "select", RuntimeError("unexpected"))

        result = MigrationOrchestrator(catalog).migrate(1)

        assert result.status is MigrationStatus.FAILED
        assert isinstance(result.error, RuntimeError)
        assert catalog.dump() == before

    def test_retry_after_rollback_succeeds(self, catalog):
        catalog.fail_on(CATALOG_EAV_TABLES[-1], "update")
        orchestrator = MigrationOrchestrator(catalog)
        assert orchestrator.migrate(1).status is MigrationStatus.FAILED

        catalog.clear_faults()

        assert orchestrator.migrate(1).status is MigrationStatus.SUCCESS

    def test_begin_failure_skips_rollback(self):
        backend = MagicMock()
        backend.begin.side_effect = StorageError("connection lost", operation="begin")

        result = MigrationOrchestrator(backend).migrate(1)

        assert result.status is MigrationStatus.FAILED
        assert result.failed_table is None
        backend.rollback.assert_not_called()

    def test_commit_failure_rolls_back(self, empty_catalog):
        backend = MagicMock(wraps=empty_catalog)
        backend.table_name.side_effect = empty_catalog.table_name
        backend.commit.side_effect = StorageError("commit failed", operation="commit")

        result = MigrationOrchestrator(backend).migrate(1)

        assert result.status is MigrationStatus.FAILED
        assert result.failed_table is None
        backend.rollback.assert_called_once()

    def test_rollback_failure_is_reported(self, catalog):
        catalog.fail_on(CATALOG_EAV_TABLES[0], "update")
        catalog.rollback = MagicMock(side_effect=StorageError("server gone", operation="rollback"))

        result = MigrationOrchestrator(catalog).migrate(1)

        assert result.status is MigrationStatus.FAILED
        assert isinstance(result.error, CouldNotPersistError)
        assert str(result.rollback_error) == "server gone"


class TestRaiseOnFailure:
    """Test configurable failure surfacing."""

    def test_raises_after_rollback(self, catalog):
        before = catalog.dump()
        catalog.fail_on(CATALOG_EAV_TABLES[2], "delete")
        settings = MigrationSettings(raise_on_failure=True)

        with pytest.raises(MigrationFailedError) as exc_info:
            MigrationOrchestrator(catalog, settings=settings).migrate(1)

        assert isinstance(exc_info.value.__cause__, CouldNotPersistError)
        assert exc_info.value.result.failed_table == CATALOG_EAV_TABLES[2]
        assert catalog.dump() == before

    def test_success_does_not_raise(self, catalog):
        settings = MigrationSettings(raise_on_failure=True)

        result = MigrationOrchestrator(catalog, settings=settings).migrate(1)

        assert result.status is MigrationStatus.SUCCESS


class TestMetrics:
    """Test metrics recording."""

    def test_success_records_table_counts(self, catalog):
        registry = CollectorRegistry()
        metrics = MigrationMetrics(registry=registry)

        MigrationOrchestrator(catalog, metrics=metrics).migrate(1)

        table = CATALOG_EAV_TABLES[0]
        assert registry.get_sample_value(
            "single_store_migration_runs_total", {"status": "success"}
        ) == 1.0
        assert registry.get_sample_value(
            "single_store_rows_updated_total", {"table_name": table}
        ) == 2.0
        assert registry.get_sample_value(
            "single_store_rows_deleted_total", {"table_name": table}
        ) == 1.0

    def test_failure_records_no_row_counts(self, catalog):
        registry = CollectorRegistry()
        catalog.fail_on(CATALOG_EAV_TABLES[3], "update")

        MigrationOrchestrator(catalog, metrics=MigrationMetrics(registry=registry)).migrate(1)

        assert registry.get_sample_value(
            "single_store_migration_runs_total", {"status": "failed"}
        ) == 1.0
        assert registry.get_sample_value(
            "single_store_rows_updated_total", {"table_name": CATALOG_EAV_TABLES[0]}
        ) is None


class TestPlan:
    """Test dry-run planning."""

    def test_plan_every_table_without_writes(self, catalog):
        before = catalog.dump()

        plans = MigrationOrchestrator(catalog).plan(1)

        assert [p.table for p in plans] == list(CATALOG_EAV_TABLES)
        assert all(p.candidates == 2 and p.conflicts == 1 for p in plans)
        assert catalog.dump() == before
        assert not catalog.in_transaction

    def test_reconciler_override(self, catalog):
        reconciler = TableReconciler(catalog, batch_size=5)

        orchestrator = MigrationOrchestrator(catalog, reconciler=reconciler)

        assert orchestrator.reconciler is reconciler


class TestResultSerialization:
    def test_to_dict_success(self, catalog):
        data = MigrationOrchestrator(catalog).migrate(1).to_dict()

        assert data["status"] == "success"
        assert data["rolled_back"] is False
        assert data["source_store_id"] == 1
        assert len(data["tables"]) == len(CATALOG_EAV_TABLES)
        assert data["error"] is None

    def test_to_dict_failure(self, catalog):
        catalog.fail_on(CATALOG_EAV_TABLES[0], "select")

        data = MigrationOrchestrator(catalog).migrate(1).to_dict()

        assert data["status"] == "failed"
        assert data["rolled_back"] is True
        assert data["failed_table"] == CATALOG_EAV_TABLES[0]
        assert data["error"].startswith("CouldNotPersistError")
