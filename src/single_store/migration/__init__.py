"""
Single-store migration of catalog EAV tables.

Components:
- reconciler: Per-table delete-then-update reconciliation
- orchestrator: One-transaction run over the fixed table list
- tables: Ordered table list and column names
- settings: Environment-driven configuration
- report: Console/JSON output

Usage:
    from single_store.migration import MigrationOrchestrator

    result = MigrationOrchestrator(backend).migrate(source_store_id=1)
"""

from .orchestrator import MigrationOrchestrator, MigrationResult, MigrationStatus
from .reconciler import CandidateRow, TablePlan, TableReconciler, TableResult
from .report import export_result_json, format_plan_console, format_result_console
from .settings import MigrationSettings
from .tables import CATALOG_EAV_TABLES, DEFAULT_STORE_ID

__all__ = [
    "MigrationOrchestrator",
    "MigrationResult",
    "MigrationStatus",
    "TableReconciler",
    "TableResult",
    "TablePlan",
    "CandidateRow",
    "MigrationSettings",
    "CATALOG_EAV_TABLES",
    "DEFAULT_STORE_ID",
    "export_result_json",
    "format_result_console",
    "format_plan_console",
]
