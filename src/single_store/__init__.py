"""
Single-store catalog attribute migration.

Collapses store-scoped catalog EAV values onto the default store when a
Magento-style catalog is switched to single store mode.

Components:
- migration: Table reconciler and all-or-nothing migration orchestrator
- storage: Backend contract, predicates, PostgreSQL/SQL Server/in-memory backends
- cli: ``single-store-migrate`` command line tool

Usage:
    from single_store.migration import MigrationOrchestrator
    from single_store.storage.postgres import PostgresBackend
"""

__version__ = "1.0.0"
__all__ = ["migration", "storage", "cli"]
