"""
Exception hierarchy for the single-store migration.
"""

from typing import Any, Optional


class MigrationError(Exception):
    """Base exception for single-store migration errors."""

    pass


class StorageError(MigrationError):
    """Raised by a storage backend when a statement or transaction call fails."""

    def __init__(self, message: str, operation: Optional[str] = None, table: Optional[str] = None):
        super().__init__(message)
        self.operation = operation
        self.table = table


class CouldNotPersistError(MigrationError):
    """Raised when a table's rows could not be re-scoped to the default store."""

    def __init__(self, table: str, cause: BaseException):
        super().__init__(f"Could not persist migration of {table}: {cause}")
        self.table = table
        self.cause = cause


class MigrationFailedError(MigrationError):
    """
    Raised by the orchestrator after rollback when failures are configured to surface.

    Carries the MigrationResult describing the rolled-back run.
    """

    def __init__(self, message: str, result: Any):
        super().__init__(message)
        self.result = result
