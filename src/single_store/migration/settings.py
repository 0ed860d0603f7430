"""
Runtime settings for the migration.

Environment variables:
    MIGRATION_DEFAULT_STORE_ID: Store id values are re-scoped to (default: 0)
    MIGRATION_TABLE_PREFIX: Physical table name prefix (default: none)
    MIGRATION_ENTITY_COLUMN: Entity link column, row_id or entity_id (default: row_id)
    MIGRATION_BATCH_SIZE: Maximum ids per IN list (default: 1000)
    MIGRATION_RAISE_ON_FAILURE: Raise after rollback instead of returning (default: false)
"""

import os
from dataclasses import dataclass

from single_store.utils.sql_safety import (
    validate_identifier,
    validate_integer_param,
    validate_table_prefix,
)

from .tables import DEFAULT_ENTITY_COLUMN, DEFAULT_STORE_ID

TRUE_VALUES = ("true", "1", "yes")


@dataclass(frozen=True)
class MigrationSettings:
    default_store_id: int = DEFAULT_STORE_ID
    table_prefix: str = ""
    entity_column: str = DEFAULT_ENTITY_COLUMN
    batch_size: int = 1000
    raise_on_failure: bool = False

    def __post_init__(self):
        validate_integer_param(self.default_store_id, "default_store_id", min_value=0)
        validate_integer_param(self.batch_size, "batch_size", min_value=1)
        validate_identifier(self.entity_column)
        validate_table_prefix(self.table_prefix)

    @classmethod
    def from_env(cls) -> "MigrationSettings":
        return cls(
            default_store_id=int(os.getenv("MIGRATION_DEFAULT_STORE_ID", str(DEFAULT_STORE_ID))),
            table_prefix=os.getenv("MIGRATION_TABLE_PREFIX", ""),
            entity_column=os.getenv("MIGRATION_ENTITY_COLUMN", DEFAULT_ENTITY_COLUMN),
            batch_size=int(os.getenv("MIGRATION_BATCH_SIZE", "1000")),
            raise_on_failure=os.getenv("MIGRATION_RAISE_ON_FAILURE", "false").lower() in TRUE_VALUES,
        )
