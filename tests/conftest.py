"""
Pytest configuration and shared fixtures for the single-store migration tests.
"""

import pytest

from single_store.migration.tables import CATALOG_EAV_TABLES
from single_store.storage import InMemoryBackend

MIGRATION_ENV_VARS = (
    "MIGRATION_DEFAULT_STORE_ID",
    "MIGRATION_TABLE_PREFIX",
    "MIGRATION_ENTITY_COLUMN",
    "MIGRATION_BATCH_SIZE",
    "MIGRATION_RAISE_ON_FAILURE",
)


def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "property: hypothesis property-based tests")


def make_row(value_id: int, attribute_id: int, row_id: int, store_id: int, value=None) -> dict:
    """Build an attribute value row."""
    return {
        "value_id": value_id,
        "attribute_id": attribute_id,
        "row_id": row_id,
        "store_id": store_id,
        "value": value if value is not None else f"v{value_id}",
    }


@pytest.fixture(autouse=True)
def clean_migration_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep MIGRATION_* settings from the host environment out of tests."""
    for name in MIGRATION_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def empty_catalog() -> InMemoryBackend:
    """Every catalog EAV table, all empty."""
    return InMemoryBackend({table: [] for table in CATALOG_EAV_TABLES})


@pytest.fixture
def catalog() -> InMemoryBackend:
    """
    Every catalog EAV table seeded with the same layout:

    - (attr 5, row 10): default-store row and store-1 row (collision)
    - (attr 6, row 11): store-1 row only
    - (attr 7, row 12): default-store row only
    - (attr 5, row 13): store-2 row only
    """
    tables = {}
    for table in CATALOG_EAV_TABLES:
        tables[table] = [
            make_row(1, 5, 10, 0, "default"),
            make_row(2, 5, 10, 1, "store one"),
            make_row(3, 6, 11, 1),
            make_row(4, 7, 12, 0),
            make_row(5, 5, 13, 2),
        ]
    return InMemoryBackend(tables)


@pytest.fixture
def row_factory():
    return make_row
