"""
Storage backends for the single-store migration.

Every backend implements the StorageBackend contract: table name
resolution, a single transaction, and bulk select/delete/update filtered
by Equals/In predicates.
"""

from .base import StorageBackend
from .memory import InMemoryBackend, JournalEntry
from .predicates import Equals, In, Where

__all__ = [
    "StorageBackend",
    "InMemoryBackend",
    "JournalEntry",
    "Equals",
    "In",
    "Where",
]
