"""
Storage Services Package

Provides the abstract store interfaces the flows depend on, plus
in-memory implementations. A real document store plugs in behind the
same interfaces.
"""

from groupsplit.services.storage.interface import (
    AuditStorageInterface,
    ConnectionError,
    DuplicateError,
    ExpenseStoreInterface,
    NotFoundError,
    StorageError,
)
from groupsplit.services.storage.memory import (
    InMemoryAuditStorage,
    InMemoryExpenseStore,
)
from groupsplit.services.storage.retry import with_store_retry

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "ExpenseStoreInterface",
    # Exceptions
    "ConnectionError",
    "DuplicateError",
    "NotFoundError",
    "StorageError",
    # In-memory implementation
    "InMemoryAuditStorage",
    "InMemoryExpenseStore",
    # Retry policy
    "with_store_retry",
]
