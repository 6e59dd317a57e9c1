"""Services package."""

from groupsplit.services.storage import (
    AuditStorageInterface,
    ConnectionError,
    DuplicateError,
    ExpenseStoreInterface,
    InMemoryAuditStorage,
    InMemoryExpenseStore,
    NotFoundError,
    StorageError,
)

__all__ = [
    "AuditStorageInterface",
    "ConnectionError",
    "DuplicateError",
    "ExpenseStoreInterface",
    "InMemoryAuditStorage",
    "InMemoryExpenseStore",
    "NotFoundError",
    "StorageError",
]
