"""
Abstract Storage Interface

DESIGN DECISION: The document store is an external collaborator.
We only define the handful of operations the flows need, so that:
1. Any document store can sit behind it
2. In-memory storage can be used for testing
3. The settlement engine never learns where expenses came from

The interface is intentionally simple - this is not an ORM.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional
from uuid import UUID

from groupsplit.models.audit import AuditEvent
from groupsplit.models.expense import Expense, Participant


class ExpenseStoreInterface(ABC):
    """
    Abstract interface for expense storage operations.

    Any store implementation must implement these methods.
    """

    @abstractmethod
    async def add_expense(self, expense: Expense) -> bool:
        """
        Save a new expense.

        Returns:
            True if saved successfully

        Raises:
            DuplicateError: If an expense with the same id exists
            StorageError: If the save fails
        """
        pass

    @abstractmethod
    async def get_expense(self, expense_id: str) -> Optional[Expense]:
        """
        Retrieve an expense by its id.

        Returns:
            The expense if found, None otherwise
        """
        pass

    @abstractmethod
    async def update_expense(self, expense: Expense) -> bool:
        """
        Replace an existing expense.

        Raises:
            NotFoundError: If the expense doesn't exist
            StorageError: If the update fails
        """
        pass

    @abstractmethod
    async def delete_expense(self, expense_id: str) -> bool:
        """
        Delete an expense by id.

        Returns:
            True if something was deleted
        """
        pass

    @abstractmethod
    async def list_expenses(
        self,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
    ) -> list[Expense]:
        """
        List expenses, optionally narrowed to a date range (inclusive).

        The result is a snapshot: later writes never change it.

        Raises:
            ConnectionError: If the store can't be reached
        """
        pass

    @abstractmethod
    async def list_participants(self) -> list[Participant]:
        """
        List the roster of known participants.

        Raises:
            ConnectionError: If the store can't be reached
        """
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """
        Get all events for a correlation ID, in chronological order.
        """
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events (newest first).
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class DuplicateError(StorageError):
    """Attempted to insert a duplicate entity."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
