"""
In-Memory Storage

Dict-backed implementations of the storage interfaces. Used by the test
suite and for running the flows locally without a document store.
"""

from datetime import datetime
from typing import Iterable, Optional
from uuid import UUID

from groupsplit.models.audit import AuditEvent
from groupsplit.models.expense import Expense, Participant, to_naive_utc
from groupsplit.services.storage.interface import (
    AuditStorageInterface,
    DuplicateError,
    ExpenseStoreInterface,
    NotFoundError,
)


class InMemoryExpenseStore(ExpenseStoreInterface):
    """Expense store held in process memory."""

    def __init__(
        self,
        expenses: Optional[Iterable[Expense]] = None,
        participants: Optional[Iterable[Participant]] = None,
    ):
        self._expenses: dict[str, Expense] = {}
        self._participants: dict[str, Participant] = {}
        for expense in expenses or []:
            self._expenses[expense.id] = expense
        for participant in participants or []:
            self._participants[participant.id] = participant

    def add_participant(self, participant: Participant) -> None:
        self._participants[participant.id] = participant

    async def add_expense(self, expense: Expense) -> bool:
        if expense.id in self._expenses:
            raise DuplicateError(f"Expense {expense.id} already exists")
        self._expenses[expense.id] = expense
        return True

    async def get_expense(self, expense_id: str) -> Optional[Expense]:
        return self._expenses.get(expense_id)

    async def update_expense(self, expense: Expense) -> bool:
        if expense.id not in self._expenses:
            raise NotFoundError(f"Expense {expense.id} not found")
        self._expenses[expense.id] = expense
        return True

    async def delete_expense(self, expense_id: str) -> bool:
        return self._expenses.pop(expense_id, None) is not None

    async def list_expenses(
        self,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
    ) -> list[Expense]:
        expenses = list(self._expenses.values())
        if date_from is not None:
            date_from = to_naive_utc(date_from)
            expenses = [e for e in expenses if e.date >= date_from]
        if date_to is not None:
            date_to = to_naive_utc(date_to)
            expenses = [e for e in expenses if e.date <= date_to]
        return expenses

    async def list_participants(self) -> list[Participant]:
        return list(self._participants.values())


class InMemoryAuditStorage(AuditStorageInterface):
    """Append-only audit log held in process memory."""

    def __init__(self):
        self._events: list[AuditEvent] = []

    async def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        return True

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        matching = [e for e in self._events if e.correlation_id == correlation_id]
        return sorted(matching, key=lambda e: e.timestamp)

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        return list(reversed(self._events))[:limit]
