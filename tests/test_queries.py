"""
Tests for expense list filters and the query executor

Async calls run through asyncio.run against the in-memory store.
"""

import asyncio

import pytest
from datetime import datetime
from decimal import Decimal

from groupsplit.audit import AuditLogger
from groupsplit.config import StoreSettings
from groupsplit.engine.periods import month_period
from groupsplit.models.audit import AuditEventType
from groupsplit.models.expense import Expense, ExpenseCategory, Participant, Period
from groupsplit.queries import (
    ExpenseQuery,
    ExpenseQueryExecutor,
    UNKNOWN_MEMBER_NAME,
    display_names,
    expenses_for_member,
    filter_by_category,
    member_display_name,
    search_expenses,
    sort_newest_first,
)
from groupsplit.services.storage import (
    ConnectionError,
    InMemoryAuditStorage,
    InMemoryExpenseStore,
    StorageError,
)


ROSTER = [
    Participant(id="alice", display_name="Alice Liddell"),
    Participant(id="bob", display_name="Bob Marley"),
    Participant(id="carol", display_name="Carol King"),
]

NO_WAIT = StoreSettings(
    max_fetch_attempts=3,
    retry_min_wait_seconds=0,
    retry_max_wait_seconds=0,
)


@pytest.fixture
def expenses():
    return [
        Expense(
            id="rent", amount=Decimal("900"), date=datetime(2024, 5, 1),
            payer="alice", participants=["alice", "bob", "carol"],
            category="housing", description="May rent",
        ),
        Expense(
            id="pizza", amount=Decimal("36"), date=datetime(2024, 5, 12),
            payer="bob", participants=["bob", "carol"],
            category="food-&-drink", description="Pizza night", notes="extra cheese",
        ),
        Expense(
            id="bus", amount=Decimal("4.50"), date=datetime(2024, 4, 28),
            payer="carol", participants=["carol"],
            category="transportation", description="Bus ticket",
        ),
        Expense(
            id="vet", amount=Decimal("80"), date=datetime(2024, 6, 2),
            payer="alice", participants=["alice"],
            category="pets", description="Checkup",
        ),
    ]


class TestFilters:
    """Tests for the pure list filters."""

    def test_display_names(self):
        names = display_names(ROSTER)
        assert names["bob"] == "Bob Marley"
        assert member_display_name(names, "zed") == UNKNOWN_MEMBER_NAME

    def test_expenses_for_member(self, expenses):
        """Test that paying or sharing both count."""
        ids = [e.id for e in expenses_for_member(expenses, "bob")]
        assert ids == ["rent", "pizza"]

    def test_filter_by_category(self, expenses):
        assert [e.id for e in filter_by_category(expenses, ExpenseCategory.HOUSING)] == ["rent"]
        assert [e.id for e in filter_by_category(expenses, "pets")] == ["vet"]

    def test_search_matches_description_case_insensitively(self, expenses):
        assert [e.id for e in search_expenses(expenses, "PIZZA")] == ["pizza"]

    def test_search_matches_notes_and_category(self, expenses):
        assert [e.id for e in search_expenses(expenses, "cheese")] == ["pizza"]
        assert [e.id for e in search_expenses(expenses, "transport")] == ["bus"]

    def test_search_matches_payer_display_name(self, expenses):
        names = display_names(ROSTER)
        assert [e.id for e in search_expenses(expenses, "liddell", names)] == ["rent", "vet"]

    def test_blank_search_returns_everything(self, expenses):
        assert search_expenses(expenses, "   ") == expenses

    def test_sort_newest_first(self, expenses):
        assert [e.id for e in sort_newest_first(expenses)] == ["vet", "pizza", "rent", "bus"]

    def test_filters_do_not_mutate(self, expenses):
        snapshot = list(expenses)
        sort_newest_first(expenses)
        filter_by_category(expenses, "housing")
        assert expenses == snapshot


class TestQueryExecutor:
    """Tests for ExpenseQueryExecutor."""

    def run(self, store, query):
        return asyncio.run(ExpenseQueryExecutor(store).execute(query))

    def test_unfiltered_query(self, expenses):
        store = InMemoryExpenseStore(expenses, ROSTER)
        result = self.run(store, ExpenseQuery())

        assert result.success
        assert result.data_found
        assert result.result_count == 4
        assert result.expenses[0].id == "vet"
        assert result.total_amount == Decimal("1020.50")
        assert result.query_description == "Listing expenses"

    def test_period_and_member(self, expenses):
        store = InMemoryExpenseStore(expenses, ROSTER)
        query = ExpenseQuery(member_id="carol", period=month_period(2024, 5))
        result = self.run(store, query)

        assert [e.id for e in result.expenses] == ["pizza", "rent"]
        assert result.query_description == (
            "Listing expenses | member: Carol King | in May 2024"
        )

    def test_category_search_and_limit(self, expenses):
        store = InMemoryExpenseStore(expenses, ROSTER)
        query = ExpenseQuery(search="e", limit=2)
        result = self.run(store, query)
        assert result.result_count == 2

        result = self.run(store, ExpenseQuery(category="pets"))
        assert [e.id for e in result.expenses] == ["vet"]
        assert "category: pets" in result.query_description

    def test_no_matches(self, expenses):
        store = InMemoryExpenseStore(expenses, ROSTER)
        result = self.run(store, ExpenseQuery(search="yacht"))
        assert result.success
        assert not result.data_found
        assert result.total_amount == Decimal("0")

    def test_unlabelled_period_description(self, expenses):
        store = InMemoryExpenseStore(expenses, ROSTER)
        period = Period(start=datetime(2024, 4, 1), end=datetime(2024, 4, 30))
        result = self.run(store, ExpenseQuery(period=period))
        assert result.query_description.endswith("from 01 Apr 2024 to 30 Apr 2024")
        assert [e.id for e in result.expenses] == ["bus"]

    def test_store_failure(self):
        """Test that a store error gives success=False instead of raising."""

        class BrokenStore(InMemoryExpenseStore):
            async def list_expenses(self, date_from=None, date_to=None):
                raise StorageError("store offline")

        result = self.run(BrokenStore(), ExpenseQuery())
        assert not result.success
        assert result.error_message == "store offline"
        assert result.query_description == "Query failed: store offline"
        assert result.expenses == []

    def test_audited(self, expenses):
        """Test that executed and failed queries both leave an audit trail."""

        class BrokenStore(InMemoryExpenseStore):
            async def list_participants(self):
                raise StorageError("roster offline")

        storage = InMemoryAuditStorage()
        audit_logger = AuditLogger(storage)
        store = InMemoryExpenseStore(expenses, ROSTER)

        asyncio.run(ExpenseQueryExecutor(store, audit_logger).execute(ExpenseQuery(search="rent")))
        asyncio.run(ExpenseQueryExecutor(BrokenStore(), audit_logger).execute(ExpenseQuery()))

        events = asyncio.run(storage.get_recent_events())
        assert [e.event_type for e in events] == [
            AuditEventType.STORE_ERROR,
            AuditEventType.QUERY_EXECUTED,
        ]
        assert events[1].details["result_count"] == 1

    def test_retries_transient_connection_failures(self, expenses):
        """Test that queries share the store retry policy."""

        class FlakyStore(InMemoryExpenseStore):
            calls = 0

            async def list_expenses(self, date_from=None, date_to=None):
                self.calls += 1
                if self.calls <= 2:
                    raise ConnectionError("store unreachable")
                return await super().list_expenses(date_from, date_to)

        store = FlakyStore(expenses, ROSTER)
        executor = ExpenseQueryExecutor(store, store_settings=NO_WAIT)
        result = asyncio.run(executor.execute(ExpenseQuery()))

        assert store.calls == 3
        assert result.success
        assert result.result_count == 4

    def test_gives_up_after_max_attempts(self):
        class DownStore(InMemoryExpenseStore):
            calls = 0

            async def list_expenses(self, date_from=None, date_to=None):
                self.calls += 1
                raise ConnectionError("store unreachable")

        store = DownStore()
        executor = ExpenseQueryExecutor(store, store_settings=NO_WAIT)
        result = asyncio.run(executor.execute(ExpenseQuery()))

        assert store.calls == 3
        assert not result.success
        assert result.error_message == "store unreachable"

    def test_limit_must_be_positive(self):
        with pytest.raises(ValueError):
            ExpenseQuery(limit=0)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
