"""
Expense Query Execution

DESIGN DECISION: Queries are DETERMINISTIC filters over a fresh snapshot.
The store narrows by date; everything else (member, category, search)
runs in memory on what the store returned. Views never reach into the
store themselves.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional, Union
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from groupsplit.audit import AuditLogger, create_correlation_id
from groupsplit.config import StoreSettings, get_settings
from groupsplit.models.expense import Expense, ExpenseCategory, Period, category_key
from groupsplit.queries.filters import (
    display_names,
    expenses_for_member,
    filter_by_category,
    search_expenses,
    sort_newest_first,
)
from groupsplit.services.storage import (
    ExpenseStoreInterface,
    StorageError,
    with_store_retry,
)


class ExpenseQuery(BaseModel):
    """A structured request for a slice of the expense list."""

    query_id: UUID = Field(default_factory=uuid4)
    created_at: datetime = Field(default_factory=datetime.utcnow)

    member_id: Optional[str] = Field(
        default=None,
        description="Only expenses this member paid for or shares"
    )
    category: Optional[Union[ExpenseCategory, str]] = Field(
        default=None,
        union_mode="left_to_right",
    )
    search: Optional[str] = None
    period: Optional[Period] = None

    newest_first: bool = True
    limit: Optional[int] = Field(default=None, ge=1)


class ExpenseQueryResult(BaseModel):
    """Result of executing an ExpenseQuery."""

    query_id: UUID
    executed_at: datetime = Field(default_factory=datetime.utcnow)

    success: bool
    error_message: Optional[str] = None

    data_found: bool
    result_count: int = Field(ge=0)
    total_amount: Decimal = Decimal("0")
    expenses: list[Expense] = Field(default_factory=list)

    query_description: str


class ExpenseQueryExecutor:
    """
    Executes expense queries against the store.

    GUARANTEES:
    - Only returns real records from the store
    - Connection failures are retried with the shared store policy
    - A store failure yields success=False, never a partial list
    """

    def __init__(
        self,
        store: ExpenseStoreInterface,
        audit_logger: Optional[AuditLogger] = None,
        store_settings: Optional[StoreSettings] = None,
    ):
        self._store = store
        self._audit_logger = audit_logger
        self._store_settings = store_settings or get_settings().store

    async def execute(
        self,
        query: ExpenseQuery,
        correlation_id: Optional[UUID] = None,
    ) -> ExpenseQueryResult:
        correlation_id = correlation_id or create_correlation_id()

        try:
            expenses = await with_store_retry(
                lambda: self._store.list_expenses(
                    date_from=query.period.start if query.period else None,
                    date_to=query.period.end if query.period else None,
                ),
                self._store_settings,
            )
            participants = await with_store_retry(
                self._store.list_participants,
                self._store_settings,
            )
            names = display_names(participants)
        except StorageError as e:
            if self._audit_logger:
                await self._audit_logger.log_store_error(
                    operation="execute_query",
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            return ExpenseQueryResult(
                query_id=query.query_id,
                success=False,
                error_message=str(e),
                data_found=False,
                result_count=0,
                query_description=f"Query failed: {e}",
            )

        if query.member_id:
            expenses = expenses_for_member(expenses, query.member_id)
        if query.category is not None:
            expenses = filter_by_category(expenses, query.category)
        if query.search:
            expenses = search_expenses(expenses, query.search, names)
        if query.newest_first:
            expenses = sort_newest_first(expenses)
        if query.limit is not None:
            expenses = expenses[:query.limit]

        if self._audit_logger:
            await self._audit_logger.log_query_executed(
                query_id=query.query_id,
                result_count=len(expenses),
                correlation_id=correlation_id,
            )

        return ExpenseQueryResult(
            query_id=query.query_id,
            success=True,
            data_found=len(expenses) > 0,
            result_count=len(expenses),
            total_amount=sum((e.amount for e in expenses), Decimal("0")),
            expenses=expenses,
            query_description=self._describe(query, names),
        )

    def _describe(self, query: ExpenseQuery, names: dict[str, str]) -> str:
        """Human-readable summary of the filters applied."""
        desc_parts = ["Listing expenses"]
        if query.member_id:
            desc_parts.append(f"member: {names.get(query.member_id, query.member_id)}")
        if query.category is not None:
            desc_parts.append(f"category: {category_key(query.category)}")
        if query.search:
            desc_parts.append(f"matching: {query.search!r}")
        if query.period:
            desc_parts.append(self._period_str(query.period))
        return " | ".join(desc_parts)

    def _period_str(self, period: Period) -> str:
        if period.label:
            return f"in {period.label}"
        start, end = period.start, period.end
        if start.date() == end.date():
            return f"on {start.strftime('%d %b %Y')}"
        if end == datetime.max:
            return f"from {start.strftime('%d %b %Y')}"
        return f"from {start.strftime('%d %b %Y')} to {end.strftime('%d %b %Y')}"
