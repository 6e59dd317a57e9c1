"""Expense query package."""

from groupsplit.queries.executor import (
    ExpenseQuery,
    ExpenseQueryExecutor,
    ExpenseQueryResult,
)
from groupsplit.queries.filters import (
    UNKNOWN_MEMBER_NAME,
    display_names,
    expenses_for_member,
    filter_by_category,
    member_display_name,
    search_expenses,
    sort_newest_first,
)

__all__ = [
    "ExpenseQuery",
    "ExpenseQueryExecutor",
    "ExpenseQueryResult",
    "UNKNOWN_MEMBER_NAME",
    "display_names",
    "expenses_for_member",
    "filter_by_category",
    "member_display_name",
    "search_expenses",
    "sort_newest_first",
]
