"""
Expense List Filters

Pure helpers behind the expense list and profile history views.
None of them mutate their input.
"""

from collections.abc import Iterable, Mapping
from typing import Optional, Union

from groupsplit.models.expense import (
    Expense,
    ExpenseCategory,
    Participant,
    category_key,
)

UNKNOWN_MEMBER_NAME = "Unknown User"


def display_names(roster: Iterable[Participant]) -> dict[str, str]:
    """Map participant id to display name."""
    return {participant.id: participant.display_name for participant in roster}


def member_display_name(names: Mapping[str, str], member_id: str) -> str:
    return names.get(member_id, UNKNOWN_MEMBER_NAME)


def expenses_for_member(expenses: Iterable[Expense], member_id: str) -> list[Expense]:
    """Expenses the member paid for or shares in."""
    return [
        expense for expense in expenses
        if expense.payer == member_id or member_id in expense.participants
    ]


def filter_by_category(
    expenses: Iterable[Expense],
    category: Union[ExpenseCategory, str],
) -> list[Expense]:
    key = category_key(category)
    return [expense for expense in expenses if category_key(expense.category) == key]


def search_expenses(
    expenses: Iterable[Expense],
    text: str,
    names: Optional[Mapping[str, str]] = None,
) -> list[Expense]:
    """
    Case-insensitive substring search.

    Matches description, notes, category key and the payer's display
    name. Blank search text matches everything.
    """
    needle = text.strip().lower()
    if not needle:
        return list(expenses)

    names = names or {}
    matches = []
    for expense in expenses:
        haystacks = (
            expense.description,
            expense.notes,
            category_key(expense.category),
            member_display_name(names, expense.payer),
        )
        if any(needle in haystack.lower() for haystack in haystacks):
            matches.append(expense)
    return matches


def sort_newest_first(expenses: Iterable[Expense]) -> list[Expense]:
    return sorted(expenses, key=lambda expense: expense.date, reverse=True)
