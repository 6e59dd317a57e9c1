"""
Spending Aggregations

Grouping sums over an expense list for the statistics and profile views.

DESIGN DECISION: Only categories that actually occur in the input appear
in the output. Unknown category labels pass through unchanged instead of
being dropped or remapped, so a legacy record is still counted somewhere.
"""

from collections.abc import Iterable
from datetime import datetime
from decimal import Decimal
from typing import Optional

from groupsplit.models.expense import Expense, Participant, category_key
from groupsplit.models.settlement import (
    CategoryShare,
    CategoryTotal,
    MemberSummary,
    MemberTotal,
    SpendingSummary,
)

ZERO = Decimal("0")


def _ranked(totals: dict[str, Decimal]) -> dict[str, Decimal]:
    """Order totals largest first, then by key."""
    return dict(sorted(totals.items(), key=lambda item: (-item[1], item[0])))


def totals_by_category(expenses: Iterable[Expense]) -> dict[str, Decimal]:
    """Sum of amounts per category key, largest first."""
    totals: dict[str, Decimal] = {}
    for expense in expenses:
        key = category_key(expense.category)
        totals[key] = totals.get(key, ZERO) + expense.amount
    return _ranked(totals)


def totals_by_month(expenses: Iterable[Expense]) -> dict[str, Decimal]:
    """
    Sum of amounts per calendar month, keyed by labels like "Jan 2024".

    Months come out in chronological order.
    """
    buckets: dict[tuple[int, int], Decimal] = {}
    for expense in expenses:
        key = (expense.date.year, expense.date.month)
        buckets[key] = buckets.get(key, ZERO) + expense.amount

    result = {}
    for year, month in sorted(buckets):
        label = datetime(year, month, 1).strftime("%b %Y")
        result[label] = buckets[(year, month)]
    return result


def paid_by_member(
    expenses: Iterable[Expense],
    roster: Optional[Iterable[Participant]] = None,
) -> dict[str, Decimal]:
    """
    Amount each member paid for.

    With a roster, known members who paid nothing are listed with zero.
    """
    totals: dict[str, Decimal] = {}
    if roster is not None:
        for participant in roster:
            totals[participant.id] = ZERO
    for expense in expenses:
        totals[expense.payer] = totals.get(expense.payer, ZERO) + expense.amount
    return _ranked(totals)


def spending_summary(
    expenses: Iterable[Expense],
    roster: Optional[Iterable[Participant]] = None,
) -> SpendingSummary:
    """
    Headline numbers: total, count, average, top category and top spender.

    With a roster, only members on it can be the top spender.
    """
    expenses = list(expenses)
    if not expenses:
        return SpendingSummary()

    total = sum((expense.amount for expense in expenses), ZERO)

    top_category = None
    by_category = totals_by_category(expenses)
    if by_category:
        key, amount = next(iter(by_category.items()))
        if amount > 0:
            top_category = CategoryTotal(category=key, total=amount)

    top_spender = None
    by_member = paid_by_member(expenses)
    if roster is not None:
        known = {participant.id for participant in roster}
        by_member = {m: paid for m, paid in by_member.items() if m in known}
    if by_member:
        member_id, amount = next(iter(by_member.items()))
        if amount > 0:
            top_spender = MemberTotal(member_id=member_id, total=amount)

    return SpendingSummary(
        total_spent=total,
        expense_count=len(expenses),
        average_expense=total / len(expenses),
        top_category=top_category,
        top_spender=top_spender,
    )


def member_summary(expenses: Iterable[Expense], member_id: str) -> MemberSummary:
    """
    Summarize one member's history under the proportional-share model.

    - total_paid: every expense the member paid for, in full
    - total_share: amount / |participants| for every expense they share
    - category_breakdown: per category, the full amount where the member
      paid, otherwise their share; categories totalling zero are left out
    """
    involved = [
        expense for expense in expenses
        if expense.payer == member_id or member_id in expense.participants
    ]

    total_paid = sum(
        (expense.amount for expense in involved if expense.payer == member_id),
        ZERO,
    )
    total_share = sum((expense.share_of(member_id) for expense in involved), ZERO)

    totals: dict[str, Decimal] = {}
    counts: dict[str, int] = {}
    for expense in involved:
        key = category_key(expense.category)
        if expense.payer == member_id:
            amount = expense.amount
        else:
            amount = expense.share_of(member_id)
        totals[key] = totals.get(key, ZERO) + amount
        counts[key] = counts.get(key, 0) + 1

    breakdown = [
        CategoryShare(category=key, total=total, count=counts[key])
        for key, total in _ranked(totals).items()
        if total > 0
    ]

    return MemberSummary(
        member_id=member_id,
        total_paid=total_paid,
        total_share=total_share,
        net_balance=total_paid - total_share,
        expense_count=len(involved),
        category_breakdown=breakdown,
    )
