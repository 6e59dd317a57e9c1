"""
Settlement Engine

DESIGN DECISION: Settlement is a PURE computation.
The caller fetches a snapshot of expenses from the store and passes it in.
Nothing here reads the store, logs, caches or mutates its input, so
the same snapshot always produces the same report.

Two cost models coexist in this package:
- Equal-share (this module): every participating member's fair cost for a
  period is total spend / headcount. Used by the split calculator.
- Proportional-share (aggregation.member_summary): each member pays
  amount / |participants| of every expense they share. Used by profiles.
"""

from collections.abc import Iterable, Mapping
from datetime import datetime
from decimal import Decimal
from typing import Optional, Union

from groupsplit.models.expense import (
    SETTLEMENT_EPSILON,
    Expense,
    Period,
    to_naive_utc,
)
from groupsplit.models.settlement import Balance, SettlementReport, Transfer

ZERO = Decimal("0")


def _as_decimal(value: Union[Decimal, int, float, str]) -> Decimal:
    """Coerce an amount to Decimal without binary float artefacts."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


# =============================================================================
# PERIOD FILTER
# =============================================================================

def filter_by_period(
    expenses: Iterable[Expense],
    start: datetime,
    end: datetime,
) -> list[Expense]:
    """
    Return the expenses dated within [start, end], bounds inclusive.

    An inverted or empty window yields an empty list, never an error.
    """
    start = to_naive_utc(start)
    end = to_naive_utc(end)
    return [expense for expense in expenses if start <= expense.date <= end]


def filter_in_period(
    expenses: Iterable[Expense],
    period: Optional[Period],
) -> list[Expense]:
    """Same as filter_by_period, with None meaning "all time"."""
    if period is None:
        return list(expenses)
    return filter_by_period(expenses, period.start, period.end)


# =============================================================================
# BALANCE CALCULATOR
# =============================================================================

def total_spend(expenses: Iterable[Expense]) -> Decimal:
    return sum((expense.amount for expense in expenses), ZERO)


def participating_members(expenses: Iterable[Expense]) -> list[str]:
    """
    Everyone who paid for or shared at least one expense.

    Order is first appearance (payer before participants), which keeps
    report output stable across calls.
    """
    members: dict[str, None] = {}
    for expense in expenses:
        members.setdefault(expense.payer, None)
        for member_id in expense.participants:
            members.setdefault(member_id, None)
    return list(members)


def equal_share(expenses: Iterable[Expense]) -> Decimal:
    """Total spend divided by headcount, 0 when nobody participated."""
    expenses = list(expenses)
    members = participating_members(expenses)
    if not members:
        return ZERO
    return total_spend(expenses) / len(members)


def compute_balances(expenses: Iterable[Expense]) -> dict[str, Balance]:
    """
    Compute each participating member's position under the equal-share model.

    paid[m]  = sum of amounts m paid for
    owed[m]  = equal_share - paid[m]

    Positive owed means the member still owes money, negative means the
    member overpaid. An empty expense list gives an empty mapping.
    """
    expenses = list(expenses)
    members = participating_members(expenses)
    if not members:
        return {}

    share = total_spend(expenses) / len(members)

    payments = {member_id: ZERO for member_id in members}
    for expense in expenses:
        payments[expense.payer] += expense.amount

    return {
        member_id: Balance(
            member_id=member_id,
            paid=payments[member_id],
            share=share,
            owed=share - payments[member_id],
        )
        for member_id in members
    }


def owed_amounts(balances: Mapping[str, Balance]) -> dict[str, Decimal]:
    """Flatten balances into the member -> owed mapping settle() takes."""
    return {member_id: balance.owed for member_id, balance in balances.items()}


# =============================================================================
# SETTLEMENT MATCHER
# =============================================================================

def settle(
    owed: Mapping[str, Union[Decimal, int, float, str]],
    epsilon: Decimal = SETTLEMENT_EPSILON,
) -> list[Transfer]:
    """
    Produce a settlement plan with greedy largest-first matching.

    Args:
        owed: member -> amount owed (positive = debtor, negative = creditor)
        epsilon: amounts within +/- epsilon count as settled

    The largest remaining debtor pays the largest remaining creditor
    min(debt, credit); whoever is left with epsilon or less is done. This
    emits at most |debtors| + |creditors| - 1 transfers and leaves every
    member within epsilon of settled. It is a strong approximation, not a
    proven minimum.

    Ties on amount are broken by member id so the plan is deterministic.
    If either side is empty (already settled, or inconsistent upstream
    data) the plan is empty.
    """
    debtors = []
    creditors = []

    for member_id, amount in owed.items():
        amount = _as_decimal(amount)
        if amount > epsilon:
            debtors.append({"id": member_id, "amount": amount})
        elif amount < -epsilon:
            creditors.append({"id": member_id, "amount": -amount})

    debtors.sort(key=lambda entry: (-entry["amount"], entry["id"]))
    creditors.sort(key=lambda entry: (-entry["amount"], entry["id"]))

    transfers = []
    i = 0
    j = 0
    while i < len(debtors) and j < len(creditors):
        debtor = debtors[i]
        creditor = creditors[j]

        amount = min(debtor["amount"], creditor["amount"])
        # Residual dust would otherwise spin forever
        if not amount > epsilon:
            break

        transfers.append(Transfer(
            from_member=debtor["id"],
            to_member=creditor["id"],
            amount=amount,
        ))

        debtor["amount"] -= amount
        creditor["amount"] -= amount

        # A remainder of exactly epsilon is settled too
        if debtor["amount"] <= epsilon:
            i += 1
        if creditor["amount"] <= epsilon:
            j += 1

    return transfers


# =============================================================================
# FULL CALCULATION
# =============================================================================

def calculate_settlement(
    expenses: Iterable[Expense],
    period: Optional[Period] = None,
    epsilon: Decimal = SETTLEMENT_EPSILON,
) -> SettlementReport:
    """
    Filter, balance and settle in one pass.

    This is the split calculator: total spend, the flat equal share,
    what each member paid and owes, and the transfers that clear it all.
    """
    selected = filter_in_period(expenses, period)
    balances = compute_balances(selected)
    owed = owed_amounts(balances)

    return SettlementReport(
        period=period,
        expense_count=len(selected),
        total_spend=total_spend(selected),
        equal_share=equal_share(selected),
        member_payments={m: b.paid for m, b in balances.items()},
        member_owes=owed,
        balances=balances,
        settlements=settle(owed, epsilon=epsilon),
    )
