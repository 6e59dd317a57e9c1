"""
Tests for spending aggregations and the proportional member summary
"""

import pytest
from datetime import datetime
from decimal import Decimal

from groupsplit.engine.aggregation import (
    member_summary,
    paid_by_member,
    spending_summary,
    totals_by_category,
    totals_by_month,
)
from groupsplit.engine.settlement import compute_balances
from groupsplit.models.expense import Expense, ExpenseCategory, Participant


def expense(expense_id, amount, payer, participants, category="other", when=None):
    return Expense(
        id=expense_id,
        amount=Decimal(amount),
        date=when or datetime(2024, 5, 15),
        payer=payer,
        participants=participants,
        category=category,
    )


@pytest.fixture
def household():
    """A pays a dinner for three, B pays groceries for B and C."""
    return [
        expense("e1", "90", "A", ["A", "B", "C"], category="food-&-drink"),
        expense("e2", "30", "B", ["B", "C"], category="groceries"),
    ]


class TestTotalsByCategory:
    """Tests for totals_by_category."""

    def test_sums_per_category(self, household):
        totals = totals_by_category(household)
        assert totals == {"food-&-drink": Decimal("90"), "groceries": Decimal("30")}

    def test_largest_first(self):
        expenses = [
            expense("e1", "10", "A", ["A"], category="housing"),
            expense("e2", "50", "A", ["A"], category="utilities"),
            expense("e3", "5", "A", ["A"], category="housing"),
        ]
        assert list(totals_by_category(expenses)) == ["utilities", "housing"]

    def test_absent_categories_are_omitted(self, household):
        """Test that categories with no expenses don't appear as zeros."""
        assert "housing" not in totals_by_category(household)

    def test_unknown_category_is_counted(self):
        """Test that legacy labels are kept instead of dropped."""
        expenses = [expense("e1", "12", "A", ["A"], category="pets")]
        assert totals_by_category(expenses) == {"pets": Decimal("12")}

    def test_empty(self):
        assert totals_by_category([]) == {}


class TestTotalsByMonth:
    """Tests for totals_by_month."""

    def test_chronological_labels(self):
        expenses = [
            expense("e1", "10", "A", ["A"], when=datetime(2024, 3, 2)),
            expense("e2", "20", "A", ["A"], when=datetime(2023, 12, 31)),
            expense("e3", "5", "A", ["A"], when=datetime(2024, 3, 30)),
        ]
        totals = totals_by_month(expenses)
        assert list(totals) == ["Dec 2023", "Mar 2024"]
        assert totals["Mar 2024"] == Decimal("15")

    def test_empty(self):
        assert totals_by_month([]) == {}


class TestPaidByMember:
    """Tests for paid_by_member."""

    def test_sums_per_payer(self, household):
        assert paid_by_member(household) == {"A": Decimal("90"), "B": Decimal("30")}

    def test_roster_members_without_payments_are_zero(self, household):
        roster = [Participant(id="A"), Participant(id="B"), Participant(id="C"), Participant(id="D")]
        totals = paid_by_member(household, roster=roster)
        assert totals["C"] == Decimal("0")
        assert totals["D"] == Decimal("0")
        assert list(totals)[:2] == ["A", "B"]


class TestSpendingSummary:
    """Tests for spending_summary."""

    def test_headline_numbers(self, household):
        summary = spending_summary(household)
        assert summary.total_spent == Decimal("120")
        assert summary.expense_count == 2
        assert summary.average_expense == Decimal("60")
        assert summary.top_category.category is ExpenseCategory.FOOD_AND_DRINK
        assert summary.top_category.total == Decimal("90")
        assert summary.top_spender.member_id == "A"

    def test_empty_summary(self):
        """Test that no expenses gives zeros rather than a division error."""
        summary = spending_summary([])
        assert summary.total_spent == Decimal("0")
        assert summary.average_expense == Decimal("0")
        assert summary.top_category is None
        assert summary.top_spender is None

    def test_top_spender_limited_to_roster(self):
        """Test that a payer who left the group can't be the top spender."""
        expenses = [
            expense("e1", "500", "former", ["A", "former"]),
            expense("e2", "40", "A", ["A", "B"]),
        ]
        roster = [Participant(id="A"), Participant(id="B")]

        assert spending_summary(expenses).top_spender.member_id == "former"
        summary = spending_summary(expenses, roster=roster)
        assert summary.top_spender.member_id == "A"
        assert summary.top_spender.total == Decimal("40")
        assert summary.total_spent == Decimal("540")

    def test_all_zero_amounts_have_no_top_entries(self):
        summary = spending_summary([expense("e1", "0", "A", ["A"])])
        assert summary.expense_count == 1
        assert summary.top_category is None
        assert summary.top_spender is None


class TestMemberSummary:
    """Tests for the proportional-share member summary."""

    def test_proportional_totals(self, household):
        """Test paid, share and net for each member."""
        a = member_summary(household, "A")
        b = member_summary(household, "B")
        c = member_summary(household, "C")

        assert (a.total_paid, a.total_share, a.net_balance) == (
            Decimal("90"), Decimal("30"), Decimal("60"),
        )
        assert (b.total_paid, b.total_share, b.net_balance) == (
            Decimal("30"), Decimal("45"), Decimal("-15"),
        )
        assert (c.total_paid, c.total_share, c.net_balance) == (
            Decimal("0"), Decimal("45"), Decimal("-45"),
        )

    def test_differs_from_equal_share_model(self, household):
        """Test that the two cost models give different answers on purpose."""
        balances = compute_balances(household)
        assert balances["A"].owed == Decimal("-50")
        assert balances["B"].owed == Decimal("10")
        assert balances["C"].owed == Decimal("40")

        # Proportional: B is owed less and C owes more than the flat split says
        assert member_summary(household, "B").net_balance == Decimal("-15")
        assert -balances["B"].owed != member_summary(household, "B").net_balance

    def test_category_breakdown_payer_counts_full_amount(self, household):
        """Test that a payer's category line carries the whole expense."""
        b = member_summary(household, "B")
        breakdown = {line.category: (line.total, line.count) for line in b.category_breakdown}
        assert breakdown[ExpenseCategory.GROCERIES] == (Decimal("30"), 1)
        assert breakdown[ExpenseCategory.FOOD_AND_DRINK] == (Decimal("30"), 1)

    def test_payer_outside_participants(self):
        """Test that paying without sharing gives zero share for that expense."""
        summary = member_summary([expense("e1", "40", "A", ["B", "C"])], "A")
        assert summary.total_paid == Decimal("40")
        assert summary.total_share == Decimal("0")
        assert summary.expense_count == 1

    def test_zero_total_categories_are_left_out(self):
        summary = member_summary([expense("e1", "0", "B", ["A", "B"], category="housing")], "A")
        assert summary.category_breakdown == []
        assert summary.expense_count == 1

    def test_uninvolved_member(self, household):
        summary = member_summary(household, "Z")
        assert summary.expense_count == 0
        assert summary.net_balance == Decimal("0")
        assert summary.category_breakdown == []


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
