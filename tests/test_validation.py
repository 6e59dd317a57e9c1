"""
Tests for two-stage expense validation
"""

import asyncio

import pytest
from datetime import datetime, timedelta
from decimal import Decimal

from groupsplit.models.expense import ExpenseCategory, ExpenseDraft, Participant
from groupsplit.services.storage import InMemoryExpenseStore, StorageError
from groupsplit.validation import ExpenseRejectedError, ExpenseValidator


ROSTER = [Participant(id="alice"), Participant(id="bob"), Participant(id="carol")]


def make_draft(**overrides) -> ExpenseDraft:
    data = {
        "description": "Groceries",
        "amount": Decimal("42.50"),
        "date": datetime(2024, 5, 10),
        "category": "groceries",
        "payer": "alice",
        "participants": ["alice", "bob"],
    }
    data.update(overrides)
    return ExpenseDraft(**data)


def validate(draft, store=None):
    return asyncio.run(ExpenseValidator(store).validate(draft))


def issue_types(result):
    return {issue.issue_type for issue in result.issues}


class TestSchemaValidation:
    """Stage 1: required fields and amount sign."""

    def test_valid_draft(self):
        result = validate(make_draft())
        assert result.is_valid
        assert result.schema_valid
        assert result.semantic_valid
        assert result.issues == []

    def test_empty_draft_reports_everything(self):
        """Test that every missing field is reported at once."""
        result = validate(ExpenseDraft())
        assert not result.is_valid
        assert not result.schema_valid
        fields = {issue.field for issue in result.issues}
        assert fields == {"description", "amount", "date", "category", "payer", "participants"}

    @pytest.mark.parametrize("amount", [Decimal("0"), Decimal("-5")])
    def test_non_positive_amount(self, amount):
        result = validate(make_draft(amount=amount))
        assert not result.is_valid
        assert "Amount must be greater than zero" in [i.message for i in result.issues]

    def test_no_participants(self):
        result = validate(make_draft(participants=[]))
        assert not result.is_valid
        assert result.issues[0].message == "Select at least one person to split with"

    def test_semantic_stage_skipped_on_schema_failure(self):
        """Test that stage 2 doesn't run when stage 1 fails."""
        result = validate(make_draft(payer=None, category="pets"))
        assert not result.semantic_valid
        assert "unknown_category" not in issue_types(result)


class TestSemanticValidation:
    """Stage 2: warnings and info that don't block saving."""

    def test_unknown_category_warns(self):
        result = validate(make_draft(category="pets"))
        assert result.is_valid
        assert "unknown_category" in issue_types(result)
        assert len(result.warnings) == 1

    def test_future_date_warns(self):
        result = validate(make_draft(date=datetime.utcnow() + timedelta(days=30)))
        assert result.is_valid
        assert "future_date" in issue_types(result)

    def test_date_within_tolerance_is_fine(self):
        result = validate(make_draft(date=datetime.utcnow() + timedelta(days=1)))
        assert "future_date" not in issue_types(result)

    def test_large_amount_warns(self):
        result = validate(make_draft(amount=Decimal("250000")))
        assert result.is_valid
        assert "suspicious_value" in issue_types(result)

    def test_payer_not_sharing_is_info(self):
        result = validate(make_draft(participants=["bob", "carol"]))
        assert result.is_valid
        assert "payer_not_sharing" in issue_types(result)
        assert result.warnings == []

    def test_unknown_members_with_roster(self):
        store = InMemoryExpenseStore(participants=ROSTER)
        result = validate(make_draft(payer="zed", participants=["zed", "bob", "yan"]), store)
        assert result.is_valid
        messages = [i.message for i in result.issues if i.issue_type == "unknown_member"]
        assert messages == [
            "Payer 'zed' is not a known member",
            "Unknown participants: zed, yan",
        ]

    def test_empty_roster_skips_member_checks(self):
        result = validate(make_draft(payer="zed"), InMemoryExpenseStore())
        assert "unknown_member" not in issue_types(result)

    def test_roster_outage_does_not_block(self):
        class BrokenStore(InMemoryExpenseStore):
            async def list_participants(self):
                raise StorageError("down")

        result = validate(make_draft(payer="zed"), BrokenStore())
        assert result.is_valid
        assert "unknown_member" not in issue_types(result)


class TestBuildExpense:
    """Tests for turning a validated draft into an Expense."""

    def test_builds_expense(self):
        draft = make_draft(participants=["alice", "bob", "alice"])
        validator = ExpenseValidator()
        result = asyncio.run(validator.validate(draft))
        expense = validator.build_expense(draft, result, expense_id="exp-9")

        assert expense.id == "exp-9"
        assert expense.amount == Decimal("42.50")
        assert expense.category is ExpenseCategory.GROCERIES
        assert expense.participants == ["alice", "bob"]
        assert expense.created_at is not None

    def test_generates_id(self):
        draft = make_draft()
        validator = ExpenseValidator()
        expense = validator.build_expense(draft, asyncio.run(validator.validate(draft)))
        assert len(expense.id) == 32

    def test_rejects_invalid_result(self):
        draft = make_draft(amount=None)
        validator = ExpenseValidator()
        result = asyncio.run(validator.validate(draft))
        with pytest.raises(ExpenseRejectedError, match="Amount is required") as exc_info:
            validator.build_expense(draft, result)
        assert exc_info.value.result is result

    def test_model_refusal_becomes_rejection(self):
        """Test that a blank participant id surfaces as an issue, not a crash."""
        draft = make_draft(participants=["alice", "   "])
        validator = ExpenseValidator()
        result = asyncio.run(validator.validate(draft))
        with pytest.raises(ExpenseRejectedError) as exc_info:
            validator.build_expense(draft, result)
        assert not exc_info.value.result.is_valid
        assert exc_info.value.result.has_errors


class TestSummary:
    """Tests for the form summary text."""

    def test_clean_summary(self):
        validator = ExpenseValidator()
        result = asyncio.run(validator.validate(make_draft()))
        assert validator.get_user_friendly_summary(result) == "✅ Expense looks good."

    def test_errors_and_warnings(self):
        validator = ExpenseValidator()
        result = asyncio.run(validator.validate(make_draft(category="pets")))
        summary = validator.get_user_friendly_summary(result)
        assert summary.startswith("⚠️ Please verify the following:")

        result = asyncio.run(validator.validate(make_draft(amount=Decimal("0"))))
        summary = validator.get_user_friendly_summary(result)
        assert "❌ Please fix the following:" in summary
        assert "💡 Enter the amount that was actually paid" in summary


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
