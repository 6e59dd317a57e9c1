"""
Two-Stage Expense Validation

DESIGN DECISION: Bad expenses are stopped at ingestion, never "fixed"
inside the settlement engine. Validation happens in two stages:

STAGE 1 - SCHEMA VALIDATION:
- Required fields present (description, amount, date, category, payer)
- Amount strictly positive
- At least one participant to split with

STAGE 2 - SEMANTIC VALIDATION:
- Category outside the known set
- Dates too far in the future
- Suspiciously large amounts
- Payer or participants missing from the roster

IMPORTANT: Validation NEVER silently fixes issues.
It reports them so the form can show them to the user.
"""

from datetime import datetime, timedelta
from typing import Optional
from uuid import uuid4

from pydantic import ValidationError

from groupsplit.config import get_settings
from groupsplit.models.expense import (
    Expense,
    ExpenseCategory,
    ExpenseDraft,
    ValidationIssue,
    ValidationResult,
)
from groupsplit.services.storage import ExpenseStoreInterface, StorageError


class ExpenseRejectedError(Exception):
    """A draft failed validation and was not saved."""

    def __init__(self, result: ValidationResult):
        self.result = result
        messages = "; ".join(
            issue.message for issue in result.issues if issue.severity == "error"
        )
        super().__init__(f"Expense rejected: {messages or 'validation failed'}")


class ExpenseValidator:
    """
    Validates expense drafts through a two-stage pipeline.

    Stage 1: Schema validation (no store needed)
    Stage 2: Semantic validation (uses the roster when a store is given)
    """

    def __init__(
        self,
        store: Optional[ExpenseStoreInterface] = None,
    ):
        """
        Initialize validator.

        Args:
            store: Store used to look up the participant roster.
                   If None, roster checks are skipped.
        """
        self._store = store
        self._settings = get_settings().app

    def _validate_schema(
        self,
        draft: ExpenseDraft,
    ) -> tuple[bool, list[ValidationIssue]]:
        """
        Stage 1: Schema validation.

        Returns: (is_valid, list_of_issues)
        """
        issues = []

        if not draft.description:
            issues.append(ValidationIssue(
                field="description",
                issue_type="missing",
                message="Description is required",
                severity="error",
                suggested_fix="Say what the expense was for",
            ))

        if draft.amount is None:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="missing",
                message="Amount is required",
                severity="error",
            ))
        elif draft.amount <= 0:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_value",
                message="Amount must be greater than zero",
                severity="error",
                suggested_fix="Enter the amount that was actually paid",
            ))

        if draft.date is None:
            issues.append(ValidationIssue(
                field="date",
                issue_type="missing",
                message="Date is required",
                severity="error",
            ))

        if not draft.category:
            issues.append(ValidationIssue(
                field="category",
                issue_type="missing",
                message="Category is required",
                severity="error",
            ))

        if not draft.payer:
            issues.append(ValidationIssue(
                field="payer",
                issue_type="missing",
                message="Select who paid",
                severity="error",
            ))

        if not draft.participants:
            issues.append(ValidationIssue(
                field="participants",
                issue_type="missing",
                message="Select at least one person to split with",
                severity="error",
            ))

        is_valid = not any(issue.severity == "error" for issue in issues)
        return is_valid, issues

    def _validate_semantic(
        self,
        draft: ExpenseDraft,
        known_members: Optional[set[str]],
    ) -> tuple[bool, list[ValidationIssue]]:
        """
        Stage 2: Semantic validation.

        Only runs on drafts that passed stage 1, so required fields are set.

        Returns: (is_valid, list_of_issues)
        """
        issues = []

        known_categories = {category.value for category in ExpenseCategory}
        if draft.category not in known_categories:
            issues.append(ValidationIssue(
                field="category",
                issue_type="unknown_category",
                message=f"Category '{draft.category}' is not one of the standard categories",
                severity="warning",
                suggested_fix="It will be shown under its own label",
            ))

        max_future = datetime.utcnow() + timedelta(
            days=self._settings.future_date_tolerance_days
        )
        if draft.date > max_future:
            issues.append(ValidationIssue(
                field="date",
                issue_type="future_date",
                message=f"Expense date ({draft.date:%Y-%m-%d}) is in the future",
                severity="warning",
                suggested_fix="Please verify the date is correct",
            ))

        if draft.amount > self._settings.max_expense_amount:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="suspicious_value",
                message=f"Amount ({draft.amount:,.2f}) seems unusually high",
                severity="warning",
                suggested_fix="Please verify this amount is correct",
            ))

        if draft.payer not in draft.participants:
            issues.append(ValidationIssue(
                field="participants",
                issue_type="payer_not_sharing",
                message="The payer is not sharing this expense",
                severity="info",
            ))

        if known_members is not None:
            if draft.payer not in known_members:
                issues.append(ValidationIssue(
                    field="payer",
                    issue_type="unknown_member",
                    message=f"Payer '{draft.payer}' is not a known member",
                    severity="warning",
                ))
            unknown = [m for m in draft.participants if m not in known_members]
            if unknown:
                issues.append(ValidationIssue(
                    field="participants",
                    issue_type="unknown_member",
                    message=f"Unknown participants: {', '.join(unknown)}",
                    severity="warning",
                ))

        is_valid = not any(issue.severity == "error" for issue in issues)
        return is_valid, issues

    async def _load_roster(self) -> Optional[set[str]]:
        """Known participant ids, or None when no roster is available."""
        if self._store is None:
            return None
        try:
            participants = await self._store.list_participants()
        except StorageError:
            # Roster checks are advisory; a store outage must not block ingestion
            return None
        if not participants:
            return None
        return {participant.id for participant in participants}

    async def validate(self, draft: ExpenseDraft) -> ValidationResult:
        """
        Run full two-stage validation pipeline.

        Returns:
            ValidationResult with all issues found
        """
        all_issues = []

        schema_valid, schema_issues = self._validate_schema(draft)
        all_issues.extend(schema_issues)

        # Only run stage 2 if stage 1 passes
        semantic_valid = False
        if schema_valid:
            known_members = await self._load_roster()
            semantic_valid, semantic_issues = self._validate_semantic(draft, known_members)
            all_issues.extend(semantic_issues)

        warnings = [issue.message for issue in all_issues if issue.severity == "warning"]

        return ValidationResult(
            draft_id=draft.draft_id,
            schema_valid=schema_valid,
            semantic_valid=semantic_valid,
            is_valid=schema_valid and semantic_valid,
            issues=all_issues,
            warnings=warnings,
        )

    def build_expense(
        self,
        draft: ExpenseDraft,
        result: ValidationResult,
        expense_id: Optional[str] = None,
    ) -> Expense:
        """
        Turn a validated draft into an Expense.

        Raises:
            ExpenseRejectedError: If the draft did not pass validation,
                or the model itself refuses the values
        """
        if not result.is_valid:
            raise ExpenseRejectedError(result)

        try:
            return Expense(
                id=expense_id or uuid4().hex,
                amount=draft.amount,
                date=draft.date,
                payer=draft.payer,
                participants=draft.participants,
                category=draft.category,
                description=draft.description,
                notes=draft.notes,
                created_at=datetime.utcnow(),
                created_by=draft.created_by,
            )
        except ValidationError as e:
            issues = [
                ValidationIssue(
                    field=".".join(str(part) for part in error["loc"]) or "expense",
                    issue_type="invalid_value",
                    message=error["msg"],
                    severity="error",
                )
                for error in e.errors()
            ]
            raise ExpenseRejectedError(result.model_copy(update={
                "schema_valid": False,
                "is_valid": False,
                "issues": result.issues + issues,
            }))

    def get_user_friendly_summary(
        self,
        result: ValidationResult,
    ) -> str:
        """
        Generate a user-friendly summary of validation results.

        This is what the add/edit form shows.
        """
        if result.is_valid and not result.warnings:
            return "✅ Expense looks good."

        lines = []

        if result.has_errors:
            lines.append("❌ Please fix the following:")
            for issue in result.issues:
                if issue.severity == "error":
                    lines.append(f"   • {issue.message}")
                    if issue.suggested_fix:
                        lines.append(f"     💡 {issue.suggested_fix}")

        if result.warnings:
            if lines:
                lines.append("")
            lines.append("⚠️ Please verify the following:")
            for warning in result.warnings:
                lines.append(f"   • {warning}")

        return "\n".join(lines)
