"""
Main Orchestrator for Group Expense Splitting

This module ties the store, the validator, the audit logger and the pure
settlement engine together into the flows the views call:
1. Ingestion (draft → validate → save)
2. Settlement, statistics and member profiles (snapshot → engine → report)

DESIGN DECISION: Everything is injected. The flows never reach for a
session or store singleton, and the engine never sees anything but plain
expense lists. Every call fetches a fresh snapshot; nothing is cached,
so a report always reflects the latest data the store returned.
"""

from datetime import datetime
from typing import Optional, Union
from uuid import UUID

from groupsplit.audit import AuditLogger, create_correlation_id
from groupsplit.config import SettlementSettings, StoreSettings, get_settings
from groupsplit.engine import (
    ProfileTimeFilter,
    TimeRange,
    calculate_settlement,
    filter_in_period,
    member_summary,
    paid_by_member,
    parse_month,
    period_for_profile_filter,
    period_for_range,
    recent_months,
    spending_summary,
    totals_by_category,
    totals_by_month,
)
from groupsplit.models.expense import (
    Expense,
    ExpenseCategory,
    ExpenseDraft,
    Participant,
    Period,
)
from groupsplit.models.settlement import (
    MemberProfile,
    SettlementReport,
    StatisticsReport,
)
from groupsplit.queries import (
    display_names,
    expenses_for_member,
    filter_by_category,
    search_expenses,
    sort_newest_first,
)
from groupsplit.services.storage import (
    ExpenseStoreInterface,
    InMemoryAuditStorage,
    InMemoryExpenseStore,
    NotFoundError,
    StorageError,
    with_store_retry,
)
from groupsplit.validation import ExpenseRejectedError, ExpenseValidator


class ExpenseIngestionFlow:
    """
    Orchestrates adding, editing and deleting expenses.

    Flow for a new expense:
    1. Submit → audit the attempt
    2. Validate → two-stage validation
    3. Reject → raise ExpenseRejectedError with every issue found
    4. Save → persist and audit

    Invalid data never reaches the store, so the engine never sees it.
    """

    def __init__(
        self,
        store: ExpenseStoreInterface,
        validator: Optional[ExpenseValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._store = store
        self._validator = validator or ExpenseValidator(store)
        self._audit_logger = audit_logger

    async def _audit_rejection(
        self,
        draft: ExpenseDraft,
        error: ExpenseRejectedError,
        correlation_id: UUID,
    ) -> None:
        if not self._audit_logger:
            return
        issues = [
            {"field": i.field, "type": i.issue_type, "message": i.message}
            for i in error.result.issues
        ]
        stage = "schema" if not error.result.schema_valid else "semantic"
        await self._audit_logger.log_validation_failed(
            draft_id=draft.draft_id,
            stage=stage,
            issues=issues,
            correlation_id=correlation_id,
        )

    async def submit(
        self,
        draft: ExpenseDraft,
        correlation_id: Optional[UUID] = None,
    ) -> Expense:
        """
        Validate a draft and save it as a new expense.

        Raises:
            ExpenseRejectedError: If validation fails
            StorageError: If the store refuses the write
        """
        correlation_id = correlation_id or create_correlation_id()

        if self._audit_logger:
            await self._audit_logger.log_expense_submitted(
                draft_id=draft.draft_id,
                submitted_by=draft.created_by,
                correlation_id=correlation_id,
            )

        result = await self._validator.validate(draft)
        try:
            expense = self._validator.build_expense(draft, result)
        except ExpenseRejectedError as e:
            await self._audit_rejection(draft, e, correlation_id)
            raise

        try:
            await self._store.add_expense(expense)
        except StorageError as e:
            if self._audit_logger:
                await self._audit_logger.log_store_error(
                    operation="add_expense",
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            raise

        if self._audit_logger:
            await self._audit_logger.log_expense_saved(
                expense_id=expense.id,
                amount=str(expense.amount),
                correlation_id=correlation_id,
            )

        return expense

    async def update(
        self,
        expense: Expense,
        correlation_id: Optional[UUID] = None,
    ) -> Expense:
        """
        Validate an edited expense and replace the stored one.

        Edits go through the same two stages as new expenses. The saved
        record is stamped with updated_at.

        Raises:
            ExpenseRejectedError: If validation fails
            NotFoundError: If the expense doesn't exist
        """
        correlation_id = correlation_id or create_correlation_id()

        draft = ExpenseDraft.from_expense(expense)
        result = await self._validator.validate(draft)
        if not result.is_valid:
            error = ExpenseRejectedError(result)
            await self._audit_rejection(draft, error, correlation_id)
            raise error

        expense = expense.model_copy(update={"updated_at": datetime.utcnow()})
        await self._store.update_expense(expense)

        if self._audit_logger:
            await self._audit_logger.log_expense_updated(
                expense_id=expense.id,
                correlation_id=correlation_id,
            )
        return expense

    async def delete(
        self,
        expense_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> bool:
        """Delete an expense. Returns False if it was already gone."""
        correlation_id = correlation_id or create_correlation_id()

        deleted = await self._store.delete_expense(expense_id)

        if deleted and self._audit_logger:
            await self._audit_logger.log_expense_deleted(
                expense_id=expense_id,
                correlation_id=correlation_id,
            )
        return deleted


class SettlementFlow:
    """
    Orchestrates the read side: split calculator, statistics and profiles.

    Each call:
    1. Loads a fresh snapshot (retrying transient connection failures)
    2. Hands plain lists to the pure engine
    3. Audits what was computed
    """

    def __init__(
        self,
        store: ExpenseStoreInterface,
        audit_logger: Optional[AuditLogger] = None,
        settlement_settings: Optional[SettlementSettings] = None,
        store_settings: Optional[StoreSettings] = None,
    ):
        settings = get_settings()
        self._store = store
        self._audit_logger = audit_logger
        self._settlement_settings = settlement_settings or settings.settlement
        self._store_settings = store_settings or settings.store

    async def _with_retry(self, operation):
        return await with_store_retry(operation, self._store_settings)

    async def load_snapshot(
        self,
        correlation_id: Optional[UUID] = None,
    ) -> tuple[list[Expense], list[Participant]]:
        """
        Fetch every expense and the roster.

        Raises:
            ConnectionError: If the store stays unreachable after retries
        """
        correlation_id = correlation_id or create_correlation_id()

        try:
            expenses = await self._with_retry(self._store.list_expenses)
            participants = await self._with_retry(self._store.list_participants)
        except StorageError as e:
            if self._audit_logger:
                await self._audit_logger.log_store_error(
                    operation="load_snapshot",
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            raise

        if self._audit_logger:
            await self._audit_logger.log_snapshot_loaded(
                expense_count=len(expenses),
                participant_count=len(participants),
                correlation_id=correlation_id,
            )
        return expenses, participants

    def month_options(self, now: Optional[datetime] = None) -> list[tuple[str, str]]:
        """(value, label) options for the month picker, newest first."""
        return recent_months(
            now or datetime.utcnow(),
            count=self._settlement_settings.month_options,
        )

    async def settlement_for_period(
        self,
        period: Optional[Period],
        correlation_id: Optional[UUID] = None,
    ) -> SettlementReport:
        """Settle the given period (None settles all expenses ever)."""
        correlation_id = correlation_id or create_correlation_id()

        expenses, _ = await self.load_snapshot(correlation_id)
        report = calculate_settlement(
            expenses,
            period=period,
            epsilon=self._settlement_settings.epsilon,
        )

        if self._audit_logger:
            await self._audit_logger.log_settlement_computed(
                period_label=(period.label or "custom") if period else "all",
                member_count=len(report.balances),
                transfer_count=len(report.settlements),
                total_spend=str(report.total_spend),
                correlation_id=correlation_id,
            )
        return report

    async def monthly_settlement(
        self,
        month: str,
        correlation_id: Optional[UUID] = None,
    ) -> SettlementReport:
        """
        Settle one calendar month, given as "YYYY-MM".

        Raises:
            ValueError: If the month key is malformed
        """
        return await self.settlement_for_period(parse_month(month), correlation_id)

    async def describe_settlements(
        self,
        report: SettlementReport,
        correlation_id: Optional[UUID] = None,
    ) -> list[str]:
        """Readable transfer lines using roster display names."""
        _, participants = await self.load_snapshot(correlation_id)
        names = display_names(participants)
        return [
            transfer.describe(names, self._settlement_settings.currency_symbol)
            for transfer in report.settlements
        ]

    async def statistics(
        self,
        time_range: Union[TimeRange, str] = TimeRange.SIX_MONTHS,
        now: Optional[datetime] = None,
        correlation_id: Optional[UUID] = None,
    ) -> StatisticsReport:
        """Spending totals by category, month and payer for a range."""
        correlation_id = correlation_id or create_correlation_id()
        time_range = TimeRange(time_range)

        expenses, participants = await self.load_snapshot(correlation_id)
        period = period_for_range(time_range, now or datetime.utcnow())
        selected = filter_in_period(expenses, period)

        report = StatisticsReport(
            period=period,
            summary=spending_summary(selected, roster=participants),
            by_category=totals_by_category(selected),
            by_month=totals_by_month(selected),
            by_member=paid_by_member(selected, roster=participants),
        )

        if self._audit_logger:
            await self._audit_logger.log_statistics_computed(
                time_range=time_range.value,
                expense_count=len(selected),
                correlation_id=correlation_id,
            )
        return report

    async def member_profile(
        self,
        member_id: str,
        time_filter: Union[ProfileTimeFilter, str] = ProfileTimeFilter.ALL,
        category: Optional[Union[ExpenseCategory, str]] = None,
        search: Optional[str] = None,
        now: Optional[datetime] = None,
        correlation_id: Optional[UUID] = None,
    ) -> MemberProfile:
        """
        Build a member's profile page.

        The summary covers the member's whole history. The filters only
        narrow the expense list shown underneath it.

        Raises:
            NotFoundError: If the member is not on the roster
        """
        correlation_id = correlation_id or create_correlation_id()

        expenses, participants = await self.load_snapshot(correlation_id)
        member = next((p for p in participants if p.id == member_id), None)
        if member is None:
            raise NotFoundError(f"Member {member_id} not found")

        history = expenses_for_member(expenses, member_id)
        if search:
            history = search_expenses(history, search, display_names(participants))
        if category is not None:
            history = filter_by_category(history, category)
        period = period_for_profile_filter(time_filter, now or datetime.utcnow())
        history = sort_newest_first(filter_in_period(history, period))

        summary = member_summary(expenses, member_id)

        if self._audit_logger:
            await self._audit_logger.log_profile_computed(
                member_id=member_id,
                expense_count=summary.expense_count,
                correlation_id=correlation_id,
            )
        return MemberProfile(member=member, summary=summary, expenses=history)


def create_app_components(
    store: Optional[ExpenseStoreInterface] = None,
) -> tuple[ExpenseIngestionFlow, SettlementFlow, ExpenseStoreInterface]:
    """
    Factory function to create all application components.

    Args:
        store: The expense store to use. Defaults to an in-memory store,
               which is what tests and local runs want.

    Returns:
        (ingestion_flow, settlement_flow, store)
    """
    store = store or InMemoryExpenseStore()
    audit_logger = AuditLogger(InMemoryAuditStorage())

    ingestion_flow = ExpenseIngestionFlow(
        store=store,
        audit_logger=audit_logger,
    )
    settlement_flow = SettlementFlow(
        store=store,
        audit_logger=audit_logger,
    )
    return ingestion_flow, settlement_flow, store
