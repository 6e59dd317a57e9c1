"""
Derived Settlement Models

Everything in this module is computed from expenses on demand and never
persisted. Recomputing from the same snapshot always yields equal models.
"""

from decimal import Decimal
from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

from groupsplit.models.expense import (
    SETTLEMENT_EPSILON,
    Expense,
    ExpenseCategory,
    Participant,
    Period,
)


class BalanceStatus(str, Enum):
    """Where a member stands after the equal split."""
    OWES = "owes"
    OVERPAID = "overpaid"
    SETTLED = "settled"

    @classmethod
    def from_owed(
        cls,
        owed: Decimal,
        epsilon: Decimal = SETTLEMENT_EPSILON,
    ) -> "BalanceStatus":
        if owed > epsilon:
            return cls.OWES
        if owed < -epsilon:
            return cls.OVERPAID
        return cls.SETTLED


class Balance(BaseModel):
    """
    One member's position for a period under the equal-share model.

    owed > 0 means the member still owes money.
    owed < 0 means the member overpaid and is owed money.
    """
    model_config = ConfigDict(frozen=True)

    member_id: str
    paid: Decimal = Field(
        ...,
        description="Sum of expenses this member paid for"
    )
    share: Decimal = Field(
        ...,
        description="Fair share of the period total"
    )
    owed: Decimal = Field(
        ...,
        description="share - paid"
    )

    @property
    def net(self) -> Decimal:
        """paid - share: positive when the member is owed money."""
        return self.paid - self.share

    @property
    def status(self) -> BalanceStatus:
        return BalanceStatus.from_owed(self.owed)


class Transfer(BaseModel):
    """A recommended payment: from_member pays amount to to_member."""
    model_config = ConfigDict(frozen=True)

    from_member: str
    to_member: str
    amount: Decimal = Field(..., gt=0)

    @model_validator(mode="after")
    def validate_members(self) -> "Transfer":
        if self.from_member == self.to_member:
            raise ValueError("A member cannot pay themselves")
        return self

    def describe(
        self,
        names: Optional[dict[str, str]] = None,
        currency_symbol: str = "$",
    ) -> str:
        """Human-readable line, e.g. 'Bob pays Alice $30.00'."""
        names = names or {}
        payer = names.get(self.from_member, self.from_member)
        payee = names.get(self.to_member, self.to_member)
        return f"{payer} pays {payee} {currency_symbol}{self.amount:.2f}"


class SettlementReport(BaseModel):
    """
    Full result of settling one period.

    This is what the split calculator view renders.
    """

    period: Optional[Period] = None
    expense_count: int = Field(default=0, ge=0)
    total_spend: Decimal = Decimal("0")
    equal_share: Decimal = Decimal("0")
    member_payments: dict[str, Decimal] = Field(default_factory=dict)
    member_owes: dict[str, Decimal] = Field(default_factory=dict)
    balances: dict[str, Balance] = Field(default_factory=dict)
    settlements: list[Transfer] = Field(default_factory=list)

    @property
    def total_transferred(self) -> Decimal:
        return sum((t.amount for t in self.settlements), Decimal("0"))

    @property
    def is_settled(self) -> bool:
        return not self.settlements


# =============================================================================
# AGGREGATION MODELS
# =============================================================================

class CategoryTotal(BaseModel):
    category: Union[ExpenseCategory, str] = Field(union_mode="left_to_right")
    total: Decimal


class MemberTotal(BaseModel):
    member_id: str
    total: Decimal


class SpendingSummary(BaseModel):
    """Headline numbers for the statistics view."""

    total_spent: Decimal = Decimal("0")
    expense_count: int = Field(default=0, ge=0)
    average_expense: Decimal = Decimal("0")
    top_category: Optional[CategoryTotal] = None
    top_spender: Optional[MemberTotal] = None


class CategoryShare(BaseModel):
    """A member's cost within one category under the proportional model."""

    category: Union[ExpenseCategory, str] = Field(union_mode="left_to_right")
    total: Decimal
    count: int = Field(ge=0)


class MemberSummary(BaseModel):
    """
    Per-member history under the proportional-share model.

    Unlike Balance, a member's cost here is amount / |participants| for
    each expense they share, not a flat slice of the period total.
    """

    member_id: str
    total_paid: Decimal = Decimal("0")
    total_share: Decimal = Decimal("0")
    net_balance: Decimal = Decimal("0")
    expense_count: int = Field(default=0, ge=0)
    category_breakdown: list[CategoryShare] = Field(default_factory=list)


class StatisticsReport(BaseModel):
    """Everything the statistics view needs for one time range."""

    period: Optional[Period] = None
    summary: SpendingSummary
    by_category: dict[str, Decimal] = Field(default_factory=dict)
    by_month: dict[str, Decimal] = Field(default_factory=dict)
    by_member: dict[str, Decimal] = Field(default_factory=dict)


class MemberProfile(BaseModel):
    """Profile page data: who the member is, their totals and their expenses."""

    member: Participant
    summary: MemberSummary
    expenses: list[Expense] = Field(default_factory=list)
