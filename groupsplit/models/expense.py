"""
Core Data Models for Group Expense Splitting

These models define the schemas for everything the settlement engine
consumes. They are designed to:
1. Reject malformed records at ingestion, not deep inside the engine
2. Treat participant identifiers as opaque strings
3. Be serializable for storage and logging

DESIGN DECISION: Timestamps are normalized to naive UTC on the way in.
Records coming from a document store often carry a trailing "Z"; period
bounds built in Python usually don't. Normalizing once keeps every
comparison in the engine well defined.
"""

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Annotated, Optional, Union
from uuid import UUID, uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)


# Currency-cent tolerance used for every comparison against zero
SETTLEMENT_EPSILON = Decimal("0.01")


def to_naive_utc(value: datetime) -> datetime:
    """Convert an aware datetime to naive UTC; naive values pass through."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class ExpenseCategory(str, Enum):
    """
    Supported expense categories.

    DESIGN DECISION: The values match the keys already stored for existing
    expenses, so old records load without migration. Display metadata lives
    in CATEGORY_INFO, never in the key itself.
    """
    FOOD_AND_DRINK = "food-&-drink"
    GROCERIES = "groceries"
    HOUSING = "housing"
    UTILITIES = "utilities"
    TRANSPORTATION = "transportation"
    ENTERTAINMENT = "entertainment"
    SHOPPING = "shopping"
    HEALTHCARE = "healthcare"
    OTHER = "other"


class CategoryInfo(BaseModel):
    """Display metadata for a category key."""
    model_config = ConfigDict(frozen=True)

    key: str
    name: str
    icon: str
    color: str


CATEGORY_INFO: dict[ExpenseCategory, CategoryInfo] = {
    ExpenseCategory.FOOD_AND_DRINK: CategoryInfo(
        key=ExpenseCategory.FOOD_AND_DRINK.value, name="Food & Drink", icon="🍕", color="#F97316"
    ),
    ExpenseCategory.GROCERIES: CategoryInfo(
        key=ExpenseCategory.GROCERIES.value, name="Groceries", icon="🛒", color="#10B981"
    ),
    ExpenseCategory.HOUSING: CategoryInfo(
        key=ExpenseCategory.HOUSING.value, name="Housing", icon="🏠", color="#3B82F6"
    ),
    ExpenseCategory.UTILITIES: CategoryInfo(
        key=ExpenseCategory.UTILITIES.value, name="Utilities", icon="⚡", color="#F59E0B"
    ),
    ExpenseCategory.TRANSPORTATION: CategoryInfo(
        key=ExpenseCategory.TRANSPORTATION.value, name="Transportation", icon="🚗", color="#8B5CF6"
    ),
    ExpenseCategory.ENTERTAINMENT: CategoryInfo(
        key=ExpenseCategory.ENTERTAINMENT.value, name="Entertainment", icon="🎬", color="#EC4899"
    ),
    ExpenseCategory.SHOPPING: CategoryInfo(
        key=ExpenseCategory.SHOPPING.value, name="Shopping", icon="🛍️", color="#6366F1"
    ),
    ExpenseCategory.HEALTHCARE: CategoryInfo(
        key=ExpenseCategory.HEALTHCARE.value, name="Healthcare", icon="🏥", color="#EF4444"
    ),
    ExpenseCategory.OTHER: CategoryInfo(
        key=ExpenseCategory.OTHER.value, name="Other", icon="📝", color="#6B7280"
    ),
}


def category_info(category: Union[ExpenseCategory, str]) -> CategoryInfo:
    """
    Look up display metadata for a category.

    Unknown labels get a neutral entry that shows the raw label,
    so legacy or hand-entered categories still render.
    """
    try:
        return CATEGORY_INFO[ExpenseCategory(category)]
    except ValueError:
        return CategoryInfo(key=str(category), name=str(category), icon="📝", color="#6B7280")


def category_key(category: Union[ExpenseCategory, str]) -> str:
    """Plain string key for a known or pass-through category."""
    if isinstance(category, ExpenseCategory):
        return category.value
    return category


# =============================================================================
# PARTICIPANTS
# =============================================================================

class Participant(BaseModel):
    """
    A known member of the group.

    The engine only ever sees the id. Name and avatar are carried
    for presentation.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(
        ...,
        min_length=1,
        description="Opaque participant identifier"
    )
    display_name: str = Field(
        default="Unknown User",
        max_length=200,
        description="Name shown to other members"
    )
    email: str = Field(
        default="",
        max_length=320,
    )
    photo_url: Optional[str] = None


# =============================================================================
# CORE EXPENSE MODEL
# =============================================================================

ParticipantId = Annotated[str, Field(min_length=1)]


class Expense(BaseModel):
    """
    A shared expense as supplied by the store.

    CRITICAL: Expenses are immutable once built. The engine reads them,
    it never edits them.

    Invariants enforced here:
    - participants is never empty
    - amount is never negative
    """
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    id: str = Field(
        ...,
        min_length=1,
        description="Unique expense identifier"
    )
    amount: Decimal = Field(
        ...,
        ge=0,
        description="Amount fronted by the payer"
    )
    date: datetime = Field(
        ...,
        description="When the expense happened (naive UTC)"
    )
    payer: ParticipantId = Field(
        ...,
        description="Participant who paid"
    )
    participants: list[ParticipantId] = Field(
        ...,
        min_length=1,
        description="Participants sharing the cost (payer optional)"
    )
    # Known keys become ExpenseCategory, anything else is kept as a label
    category: Union[ExpenseCategory, str] = Field(
        default=ExpenseCategory.OTHER,
        union_mode="left_to_right",
    )
    description: str = Field(
        default="",
        max_length=500,
    )
    notes: str = Field(
        default="",
        max_length=1000,
    )
    created_at: Optional[datetime] = None
    created_by: Optional[str] = None
    updated_at: Optional[datetime] = None

    @field_validator("participants")
    @classmethod
    def dedupe_participants(cls, v: list[str]) -> list[str]:
        """A participant listed twice still gets one share."""
        return list(dict.fromkeys(v))

    @field_validator("date", "created_at", "updated_at")
    @classmethod
    def normalize_timestamp(cls, v: Optional[datetime]) -> Optional[datetime]:
        if v is None:
            return v
        return to_naive_utc(v)

    @property
    def involved_members(self) -> set[str]:
        """Payer plus everyone sharing the cost."""
        return {self.payer, *self.participants}

    def share_of(self, member_id: str) -> Decimal:
        """
        Proportional share of this expense for one member.

        Members not sharing the expense owe nothing for it.
        """
        if not self.participants or member_id not in self.participants:
            return Decimal("0")
        return self.amount / len(self.participants)


class ExpenseDraft(BaseModel):
    """
    Expense data as typed into the add/edit form.

    CRITICAL: This is UNTRUSTED input. Every field is optional so the
    validator can report all problems at once instead of stopping at
    the first one. Only a validated draft becomes an Expense.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    draft_id: UUID = Field(
        default_factory=uuid4,
        description="Identifier of this submission attempt"
    )
    description: str = ""
    amount: Optional[Decimal] = None
    date: Optional[datetime] = None
    category: Optional[str] = None
    payer: Optional[str] = None
    participants: list[str] = Field(default_factory=list)
    notes: str = ""
    created_by: Optional[str] = None

    @field_validator("date")
    @classmethod
    def normalize_timestamp(cls, v: Optional[datetime]) -> Optional[datetime]:
        if v is None:
            return v
        return to_naive_utc(v)

    @classmethod
    def from_expense(cls, expense: "Expense") -> "ExpenseDraft":
        """Re-open a stored expense as form input, e.g. for an edit."""
        return cls(
            description=expense.description,
            amount=expense.amount,
            date=expense.date,
            category=category_key(expense.category),
            payer=expense.payer,
            participants=list(expense.participants),
            notes=expense.notes,
            created_by=expense.created_by,
        )


# =============================================================================
# PERIODS
# =============================================================================

class Period(BaseModel):
    """An inclusive time window [start, end]."""
    model_config = ConfigDict(frozen=True)

    start: datetime
    end: datetime
    label: Optional[str] = None

    @field_validator("start", "end")
    @classmethod
    def normalize_bounds(cls, v: datetime) -> datetime:
        return to_naive_utc(v)

    @model_validator(mode="after")
    def validate_bounds(self) -> "Period":
        if self.end < self.start:
            raise ValueError("Period end cannot be before start")
        return self

    def contains(self, moment: datetime) -> bool:
        return self.start <= to_naive_utc(moment) <= self.end


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_value', 'unknown_member')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )
    suggested_fix: Optional[str] = Field(
        default=None,
        description="Suggested fix if available"
    )


class ValidationResult(BaseModel):
    """
    Result of the two-stage ingestion validation.

    Stage 1: Schema validation (required fields, basic ranges)
    Stage 2: Semantic validation (roster, dates, suspicious amounts)
    """

    draft_id: UUID = Field(
        ...,
        description="ID of the draft being validated"
    )
    validated_at: datetime = Field(
        default_factory=datetime.utcnow
    )

    schema_valid: bool
    semantic_valid: bool
    is_valid: bool = Field(
        ...,
        description="Overall validation result"
    )

    issues: list[ValidationIssue] = Field(default_factory=list)
    warnings: list[str] = Field(
        default_factory=list,
        description="Non-blocking warnings"
    )

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")
