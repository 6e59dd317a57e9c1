"""
Data Models Package

This package contains all Pydantic models used by the splitter.
All data flowing into the settlement engine must conform to these schemas.
"""

from groupsplit.models.expense import (
    CATEGORY_INFO,
    SETTLEMENT_EPSILON,
    CategoryInfo,
    Expense,
    ExpenseCategory,
    ExpenseDraft,
    Participant,
    Period,
    ValidationIssue,
    ValidationResult,
    category_info,
    category_key,
    to_naive_utc,
)
from groupsplit.models.settlement import (
    Balance,
    BalanceStatus,
    CategoryShare,
    CategoryTotal,
    MemberProfile,
    MemberSummary,
    MemberTotal,
    SettlementReport,
    SpendingSummary,
    StatisticsReport,
    Transfer,
)
from groupsplit.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Expense models
    "CATEGORY_INFO",
    "SETTLEMENT_EPSILON",
    "CategoryInfo",
    "Expense",
    "ExpenseCategory",
    "ExpenseDraft",
    "Participant",
    "Period",
    "ValidationIssue",
    "ValidationResult",
    "category_info",
    "category_key",
    "to_naive_utc",
    # Settlement models
    "Balance",
    "BalanceStatus",
    "CategoryShare",
    "CategoryTotal",
    "MemberProfile",
    "MemberSummary",
    "MemberTotal",
    "SettlementReport",
    "SpendingSummary",
    "StatisticsReport",
    "Transfer",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
