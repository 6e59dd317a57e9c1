"""Expense validation package."""

from groupsplit.validation.validator import ExpenseRejectedError, ExpenseValidator

__all__ = ["ExpenseRejectedError", "ExpenseValidator"]
