"""Personal expense tracker backed by a single JSON ledger file."""

from .errors import (
    CategoryInUseError,
    CategoryNotFoundError,
    DuplicateCategoryError,
    ExpenseNotFoundError,
    LedgerError,
    LedgerFormatError,
    StorageError,
)
from .models import DEFAULT_CATEGORIES, Category, Expense, Ledger
from .store import ExpenseStore

__all__ = [
    "CategoryInUseError",
    "CategoryNotFoundError",
    "DuplicateCategoryError",
    "ExpenseNotFoundError",
    "LedgerError",
    "LedgerFormatError",
    "StorageError",
    "DEFAULT_CATEGORIES",
    "Category",
    "Expense",
    "Ledger",
    "ExpenseStore",
]
