"""Domain models for the expense tracker."""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from decimal import Decimal, InvalidOperation, getcontext
from typing import Any, Dict, Hashable, Iterable, List, Optional, Tuple

from .errors import (
    CategoryInUseError,
    CategoryNotFoundError,
    DuplicateCategoryError,
    ExpenseNotFoundError,
    LedgerFormatError,
)
from .logging_setup import get_logger

getcontext().prec = 28  # Higher precision for money calculations.

logger = get_logger("expense_tracker.models")

DATE_FORMAT = "%Y-%m-%d"

DEFAULT_CATEGORIES: Tuple[Tuple[str, str], ...] = (
    ("Food", "Groceries, restaurants, etc."),
    ("Housing", "Rent, mortgage, repairs"),
    ("Transportation", "Public transit, car expenses"),
    ("Utilities", "Electricity, water, internet"),
    ("Entertainment", "Movies, games, hobbies"),
    ("Health", "Medical expenses, insurance"),
    ("Personal", "Clothing, grooming"),
    ("Education", "Books, courses, tuition"),
    ("Miscellaneous", "Other expenses"),
)


def _to_decimal(value: float | int | str | Decimal) -> Decimal:
    """Convert user-provided numeric values into a Decimal."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def _format_date(value: date | datetime | str) -> str:
    """Normalise date values to an ISO date string (YYYY-MM-DD)."""
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


def _require(payload: Dict[str, Any], key: str, kind: type | Tuple[type, ...]) -> Any:
    """Fetch ``key`` from a decoded JSON object, insisting on its type."""
    if not isinstance(payload, dict):
        raise LedgerFormatError(f"Expected an object, got {type(payload).__name__}")
    if key not in payload:
        raise LedgerFormatError(f"Missing field '{key}'")
    value = payload[key]
    # bool is an int subclass; an id of `true` is still malformed.
    if isinstance(value, bool) or not isinstance(value, kind):
        raise LedgerFormatError(f"Field '{key}' has unexpected type {type(value).__name__}")
    return value


def _first_duplicate(keys: Iterable[Hashable]) -> Optional[Hashable]:
    seen = set()
    for key in keys:
        if key in seen:
            return key
        seen.add(key)
    return None


def default_categories() -> List["Category"]:
    """Return fresh copies of the categories seeded into a new ledger."""
    return [Category(name=name, description=description) for name, description in DEFAULT_CATEGORIES]


@dataclass(slots=True)
class Category:
    """A spending category, identified by its case-sensitive name."""

    name: str
    description: str = ""

    def to_dict(self) -> Dict[str, str]:
        return {"name": self.name, "description": self.description}

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "Category":
        return cls(
            name=_require(payload, "name", str),
            description=_require(payload, "description", str),
        )


@dataclass(slots=True)
class Expense:
    """A single recorded expense.

    ``id`` is owned by the ledger: whatever a caller puts there is replaced
    when the expense is added or used as an update.
    """

    amount: Decimal
    description: str = ""
    category: str = ""
    date: str = field(default_factory=lambda: date.today().isoformat())
    id: int = 0

    def __post_init__(self) -> None:
        self.amount = _to_decimal(self.amount)
        self.date = _format_date(self.date)

    def period(self) -> Optional[Tuple[int, int]]:
        """Return ``(year, month)`` parsed from ``date`` or ``None`` if malformed."""
        try:
            parsed = datetime.strptime(self.date, DATE_FORMAT)
        except ValueError:
            return None
        return parsed.year, parsed.month

    def to_dict(self) -> Dict[str, Any]:
        """Serialise the expense for the JSON document."""
        return {
            "id": self.id,
            "amount": float(self.amount),
            "description": self.description,
            "category": self.category,
            "date": self.date,
        }

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "Expense":
        """Rehydrate an expense, rejecting records with missing or mistyped fields."""
        raw_amount = _require(payload, "amount", (int, float, str, Decimal))
        try:
            amount = _to_decimal(raw_amount)
        except InvalidOperation as exc:
            raise LedgerFormatError(f"Field 'amount' is not a number: {raw_amount!r}") from exc
        if not amount.is_finite() or not math.isfinite(float(amount)):
            raise LedgerFormatError(f"Field 'amount' is not a finite number: {raw_amount!r}")
        return cls(
            id=_require(payload, "id", int),
            amount=amount,
            description=_require(payload, "description", str),
            category=_require(payload, "category", str),
            date=_require(payload, "date", str),
        )


@dataclass(slots=True)
class Ledger:
    """Container for the user's expenses, categories and the id counter.

    Records are never edited in place: updates swap in new objects, so a
    shallow :meth:`copy` is enough to restore a previous state.
    """

    expenses: List[Expense] = field(default_factory=list)
    categories: List[Category] = field(default_factory=list)
    next_expense_id: int = 1

    @classmethod
    def with_default_categories(cls) -> "Ledger":
        return cls(categories=default_categories())

    def copy(self) -> "Ledger":
        return Ledger(
            expenses=list(self.expenses),
            categories=list(self.categories),
            next_expense_id=self.next_expense_id,
        )

    # ------------------------------------------------------------------ #
    # Expenses
    # ------------------------------------------------------------------ #
    def _expense_index(self, expense_id: int) -> int:
        for index, expense in enumerate(self.expenses):
            if expense.id == expense_id:
                return index
        raise ExpenseNotFoundError(expense_id)

    def find_expense(self, expense_id: int) -> Optional[Expense]:
        for expense in self.expenses:
            if expense.id == expense_id:
                return expense
        return None

    def add_expense(self, expense: Expense) -> Expense:
        """Append ``expense`` under a freshly assigned id and return the stored record."""
        expense_id = self.next_expense_id
        self.next_expense_id += 1
        record = replace(expense, id=expense_id)
        self.expenses.append(record)
        return record

    def update_expense(self, expense_id: int, replacement: Expense) -> Expense:
        """Replace every field of an expense except its id."""
        index = self._expense_index(expense_id)
        record = replace(replacement, id=expense_id)
        self.expenses[index] = record
        return record

    def remove_expense(self, expense_id: int) -> Expense:
        return self.expenses.pop(self._expense_index(expense_id))

    def expenses_for_month(self, year: int, month: int) -> List[Expense]:
        """Return expenses dated within ``year``/``month`` (1-based).

        Expenses whose date cannot be parsed never match; each one is logged.
        """
        matches: List[Expense] = []
        for expense in self.expenses:
            period = expense.period()
            if period is None:
                logger.warning(
                    "Expense %s has malformed date %r; excluded from monthly results",
                    expense.id,
                    expense.date,
                )
                continue
            if period == (year, month):
                matches.append(expense)
        return matches

    def expenses_for_category(self, name: str) -> List[Expense]:
        return [expense for expense in self.expenses if expense.category == name]

    # ------------------------------------------------------------------ #
    # Categories
    # ------------------------------------------------------------------ #
    def _category_index(self, name: str) -> int:
        for index, category in enumerate(self.categories):
            if category.name == name:
                return index
        raise CategoryNotFoundError(name)

    def find_category(self, name: str) -> Optional[Category]:
        for category in self.categories:
            if category.name == name:
                return category
        return None

    def add_category(self, category: Category) -> Category:
        if self.find_category(category.name) is not None:
            raise DuplicateCategoryError(category.name)
        record = replace(category)
        self.categories.append(record)
        return record

    def update_category(self, name: str, replacement: Category) -> Category:
        """Replace the category called ``name``, possibly renaming it.

        Expenses referencing the old name are left untouched.
        """
        index = self._category_index(name)
        if replacement.name != name and self.find_category(replacement.name) is not None:
            raise DuplicateCategoryError(replacement.name)
        record = replace(replacement)
        self.categories[index] = record
        return record

    def remove_category(self, name: str) -> Category:
        index = self._category_index(name)
        usage = len(self.expenses_for_category(name))
        if usage:
            raise CategoryInUseError(name, usage)
        return self.categories.pop(index)

    # ------------------------------------------------------------------ #
    # Aggregation
    # ------------------------------------------------------------------ #
    def category_summary(self, year: int, month: int) -> Dict[str, Decimal]:
        """Total spend per category for a month.

        Every known category is present, zero when unused. Expenses whose
        category is unknown add their own key after the known ones.
        """
        summary: Dict[str, Decimal] = {
            category.name: Decimal("0.00") for category in self.categories
        }
        for expense in self.expenses_for_month(year, month):
            summary[expense.category] = summary.get(expense.category, Decimal("0.00")) + expense.amount
        return summary

    def total_for_month(self, year: int, month: int) -> Decimal:
        return sum(
            (expense.amount for expense in self.expenses_for_month(year, month)),
            Decimal("0.00"),
        )

    # ------------------------------------------------------------------ #
    # Serialisation
    # ------------------------------------------------------------------ #
    def to_dict(self) -> Dict[str, Any]:
        """Serialise the ledger into the on-disk document layout."""
        return {
            "expenses": [expense.to_dict() for expense in self.expenses],
            "categories": [category.to_dict() for category in self.categories],
            "nextExpenseId": self.next_expense_id,
        }

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "Ledger":
        """Rehydrate a ledger, raising :class:`LedgerFormatError` on bad structure."""
        raw_expenses = _require(payload, "expenses", list)
        raw_categories = _require(payload, "categories", list)
        next_expense_id = _require(payload, "nextExpenseId", int)

        ledger = cls(
            expenses=[Expense.from_dict(item) for item in raw_expenses],
            categories=[Category.from_dict(item) for item in raw_categories],
            next_expense_id=next_expense_id,
        )
        duplicate_id = _first_duplicate(expense.id for expense in ledger.expenses)
        if duplicate_id is not None:
            raise LedgerFormatError(f"Expense id {duplicate_id} appears more than once")
        duplicate_name = _first_duplicate(category.name for category in ledger.categories)
        if duplicate_name is not None:
            raise LedgerFormatError(f"Category '{duplicate_name}' appears more than once")
        if ledger.expenses:
            highest = max(expense.id for expense in ledger.expenses)
            if ledger.next_expense_id <= highest:
                logger.warning(
                    "Stored nextExpenseId %s is not above the highest id %s; using %s",
                    ledger.next_expense_id,
                    highest,
                    highest + 1,
                )
                ledger.next_expense_id = highest + 1
        return ledger
