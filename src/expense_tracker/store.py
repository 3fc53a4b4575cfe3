"""The expense store: a ledger bound to its JSON document on disk."""

from __future__ import annotations

from dataclasses import replace
from decimal import Decimal
from pathlib import Path
from typing import Callable, Dict, List, Optional

from .errors import LedgerError, StorageError
from .logging_setup import get_logger
from .models import Category, Expense, Ledger, default_categories
from .storage import load_ledger, resolve_path, save_ledger

logger = get_logger("expense_tracker.store")

Mutation = Callable[[Ledger], object]


class ExpenseStore:
    """Owns the expense and category collections and keeps them on disk.

    Every mutating call rewrites the whole document and returns ``True`` only
    when both the change and the write succeeded. When the write fails the
    change is rolled back, except for the id counter which never goes
    backwards. The cause of the latest failure is kept in ``last_error``.

    Read calls return copies; editing them does not affect the store.

    Use as a context manager, or call :meth:`close` at shutdown for the final
    flush::

        with ExpenseStore("expenses.json") as store:
            store.add_expense(Expense(amount="12.50", category="Food"))
    """

    def __init__(self, data_file: str | Path | None = None) -> None:
        self.data_file = resolve_path(data_file)
        self._ledger = Ledger()
        self.last_error: Optional[LedgerError] = None
        self._last_added_id: Optional[int] = None
        self._closed = False
        self._open()

    def _open(self) -> None:
        parent = self.data_file.parent
        if not parent.exists():
            try:
                parent.mkdir(parents=True, exist_ok=True)
            except OSError as exc:
                self._fail(StorageError(f"{parent}: cannot create directory ({exc})"))

        if self.data_file.exists():
            self.load()
        else:
            logger.info("No ledger at %s; seeding default categories", self.data_file)
            self._ledger.categories = default_categories()
            self.save()
        logger.info(
            "Opened %s with %d expense(s) and %d category(ies)",
            self.data_file,
            len(self._ledger.expenses),
            len(self._ledger.categories),
        )

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #
    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def next_expense_id(self) -> int:
        """The id the next added expense will receive."""
        return self._ledger.next_expense_id

    @property
    def last_added_id(self) -> Optional[int]:
        """Id assigned by the latest successful :meth:`add_expense`, if any."""
        return self._last_added_id

    def close(self) -> bool:
        """Flush the ledger one final time; later calls do nothing."""
        if self._closed:
            return True
        self._closed = True
        return self.save()

    def __enter__(self) -> "ExpenseStore":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # ------------------------------------------------------------------ #
    # Persistence
    # ------------------------------------------------------------------ #
    def save(self) -> bool:
        try:
            save_ledger(self._ledger, self.data_file)
        except StorageError as exc:
            self._fail(exc, exc_info=True)
            return False
        return True

    def load(self) -> bool:
        """Replace the in-memory state with the document's contents.

        On failure the default categories are restored and expenses are left
        as they were.
        """
        try:
            ledger = load_ledger(self.data_file)
        except StorageError as exc:
            self._fail(exc, exc_info=True)
            logger.warning("Falling back to default categories for %s", self.data_file)
            self._ledger.categories = default_categories()
            return False
        self._ledger = ledger
        return True

    def _fail(self, error: LedgerError, *, exc_info: bool = False) -> None:
        self.last_error = error
        if isinstance(error, StorageError):
            logger.error("%s", error, exc_info=exc_info)
        else:
            logger.info("%s", error)

    def _commit(self, mutate: Mutation) -> bool:
        self.last_error = None
        snapshot = self._ledger.copy()
        try:
            mutate(self._ledger)
        except LedgerError as exc:
            self._ledger = snapshot
            self._fail(exc)
            return False
        if self.save():
            return True
        # Keep the advanced counter so a rolled-back id is never reissued.
        snapshot.next_expense_id = self._ledger.next_expense_id
        self._ledger = snapshot
        return False

    # ------------------------------------------------------------------ #
    # Expense operations
    # ------------------------------------------------------------------ #
    def add_expense(self, expense: Expense) -> bool:
        assigned = self._ledger.next_expense_id
        if not self._commit(lambda ledger: ledger.add_expense(expense)):
            return False
        self._last_added_id = assigned
        return True

    def update_expense(self, expense_id: int, expense: Expense) -> bool:
        return self._commit(lambda ledger: ledger.update_expense(expense_id, expense))

    def delete_expense(self, expense_id: int) -> bool:
        return self._commit(lambda ledger: ledger.remove_expense(expense_id))

    def get_expense(self, expense_id: int) -> Optional[Expense]:
        expense = self._ledger.find_expense(expense_id)
        return replace(expense) if expense is not None else None

    def get_all_expenses(self) -> List[Expense]:
        return [replace(expense) for expense in self._ledger.expenses]

    def get_expenses_by_month(self, year: int, month: int) -> List[Expense]:
        return [replace(expense) for expense in self._ledger.expenses_for_month(year, month)]

    def get_expenses_by_category(self, name: str) -> List[Expense]:
        return [replace(expense) for expense in self._ledger.expenses_for_category(name)]

    # ------------------------------------------------------------------ #
    # Category operations
    # ------------------------------------------------------------------ #
    def add_category(self, category: Category) -> bool:
        return self._commit(lambda ledger: ledger.add_category(category))

    def update_category(self, name: str, category: Category) -> bool:
        return self._commit(lambda ledger: ledger.update_category(name, category))

    def delete_category(self, name: str) -> bool:
        return self._commit(lambda ledger: ledger.remove_category(name))

    def get_category(self, name: str) -> Optional[Category]:
        category = self._ledger.find_category(name)
        return replace(category) if category is not None else None

    def get_all_categories(self) -> List[Category]:
        return [replace(category) for category in self._ledger.categories]

    # ------------------------------------------------------------------ #
    # Reporting
    # ------------------------------------------------------------------ #
    def generate_category_summary(self, year: int, month: int) -> Dict[str, Decimal]:
        return self._ledger.category_summary(year, month)

    def get_total_expenses(self, year: int, month: int) -> Decimal:
        return self._ledger.total_for_month(year, month)
