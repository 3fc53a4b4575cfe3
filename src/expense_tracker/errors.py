"""Exception types raised by the expense ledger and its storage layer."""

from __future__ import annotations


class LedgerError(Exception):
    """Base class for every failure reported by the ledger."""


class ExpenseNotFoundError(LedgerError, KeyError):
    """No expense carries the requested id."""

    def __init__(self, expense_id: int) -> None:
        super().__init__(f"Unknown expense id '{expense_id}'")
        self.expense_id = expense_id

    def __str__(self) -> str:
        return self.args[0]


class CategoryNotFoundError(LedgerError, KeyError):
    """No category carries the requested name."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Unknown category '{name}'")
        self.name = name

    def __str__(self) -> str:
        return self.args[0]


class DuplicateCategoryError(LedgerError, ValueError):
    """A category with the same name already exists."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Category '{name}' already exists")
        self.name = name


class CategoryInUseError(LedgerError):
    """The category is still referenced by at least one expense."""

    def __init__(self, name: str, usage: int) -> None:
        super().__init__(f"Category '{name}' is used by {usage} expense(s)")
        self.name = name
        self.usage = usage


class StorageError(LedgerError):
    """Reading or writing the ledger document failed."""


class LedgerFormatError(StorageError):
    """The ledger document is unparsable or lacks required structure."""
