"""Pytest configuration for test isolation.

The command line reads ``EXPENSE_TRACKER_DATA_FILE`` and
``EXPENSE_TRACKER_LOG_LEVEL`` from the environment and configures the package
logger once per process. Both would leak between tests, so every test gets a
clean environment and a fresh logger.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from expense_tracker.config import ENV_DATA_FILE, ENV_LOG_LEVEL
from expense_tracker.logging_setup import reset_logging
from expense_tracker.models import Expense
from expense_tracker.store import ExpenseStore


@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.delenv(ENV_DATA_FILE, raising=False)
    monkeypatch.delenv(ENV_LOG_LEVEL, raising=False)
    yield
    reset_logging()


@pytest.fixture
def data_file(tmp_path: Path) -> Path:
    return tmp_path / "ledger" / "expenses.json"


@pytest.fixture
def store(data_file: Path):
    with ExpenseStore(data_file) as opened:
        yield opened


@pytest.fixture
def make_expense():
    """Build an expense with lunch-in-March defaults, overridable per field."""

    def _make(**overrides) -> Expense:
        fields = {"amount": "12.50", "description": "Lunch", "category": "Food", "date": "2024-03-15"}
        fields.update(overrides)
        return Expense(**fields)

    return _make
