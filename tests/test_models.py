from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal

import pytest

from expense_tracker.errors import (
    CategoryInUseError,
    CategoryNotFoundError,
    DuplicateCategoryError,
    ExpenseNotFoundError,
    LedgerFormatError,
)
from expense_tracker.models import DEFAULT_CATEGORIES, Category, Expense, Ledger


def test_expense_normalises_amount_and_date():
    expense = Expense(amount=12.5, category="Food", date=date(2024, 3, 15))
    assert expense.amount == Decimal("12.5")
    assert isinstance(expense.amount, Decimal)
    assert expense.date == "2024-03-15"


def test_expense_period_handles_malformed_dates():
    assert Expense(amount="1", date="2024-03-15").period() == (2024, 3)
    assert Expense(amount="1", date="15/03/2024").period() is None
    assert Expense(amount="1", date="").period() is None


def test_default_ledger_has_nine_categories_in_order():
    ledger = Ledger.with_default_categories()
    assert [c.name for c in ledger.categories] == [name for name, _ in DEFAULT_CATEGORIES]
    assert len(ledger.categories) == 9
    assert ledger.expenses == []
    assert ledger.next_expense_id == 1


def test_ids_increase_and_survive_deletion(make_expense):
    ledger = Ledger.with_default_categories()
    first = ledger.add_expense(make_expense())
    second = ledger.add_expense(make_expense())
    ledger.remove_expense(second.id)
    third = ledger.add_expense(make_expense())
    assert (first.id, second.id, third.id) == (1, 2, 3)
    assert ledger.next_expense_id == 4


def test_add_expense_ignores_caller_id(make_expense):
    ledger = Ledger()
    stored = ledger.add_expense(make_expense(id=99))
    assert stored.id == 1


def test_update_expense_keeps_assigned_id(make_expense):
    ledger = Ledger()
    ledger.add_expense(make_expense())
    updated = ledger.update_expense(1, make_expense(id=42, amount="3.00", description="Coffee"))
    assert updated.id == 1
    assert ledger.expenses == [Expense(amount="3.00", description="Coffee", category="Food", date="2024-03-15", id=1)]


def test_unknown_expense_raises(make_expense):
    ledger = Ledger()
    with pytest.raises(ExpenseNotFoundError):
        ledger.update_expense(7, make_expense())
    with pytest.raises(KeyError):
        ledger.remove_expense(7)


def test_expenses_for_month_skips_and_logs_malformed_dates(make_expense, caplog):
    ledger = Ledger()
    ledger.add_expense(make_expense(date="2024-03-01"))
    ledger.add_expense(make_expense(date="not-a-date"))
    ledger.add_expense(make_expense(date="2024-04-01"))
    with caplog.at_level(logging.WARNING, logger="expense_tracker"):
        march = ledger.expenses_for_month(2024, 3)
    assert [e.id for e in march] == [1]
    assert "malformed date" in caplog.text


def test_category_names_are_unique_and_case_sensitive():
    ledger = Ledger.with_default_categories()
    with pytest.raises(DuplicateCategoryError):
        ledger.add_category(Category("Food", "again"))
    ledger.add_category(Category("food", "lower case is different"))
    assert [c.name for c in ledger.categories].count("Food") == 1
    assert ledger.find_category("food") is not None


def test_update_category_renames_without_cascading(make_expense):
    ledger = Ledger.with_default_categories()
    ledger.add_expense(make_expense(category="Food"))
    ledger.update_category("Food", Category("Groceries", "Supermarket"))
    assert ledger.find_category("Food") is None
    assert ledger.categories[0] == Category("Groceries", "Supermarket")
    assert ledger.expenses[0].category == "Food"


def test_update_category_refuses_rename_onto_existing_name():
    ledger = Ledger.with_default_categories()
    with pytest.raises(DuplicateCategoryError):
        ledger.update_category("Food", Category("Housing", ""))
    with pytest.raises(CategoryNotFoundError):
        ledger.update_category("Pets", Category("Pets", ""))
    # Re-describing under the same name is allowed.
    ledger.update_category("Food", Category("Food", "Meals"))
    assert ledger.find_category("Food").description == "Meals"


def test_remove_category_refused_while_in_use(make_expense):
    ledger = Ledger.with_default_categories()
    ledger.add_expense(make_expense(category="Health"))
    ledger.add_expense(make_expense(category="Health"))
    with pytest.raises(CategoryInUseError) as excinfo:
        ledger.remove_category("Health")
    assert excinfo.value.usage == 2
    assert ledger.find_category("Health") is not None
    ledger.remove_category("Education")
    assert ledger.find_category("Education") is None


def test_category_summary_includes_every_category_and_unknown_names(make_expense):
    ledger = Ledger.with_default_categories()
    ledger.add_expense(make_expense(amount="10.25", category="Food"))
    ledger.add_expense(make_expense(amount="4.75", category="Food"))
    ledger.add_expense(make_expense(amount="100", category="Housing"))
    ledger.add_expense(make_expense(amount="5", category="Pets"))
    ledger.add_expense(make_expense(amount="999", category="Food", date="2024-02-29"))

    summary = ledger.category_summary(2024, 3)

    assert list(summary)[:9] == [name for name, _ in DEFAULT_CATEGORIES]
    assert list(summary)[9:] == ["Pets"]
    assert summary["Food"] == Decimal("15.00")
    assert summary["Housing"] == Decimal("100")
    assert summary["Utilities"] == Decimal("0")
    assert sum(summary.values()) == ledger.total_for_month(2024, 3) == Decimal("120.00")


def test_total_for_empty_month_is_zero():
    assert Ledger.with_default_categories().total_for_month(2024, 1) == Decimal("0")


def test_from_dict_accepts_any_key_order_and_fixes_stale_counter(caplog):
    payload = {
        "nextExpenseId": 2,
        "categories": [{"description": "", "name": "Food"}],
        "expenses": [
            {"date": "2024-01-02", "category": "Food", "id": 5, "description": "", "amount": 3},
        ],
    }
    with caplog.at_level(logging.WARNING, logger="expense_tracker"):
        ledger = Ledger.from_dict(payload)
    assert ledger.expenses[0].amount == Decimal("3")
    assert ledger.next_expense_id == 6
    assert "nextExpenseId" in caplog.text


@pytest.mark.parametrize(
    "payload",
    [
        [],
        {"expenses": [], "categories": []},
        {"expenses": {}, "categories": [], "nextExpenseId": 1},
        {"expenses": [], "categories": [{"name": "Food"}], "nextExpenseId": 1},
        {"expenses": [{"id": "1", "amount": 1, "description": "", "category": "", "date": ""}],
         "categories": [], "nextExpenseId": 2},
        {"expenses": [{"id": 1, "amount": "lots", "description": "", "category": "", "date": ""}],
         "categories": [], "nextExpenseId": 2},
        {"expenses": [], "categories": [], "nextExpenseId": True},
        {"expenses": [{"id": 1, "amount": "NaN", "description": "", "category": "", "date": ""}],
         "categories": [], "nextExpenseId": 2},
        {"expenses": [{"id": 1, "amount": "Infinity", "description": "", "category": "", "date": ""}],
         "categories": [], "nextExpenseId": 2},
        {"expenses": [{"id": 1, "amount": "1e400", "description": "", "category": "", "date": ""}],
         "categories": [], "nextExpenseId": 2},
        {"expenses": [{"id": 3, "amount": 1, "description": "", "category": "", "date": ""},
                      {"id": 3, "amount": 2, "description": "", "category": "", "date": ""}],
         "categories": [], "nextExpenseId": 4},
        {"expenses": [], "nextExpenseId": 1,
         "categories": [{"name": "Food", "description": ""}, {"name": "Food", "description": "again"}]},
    ],
)
def test_from_dict_rejects_bad_structure(payload):
    with pytest.raises(LedgerFormatError):
        Ledger.from_dict(payload)


def test_to_dict_matches_document_layout(make_expense):
    ledger = Ledger(categories=[Category("Food", "Meals")])
    ledger.add_expense(make_expense())
    assert ledger.to_dict() == {
        "expenses": [
            {"id": 1, "amount": 12.5, "description": "Lunch", "category": "Food", "date": "2024-03-15"}
        ],
        "categories": [{"name": "Food", "description": "Meals"}],
        "nextExpenseId": 2,
    }


def test_from_dict_names_the_duplicated_key():
    payload = {
        "expenses": [],
        "categories": [{"name": "Food", "description": ""}, {"name": "Food", "description": ""}],
        "nextExpenseId": 1,
    }
    with pytest.raises(LedgerFormatError, match="Category 'Food' appears more than once"):
        Ledger.from_dict(payload)
