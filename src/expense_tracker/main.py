"""Command-line entry point for the expense tracker."""

from __future__ import annotations

import argparse
import math
import sys
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Iterable, List, Optional, Sequence

from .config import Settings
from .errors import CategoryInUseError, DuplicateCategoryError
from .logging_setup import configure_logging, get_logger
from .models import DATE_FORMAT, Category, Expense
from .store import ExpenseStore

logger = get_logger("expense_tracker.main")


# ---------------------------------------------------------------------- #
# Argument validation
# ---------------------------------------------------------------------- #
def positive_amount(value: str) -> Decimal:
    try:
        amount = Decimal(value.strip())
    except InvalidOperation:
        raise argparse.ArgumentTypeError(f"'{value}' is not a valid amount") from None
    if not amount.is_finite() or not math.isfinite(float(amount)):
        raise argparse.ArgumentTypeError(f"'{value}' is too large to store")
    if amount <= 0:
        raise argparse.ArgumentTypeError("amount must be greater than zero")
    return amount


def iso_date(value: str) -> str:
    try:
        return datetime.strptime(value.strip(), DATE_FORMAT).date().isoformat()
    except ValueError:
        raise argparse.ArgumentTypeError(f"'{value}' is not a date in YYYY-MM-DD form") from None


def non_empty(value: str) -> str:
    cleaned = value.strip()
    if not cleaned:
        raise argparse.ArgumentTypeError("value cannot be empty")
    return cleaned


def month_number(value: str) -> int:
    try:
        month = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"'{value}' is not a month number") from None
    if not 1 <= month <= 12:
        raise argparse.ArgumentTypeError("month must be between 1 and 12")
    return month


# ---------------------------------------------------------------------- #
# Parser
# ---------------------------------------------------------------------- #
def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="expense-tracker", description="Personal expense tracker")
    parser.add_argument(
        "--data-file",
        dest="data_file",
        help="Path to the JSON file holding the ledger (defaults to expenses.json).",
    )
    parser.add_argument("--log-level", dest="log_level", help="Logging level, e.g. DEBUG or WARNING.")
    commands = parser.add_subparsers(dest="command", required=True)

    listing = commands.add_parser("list", help="List expenses")
    listing.add_argument("--year", type=int)
    listing.add_argument("--month", type=month_number)
    listing.add_argument("--category", type=non_empty)

    for name, help_text in (("add", "Record an expense"), ("update", "Replace an expense")):
        sub = commands.add_parser(name, help=help_text)
        if name == "update":
            sub.add_argument("expense_id", type=int)
        sub.add_argument("amount", type=positive_amount)
        sub.add_argument("category", type=non_empty)
        sub.add_argument("--description", default="")
        sub.add_argument("--date", type=iso_date, default=None)

    delete = commands.add_parser("delete", help="Delete an expense")
    delete.add_argument("expense_id", type=int)

    commands.add_parser("categories", help="List categories")

    add_category = commands.add_parser("add-category", help="Create a category")
    add_category.add_argument("name", type=non_empty)
    add_category.add_argument("--description", default="")

    rename = commands.add_parser("rename-category", help="Rename or redescribe a category")
    rename.add_argument("name", type=non_empty)
    rename.add_argument("new_name", type=non_empty)
    rename.add_argument("--description", default=None)

    delete_category = commands.add_parser("delete-category", help="Delete an unused category")
    delete_category.add_argument("name", type=non_empty)

    report = commands.add_parser("report", help="Monthly spend per category")
    report.add_argument("year", type=int)
    report.add_argument("month", type=month_number)
    return parser


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.command == "list" and (args.year is None) != (args.month is None):
        parser.error("--year and --month must be given together")
    return args


# ---------------------------------------------------------------------- #
# Rendering
# ---------------------------------------------------------------------- #
def format_amount(value: Decimal) -> str:
    return f"${value:,.2f}"


def render_expenses(expenses: Iterable[Expense]) -> List[str]:
    lines = [f"{'ID':>5}  {'Date':<10}  {'Category':<16}  {'Amount':>12}  Description"]
    for expense in expenses:
        lines.append(
            f"{expense.id:>5}  {expense.date:<10}  {expense.category:<16}  "
            f"{format_amount(expense.amount):>12}  {expense.description}"
        )
    return lines


def render_report(store: ExpenseStore, year: int, month: int) -> List[str]:
    """Lay out the monthly summary: spent categories, share of total, then TOTAL."""
    summary = store.generate_category_summary(year, month)
    total = store.get_total_expenses(year, month)
    lines = [f"Expenses for {year:04d}-{month:02d}", f"{'Category':<20}{'Amount':>14}{'Share':>9}"]
    for name, amount in summary.items():
        if amount <= 0:
            continue
        share = amount / total * 100 if total else Decimal("0")
        lines.append(f"{name:<20}{format_amount(amount):>14}{share:>8.1f}%")
    lines.append(f"{'TOTAL':<20}{format_amount(total):>14}")
    return lines


def _failure(store: ExpenseStore, message: str) -> int:
    detail = f": {store.last_error}" if store.last_error else ""
    print(f"{message}{detail}", file=sys.stderr)
    return 1


# ---------------------------------------------------------------------- #
# Commands
# ---------------------------------------------------------------------- #
def _expense_from_args(store: ExpenseStore, args: argparse.Namespace) -> Optional[Expense]:
    if store.get_category(args.category) is None:
        print(f"Unknown category '{args.category}'. Run 'categories' to see the choices.", file=sys.stderr)
        return None
    expense_date = args.date
    if expense_date is None and args.command == "update":
        existing = store.get_expense(args.expense_id)
        expense_date = existing.date if existing else None
    return Expense(
        amount=args.amount,
        description=args.description,
        category=args.category,
        date=expense_date or date.today().isoformat(),
    )


def run_command(store: ExpenseStore, args: argparse.Namespace) -> int:
    command = args.command

    if command == "list":
        if args.year is not None:
            expenses = store.get_expenses_by_month(args.year, args.month)
            if args.category:
                expenses = [expense for expense in expenses if expense.category == args.category]
        elif args.category:
            expenses = store.get_expenses_by_category(args.category)
        else:
            expenses = store.get_all_expenses()
        for line in render_expenses(expenses):
            print(line)
        if args.year is not None and not args.category:
            print(f"Total: {format_amount(store.get_total_expenses(args.year, args.month))}")
        return 0

    if command in ("add", "update"):
        expense = _expense_from_args(store, args)
        if expense is None:
            return 1
        if command == "add":
            if not store.add_expense(expense):
                return _failure(store, "Failed to add expense")
            print(f"Added expense {store.last_added_id}")
            return 0
        if not store.update_expense(args.expense_id, expense):
            return _failure(store, f"Failed to update expense {args.expense_id}")
        print(f"Updated expense {args.expense_id}")
        return 0

    if command == "delete":
        if not store.delete_expense(args.expense_id):
            return _failure(store, f"Failed to delete expense {args.expense_id}")
        print(f"Deleted expense {args.expense_id}")
        return 0

    if command == "categories":
        for category in store.get_all_categories():
            print(f"{category.name:<20}{category.description}")
        return 0

    if command == "add-category":
        if not store.add_category(Category(name=args.name, description=args.description)):
            if isinstance(store.last_error, DuplicateCategoryError):
                return _failure(store, "Failed to add category, the name is taken")
            return _failure(store, "Failed to add category")
        print(f"Added category '{args.name}'")
        return 0

    if command == "rename-category":
        current = store.get_category(args.name)
        description = args.description
        if description is None:
            description = current.description if current else ""
        if not store.update_category(args.name, Category(name=args.new_name, description=description)):
            return _failure(store, f"Failed to update category '{args.name}'")
        orphaned = len(store.get_expenses_by_category(args.name))
        if orphaned and args.new_name != args.name:
            logger.warning("%d expense(s) still reference '%s'", orphaned, args.name)
            print(f"Note: {orphaned} expense(s) still use the old name '{args.name}'.")
        print(f"Updated category '{args.name}'")
        return 0

    if command == "delete-category":
        if not store.delete_category(args.name):
            if isinstance(store.last_error, CategoryInUseError):
                return _failure(store, "Cannot delete a category that expenses still use")
            return _failure(store, f"Failed to delete category '{args.name}'")
        print(f"Deleted category '{args.name}'")
        return 0

    if command == "report":
        for line in render_report(store, args.year, args.month):
            print(line)
        return 0

    raise ValueError(f"Unknown command '{command}'")


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    settings = Settings.resolve(data_file=args.data_file, log_level=args.log_level)
    configure_logging(settings.log_level)
    with ExpenseStore(settings.data_file) as store:
        return run_command(store, args)


if __name__ == "__main__":
    sys.exit(main())
