"""Persistence helpers for the expense tracker."""

from __future__ import annotations

import contextlib
import json
import os
import tempfile
from decimal import Decimal
from pathlib import Path
from typing import Any

from .errors import LedgerFormatError, StorageError
from .logging_setup import get_logger
from .models import Ledger

logger = get_logger("expense_tracker.storage")

DEFAULT_DATA_FILE = Path("expenses.json")


def resolve_path(data_path: str | Path | None = None) -> Path:
    return Path(data_path) if data_path else DEFAULT_DATA_FILE


def load_ledger(data_path: str | Path | None = None) -> Ledger:
    """Read and parse the ledger document.

    Raises :class:`StorageError` when the file cannot be read and
    :class:`LedgerFormatError` when its contents are not a valid ledger.
    """
    path = resolve_path(data_path)
    try:
        with path.open("r", encoding="utf-8") as handle:
            payload: Any = json.load(handle, parse_float=Decimal)
    except json.JSONDecodeError as exc:
        raise LedgerFormatError(f"{path}: invalid JSON ({exc})") from exc
    except (OSError, UnicodeDecodeError) as exc:
        raise StorageError(f"{path}: cannot read ledger ({exc})") from exc
    ledger = Ledger.from_dict(payload)
    logger.debug(
        "Loaded %d expense(s) and %d category(ies) from %s",
        len(ledger.expenses),
        len(ledger.categories),
        path,
    )
    return ledger


def save_ledger(ledger: Ledger, data_path: str | Path | None = None) -> None:
    """Persist the ledger as JSON, replacing the document atomically.

    The document is written to a temporary file beside the target and then
    renamed over it, so an interrupted write never truncates existing data.
    """
    path = resolve_path(data_path)
    try:
        text = json.dumps(ledger.to_dict(), indent=4, allow_nan=False)
    except (TypeError, ValueError) as exc:
        raise StorageError(f"{path}: cannot serialise ledger ({exc})") from exc

    try:
        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    except OSError as exc:
        raise StorageError(f"{path}: cannot create temporary file ({exc})") from exc
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(text)
            handle.write("\n")
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_name, path)
    except OSError as exc:
        with contextlib.suppress(OSError):
            os.remove(tmp_name)
        raise StorageError(f"{path}: cannot write ledger ({exc})") from exc
    logger.debug("Saved %d expense(s) to %s", len(ledger.expenses), path)
