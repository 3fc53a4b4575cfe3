"""Runtime settings for the expense tracker."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from .storage import DEFAULT_DATA_FILE

ENV_DATA_FILE = "EXPENSE_TRACKER_DATA_FILE"
ENV_LOG_LEVEL = "EXPENSE_TRACKER_LOG_LEVEL"
DEFAULT_LOG_LEVEL = "INFO"


@dataclass(slots=True)
class Settings:
    """Where the ledger lives and how loudly to log."""

    data_file: Path = DEFAULT_DATA_FILE
    log_level: str = DEFAULT_LOG_LEVEL

    @classmethod
    def resolve(
        cls,
        *,
        data_file: str | Path | None = None,
        log_level: Optional[str] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> "Settings":
        """Build settings from explicit values, then the environment, then defaults."""
        env = os.environ if environ is None else environ
        resolved_file = data_file or env.get(ENV_DATA_FILE) or DEFAULT_DATA_FILE
        resolved_level = log_level or env.get(ENV_LOG_LEVEL) or DEFAULT_LOG_LEVEL
        return cls(data_file=Path(resolved_file).expanduser(), log_level=resolved_level)
