"""Runtime settings for bc_money.

Paths, timeouts and the advisor endpoint are read once at import time from
``BC_MONEY_*`` environment variables.  Code that must honour a later change
(tests in particular) reads the module attributes at call time instead of
copying them.
"""

from __future__ import annotations

import os
from pathlib import Path

# bc_money/ lives directly under the project root
_PROJECT_ROOT = Path(__file__).parent.parent.resolve()


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return float(raw)


DATA_DIR = Path(os.getenv("BC_MONEY_DATA_DIR", _PROJECT_ROOT / "data"))
REPORTS_DIR = DATA_DIR / "reports"
DB_PATH = Path(os.getenv("BC_MONEY_DB_PATH", DATA_DIR / "bc_money.db")).resolve()

# Seconds the dashboard waits for its collections before showing empty ones
FETCH_TIMEOUT_SECONDS = _env_float("BC_MONEY_FETCH_TIMEOUT", 10.0)

# Empty URL means the advisor answers offline
ADVISOR_URL = os.getenv("BC_MONEY_ADVISOR_URL", "")
ADVISOR_TIMEOUT_SECONDS = _env_float("BC_MONEY_ADVISOR_TIMEOUT", 30.0)

DEFAULT_CURRENCY = os.getenv("BC_MONEY_CURRENCY", "USD")


def ensure_data_directories() -> None:
    """Create the data and reports directories if they don't exist."""
    for directory in (DATA_DIR, REPORTS_DIR):
        directory.mkdir(parents=True, exist_ok=True)
