"""Concurrent, timeout-guarded loading of the collections a page needs.

Each collection is fetched in its own worker.  A fetch that fails or does not
finish within the timeout is replaced by an empty collection so the remaining
metrics still compute.  Superseded loads are not cancelled; their results are
dropped by :class:`DashboardRequest`.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

import pandas as pd

from . import config, db
from .records import TRANSACTION_COLUMNS, Budget, Category, Goal

logger = logging.getLogger(__name__)


@dataclass
class DashboardData:
    transactions: pd.DataFrame = field(default_factory=lambda: pd.DataFrame(columns=TRANSACTION_COLUMNS))
    goals: List[Goal] = field(default_factory=list)
    categories: List[Category] = field(default_factory=list)
    budgets: List[Budget] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        return not self.failed


def _empty(name: str) -> Any:
    if name == 'transactions':
        return pd.DataFrame(columns=TRANSACTION_COLUMNS)
    return []


def load_dashboard_data(
    user_id: str,
    start: Any,
    end: Any,
    store: Any = None,
    timeout: Optional[float] = None,
    goal_status: Optional[str] = 'active',
) -> DashboardData:
    """Fetch transactions, goals, categories and budgets for one user.

    Args:
        user_id: Owner whose records are loaded
        start: First day of the transaction window (inclusive)
        end: Last day of the transaction window (inclusive)
        store: Object exposing the ``db`` read functions (defaults to :mod:`bc_money.db`)
        timeout: Seconds to wait for all fetches (defaults to ``FETCH_TIMEOUT_SECONDS``)
        goal_status: Goal status filter, ``None`` for every goal

    Returns:
        DashboardData with an empty collection, and its name in ``failed``,
        for every fetch that raised or timed out
    """
    store = store or db
    timeout = config.FETCH_TIMEOUT_SECONDS if timeout is None else timeout
    fetchers: Dict[str, Callable[[], Any]] = {
        'transactions': lambda: store.fetch_transactions(user_id, start, end),
        'goals': lambda: store.fetch_goals(user_id, status=goal_status),
        'categories': lambda: store.fetch_categories(user_id),
        'budgets': lambda: store.fetch_budgets(user_id),
    }

    executor = ThreadPoolExecutor(max_workers=len(fetchers), thread_name_prefix='bc-money-fetch')
    futures = {name: executor.submit(fn) for name, fn in fetchers.items()}
    done, _ = wait(list(futures.values()), timeout=timeout)

    results: Dict[str, Any] = {}
    failed: List[str] = []
    for name, future in futures.items():
        if future not in done:
            logger.warning("Fetching %s for %s timed out after %.1fs", name, user_id, timeout)
            results[name] = _empty(name)
            failed.append(name)
            continue
        try:
            results[name] = future.result()
        except Exception as exc:  # any store error degrades to an empty collection
            logger.error("Fetching %s for %s failed: %s", name, user_id, exc)
            results[name] = _empty(name)
            failed.append(name)
    executor.shutdown(wait=False, cancel_futures=True)

    if results['transactions'] is None:
        results['transactions'] = _empty('transactions')
    return DashboardData(
        transactions=results['transactions'],
        goals=list(results['goals'] or []),
        categories=list(results['categories'] or []),
        budgets=list(results['budgets'] or []),
        failed=failed,
    )


class DashboardRequest:
    """Generation counter that lets only the latest load update the page."""

    def __init__(self) -> None:
        self._generation = 0
        self._lock = threading.Lock()

    def start(self) -> int:
        with self._lock:
            self._generation += 1
            return self._generation

    def is_current(self, ticket: int) -> bool:
        with self._lock:
            return ticket == self._generation

    def apply(self, ticket: int, data: DashboardData, sink: Callable[[DashboardData], None]) -> bool:
        """Hand ``data`` to ``sink`` only if no newer load has started."""
        if not self.is_current(ticket):
            logger.debug("Discarding stale dashboard load %d", ticket)
            return False
        sink(data)
        return True

    def load(
        self,
        user_id: str,
        start: Any,
        end: Any,
        sink: Callable[[DashboardData], None],
        **kwargs: Any,
    ) -> bool:
        ticket = self.start()
        data = load_dashboard_data(user_id, start, end, **kwargs)
        return self.apply(ticket, data, sink)
