"""Budget usage evaluation.

The caller selects the evaluation window (week, month or year) and passes
only the transactions inside it; these functions never look at dates.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

import pandas as pd

from ..records import Budget, TransactionSource, as_budgets, category_lookup, optional_str, transactions_frame
from .aggregation import sum_amount

WARNING_THRESHOLD = 80.0
DANGER_THRESHOLD = 100.0

STATUS_SUCCESS = 'success'
STATUS_WARNING = 'warning'
STATUS_DANGER = 'danger'
STATUS_INVALID = 'invalid'


@dataclass
class BudgetUsage:
    budget_id: str
    category_id: Optional[str]
    budget: float
    spent: float
    percentage: Optional[float]
    status: str
    remaining: float

    @property
    def is_valid(self) -> bool:
        return self.percentage is not None


def classify_usage(percentage: Optional[float]) -> str:
    """Map a usage percentage to its tier; the lower tier owns each boundary."""
    if percentage is None:
        return STATUS_INVALID
    if percentage <= WARNING_THRESHOLD:
        return STATUS_SUCCESS
    if percentage <= DANGER_THRESHOLD:
        return STATUS_WARNING
    return STATUS_DANGER


def evaluate_budget(budget: Budget, transactions: TransactionSource) -> BudgetUsage:
    """Compare a budget ceiling with the matching expense transactions.

    A budget without a category is matched against uncategorised expenses.
    A ceiling of zero or less is a misconfiguration: ``percentage`` is
    ``None`` and ``status`` is ``'invalid'`` instead of an infinite reading.
    ``remaining`` keeps its sign so overspend shows as a negative number.
    """
    spent = sum_amount(transactions, txn_type='expense', category_id=budget.category_id)
    amount = float(budget.amount)
    percentage = spent / amount * 100 if amount > 0 else None
    return BudgetUsage(
        budget_id=budget.id,
        category_id=budget.category_id,
        budget=amount,
        spent=spent,
        percentage=percentage,
        status=classify_usage(percentage),
        remaining=amount - spent,
    )


def evaluate_budgets(
    budgets: Any,
    transactions: TransactionSource,
    categories: Any = None,
    uncategorized_label: str = 'General',
) -> pd.DataFrame:
    """Evaluate every budget and return one display row per budget.

    Columns: budget_id, category_id, category, color, budget, spent,
    percentage, status, remaining.
    """
    columns = [
        'budget_id', 'category_id', 'category', 'color', 'budget',
        'spent', 'percentage', 'status', 'remaining',
    ]
    records = as_budgets(budgets)
    if not records:
        return pd.DataFrame(columns=columns)

    df = transactions_frame(transactions)
    lookup = category_lookup(categories)
    rows: List[Dict[str, Any]] = []
    for budget in records:
        usage = evaluate_budget(budget, df)
        category = lookup.get(optional_str(budget.category_id)) if budget.category_id is not None else None
        rows.append({
            'budget_id': usage.budget_id,
            'category_id': usage.category_id,
            'category': category.name if category else uncategorized_label,
            'color': category.color if category else None,
            'budget': usage.budget,
            'spent': usage.spent,
            'percentage': usage.percentage,
            'status': usage.status,
            'remaining': usage.remaining,
        })
    return pd.DataFrame(rows, columns=columns)


def overall_budget_used(usages: Iterable[BudgetUsage]) -> float:
    """Simple mean of the individual budget percentages.

    Every budget counts once regardless of its size.  Misconfigured budgets
    have no percentage and are left out; no valid budgets gives ``0.0``.
    """
    values = [u.percentage for u in usages if u.percentage is not None]
    if not values:
        return 0.0
    return float(sum(values) / len(values))


def budget_totals(usages: Iterable[BudgetUsage]) -> Dict[str, float]:
    """Sum budgets and spend across usages for the budgets summary card."""
    items = list(usages)
    total_budget = float(sum(u.budget for u in items))
    total_spent = float(sum(u.spent for u in items))
    return {
        'total_budget': total_budget,
        'total_spent': total_spent,
        'total_remaining': total_budget - total_spent,
        'total_percentage': total_spent / total_budget * 100 if total_budget > 0 else 0.0,
    }
