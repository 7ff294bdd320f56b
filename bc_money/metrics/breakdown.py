"""Expense breakdown by category for pie and bar charts."""

from __future__ import annotations

from typing import Any

import pandas as pd

from ..records import TransactionSource, category_lookup, optional_str
from .aggregation import filter_transactions

FALLBACK_LABEL = 'Otros'
FALLBACK_COLOR = '#6B7280'


def rank_categories(
    transactions: TransactionSource,
    categories: Any,
    top_n: int,
    fallback_label: str = FALLBACK_LABEL,
    fallback_color: str = FALLBACK_COLOR,
) -> pd.DataFrame:
    """Rank expense categories by total spend.

    Expenses are grouped by ``category_id`` in first-encounter order.
    Uncategorised rows form one bucket whose ``category_id`` is ``None``.
    Groups whose category cannot be resolved are labelled ``fallback_label``.  The descending sort is
    stable so equal totals keep their encounter order, and only the first
    ``top_n`` groups are returned; the rest are dropped, not merged.

    Args:
        transactions: Transactions already limited to the period of interest
        categories: Category records, mappings or DataFrame used for labels
        top_n: Maximum number of rows to return

    Returns:
        DataFrame with columns ``category_id``, ``name``, ``amount``, ``color``
    """
    columns = ['category_id', 'name', 'amount', 'color']
    expenses = filter_transactions(transactions, txn_type='expense')
    if expenses.empty or top_n <= 0:
        return pd.DataFrame(columns=columns)

    totals = expenses['amount'].groupby(expenses['category_id'], sort=False, dropna=False).sum()

    lookup = category_lookup(categories)
    rows = []
    for key, amount in totals.items():
        category_id = optional_str(key)
        category = lookup.get(category_id)
        rows.append({
            'category_id': category_id,
            'name': category.name if category else fallback_label,
            'amount': float(amount),
            'color': category.color if category else fallback_color,
        })

    ranked = pd.DataFrame(rows, columns=columns)
    ranked = ranked.sort_values('amount', ascending=False, kind='mergesort')
    return ranked.head(top_n).reset_index(drop=True)
