"""Transaction aggregation: filtered sums and the metrics derived from them.

All functions accept anything :func:`bc_money.records.transactions_frame`
understands and never modify their input.  Empty input always yields ``0.0``.
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import Any, Dict, Optional

import pandas as pd

from ..records import TransactionSource, optional_str, to_date, transactions_frame

# Sentinel meaning "do not filter on category"; ``None`` selects uncategorised rows.
ANY_CATEGORY: Any = object()


def filter_transactions(
    transactions: TransactionSource,
    *,
    txn_type: Optional[str] = None,
    category_id: Any = ANY_CATEGORY,
    start: Any = None,
    end: Any = None,
) -> pd.DataFrame:
    """Return the rows matching type, category and an inclusive date range."""
    df = transactions_frame(transactions)
    if df.empty:
        return df

    mask = pd.Series(True, index=df.index)
    if txn_type is not None:
        mask &= df['type'] == txn_type
    if category_id is not ANY_CATEGORY:
        if category_id is None:
            mask &= df['category_id'].isna()
        else:
            mask &= df['category_id'] == optional_str(category_id)
    start_day = to_date(start)
    end_day = to_date(end)
    if start_day is not None:
        mask &= df['date'] >= pd.Timestamp(start_day)
    if end_day is not None:
        mask &= df['date'] <= pd.Timestamp(end_day)
    return df[mask]


def sum_amount(
    transactions: TransactionSource,
    *,
    txn_type: Optional[str] = None,
    category_id: Any = ANY_CATEGORY,
    start: Any = None,
    end: Any = None,
) -> float:
    """Sum ``amount`` over the matching transactions (``0.0`` when none match)."""
    matched = filter_transactions(
        transactions, txn_type=txn_type, category_id=category_id, start=start, end=end
    )
    if matched.empty:
        return 0.0
    return float(matched['amount'].sum())


def income(transactions: TransactionSource, start: Any = None, end: Any = None) -> float:
    return sum_amount(transactions, txn_type='income', start=start, end=end)


def expenses(transactions: TransactionSource, start: Any = None, end: Any = None) -> float:
    return sum_amount(transactions, txn_type='expense', start=start, end=end)


def balance(transactions: TransactionSource, start: Any = None, end: Any = None) -> float:
    df = transactions_frame(transactions)
    return income(df, start, end) - expenses(df, start, end)


def rate_of_savings(income_total: float, expense_total: float) -> float:
    """Percentage of income kept; ``0.0`` whenever income is not positive."""
    if income_total > 0:
        return (income_total - expense_total) / income_total * 100
    return 0.0


def savings_rate(transactions: TransactionSource, start: Any = None, end: Any = None) -> float:
    df = transactions_frame(transactions)
    return rate_of_savings(income(df, start, end), expenses(df, start, end))


def period_summary(
    transactions: TransactionSource, start: Any = None, end: Any = None
) -> Dict[str, float]:
    """Calculate the income/expense summary for an inclusive date range."""
    df = filter_transactions(transactions, start=start, end=end)
    income_total = sum_amount(df, txn_type='income')
    expense_total = sum_amount(df, txn_type='expense')
    return {
        'income': income_total,
        'expenses': expense_total,
        'balance': income_total - expense_total,
        'savings_rate': rate_of_savings(income_total, expense_total),
        'transaction_count': int(len(df)),
    }


def weekly_expense_trend(
    transactions: TransactionSource,
    today: date,
    weeks: int = 4,
    label_prefix: str = 'Sem',
) -> pd.DataFrame:
    """Expense totals for ``weeks`` consecutive 7-day windows, oldest first.

    Window ``i`` ends ``(weeks - 1 - i) * 7`` days before ``today`` and
    spans seven calendar days, so the last window ends on ``today``.
    """
    df = filter_transactions(transactions, txn_type='expense')
    rows = []
    for i in range(max(weeks, 0)):
        window_end = today - timedelta(days=(weeks - 1 - i) * 7)
        window_start = window_end - timedelta(days=6)
        rows.append({
            'week': f"{label_prefix} {i + 1}",
            'start': window_start,
            'end': window_end,
            'expenses': sum_amount(df, start=window_start, end=window_end),
        })
    return pd.DataFrame(rows, columns=['week', 'start', 'end', 'expenses'])
