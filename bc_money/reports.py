"""Page-level bundles of engine output plus the monthly CSV export."""

from __future__ import annotations

import calendar
from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import pandas as pd

from .defaults import get_config_value
from .metrics import (
    budget_totals,
    evaluate_budget,
    evaluate_budgets,
    goal_progress,
    overall_budget_used,
    period_summary,
    project_goal,
    rank_categories,
    weekly_expense_trend,
)
from .records import as_budgets, as_goals, category_lookup, transactions_frame

CSV_COLUMNS = ['Fecha', 'Tipo', 'Categoría', 'Descripción', 'Monto']
TYPE_LABELS = {'income': 'Ingreso', 'expense': 'Gasto', 'transfer': 'Transferencia'}


def month_bounds(day: date) -> tuple:
    """First and last calendar day of the month containing ``day``."""
    last = calendar.monthrange(day.year, day.month)[1]
    return day.replace(day=1), day.replace(day=last)


def dashboard_summary(
    transactions: Any,
    categories: Any,
    budgets: Any,
    goals: Any,
    today: date,
    top_n: Optional[int] = None,
) -> Dict[str, Any]:
    """Everything the dashboard renders for the current month.

    ``transactions`` must already be limited to the month being shown.
    """
    if top_n is None:
        top_n = get_config_value('engine', 'breakdown', 'dashboard_top_n', default=6)
    df = transactions_frame(transactions)
    budget_records = as_budgets(budgets)
    usages = [evaluate_budget(b, df) for b in budget_records]

    goal_rows: List[Dict[str, Any]] = []
    for goal in as_goals(goals):
        goal_rows.append({
            'goal': goal,
            'progress': goal_progress(goal),
            'plan': project_goal(goal, today),
        })

    return {
        'summary': period_summary(df),
        'breakdown': rank_categories(
            df,
            categories,
            top_n,
            fallback_label=get_config_value('engine', 'breakdown', 'fallback_label', default='Otros'),
            fallback_color=get_config_value('engine', 'breakdown', 'fallback_color', default='#6B7280'),
        ),
        'weekly_trend': weekly_expense_trend(
            df,
            today,
            weeks=get_config_value('engine', 'trend', 'weeks', default=4),
            label_prefix=get_config_value('engine', 'trend', 'label_prefix', default='Sem'),
        ),
        'budgets': evaluate_budgets(
            budget_records,
            df,
            categories,
            uncategorized_label=get_config_value('engine', 'budgets', 'uncategorized_label', default='General'),
        ),
        'overall_budget_used': overall_budget_used(usages),
        'budget_totals': budget_totals(usages),
        'goals': goal_rows,
    }


def monthly_report(transactions: Any, categories: Any, month: date, top_n: Optional[int] = None) -> Dict[str, Any]:
    """Summary and top categories for the calendar month containing ``month``."""
    if top_n is None:
        top_n = get_config_value('engine', 'breakdown', 'report_top_n', default=5)
    start, end = month_bounds(month)
    df = transactions_frame(transactions)
    in_month = df[(df['date'] >= pd.Timestamp(start)) & (df['date'] <= pd.Timestamp(end))]
    return {
        'month': start.strftime('%Y-%m'),
        'start': start,
        'end': end,
        'summary': period_summary(in_month),
        'top_categories': rank_categories(in_month, categories, top_n),
    }


def transactions_export_frame(transactions: Any, categories: Any) -> pd.DataFrame:
    """Build the export table: date, Spanish type label, category, description, amount."""
    df = transactions_frame(transactions)
    if df.empty:
        return pd.DataFrame(columns=CSV_COLUMNS)
    lookup = category_lookup(categories)
    export = pd.DataFrame({
        'Fecha': df['date'].dt.strftime('%Y-%m-%d'),
        'Tipo': df['type'].map(lambda t: TYPE_LABELS.get(t, t)),
        'Categoría': df['category_id'].map(lambda c: lookup[c].name if c in lookup else ''),
        'Descripción': df['description'].fillna('').astype(str),
        'Monto': df['amount'],
    })
    return export[CSV_COLUMNS].reset_index(drop=True)


def export_transactions_csv(
    transactions: Any,
    categories: Any,
    month: date,
    directory: Union[str, Path],
) -> Path:
    """Write ``bc-money-reporte-YYYY-MM.csv`` into ``directory`` and return its path."""
    target_dir = Path(directory)
    target_dir.mkdir(parents=True, exist_ok=True)
    path = target_dir / f"bc-money-reporte-{month.strftime('%Y-%m')}.csv"
    transactions_export_frame(transactions, categories).to_csv(path, index=False, encoding='utf-8')
    return path
