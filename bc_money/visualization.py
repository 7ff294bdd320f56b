"""Plotly figures for the dashboard, budgets and reports pages.

Each function takes a DataFrame produced by :mod:`bc_money.metrics` and
returns a ``plotly.graph_objects.Figure``.  Empty input yields an empty figure
titled "No data to display" so callers never need to special-case it.
"""

from __future__ import annotations

from typing import Any, Dict, List

import pandas as pd
import plotly.express as px
import plotly.graph_objects as go

STATUS_COLORS = {
    'success': '#10B981',
    'warning': '#F59E0B',
    'danger': '#EF4444',
    'invalid': '#6B7280',
}


def _empty_figure() -> go.Figure:
    fig = go.Figure()
    fig.update_layout(title="No data to display")
    return fig


def create_category_pie(breakdown: pd.DataFrame, title: str = "Gastos por categoría") -> go.Figure:
    """Donut chart of ranked expense categories, using each category's colour."""
    if breakdown is None or breakdown.empty:
        return _empty_figure()
    fig = go.Figure(
        go.Pie(
            labels=breakdown['name'],
            values=breakdown['amount'],
            marker=dict(colors=list(breakdown['color'])),
            hole=0.5,
            sort=False,
        )
    )
    fig.update_layout(title=title)
    return fig


def create_budget_usage_chart(budgets: pd.DataFrame, title: str = "Uso de presupuestos") -> go.Figure:
    """Horizontal bars of percentage used, coloured by status tier.

    Misconfigured budgets have no percentage and are drawn at zero.
    """
    if budgets is None or budgets.empty:
        return _empty_figure()
    percentages = pd.to_numeric(budgets['percentage'], errors='coerce').fillna(0.0)
    fig = go.Figure(
        go.Bar(
            x=percentages,
            y=budgets['category'],
            orientation='h',
            marker_color=[STATUS_COLORS.get(s, STATUS_COLORS['invalid']) for s in budgets['status']],
            text=[f"{p:.0f}%" for p in percentages],
        )
    )
    fig.add_vline(x=100, line_dash='dash', line_color=STATUS_COLORS['danger'])
    fig.update_layout(title=title, xaxis_title="% usado", yaxis_title="")
    return fig


def create_weekly_trend_chart(trend: pd.DataFrame, title: str = "Gastos semanales") -> go.Figure:
    if trend is None or trend.empty:
        return _empty_figure()
    fig = px.bar(trend, x='week', y='expenses')
    fig.update_layout(title=title, xaxis_title="", yaxis_title="Gastos")
    return fig


def create_goal_progress_chart(goal_rows: List[Dict[str, Any]], title: str = "Progreso de metas") -> go.Figure:
    """Bars of goal progress capped at 100% for display."""
    if not goal_rows:
        return _empty_figure()
    df = pd.DataFrame({
        'goal': [row['goal'].name for row in goal_rows],
        'progress': [min(row['progress'], 100.0) for row in goal_rows],
    })
    fig = px.bar(df, x='progress', y='goal', orientation='h', range_x=[0, 100])
    fig.update_layout(title=title, xaxis_title="% completado", yaxis_title="")
    return fig
