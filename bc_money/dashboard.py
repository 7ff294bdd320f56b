"""Streamlit dashboard for bc_money.

The page only arranges engine output: every number shown comes from
:mod:`bc_money.reports` and :mod:`bc_money.metrics`.  Formatting (currency
code, decimals) happens here and nowhere else.

To run the dashboard from the command line::

    streamlit run bc_money/dashboard.py
"""

from __future__ import annotations

import os
import sys
from datetime import date
from typing import Any

import streamlit as st

# Support both ``streamlit run bc_money/dashboard.py`` and package imports.
if __package__:
    from . import config, db, loader, reports
    from . import visualization as viz
    from .metrics import PlanCompleted, PlanError, SavingsPlan
else:
    CURRENT_DIR = os.path.dirname(os.path.abspath(__file__))
    PARENT_DIR = os.path.dirname(CURRENT_DIR)
    if PARENT_DIR not in sys.path:
        sys.path.insert(0, PARENT_DIR)
    from bc_money import config, db, loader, reports  # type: ignore
    from bc_money import visualization as viz  # type: ignore
    from bc_money.metrics import PlanCompleted, PlanError, SavingsPlan  # type: ignore


def format_money(amount: float, currency: str) -> str:
    return f"{currency} {amount:,.2f}"


def format_signed(amount: float, currency: str) -> str:
    sign = '+' if amount >= 0 else '-'
    return f"{sign}{currency} {abs(amount):,.2f}"


def plan_caption(outcome: Any, currency: str) -> str:
    """One-line description of a goal's savings plan outcome."""
    if isinstance(outcome, PlanCompleted):
        return "¡Meta alcanzada!"
    if isinstance(outcome, PlanError):
        return outcome.message
    if isinstance(outcome, SavingsPlan):
        return (
            f"Ahorra {format_money(outcome.monthly, currency)} al mes "
            f"({format_money(outcome.weekly, currency)} por semana) durante {outcome.days} días"
        )
    return ''


def _store_data(data: loader.DashboardData) -> None:
    st.session_state['dashboard_data'] = data


def main() -> None:
    """Entry point for the Streamlit app."""
    st.set_page_config(page_title="BC Money", layout="wide")
    db.init_db()
    db.seed_system_categories()

    user_id = st.sidebar.text_input("Usuario", value=st.session_state.get('user_id', ''))
    if not user_id:
        st.info("Introduce tu usuario para ver tu dashboard.")
        return
    st.session_state['user_id'] = user_id

    profile = db.fetch_profile(user_id)
    currency = profile.currency if profile else config.DEFAULT_CURRENCY
    today = date.today()
    start, end = reports.month_bounds(today)

    request = st.session_state.setdefault('dashboard_request', loader.DashboardRequest())
    request.load(user_id, start, end, _store_data)
    data: loader.DashboardData = st.session_state['dashboard_data']
    if data.failed:
        st.warning(f"No se pudieron cargar: {', '.join(data.failed)}")

    summary = reports.dashboard_summary(
        data.transactions, data.categories, data.budgets, data.goals, today
    )
    metrics = summary['summary']

    col1, col2, col3 = st.columns(3)
    col1.metric("Balance del Mes", format_signed(metrics['balance'], currency))
    col2.metric("Tasa de Ahorro", f"{metrics['savings_rate']:.1f}%")
    col3.metric("Presupuesto usado", f"{summary['overall_budget_used']:.0f}%")

    left, right = st.columns(2)
    with left:
        st.plotly_chart(viz.create_category_pie(summary['breakdown']), use_container_width=True)
    with right:
        st.plotly_chart(viz.create_weekly_trend_chart(summary['weekly_trend']), use_container_width=True)

    st.subheader("Presupuestos")
    st.plotly_chart(viz.create_budget_usage_chart(summary['budgets']), use_container_width=True)

    st.subheader("Metas")
    if not summary['goals']:
        st.info("No tienes metas activas. ¡Crea tu primera meta!")
    else:
        st.plotly_chart(viz.create_goal_progress_chart(summary['goals']), use_container_width=True)
    for row in summary['goals']:
        goal = row['goal']
        st.markdown(f"**{goal.name}**: {format_money(goal.current_amount, currency)} / "
                    f"{format_money(goal.target_amount, currency)}")
        st.progress(min(row['progress'], 100.0) / 100)
        st.caption(plan_caption(row['plan'], currency))


if __name__ == "__main__":
    main()
