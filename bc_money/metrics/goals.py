"""Savings-goal projections.

Two month approximations live here:
:func:`project_savings_plan` paces an existing goal with a half-month floor,
while :func:`percentage_target_amount` sizes a new percentage goal with a
one-month floor.  Both count a month as 30 days.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any, Optional, Union

from ..records import Goal, to_date, to_float

DAYS_PER_MONTH = 30
PLAN_MIN_MONTHS = 0.5
SIZING_MIN_MONTHS = 1.0

PAST_DATE_MESSAGE = 'La fecha objetivo debe ser futura'
MISSING_DATE_MESSAGE = 'Define una fecha objetivo para calcular el plan de ahorro'


@dataclass
class PlanError:
    message: str


@dataclass
class PlanCompleted:
    target_amount: float
    current_amount: float


@dataclass
class SavingsPlan:
    days: int
    months: float
    remaining: float
    monthly: float
    weekly: float


PlanOutcome = Union[PlanError, PlanCompleted, SavingsPlan]


def project_savings_plan(
    target_amount: float,
    current_amount: float,
    target_date: Any,
    today: date,
) -> PlanOutcome:
    """Compute the monthly and weekly contribution needed to hit a goal.

    A goal already reached is :class:`PlanCompleted` whatever its date.
    Otherwise a missing target date, or one on or before ``today``, gives a
    :class:`PlanError`; past dates are never clamped to today.

    Example:
        >>> plan = project_savings_plan(1000, 400, date(2024, 1, 11), date(2024, 1, 1))
        >>> plan.monthly  # 10 days out, so the half-month floor applies
        1200.0
    """
    target = to_float(target_amount)
    current = to_float(current_amount)
    remaining = target - current
    if remaining <= 0:
        return PlanCompleted(target_amount=target, current_amount=current)

    deadline = to_date(target_date)
    if deadline is None:
        return PlanError(MISSING_DATE_MESSAGE)
    days = (deadline - today).days
    if days <= 0:
        return PlanError(PAST_DATE_MESSAGE)

    months = days / DAYS_PER_MONTH
    return SavingsPlan(
        days=days,
        months=months,
        remaining=remaining,
        monthly=remaining / max(months, PLAN_MIN_MONTHS),
        weekly=remaining / (days / 7),
    )


def project_goal(goal: Goal, today: date) -> PlanOutcome:
    return project_savings_plan(goal.target_amount, goal.current_amount, goal.target_date, today)


def months_until(target_date: Any, today: date) -> Optional[float]:
    deadline = to_date(target_date)
    if deadline is None:
        return None
    return (deadline - today).days / DAYS_PER_MONTH


def percentage_target_amount(
    monthly_net_income: float,
    percentage: float,
    target_date: Any,
    today: date,
) -> float:
    """Size a percentage goal as a monthly rate multiplied over its horizon.

    The horizon never drops below one month, which also covers goals without
    a target date and dates already in the past.
    """
    months = months_until(target_date, today)
    horizon = max(months if months is not None else 0.0, SIZING_MIN_MONTHS)
    return to_float(monthly_net_income) * (to_float(percentage) / 100) * horizon


def goal_progress(goal: Goal) -> float:
    """Percentage of the target already saved (``0.0`` for a non-positive target)."""
    if goal.target_amount <= 0:
        return 0.0
    return goal.current_amount / goal.target_amount * 100
