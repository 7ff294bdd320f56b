"""Goal status transitions applied around store writes.

Only ``active`` <-> ``completed`` is driven here.  ``paused`` and
``cancelled`` are set by the user and left untouched by contributions.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime
from typing import Any, Optional, Tuple

from . import db
from .metrics.goals import percentage_target_amount
from .records import Goal, GoalContribution, to_date

logger = logging.getLogger(__name__)

_UNSET: Any = object()


def apply_contribution(goal: Goal, amount: float, now: datetime) -> Tuple[Goal, GoalContribution]:
    """Add a contribution and complete the goal once the target is reached.

    Returns:
        Tuple of (updated goal, contribution record dated ``now``)

    Raises:
        ValueError: If ``amount`` is not positive
    """
    if amount is None or amount <= 0:
        raise ValueError(f"Contribution amount must be positive, got {amount!r}")

    new_amount = goal.current_amount + float(amount)
    updated = replace(goal, current_amount=new_amount)
    if goal.status in {'active', 'completed'}:
        if new_amount >= goal.target_amount:
            updated.status = 'completed'
            updated.completed_at = now
        else:
            updated.status = 'active'
            updated.completed_at = None
    contribution = GoalContribution(goal_id=goal.id, amount=float(amount), date=now.date())
    return updated, contribution


def apply_goal_edit(
    goal: Goal,
    *,
    target_amount: Any = _UNSET,
    target_date: Any = _UNSET,
    name: Optional[str] = None,
    description: Any = _UNSET,
    priority: Optional[int] = None,
) -> Goal:
    """Apply user edits; a completed goal whose target moves above the saved
    amount goes back to ``active`` and loses its completion timestamp.

    Edits never complete a goal, only contributions do.
    """
    updated = replace(goal)
    if target_amount is not _UNSET:
        updated.target_amount = float(target_amount)
    if target_date is not _UNSET:
        updated.target_date = to_date(target_date)
    if name is not None:
        updated.name = name
    if description is not _UNSET:
        updated.description = description
    if priority is not None:
        updated.priority = int(priority)

    if updated.status == 'completed' and updated.target_amount > updated.current_amount:
        updated.status = 'active'
        updated.completed_at = None
    return updated


def resize_percentage_goal(goal: Goal, monthly_net_income: float, today: date) -> Goal:
    """Recompute ``target_amount`` for a percentage goal from current income."""
    if goal.target_mode != 'percentage' or goal.target_percentage is None:
        return goal
    target = percentage_target_amount(monthly_net_income, goal.target_percentage, goal.target_date, today)
    return apply_goal_edit(goal, target_amount=target)


def record_contribution(goal_id: str, amount: float, now: datetime, store: Any = None) -> Goal:
    """Load a goal, apply a contribution and persist both in one transaction.

    Raises:
        LookupError: If the goal does not exist
        ValueError: If ``amount`` is not positive
    """
    store = store or db
    goal = store.get_goal(goal_id)
    if goal is None:
        raise LookupError(f"Goal not found: {goal_id}")
    updated, contribution = apply_contribution(goal, amount, now)
    store.save_goal_contribution(updated, contribution)
    if updated.status == 'completed' and goal.status != 'completed':
        logger.info("Goal %s completed at %s", goal_id, now.isoformat())
    return updated


def record_goal_edit(goal_id: str, store: Any = None, **changes: Any) -> Goal:
    """Load a goal, apply user edits and persist the result."""
    store = store or db
    goal = store.get_goal(goal_id)
    if goal is None:
        raise LookupError(f"Goal not found: {goal_id}")
    updated = apply_goal_edit(goal, **changes)
    store.save_goal(updated)
    if goal.status == 'completed' and updated.status == 'active':
        logger.info("Goal %s reopened after target change", goal_id)
    return updated
