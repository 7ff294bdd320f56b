"""Persist onboarding answers: income profile, emergency fund goal and essential budgets."""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional

from . import db
from .defaults import get_config_value
from .metrics.earnings import onboarding_plan
from .records import Goal, Profile

logger = logging.getLogger(__name__)

EMERGENCY_FUND_NAME = 'Fondo de Emergencia'
EMERGENCY_FUND_DESCRIPTION = 'Tu colchón financiero para imprevistos'
EMERGENCY_FUND_COLOR = '#10B981'


def default_essentials() -> Dict[str, float]:
    return dict(get_config_value('engine', 'onboarding', 'essentials', default={}))


def complete_onboarding(
    profile: Profile,
    essentials: Optional[Mapping[str, float]] = None,
    emergency_fund_goal: Optional[float] = None,
    store: Any = None,
) -> Dict[str, Any]:
    """Save the profile, create the emergency fund goal and one monthly budget
    per essential category that exists among the system categories.

    Hourly fields are cleared for fixed earners and vice versa before saving.

    Returns:
        Dictionary with the onboarding ``plan``, the ``goal_id`` and the
        ``budget_ids`` keyed by category name
    """
    store = store or db
    essentials = dict(essentials if essentials is not None else default_essentials())
    if emergency_fund_goal is None:
        emergency_fund_goal = get_config_value('engine', 'onboarding', 'emergency_fund_goal', default=300)
    ratio = get_config_value('engine', 'onboarding', 'suggested_savings_ratio', default=0.2)

    if profile.income_type == 'hourly':
        profile.fixed_salary = None
    elif profile.income_type == 'fixed':
        profile.hourly_rate = None
        profile.hours_per_week = None
    store.upsert_profile(profile, onboarding_completed=True)

    goal_id = store.insert_goal(Goal(
        id='',
        user_id=profile.id,
        name=EMERGENCY_FUND_NAME,
        description=EMERGENCY_FUND_DESCRIPTION,
        target_amount=float(emergency_fund_goal),
        current_amount=0.0,
        goal_type='emergency_fund',
        priority=1,
        color=EMERGENCY_FUND_COLOR,
    ))

    by_name = {c.name: c for c in store.fetch_categories(profile.id) if c.is_system}
    budget_ids: Dict[str, str] = {}
    for name, amount in essentials.items():
        category = by_name.get(name)
        if category is None:
            logger.warning("Skipping essential budget %r: no system category with that name", name)
            continue
        budget_ids[name] = store.insert_budget(profile.id, float(amount), category.id, 'monthly')

    logger.info("Onboarding completed for %s with %d budgets", profile.id, len(budget_ids))
    return {
        'plan': onboarding_plan(profile, essentials, ratio),
        'goal_id': goal_id,
        'budget_ids': budget_ids,
    }
