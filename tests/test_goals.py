from datetime import date, timedelta

import pytest

from bc_money.metrics import (
    PlanCompleted,
    PlanError,
    SavingsPlan,
    goal_progress,
    percentage_target_amount,
    project_goal,
    project_savings_plan,
)
from bc_money.metrics.goals import MISSING_DATE_MESSAGE, PAST_DATE_MESSAGE
from bc_money.records import Goal

TODAY = date(2024, 1, 1)


def test_plan_for_sixty_days():
    plan = project_savings_plan(1000, 400, TODAY + timedelta(days=60), TODAY)

    assert isinstance(plan, SavingsPlan)
    assert plan.days == 60
    assert plan.months == pytest.approx(2.0)
    assert plan.remaining == pytest.approx(600.0)
    assert plan.monthly == pytest.approx(300.0)
    assert plan.weekly == pytest.approx(70.0)


def test_short_horizon_uses_half_month_floor():
    plan = project_savings_plan(1000, 400, TODAY + timedelta(days=10), TODAY)
    assert plan.monthly == pytest.approx(1200.0)
    assert plan.weekly == pytest.approx(420.0)


@pytest.mark.parametrize('offset', [0, -1, -30])
def test_today_or_past_date_is_an_error(offset):
    plan = project_savings_plan(1000, 400, TODAY + timedelta(days=offset), TODAY)
    assert plan == PlanError(PAST_DATE_MESSAGE)


def test_missing_date_is_an_error():
    plan = project_savings_plan(1000, 400, None, TODAY)
    assert plan == PlanError(MISSING_DATE_MESSAGE)


def test_reached_goal_is_completed_even_with_past_date():
    plan = project_savings_plan(500, 500, TODAY - timedelta(days=5), TODAY)
    assert isinstance(plan, PlanCompleted)
    assert isinstance(project_savings_plan(500, 650, None, TODAY), PlanCompleted)


def test_project_goal_reads_goal_fields():
    goal = Goal(id='g1', user_id='u1', name='Viaje', target_amount=900, current_amount=300,
                target_date=TODAY + timedelta(days=90))
    plan = project_goal(goal, TODAY)
    assert plan.monthly == pytest.approx(200.0)


def test_percentage_target_amount_over_horizon():
    amount = percentage_target_amount(2000, 10, TODAY + timedelta(days=90), TODAY)
    assert amount == pytest.approx(600.0)


@pytest.mark.parametrize('target_date', [None, TODAY - timedelta(days=10), TODAY + timedelta(days=15)])
def test_percentage_target_amount_has_one_month_floor(target_date):
    assert percentage_target_amount(2000, 10, target_date, TODAY) == pytest.approx(200.0)


def test_goal_progress():
    goal = Goal(id='g1', user_id='u1', name='Viaje', target_amount=1000, current_amount=250)
    assert goal_progress(goal) == pytest.approx(25.0)
    goal.target_amount = 0
    assert goal_progress(goal) == 0.0
