from types import SimpleNamespace

import pytest

from bc_money.onboarding import EMERGENCY_FUND_NAME, complete_onboarding, default_essentials
from bc_money.records import Category, Profile


def _fake_store():
    calls = {'profiles': [], 'goals': [], 'budgets': []}

    def upsert_profile(profile, onboarding_completed=False):
        calls['profiles'].append((profile, onboarding_completed))

    def insert_goal(goal):
        calls['goals'].append(goal)
        return 'g1'

    def insert_budget(user_id, amount, category_id=None, period='monthly'):
        calls['budgets'].append((user_id, amount, category_id, period))
        return f"b-{category_id}"

    store = SimpleNamespace(
        upsert_profile=upsert_profile,
        insert_goal=insert_goal,
        insert_budget=insert_budget,
        fetch_categories=lambda user_id: [
            Category(id='c-home', name='Vivienda', is_system=True),
            Category(id='c-food', name='Alimentación', is_system=True),
            Category(id='c-own', name='Gimnasio', user_id=user_id),
        ],
    )
    return store, calls


def test_default_essentials_come_from_engine_defaults():
    essentials = default_essentials()
    assert essentials['Vivienda'] == 600
    assert len(essentials) == 5


def test_complete_onboarding():
    store, calls = _fake_store()
    profile = Profile(id='u1', income_type='fixed', fixed_salary=2000, hourly_rate=12,
                      hours_per_week=40, net_income_percentage=100)

    result = complete_onboarding(
        profile, {'Vivienda': 600, 'Alimentación': 300, 'Gimnasio': 40}, store=store,
    )

    saved, completed = calls['profiles'][0]
    assert completed is True
    assert saved.hourly_rate is None
    assert saved.hours_per_week is None
    assert saved.fixed_salary == 2000

    goal = calls['goals'][0]
    assert goal.name == EMERGENCY_FUND_NAME
    assert goal.goal_type == 'emergency_fund'
    assert goal.target_amount == 300.0

    assert result['goal_id'] == 'g1'
    assert result['budget_ids'] == {'Vivienda': 'b-c-home', 'Alimentación': 'b-c-food'}
    assert calls['budgets'][0] == ('u1', 600.0, 'c-home', 'monthly')
    assert result['plan']['total_essentials'] == pytest.approx(940.0)
    assert result['plan']['suggested_savings'] == pytest.approx(212.0)


def test_hourly_onboarding_clears_salary():
    store, calls = _fake_store()
    profile = Profile(id='u1', income_type='hourly', fixed_salary=2000, hourly_rate=14,
                      hours_per_week=27, net_income_percentage=75)

    result = complete_onboarding(profile, {}, emergency_fund_goal=500, store=store)

    assert calls['profiles'][0][0].fixed_salary is None
    assert calls['goals'][0].target_amount == 500.0
    assert result['budget_ids'] == {}
    assert result['plan']['net_monthly'] == pytest.approx(1227.555)
