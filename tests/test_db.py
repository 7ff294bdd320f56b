import sqlite3
from datetime import date, datetime

import pandas as pd
import pytest

from bc_money import config, db
from bc_money.goal_lifecycle import apply_contribution, record_contribution
from bc_money.metrics import monthly_net_income
from bc_money.records import Goal, GoalContribution, Profile


@pytest.fixture
def store(tmp_path, monkeypatch):
    monkeypatch.setattr(config, 'DATA_DIR', tmp_path)
    monkeypatch.setattr(config, 'REPORTS_DIR', tmp_path / 'reports')
    monkeypatch.setattr(config, 'DB_PATH', tmp_path / 'bc_money.db')
    db.init_db()
    db.seed_system_categories()
    return db


def test_seed_system_categories_is_idempotent(store):
    assert store.seed_system_categories() == 0
    names = {c.name for c in store.fetch_categories('anyone')}
    assert 'Vivienda' in names
    assert len(names) == len(db.SYSTEM_CATEGORIES)


def test_categories_are_scoped_to_owner(store):
    store.insert_category('u1', 'Mascotas')
    own = {c.name for c in store.fetch_categories('u1')}
    other = {c.name for c in store.fetch_categories('u2')}

    assert 'Mascotas' in own
    assert 'Mascotas' not in other
    assert 'Vivienda' in other


def test_transactions_round_trip_within_range(store):
    store.insert_transaction('u1', 120.0, 'expense', date(2024, 1, 10), description='Super')
    store.insert_transaction('u1', 900.0, 'income', date(2024, 1, 1))
    store.insert_transaction('u1', 60.0, 'expense', date(2024, 2, 1))
    store.insert_transaction('u2', 10.0, 'expense', date(2024, 1, 10))

    df = store.fetch_transactions('u1', date(2024, 1, 1), date(2024, 1, 31))

    assert len(df) == 2
    assert set(df['amount']) == {120.0, 900.0}
    assert len(store.fetch_transactions('u1', txn_type='expense')) == 2


def test_invalid_transactions_are_rejected(store):
    with pytest.raises(ValueError):
        store.insert_transaction('u1', -1.0, 'expense', date(2024, 1, 1))
    with pytest.raises(ValueError):
        store.insert_transaction('u1', 10.0, 'expense', None)
    assert store.fetch_transactions('u1').empty


def test_profile_upsert(store):
    store.upsert_profile(Profile(id='u1', income_type='hourly', hourly_rate=14, hours_per_week=27,
                                 net_income_percentage=75))
    store.upsert_profile(Profile(id='u1', income_type='hourly', hourly_rate=14, hours_per_week=27,
                                 net_income_percentage=75, currency='EUR'), onboarding_completed=True)

    profile = store.fetch_profile('u1')
    assert profile.currency == 'EUR'
    assert profile.extra['onboarding_completed'] == 1
    assert monthly_net_income(profile) == pytest.approx(1227.555)
    assert store.fetch_profile('nobody') is None


def test_budgets_insert_and_delete(store):
    budget_id = store.insert_budget('u1', 500.0, 'food')
    assert [b.id for b in store.fetch_budgets('u1')] == [budget_id]
    assert store.delete_budget(budget_id)
    assert store.fetch_budgets('u1') == []


def test_goal_contribution_is_persisted(store):
    goal_id = store.insert_goal(Goal(id='', user_id='u1', name='Viaje', target_amount=1000.0,
                                     target_date=date(2024, 6, 1)))
    now = datetime(2024, 5, 1, 12, 0, 0)

    record_contribution(goal_id, 1000.0, now)

    goal = store.get_goal(goal_id)
    assert goal.status == 'completed'
    assert goal.completed_at == now
    assert goal.target_date == date(2024, 6, 1)
    assert store.fetch_goals('u1', status='active') == []
    assert len(store.fetch_goals('u1', status='completed')) == 1

    contributions = store.fetch_contributions(goal_id)
    assert list(contributions['amount']) == [1000.0]


def test_delete_goal(store):
    goal_id = store.insert_goal(Goal(id='', user_id='u1', name='Viaje', target_amount=100.0))
    assert store.delete_goal(goal_id)
    assert store.get_goal(goal_id) is None


def test_failed_contribution_leaves_goal_untouched(store):
    goal_id = store.insert_goal(Goal(id='', user_id='u1', name='Viaje', target_amount=100.0))
    goal = store.get_goal(goal_id)
    now = datetime(2024, 5, 1, 12, 0, 0)
    updated, contribution = apply_contribution(goal, 100.0, now)
    contribution.amount = None  # violates NOT NULL on goal_contributions.amount

    with pytest.raises(sqlite3.IntegrityError):
        store.save_goal_contribution(updated, contribution)

    reloaded = store.get_goal(goal_id)
    assert reloaded.status == 'active'
    assert reloaded.current_amount == 0.0
    assert reloaded.completed_at is None
    assert store.fetch_contributions(goal_id).empty


def test_contribution_for_missing_goal_writes_nothing(store):
    orphan = Goal(id='missing', user_id='u1', name='Viaje', target_amount=100.0)
    updated, contribution = apply_contribution(orphan, 10.0, datetime(2024, 5, 1))
    with pytest.raises(LookupError):
        store.save_goal_contribution(updated, contribution)
    assert store.fetch_contributions('missing').empty


def test_insert_contribution(store):
    goal_id = store.insert_goal(Goal(id='', user_id='u1', name='Viaje', target_amount=100.0))
    store.insert_contribution(GoalContribution(goal_id=goal_id, amount=25.0, date=date(2024, 5, 2)))
    assert list(store.fetch_contributions(goal_id)['amount']) == [25.0]


def test_update_and_delete_transaction(store):
    txn_id = store.insert_transaction('u1', 120.0, 'expense', date(2024, 1, 10), category_id='food', description='Super')

    assert store.update_transaction(txn_id, amount=80.0, txn_date='2024-01-12', category_id=None, description='Mercado')
    row = store.fetch_transactions('u1').iloc[0]
    assert row['amount'] == 80.0
    assert row['date'] == pd.Timestamp('2024-01-12')
    assert row['category_id'] is None
    assert row['description'] == 'Mercado'

    assert not store.update_transaction(txn_id)
    assert not store.update_transaction('missing', amount=1.0)
    assert store.delete_transaction(txn_id)
    assert store.fetch_transactions('u1').empty


def test_update_transaction_rejects_invalid_values(store):
    txn_id = store.insert_transaction('u1', 10.0, 'expense', date(2024, 1, 10))
    with pytest.raises(ValueError):
        store.update_transaction(txn_id, amount=-5.0)
    with pytest.raises(ValueError):
        store.update_transaction(txn_id, txn_type='refund')
    assert store.fetch_transactions('u1').iloc[0]['amount'] == 10.0


def test_update_and_delete_user_category(store):
    category_id = store.insert_category('u1', 'Mascotas')
    store.insert_transaction('u1', 30.0, 'expense', date(2024, 1, 5), category_id=category_id)
    store.insert_budget('u1', 100.0, category_id)

    assert store.update_category(category_id, name='Perro', color='#000000')
    own = {c.id: c for c in store.fetch_categories('u1')}
    assert own[category_id].name == 'Perro'

    assert store.delete_category(category_id)
    assert category_id not in {c.id for c in store.fetch_categories('u1')}
    assert store.fetch_transactions('u1').iloc[0]['category_id'] is None
    assert store.fetch_budgets('u1')[0].category_id is None
    assert not store.delete_category(category_id)


def test_system_categories_cannot_be_changed(store):
    housing = next(c for c in store.fetch_categories('u1') if c.name == 'Vivienda')

    with pytest.raises(ValueError):
        store.delete_category(housing.id)
    assert not store.update_category(housing.id, name='Casa')
    assert 'Vivienda' in {c.name for c in store.fetch_categories('u1')}


def test_update_budget(store):
    budget_id = store.insert_budget('u1', 500.0, 'food')

    assert store.update_budget(budget_id, amount=650.0, period='weekly')
    budget = store.fetch_budgets('u1')[0]
    assert budget.amount == 650.0
    assert budget.period == 'weekly'
    assert budget.category_id == 'food'

    assert store.update_budget(budget_id, category_id=None)
    assert store.fetch_budgets('u1')[0].category_id is None
    with pytest.raises(ValueError):
        store.update_budget(budget_id, period='daily')
