from datetime import date, datetime, timedelta
from types import SimpleNamespace

import pytest

from bc_money.goal_lifecycle import (
    apply_contribution,
    apply_goal_edit,
    record_contribution,
    record_goal_edit,
    resize_percentage_goal,
)
from bc_money.records import Goal

NOW = datetime(2024, 3, 15, 10, 30)


def _goal(**overrides):
    values = dict(id='g1', user_id='u1', name='Viaje', target_amount=1000.0, current_amount=800.0)
    values.update(overrides)
    return Goal(**values)


def _fake_store(goal):
    saved = []
    contributions = []
    store = SimpleNamespace(
        get_goal=lambda goal_id: goal if goal is not None and goal.id == goal_id else None,
        save_goal=lambda g: saved.append(g) or True,
        save_goal_contribution=lambda g, c: (saved.append(g), contributions.append(c)),
    )
    return store, saved, contributions


def test_contribution_reaching_target_completes_goal():
    updated, contribution = apply_contribution(_goal(), 200.0, NOW)

    assert updated.status == 'completed'
    assert updated.completed_at == NOW
    assert updated.current_amount == pytest.approx(1000.0)
    assert contribution.amount == 200.0
    assert contribution.date == NOW.date()


def test_partial_contribution_stays_active():
    updated, _ = apply_contribution(_goal(), 50.0, NOW)
    assert updated.status == 'active'
    assert updated.completed_at is None


def test_contribution_does_not_mutate_input():
    goal = _goal()
    apply_contribution(goal, 500.0, NOW)
    assert goal.current_amount == 800.0
    assert goal.status == 'active'


def test_paused_goal_keeps_status():
    updated, _ = apply_contribution(_goal(status='paused'), 500.0, NOW)
    assert updated.status == 'paused'
    assert updated.completed_at is None


@pytest.mark.parametrize('amount', [0, -10])
def test_non_positive_contribution_is_rejected(amount):
    with pytest.raises(ValueError):
        apply_contribution(_goal(), amount, NOW)


def test_raising_target_reopens_completed_goal():
    goal = _goal(current_amount=1000.0, status='completed', completed_at=datetime(2024, 3, 1))
    updated = apply_goal_edit(goal, target_amount=1500)

    assert updated.status == 'active'
    assert updated.completed_at is None
    assert updated.target_amount == 1500.0


def test_edit_never_completes_a_goal():
    updated = apply_goal_edit(_goal(), target_amount=500, name='Viaje corto')
    assert updated.status == 'active'
    assert updated.name == 'Viaje corto'


def test_edit_can_clear_target_date():
    updated = apply_goal_edit(_goal(target_date=date(2024, 6, 1)), target_date=None)
    assert updated.target_date is None


def test_resize_percentage_goal():
    today = NOW.date()
    goal = _goal(target_mode='percentage', target_percentage=10.0, current_amount=0.0,
                 target_date=today + timedelta(days=90))
    updated = resize_percentage_goal(goal, 2000.0, today)
    assert updated.target_amount == pytest.approx(600.0)


def test_resize_ignores_amount_goals():
    goal = _goal()
    assert resize_percentage_goal(goal, 2000.0, NOW.date()) is goal


def test_record_contribution_persists_goal_and_contribution():
    store, saved, contributions = _fake_store(_goal())
    updated = record_contribution('g1', 250.0, NOW, store=store)

    assert updated.status == 'completed'
    assert saved == [updated]
    assert contributions[0].goal_id == 'g1'


def test_record_contribution_missing_goal():
    store, _, _ = _fake_store(None)
    with pytest.raises(LookupError):
        record_contribution('missing', 10.0, NOW, store=store)


def test_record_goal_edit_persists():
    goal = _goal(current_amount=1000.0, status='completed', completed_at=NOW)
    store, saved, _ = _fake_store(goal)
    updated = record_goal_edit('g1', store=store, target_amount=2000)
    assert saved[0].status == 'active'
    assert updated.target_amount == 2000.0


def test_failed_contribution_write_propagates():
    def failing_write(goal, contribution):
        raise RuntimeError('disk full')

    store, saved, _ = _fake_store(_goal())
    store.save_goal_contribution = failing_write

    with pytest.raises(RuntimeError):
        record_contribution('g1', 250.0, NOW, store=store)
    assert saved == []
