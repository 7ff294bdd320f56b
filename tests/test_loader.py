import threading
from datetime import date
from types import SimpleNamespace

import pandas as pd

from bc_money.loader import DashboardData, DashboardRequest, load_dashboard_data
from bc_money.records import Budget, Goal


def _fake_store(**overrides):
    methods = dict(
        fetch_transactions=lambda user_id, start, end: pd.DataFrame([
            {'id': 't1', 'amount': 20.0, 'type': 'expense', 'date': '2024-01-05'},
        ]),
        fetch_goals=lambda user_id, status=None: [Goal(id='g1', user_id=user_id, name='Viaje', target_amount=100.0)],
        fetch_categories=lambda user_id: [],
        fetch_budgets=lambda user_id: [Budget(id='b1', user_id=user_id, amount=50.0)],
    )
    methods.update(overrides)
    return SimpleNamespace(**methods)


def _boom(user_id):
    raise RuntimeError('store offline')


def test_all_collections_load():
    data = load_dashboard_data('u1', date(2024, 1, 1), date(2024, 1, 31), store=_fake_store(), timeout=5)

    assert data.complete
    assert len(data.transactions) == 1
    assert [g.id for g in data.goals] == ['g1']
    assert [b.id for b in data.budgets] == ['b1']


def test_failed_fetch_degrades_to_empty_collection():
    store = _fake_store(fetch_categories=_boom)
    data = load_dashboard_data('u1', date(2024, 1, 1), date(2024, 1, 31), store=store, timeout=5)

    assert data.failed == ['categories']
    assert data.categories == []
    assert len(data.transactions) == 1
    assert len(data.budgets) == 1


def test_slow_fetch_times_out():
    release = threading.Event()

    def slow_budgets(user_id):
        release.wait(5)
        return []

    try:
        data = load_dashboard_data(
            'u1', date(2024, 1, 1), date(2024, 1, 31),
            store=_fake_store(fetch_budgets=slow_budgets), timeout=0.2,
        )
    finally:
        release.set()

    assert data.failed == ['budgets']
    assert data.budgets == []
    assert [g.id for g in data.goals] == ['g1']


def test_failed_transactions_fetch_yields_empty_frame():
    data = load_dashboard_data(
        'u1', None, None,
        store=_fake_store(fetch_transactions=lambda user_id, start, end: 1 / 0), timeout=5,
    )
    assert data.failed == ['transactions']
    assert data.transactions.empty
    assert 'amount' in data.transactions.columns


def test_stale_load_is_discarded():
    request = DashboardRequest()
    received = []
    first = request.start()
    second = request.start()

    assert not request.apply(first, DashboardData(failed=['old']), received.append)
    assert request.apply(second, DashboardData(), received.append)
    assert len(received) == 1
    assert received[0].failed == []
    assert not request.is_current(first)


def test_request_load_delivers_latest():
    request = DashboardRequest()
    received = []
    assert request.load('u1', None, None, received.append, store=_fake_store(), timeout=5)
    assert len(received) == 1
    assert received[0].complete
