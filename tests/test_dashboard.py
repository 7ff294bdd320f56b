from bc_money.dashboard import format_money, format_signed, plan_caption
from bc_money.metrics import PlanCompleted, PlanError, SavingsPlan


def test_format_money():
    assert format_money(1234.5, 'USD') == 'USD 1,234.50'
    assert format_signed(-20, 'EUR') == '-EUR 20.00'
    assert format_signed(0, 'EUR') == '+EUR 0.00'


def test_plan_caption_variants():
    assert plan_caption(PlanCompleted(500.0, 500.0), 'USD') == '¡Meta alcanzada!'
    assert plan_caption(PlanError('La fecha objetivo debe ser futura'), 'USD') == 'La fecha objetivo debe ser futura'
    caption = plan_caption(SavingsPlan(days=60, months=2.0, remaining=600.0, monthly=300.0, weekly=70.0), 'USD')
    assert caption == 'Ahorra USD 300.00 al mes (USD 70.00 por semana) durante 60 días'
