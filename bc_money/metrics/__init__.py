"""Financial metrics engine.

Pure functions that turn fetched records into the figures shown across the
app:
- Aggregation of transactions by type, category and date range
- Budget usage percentages and status tiers
- Monthly net income from a profile's income configuration
- Savings-plan projections and percentage goal sizing
- Ranked expense breakdown by category
"""

from .aggregation import (
    ANY_CATEGORY,
    filter_transactions,
    sum_amount,
    income,
    expenses,
    balance,
    rate_of_savings,
    savings_rate,
    period_summary,
    weekly_expense_trend,
)
from .budgets import (
    BudgetUsage,
    classify_usage,
    evaluate_budget,
    evaluate_budgets,
    overall_budget_used,
    budget_totals,
)
from .earnings import (
    WEEKS_PER_MONTH,
    gross_monthly_income,
    monthly_net_income,
    onboarding_plan,
)
from .goals import (
    PlanError,
    PlanCompleted,
    SavingsPlan,
    project_savings_plan,
    project_goal,
    percentage_target_amount,
    goal_progress,
)
from .breakdown import rank_categories

__all__ = [
    # Aggregation
    'ANY_CATEGORY',
    'filter_transactions',
    'sum_amount',
    'income',
    'expenses',
    'balance',
    'rate_of_savings',
    'savings_rate',
    'period_summary',
    'weekly_expense_trend',
    # Budgets
    'BudgetUsage',
    'classify_usage',
    'evaluate_budget',
    'evaluate_budgets',
    'overall_budget_used',
    'budget_totals',
    # Income
    'WEEKS_PER_MONTH',
    'gross_monthly_income',
    'monthly_net_income',
    'onboarding_plan',
    # Goals
    'PlanError',
    'PlanCompleted',
    'SavingsPlan',
    'project_savings_plan',
    'project_goal',
    'percentage_target_amount',
    'goal_progress',
    # Breakdown
    'rank_categories',
]
