"""Record types shared by the store, the metrics engine and the UI.

Budgets, goals and profiles travel as dataclasses.  Transactions are
normalised into a pandas DataFrame by :func:`transactions_frame` because every
metric over them is a filter followed by a sum.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

import numpy as np
import pandas as pd

TRANSACTION_TYPES = {'income', 'expense', 'transfer'}
PAYMENT_METHODS = {'cash', 'debit', 'credit', 'transfer', 'other'}
CATEGORY_TYPES = {'income', 'expense', 'both'}
BUDGET_PERIODS = {'weekly', 'monthly', 'yearly'}
GOAL_STATUSES = {'active', 'paused', 'completed', 'cancelled'}
GOAL_TARGET_MODES = {'amount', 'percentage'}
GOAL_TYPES = {
    'emergency_fund', 'savings', 'purchase', 'education', 'investment', 'debt_payoff', 'other'
}
INCOME_TYPES = {'hourly', 'fixed', 'variable'}

TRANSACTION_COLUMNS = [
    'id', 'user_id', 'amount', 'type', 'category_id', 'date',
    'is_essential', 'payment_method', 'description',
]


# ---------------------------------------------------------------------------
# Coercion helpers
# ---------------------------------------------------------------------------


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def to_float(value: Any, default: float = 0.0) -> float:
    """Coerce ``value`` to float, returning ``default`` for blanks and junk."""
    if _is_missing(value):
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def optional_float(value: Any) -> Optional[float]:
    if _is_missing(value):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def to_date(value: Any) -> Optional[date]:
    """Return the calendar day of ``value`` (time of day is discarded)."""
    if _is_missing(value):
        return None
    if isinstance(value, pd.Timestamp):
        return value.date()
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    parsed = pd.to_datetime(value, errors='coerce')
    if pd.isna(parsed):
        return None
    return parsed.date()


def to_datetime(value: Any) -> Optional[datetime]:
    if _is_missing(value):
        return None
    if isinstance(value, pd.Timestamp):
        return value.to_pydatetime()
    if isinstance(value, datetime):
        return value
    parsed = pd.to_datetime(value, errors='coerce')
    if pd.isna(parsed):
        return None
    return parsed.to_pydatetime()


def optional_str(value: Any) -> Optional[str]:
    """Text form of an identifier; integral floats lose their ``.0``."""
    if _is_missing(value):
        return None
    if isinstance(value, (float, np.floating)) and float(value).is_integer():
        return str(int(value))
    return str(value)


def _choice(value: Any, allowed: set, default: str, field_name: str) -> str:
    if _is_missing(value):
        return default
    text = str(value).strip().lower()
    if text not in allowed:
        raise ValueError(f"Invalid {field_name}: {value!r} (expected one of {sorted(allowed)})")
    return text


def _flag(value: Any) -> bool:
    if _is_missing(value):
        return False
    if isinstance(value, str):
        return value.strip().lower() in {'1', 'true', 'yes', 't'}
    return bool(value)


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass
class Transaction:
    id: str
    user_id: str
    amount: float
    type: str
    date: date
    category_id: Optional[str] = None
    is_essential: bool = False
    payment_method: str = 'other'
    description: Optional[str] = None

    @classmethod
    def from_mapping(cls, row: Mapping[str, Any]) -> 'Transaction':
        amount = to_float(row.get('amount'))
        if amount < 0:
            raise ValueError(f"Transaction amount must be non-negative, got {amount}")
        return cls(
            id=str(row.get('id', '')),
            user_id=str(row.get('user_id', '')),
            amount=amount,
            type=_choice(row.get('type'), TRANSACTION_TYPES, 'expense', 'transaction type'),
            date=to_date(row.get('date')),
            category_id=optional_str(row.get('category_id')),
            is_essential=_flag(row.get('is_essential')),
            payment_method=_choice(row.get('payment_method'), PAYMENT_METHODS, 'other', 'payment method'),
            description=optional_str(row.get('description')),
        )


@dataclass
class Category:
    id: str
    name: str
    type: str = 'expense'
    color: str = '#6B7280'
    user_id: Optional[str] = None
    is_system: bool = False
    is_essential: bool = False

    @property
    def is_shared(self) -> bool:
        return self.user_id is None

    @classmethod
    def from_mapping(cls, row: Mapping[str, Any]) -> 'Category':
        return cls(
            id=optional_str(row.get('id')) or '',
            name=str(row.get('name') or ''),
            type=_choice(row.get('type'), CATEGORY_TYPES, 'expense', 'category type'),
            color=str(row.get('color') or '#6B7280'),
            user_id=optional_str(row.get('user_id')),
            is_system=_flag(row.get('is_system')),
            is_essential=_flag(row.get('is_essential')),
        )


@dataclass
class Budget:
    id: str
    user_id: str
    amount: float
    category_id: Optional[str] = None
    period: str = 'monthly'

    @classmethod
    def from_mapping(cls, row: Mapping[str, Any]) -> 'Budget':
        return cls(
            id=str(row.get('id', '')),
            user_id=str(row.get('user_id', '')),
            amount=to_float(row.get('amount')),
            category_id=optional_str(row.get('category_id')),
            period=_choice(row.get('period'), BUDGET_PERIODS, 'monthly', 'budget period'),
        )


@dataclass
class Goal:
    id: str
    user_id: str
    name: str
    target_amount: float
    current_amount: float = 0.0
    target_date: Optional[date] = None
    status: str = 'active'
    target_mode: str = 'amount'
    target_percentage: Optional[float] = None
    completed_at: Optional[datetime] = None
    goal_type: str = 'savings'
    priority: int = 1
    description: Optional[str] = None
    color: str = '#3B82F6'

    @property
    def remaining(self) -> float:
        return self.target_amount - self.current_amount

    @classmethod
    def from_mapping(cls, row: Mapping[str, Any]) -> 'Goal':
        return cls(
            id=str(row.get('id', '')),
            user_id=str(row.get('user_id', '')),
            name=str(row.get('name') or ''),
            target_amount=to_float(row.get('target_amount')),
            current_amount=to_float(row.get('current_amount')),
            target_date=to_date(row.get('target_date')),
            status=_choice(row.get('status'), GOAL_STATUSES, 'active', 'goal status'),
            target_mode=_choice(row.get('target_mode'), GOAL_TARGET_MODES, 'amount', 'target mode'),
            target_percentage=optional_float(row.get('target_percentage')),
            completed_at=to_datetime(row.get('completed_at')),
            goal_type=_choice(row.get('goal_type'), GOAL_TYPES, 'savings', 'goal type'),
            priority=int(to_float(row.get('priority'), 1)),
            description=optional_str(row.get('description')),
            color=str(row.get('color') or '#3B82F6'),
        )


@dataclass
class GoalContribution:
    goal_id: str
    amount: float
    date: date


@dataclass
class Profile:
    id: str = ''
    income_type: str = 'fixed'
    hourly_rate: Optional[float] = None
    hours_per_week: Optional[float] = None
    fixed_salary: Optional[float] = None
    net_income_percentage: Optional[float] = None
    currency: str = 'USD'
    full_name: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, row: Mapping[str, Any]) -> 'Profile':
        known = {f.name for f in fields(cls)}
        return cls(
            id=str(row.get('id', '')),
            income_type=_choice(row.get('income_type'), INCOME_TYPES, 'fixed', 'income type'),
            hourly_rate=optional_float(row.get('hourly_rate')),
            hours_per_week=optional_float(row.get('hours_per_week')),
            fixed_salary=optional_float(row.get('fixed_salary')),
            net_income_percentage=optional_float(row.get('net_income_percentage')),
            currency=str(row.get('currency') or 'USD'),
            full_name=optional_str(row.get('full_name')),
            extra={k: v for k, v in row.items() if k not in known},
        )


# ---------------------------------------------------------------------------
# Collection normalisation
# ---------------------------------------------------------------------------

TransactionSource = Union[pd.DataFrame, Iterable[Transaction], Iterable[Mapping[str, Any]], None]


def transactions_frame(source: TransactionSource) -> pd.DataFrame:
    """Return a normalised copy of ``source`` as a transactions DataFrame.

    ``amount`` is numeric (junk becomes 0), ``type`` is lower-case text,
    ``category_id`` holds ``None`` for uncategorised rows and ``date`` is a
    midnight-normalised timestamp so range filters compare calendar days.
    """
    if source is None:
        df = pd.DataFrame(columns=TRANSACTION_COLUMNS)
    elif isinstance(source, pd.DataFrame):
        df = source.copy()
    else:
        rows: List[Dict[str, Any]] = [
            asdict(item) if isinstance(item, Transaction) else dict(item)
            for item in source
        ]
        df = pd.DataFrame(rows) if rows else pd.DataFrame(columns=TRANSACTION_COLUMNS)

    for column in TRANSACTION_COLUMNS:
        if column not in df.columns:
            df[column] = None

    df['amount'] = pd.to_numeric(df['amount'], errors='coerce').fillna(0.0).astype(float)
    df['type'] = df['type'].fillna('').astype(str).str.strip().str.lower()
    df['category_id'] = pd.Series(
        [optional_str(v) for v in df['category_id']],
        index=df.index,
        dtype=object,
    )
    # each value is parsed on its own; aware timestamps become UTC calendar days
    df['date'] = (
        pd.to_datetime(df['date'], errors='coerce', utc=True, format='mixed')
        .dt.tz_localize(None)
        .dt.normalize()
    )
    df['is_essential'] = df['is_essential'].map(_flag).astype(bool)
    return df


def category_lookup(categories: Any) -> Dict[str, Category]:
    """Index categories by id from a DataFrame, records or mappings."""
    if categories is None:
        return {}
    if isinstance(categories, pd.DataFrame):
        items: Iterable[Any] = categories.replace({np.nan: None}).to_dict('records')
    else:
        items = categories
    lookup: Dict[str, Category] = {}
    for item in items:
        category = item if isinstance(item, Category) else Category.from_mapping(item)
        lookup[optional_str(category.id) or ''] = category
    return lookup


def as_budgets(budgets: Any) -> List[Budget]:
    if budgets is None:
        return []
    if isinstance(budgets, pd.DataFrame):
        budgets = budgets.replace({np.nan: None}).to_dict('records')
    return [b if isinstance(b, Budget) else Budget.from_mapping(b) for b in budgets]


def as_goals(goals: Any) -> List[Goal]:
    if goals is None:
        return []
    if isinstance(goals, pd.DataFrame):
        goals = goals.replace({np.nan: None}).to_dict('records')
    return [g if isinstance(g, Goal) else Goal.from_mapping(g) for g in goals]
