"""sqlite record store for profiles, categories, transactions, budgets and goals.

Reads are always scoped to one owner.  Categories with ``user_id`` NULL are
system rows shared by every user.
"""

from __future__ import annotations

import logging
import sqlite3
import uuid
from contextlib import contextmanager
from dataclasses import asdict
from datetime import datetime
from typing import Any, Dict, Iterator, List, Optional, Sequence

import pandas as pd

from . import config
from .records import (
    BUDGET_PERIODS,
    CATEGORY_TYPES,
    PAYMENT_METHODS,
    TRANSACTION_COLUMNS,
    TRANSACTION_TYPES,
    Budget,
    Category,
    Goal,
    GoalContribution,
    Profile,
    Transaction,
    optional_str,
    to_date,
    to_float,
)

logger = logging.getLogger(__name__)

# Marks an optional field that an update leaves unchanged
_KEEP: Any = object()

SCHEMA_SQL = """
PRAGMA journal_mode=WAL;
PRAGMA synchronous=NORMAL;

CREATE TABLE IF NOT EXISTS profiles (
    id TEXT PRIMARY KEY,
    email TEXT,
    full_name TEXT,
    currency TEXT DEFAULT 'USD',
    income_type TEXT DEFAULT 'fixed',
    hourly_rate REAL,
    hours_per_week REAL,
    fixed_salary REAL,
    pay_frequency TEXT DEFAULT 'monthly',
    net_income_percentage REAL DEFAULT 100,
    onboarding_completed INTEGER DEFAULT 0,
    updated_at TEXT
);

CREATE TABLE IF NOT EXISTS categories (
    id TEXT PRIMARY KEY,
    user_id TEXT,
    name TEXT NOT NULL,
    type TEXT DEFAULT 'expense',
    color TEXT DEFAULT '#6B7280',
    is_system INTEGER DEFAULT 0,
    is_essential INTEGER DEFAULT 0,
    sort_order INTEGER DEFAULT 0
);

CREATE TABLE IF NOT EXISTS transactions (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    amount REAL NOT NULL CHECK (amount >= 0),
    type TEXT NOT NULL,
    category_id TEXT,
    description TEXT,
    date TEXT NOT NULL,
    is_essential INTEGER DEFAULT 0,
    payment_method TEXT DEFAULT 'other',
    created_at TEXT
);

CREATE TABLE IF NOT EXISTS budgets (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    category_id TEXT,
    amount REAL NOT NULL,
    period TEXT DEFAULT 'monthly',
    created_at TEXT
);

CREATE TABLE IF NOT EXISTS goals (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    name TEXT NOT NULL,
    description TEXT,
    target_amount REAL NOT NULL,
    current_amount REAL DEFAULT 0,
    target_date TEXT,
    status TEXT DEFAULT 'active',
    target_mode TEXT DEFAULT 'amount',
    target_percentage REAL,
    completed_at TEXT,
    goal_type TEXT DEFAULT 'savings',
    priority INTEGER DEFAULT 1,
    color TEXT,
    updated_at TEXT
);

CREATE TABLE IF NOT EXISTS goal_contributions (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    goal_id TEXT NOT NULL,
    amount REAL NOT NULL,
    date TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS ix_txn_user_date ON transactions (user_id, date);
CREATE INDEX IF NOT EXISTS ix_budget_user ON budgets (user_id);
CREATE INDEX IF NOT EXISTS ix_goal_user ON goals (user_id);
"""

SYSTEM_CATEGORIES = [
    {'name': 'Vivienda', 'type': 'expense', 'color': '#EF4444', 'is_essential': True},
    {'name': 'Servicios', 'type': 'expense', 'color': '#F59E0B', 'is_essential': True},
    {'name': 'Transporte', 'type': 'expense', 'color': '#3B82F6', 'is_essential': True},
    {'name': 'Alimentación', 'type': 'expense', 'color': '#10B981', 'is_essential': True},
    {'name': 'Teléfono/Internet', 'type': 'expense', 'color': '#8B5CF6', 'is_essential': True},
    {'name': 'Entretenimiento', 'type': 'expense', 'color': '#EC4899', 'is_essential': False},
    {'name': 'Salud', 'type': 'expense', 'color': '#14B8A6', 'is_essential': True},
    {'name': 'Salario', 'type': 'income', 'color': '#22C55E', 'is_essential': False},
    {'name': 'Otros ingresos', 'type': 'income', 'color': '#84CC16', 'is_essential': False},
]


def _new_id() -> str:
    return uuid.uuid4().hex


def _iso(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.isoformat()
    return _day(value)


def _day(value: Any) -> Optional[str]:
    day = to_date(value)
    return day.isoformat() if day else None


@contextmanager
def connect() -> Iterator[sqlite3.Connection]:
    config.ensure_data_directories()
    config.DB_PATH.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(config.DB_PATH))
    try:
        yield conn
    finally:
        conn.close()


def init_db() -> None:
    with connect() as conn:
        conn.executescript(SCHEMA_SQL)
        conn.commit()


def seed_system_categories() -> int:
    """Insert the shared categories that are missing; returns rows added."""
    added = 0
    with connect() as conn:
        for order, seed in enumerate(SYSTEM_CATEGORIES):
            exists = conn.execute(
                "SELECT 1 FROM categories WHERE user_id IS NULL AND name = ?", (seed['name'],)
            ).fetchone()
            if exists:
                continue
            conn.execute(
                "INSERT INTO categories (id, user_id, name, type, color, is_system, is_essential, sort_order) "
                "VALUES (?, NULL, ?, ?, ?, 1, ?, ?)",
                (_new_id(), seed['name'], seed['type'], seed['color'], int(seed['is_essential']), order),
            )
            added += 1
        conn.commit()
    if added:
        logger.info("Seeded %d system categories", added)
    return added


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------


def fetch_transactions(
    user_id: str,
    start: Any = None,
    end: Any = None,
    txn_type: Optional[str] = None,
) -> pd.DataFrame:
    """Fetch a user's transactions within an inclusive date range, newest first."""
    where = ["user_id = ?"]
    params: List[Any] = [user_id]
    if start is not None:
        where.append("date >= ?")
        params.append(_day(start))
    if end is not None:
        where.append("date <= ?")
        params.append(_day(end))
    if txn_type is not None:
        where.append("type = ?")
        params.append(txn_type)

    sql = (
        "SELECT id, user_id, amount, type, category_id, date, is_essential, payment_method, description "
        "FROM transactions WHERE " + " AND ".join(where) + " ORDER BY date DESC, created_at DESC"
    )
    with connect() as conn:
        df = pd.read_sql_query(sql, conn, params=params)
    if df.empty:
        return pd.DataFrame(columns=TRANSACTION_COLUMNS)
    df['date'] = pd.to_datetime(df['date'])
    df['is_essential'] = df['is_essential'].astype(bool)
    return df


def _fetch_dicts(conn: sqlite3.Connection, sql: str, params: Sequence[Any] = ()) -> List[Dict[str, Any]]:
    cursor = conn.execute(sql, params)
    columns = [col[0] for col in cursor.description]
    return [dict(zip(columns, row)) for row in cursor.fetchall()]


def fetch_categories(user_id: str) -> List[Category]:
    """Fetch the user's own categories plus the shared system ones."""
    with connect() as conn:
        rows = _fetch_dicts(
            conn,
            "SELECT * FROM categories WHERE user_id = ? OR is_system = 1 ORDER BY sort_order, name",
            (user_id,),
        )
    return [Category.from_mapping(row) for row in rows]


def fetch_budgets(user_id: str) -> List[Budget]:
    with connect() as conn:
        rows = _fetch_dicts(conn, "SELECT * FROM budgets WHERE user_id = ? ORDER BY created_at", (user_id,))
    return [Budget.from_mapping(row) for row in rows]


def fetch_goals(user_id: str, status: Optional[str] = None) -> List[Goal]:
    sql = "SELECT * FROM goals WHERE user_id = ?"
    params: List[Any] = [user_id]
    if status is not None:
        sql += " AND status = ?"
        params.append(status)
    sql += " ORDER BY priority ASC"
    with connect() as conn:
        rows = _fetch_dicts(conn, sql, params)
    return [Goal.from_mapping(row) for row in rows]


def get_goal(goal_id: str) -> Optional[Goal]:
    with connect() as conn:
        rows = _fetch_dicts(conn, "SELECT * FROM goals WHERE id = ?", (goal_id,))
    return Goal.from_mapping(rows[0]) if rows else None


def fetch_profile(user_id: str) -> Optional[Profile]:
    with connect() as conn:
        rows = _fetch_dicts(conn, "SELECT * FROM profiles WHERE id = ?", (user_id,))
    return Profile.from_mapping(rows[0]) if rows else None


def fetch_contributions(goal_id: str) -> pd.DataFrame:
    with connect() as conn:
        df = pd.read_sql_query(
            "SELECT goal_id, amount, date FROM goal_contributions WHERE goal_id = ? ORDER BY date, id",
            conn,
            params=[goal_id],
        )
    if not df.empty:
        df['date'] = pd.to_datetime(df['date'])
    return df


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------


def upsert_profile(profile: Profile, onboarding_completed: bool = False) -> None:
    payload = asdict(profile)
    payload.pop('extra', None)
    with connect() as conn:
        conn.execute(
            """
            INSERT INTO profiles (id, full_name, currency, income_type, hourly_rate, hours_per_week,
                                  fixed_salary, net_income_percentage, onboarding_completed, updated_at)
            VALUES (:id, :full_name, :currency, :income_type, :hourly_rate, :hours_per_week,
                    :fixed_salary, :net_income_percentage, :onboarding_completed, :updated_at)
            ON CONFLICT(id) DO UPDATE SET
                full_name = excluded.full_name,
                currency = excluded.currency,
                income_type = excluded.income_type,
                hourly_rate = excluded.hourly_rate,
                hours_per_week = excluded.hours_per_week,
                fixed_salary = excluded.fixed_salary,
                net_income_percentage = excluded.net_income_percentage,
                onboarding_completed = excluded.onboarding_completed,
                updated_at = excluded.updated_at
            """,
            {
                **payload,
                'onboarding_completed': int(onboarding_completed),
                'updated_at': datetime.now().isoformat(),
            },
        )
        conn.commit()


def insert_category(user_id: Optional[str], name: str, category_type: str = 'expense', color: str = '#6B7280') -> str:
    category = Category.from_mapping({
        'id': _new_id(), 'user_id': user_id, 'name': name, 'type': category_type, 'color': color,
    })
    with connect() as conn:
        conn.execute(
            "INSERT INTO categories (id, user_id, name, type, color, is_system) VALUES (?, ?, ?, ?, ?, 0)",
            (category.id, category.user_id, category.name, category.type, category.color),
        )
        conn.commit()
    return category.id


def insert_transaction(
    user_id: str,
    amount: float,
    txn_type: str,
    txn_date: Any,
    category_id: Optional[str] = None,
    description: Optional[str] = None,
    is_essential: bool = False,
    payment_method: str = 'other',
) -> str:
    """Validate and store a transaction; returns its id.

    Raises:
        ValueError: For negative amounts, unknown types or a missing date
    """
    txn = Transaction.from_mapping({
        'id': _new_id(), 'user_id': user_id, 'amount': amount, 'type': txn_type,
        'date': txn_date, 'category_id': category_id, 'description': description,
        'is_essential': is_essential, 'payment_method': payment_method,
    })
    if txn.date is None:
        raise ValueError(f"Transaction date is required, got {txn_date!r}")
    with connect() as conn:
        conn.execute(
            "INSERT INTO transactions (id, user_id, amount, type, category_id, description, date, "
            "is_essential, payment_method, created_at) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (
                txn.id, txn.user_id, txn.amount, txn.type, txn.category_id, txn.description,
                txn.date.isoformat(), int(txn.is_essential), txn.payment_method,
                datetime.now().isoformat(),
            ),
        )
        conn.commit()
    return txn.id


def insert_budget(user_id: str, amount: float, category_id: Optional[str] = None, period: str = 'monthly') -> str:
    budget = Budget.from_mapping({
        'id': _new_id(), 'user_id': user_id, 'amount': amount,
        'category_id': category_id, 'period': period,
    })
    with connect() as conn:
        conn.execute(
            "INSERT INTO budgets (id, user_id, category_id, amount, period, created_at) VALUES (?, ?, ?, ?, ?, ?)",
            (budget.id, budget.user_id, budget.category_id, budget.amount, budget.period, datetime.now().isoformat()),
        )
        conn.commit()
    return budget.id


def _goal_params(goal: Goal) -> Dict[str, Any]:
    return {
        'id': goal.id,
        'user_id': goal.user_id,
        'name': goal.name,
        'description': goal.description,
        'target_amount': goal.target_amount,
        'current_amount': goal.current_amount,
        'target_date': _day(goal.target_date),
        'status': goal.status,
        'target_mode': goal.target_mode,
        'target_percentage': goal.target_percentage,
        'completed_at': _iso(goal.completed_at),
        'goal_type': goal.goal_type,
        'priority': goal.priority,
        'color': goal.color,
        'updated_at': datetime.now().isoformat(),
    }


def insert_goal(goal: Goal) -> str:
    if not goal.id:
        goal.id = _new_id()
    with connect() as conn:
        conn.execute(
            """
            INSERT INTO goals (id, user_id, name, description, target_amount, current_amount, target_date,
                               status, target_mode, target_percentage, completed_at, goal_type, priority,
                               color, updated_at)
            VALUES (:id, :user_id, :name, :description, :target_amount, :current_amount, :target_date,
                    :status, :target_mode, :target_percentage, :completed_at, :goal_type, :priority,
                    :color, :updated_at)
            """,
            _goal_params(goal),
        )
        conn.commit()
    return goal.id


_UPDATE_GOAL_SQL = """
    UPDATE goals SET name = :name, description = :description, target_amount = :target_amount,
        current_amount = :current_amount, target_date = :target_date, status = :status,
        target_mode = :target_mode, target_percentage = :target_percentage,
        completed_at = :completed_at, goal_type = :goal_type, priority = :priority,
        color = :color, updated_at = :updated_at
    WHERE id = :id
"""

_INSERT_CONTRIBUTION_SQL = "INSERT INTO goal_contributions (goal_id, amount, date) VALUES (?, ?, ?)"


def _contribution_params(contribution: GoalContribution) -> tuple:
    return (contribution.goal_id, contribution.amount, _day(contribution.date))


def save_goal(goal: Goal) -> bool:
    """Persist every mutable goal field; returns True when a row was updated."""
    with connect() as conn:
        cursor = conn.execute(_UPDATE_GOAL_SQL, _goal_params(goal))
        conn.commit()
        return cursor.rowcount > 0


def insert_contribution(contribution: GoalContribution) -> None:
    with connect() as conn:
        conn.execute(_INSERT_CONTRIBUTION_SQL, _contribution_params(contribution))
        conn.commit()


def save_goal_contribution(goal: Goal, contribution: GoalContribution) -> None:
    """Write the updated goal and its contribution in a single transaction.

    Raises:
        LookupError: If the goal row does not exist; nothing is written
    """
    with connect() as conn:
        try:
            cursor = conn.execute(_UPDATE_GOAL_SQL, _goal_params(goal))
            if cursor.rowcount == 0:
                raise LookupError(f"Goal not found: {goal.id}")
            conn.execute(_INSERT_CONTRIBUTION_SQL, _contribution_params(contribution))
        except Exception:
            conn.rollback()
            raise
        conn.commit()


def delete_budget(budget_id: str) -> bool:
    with connect() as conn:
        cursor = conn.execute("DELETE FROM budgets WHERE id = ?", (budget_id,))
        conn.commit()
        return cursor.rowcount > 0


def delete_goal(goal_id: str) -> bool:
    with connect() as conn:
        conn.execute("DELETE FROM goal_contributions WHERE goal_id = ?", (goal_id,))
        cursor = conn.execute("DELETE FROM goals WHERE id = ?", (goal_id,))
        conn.commit()
        return cursor.rowcount > 0


# ---------------------------------------------------------------------------
# Edits
# ---------------------------------------------------------------------------


def _checked_choice(value: str, allowed: set, field_name: str) -> str:
    text = str(value).strip().lower()
    if text not in allowed:
        raise ValueError(f"Invalid {field_name}: {value!r} (expected one of {sorted(allowed)})")
    return text


def _run_update(table: str, row_id: str, updates: List[str], params: List[Any], extra_where: str = "") -> bool:
    if not updates:
        return False
    sql = f"UPDATE {table} SET {', '.join(updates)} WHERE id = ?{extra_where}"
    with connect() as conn:
        cursor = conn.execute(sql, [*params, row_id])
        conn.commit()
        return cursor.rowcount > 0


def update_transaction(
    transaction_id: str,
    amount: Optional[float] = None,
    txn_type: Optional[str] = None,
    txn_date: Any = None,
    category_id: Any = _KEEP,
    description: Any = _KEEP,
    is_essential: Optional[bool] = None,
    payment_method: Optional[str] = None,
) -> bool:
    """Update the given fields of a transaction.

    ``category_id`` and ``description`` may be set to ``None`` to clear them.
    Returns True if a row was updated.

    Raises:
        ValueError: For a negative amount, an unknown type or payment method,
            or an unparseable date
    """
    updates: List[str] = []
    params: List[Any] = []

    if amount is not None:
        value = to_float(amount, -1.0)
        if value < 0:
            raise ValueError(f"Transaction amount must be non-negative, got {amount!r}")
        updates.append("amount = ?")
        params.append(value)

    if txn_type is not None:
        updates.append("type = ?")
        params.append(_checked_choice(txn_type, TRANSACTION_TYPES, 'transaction type'))

    if txn_date is not None:
        day = _day(txn_date)
        if day is None:
            raise ValueError(f"Invalid transaction date: {txn_date!r}")
        updates.append("date = ?")
        params.append(day)

    if category_id is not _KEEP:
        updates.append("category_id = ?")
        params.append(optional_str(category_id))

    if description is not _KEEP:
        updates.append("description = ?")
        params.append(optional_str(description))

    if is_essential is not None:
        updates.append("is_essential = ?")
        params.append(int(bool(is_essential)))

    if payment_method is not None:
        updates.append("payment_method = ?")
        params.append(_checked_choice(payment_method, PAYMENT_METHODS, 'payment method'))

    return _run_update('transactions', transaction_id, updates, params)


def delete_transaction(transaction_id: str) -> bool:
    with connect() as conn:
        cursor = conn.execute("DELETE FROM transactions WHERE id = ?", (transaction_id,))
        conn.commit()
        return cursor.rowcount > 0


def update_category(
    category_id: str,
    name: Optional[str] = None,
    category_type: Optional[str] = None,
    color: Optional[str] = None,
) -> bool:
    """Update a user's own category; system categories are never changed.

    Returns True if a row was updated, False for unknown or system categories.
    """
    updates: List[str] = []
    params: List[Any] = []
    if name is not None:
        if not name.strip():
            raise ValueError("Category name must not be empty")
        updates.append("name = ?")
        params.append(name.strip())
    if category_type is not None:
        updates.append("type = ?")
        params.append(_checked_choice(category_type, CATEGORY_TYPES, 'category type'))
    if color is not None:
        updates.append("color = ?")
        params.append(color)
    return _run_update('categories', category_id, updates, params, extra_where=" AND is_system = 0")


def delete_category(category_id: str) -> bool:
    """Delete a user category; its transactions and budgets become uncategorised.

    Raises:
        ValueError: If the category is one of the shared system categories
    """
    with connect() as conn:
        row = conn.execute("SELECT is_system FROM categories WHERE id = ?", (category_id,)).fetchone()
        if row is None:
            return False
        if row[0]:
            raise ValueError(f"System category {category_id} cannot be deleted")
        conn.execute("UPDATE transactions SET category_id = NULL WHERE category_id = ?", (category_id,))
        conn.execute("UPDATE budgets SET category_id = NULL WHERE category_id = ?", (category_id,))
        conn.execute("DELETE FROM categories WHERE id = ?", (category_id,))
        conn.commit()
    logger.info("Deleted category %s", category_id)
    return True


def update_budget(
    budget_id: str,
    amount: Optional[float] = None,
    category_id: Any = _KEEP,
    period: Optional[str] = None,
) -> bool:
    """Update a budget's ceiling, category or period; ``category_id=None`` makes it general."""
    updates: List[str] = []
    params: List[Any] = []
    if amount is not None:
        updates.append("amount = ?")
        params.append(to_float(amount))
    if category_id is not _KEEP:
        updates.append("category_id = ?")
        params.append(optional_str(category_id))
    if period is not None:
        updates.append("period = ?")
        params.append(_checked_choice(period, BUDGET_PERIODS, 'budget period'))
    return _run_update('budgets', budget_id, updates, params)
