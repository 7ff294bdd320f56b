#!/usr/bin/env python3
"""Show budget usage and top expense categories for one user and month."""

from __future__ import annotations

import argparse
import logging
import sys
from datetime import date, datetime
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from bc_money import config, db, reports
from bc_money.metrics import budget_totals, evaluate_budget, evaluate_budgets, overall_budget_used


def main(user_id: str, month: date, export_dir: Path | None = None) -> int:
    db.init_db()
    start, end = reports.month_bounds(month)
    transactions = db.fetch_transactions(user_id, start, end)
    categories = db.fetch_categories(user_id)
    budgets = db.fetch_budgets(user_id)

    report = reports.monthly_report(transactions, categories, month)
    summary = report['summary']
    print(f"Report for {user_id} – {report['month']}")
    print(f"  Income:       {summary['income']:,.2f}")
    print(f"  Expenses:     {summary['expenses']:,.2f}")
    print(f"  Balance:      {summary['balance']:,.2f}")
    print(f"  Savings rate: {summary['savings_rate']:.1f}%")

    if budgets:
        usages = [evaluate_budget(b, transactions) for b in budgets]
        table = evaluate_budgets(budgets, transactions, categories)
        print("\nBudgets:")
        print(table[['category', 'budget', 'spent', 'percentage', 'status', 'remaining']].to_string(index=False))
        totals = budget_totals(usages)
        print(f"\nOverall used (mean): {overall_budget_used(usages):.1f}%")
        print(f"Total spent vs budget: {totals['total_percentage']:.1f}%")
    else:
        print("\nNo budgets defined.")

    top = report['top_categories']
    if not top.empty:
        print("\nTop categories:")
        print(top[['name', 'amount']].to_string(index=False))

    if export_dir:
        path = reports.export_transactions_csv(transactions, categories, month, export_dir)
        print(f"\nExported transactions to {path}")
    return 0


if __name__ == '__main__':
    parser = argparse.ArgumentParser(description='Show budget usage for a user and month.')
    parser.add_argument('user_id', help='Owner of the records')
    parser.add_argument('--month', default=date.today().strftime('%Y-%m'), help='Month as YYYY-MM')
    parser.add_argument('--export', action='store_true', help='Write the month CSV into the reports directory')
    parser.add_argument('-v', '--verbose', action='store_true', help='Enable debug logging')
    args = parser.parse_args()
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)
    month = datetime.strptime(args.month, '%Y-%m').date()
    raise SystemExit(main(args.user_id, month, config.REPORTS_DIR if args.export else None))
