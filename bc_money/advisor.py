"""Financial advisor proxy with offline fallback.

The advisor itself is an external text-generation function.  This module
builds the context snapshot sent to it, validates the loosely-typed reply
into :class:`AdvisorReply`, and supplies canned text when the call fails.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any, Dict, List, Mapping, Optional

import requests

from . import config
from .defaults import get_config_value
from .metrics import goal_progress, period_summary
from .records import Profile, as_goals, as_budgets

logger = logging.getLogger(__name__)

PROFILE_FIELDS = ['income_type', 'life_situation', 'risk_tolerance', 'investment_horizon']


@dataclass
class StructuredAdvice:
    summary: List[str] = field(default_factory=list)
    alerts: List[str] = field(default_factory=list)
    short_term_plan: str = ''
    medium_term_plan: str = ''
    long_term_plan: str = ''
    next_action: str = ''


@dataclass
class AdvisorReply:
    mode: str
    content: str
    structured: Optional[StructuredAdvice] = None


def build_context(
    profile: Optional[Profile],
    transactions: Any,
    goals: Any,
    budgets: Any,
    today: date,
    lookback_days: Optional[int] = None,
) -> Dict[str, Any]:
    """Snapshot of recent activity sent along with each question."""
    if lookback_days is None:
        lookback_days = get_config_value('engine', 'advisor', 'lookback_days', default=30)
    summary = period_summary(transactions, start=today - timedelta(days=lookback_days), end=today)

    profile_block: Dict[str, Any] = {}
    if profile is not None:
        profile_block['income_type'] = profile.income_type
        for name in PROFILE_FIELDS[1:]:
            if name in profile.extra:
                profile_block[name] = profile.extra[name]

    return {
        'profile': profile_block,
        'last30Days': {
            'income': summary['income'],
            'expenses': summary['expenses'],
            'savings': summary['balance'],
            'savingsRate': summary['savings_rate'],
            'transactionCount': summary['transaction_count'],
        },
        'goals': [
            {
                'name': goal.name,
                'target': goal.target_amount,
                'current': goal.current_amount,
                'progress': f"{goal_progress(goal):.0f}",
            }
            for goal in as_goals(goals)
            if goal.status == 'active'
        ],
        'budgets': len(as_budgets(budgets)),
    }


def _string_list(value: Any) -> Optional[List[str]]:
    if value is None:
        return []
    if not isinstance(value, list):
        return None
    return [str(item) for item in value if item is not None]


def _string(value: Any) -> Optional[str]:
    if value is None:
        return ''
    if isinstance(value, (str, int, float)):
        return str(value)
    return None


def parse_structured(payload: Any) -> Optional[StructuredAdvice]:
    """Validate the structured block; any malformed field rejects the block."""
    if not isinstance(payload, Mapping):
        return None
    summary = _string_list(payload.get('summary'))
    alerts = _string_list(payload.get('alerts'))
    plans = [
        _string(payload.get(key))
        for key in ('shortTermPlan', 'mediumTermPlan', 'longTermPlan', 'nextAction')
    ]
    if summary is None or alerts is None or any(p is None for p in plans):
        return None
    return StructuredAdvice(
        summary=summary,
        alerts=alerts,
        short_term_plan=plans[0],
        medium_term_plan=plans[1],
        long_term_plan=plans[2],
        next_action=plans[3],
    )


def parse_reply(payload: Any) -> AdvisorReply:
    empty_reply = get_config_value('engine', 'advisor', 'empty_reply', default='')
    if not isinstance(payload, Mapping):
        return AdvisorReply(mode='online', content=empty_reply)
    content = payload.get('content')
    if not isinstance(content, str) or not content.strip():
        content = empty_reply
    structured = parse_structured(payload.get('structured'))
    if payload.get('structured') is not None and structured is None:
        logger.warning("Discarding malformed structured advisor reply")
    return AdvisorReply(mode='online', content=content, structured=structured)


def offline_reply(context: Mapping[str, Any], currency: str = 'USD') -> AdvisorReply:
    """Deterministic summary used when no advisor endpoint is configured."""
    recent = context.get('last30Days', {})
    lines = [
        "Resumen de tus últimos 30 días",
        "",
        f"- Ingresos: {currency} {float(recent.get('income', 0.0)):,.2f}",
        f"- Gastos: {currency} {float(recent.get('expenses', 0.0)):,.2f}",
        f"- Ahorro: {currency} {float(recent.get('savings', 0.0)):,.2f}",
        f"- Tasa de ahorro: {float(recent.get('savingsRate', 0.0)):.1f}%",
    ]
    goals = context.get('goals') or []
    if goals:
        lines.append("")
        lines.append("Metas activas:")
        for goal in goals:
            lines.append(f"- {goal['name']}: {goal['progress']}% completado")
    if float(recent.get('savingsRate', 0.0)) <= 0:
        alerts = ["Tus gastos igualan o superan tus ingresos."]
    else:
        alerts = []
    return AdvisorReply(
        mode='offline',
        content="\n".join(lines),
        structured=StructuredAdvice(summary=lines[2:6], alerts=alerts),
    )


def ask_advisor(
    message: str,
    context: Mapping[str, Any],
    url: Optional[str] = None,
    timeout: Optional[float] = None,
    session: Any = None,
    currency: str = 'USD',
) -> AdvisorReply:
    """Send a question to the advisor function; never raises on transport errors."""
    url = config.ADVISOR_URL if url is None else url
    timeout = config.ADVISOR_TIMEOUT_SECONDS if timeout is None else timeout
    if not url.strip():
        return offline_reply(context, currency)

    http = session or requests
    try:
        response = http.post(
            url,
            json={'message': message.strip(), 'context': dict(context)},
            timeout=timeout,
        )
        response.raise_for_status()
        payload = response.json()
    except (requests.RequestException, ValueError) as exc:
        logger.error("Advisor request failed: %s", exc)
        return AdvisorReply(
            mode='offline',
            content=get_config_value('engine', 'advisor', 'error_reply', default=''),
        )
    return parse_reply(payload)
