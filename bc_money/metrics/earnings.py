"""Income normalisation from a profile's income configuration.

Every function here is total over incomplete profiles: missing numbers count
as zero so half-finished onboarding never raises.
"""

from __future__ import annotations

from typing import Dict, Mapping, Optional

from ..records import Profile, to_float

# Average weeks per month used to turn weekly hours into a monthly figure.
WEEKS_PER_MONTH = 4.33
DEFAULT_NET_PERCENTAGE = 100.0


def gross_monthly_income(profile: Optional[Profile]) -> float:
    """Gross monthly income for hourly or fixed earners.

    Example:
        >>> round(gross_monthly_income(Profile(income_type='hourly', hourly_rate=14, hours_per_week=27)), 2)
        1636.74
    """
    if profile is None:
        return 0.0
    if profile.income_type == 'hourly':
        return to_float(profile.hourly_rate) * to_float(profile.hours_per_week) * WEEKS_PER_MONTH
    if profile.income_type == 'fixed':
        return to_float(profile.fixed_salary)
    return 0.0


def net_income_share(profile: Optional[Profile]) -> float:
    """Fraction of gross income kept after deductions (1.0 when unset)."""
    if profile is None:
        return 0.0
    return to_float(profile.net_income_percentage, DEFAULT_NET_PERCENTAGE) / 100


def monthly_net_income(profile: Optional[Profile]) -> float:
    """Canonical monthly net income consumed by goal sizing.

    Args:
        profile: Income configuration, possibly incomplete or ``None``

    Returns:
        ``gross_monthly_income * net_income_percentage / 100``
    """
    return gross_monthly_income(profile) * net_income_share(profile)


def onboarding_plan(
    profile: Profile,
    essentials: Mapping[str, float],
    suggested_savings_ratio: float = 0.2,
) -> Dict[str, float]:
    """Summarise the onboarding estimate shown before the profile is saved.

    Returns:
        Dictionary with ``gross_monthly``, ``net_monthly``, ``total_essentials``,
        ``remaining_after_essentials`` and ``suggested_savings`` (never negative)
    """
    gross = gross_monthly_income(profile)
    net = gross * net_income_share(profile)
    total_essentials = float(sum(to_float(v) for v in essentials.values()))
    remaining = net - total_essentials
    return {
        'gross_monthly': gross,
        'net_monthly': net,
        'total_essentials': total_essentials,
        'remaining_after_essentials': remaining,
        'suggested_savings': max(0.0, remaining * suggested_savings_ratio),
    }
