"""Budget period windows and spend-vs-limit status.

Windows are half-open [start, end) and derived at read time from the
budget's cadence and anchor start date; nothing here is stored.
"""
import math
from datetime import date, datetime, timedelta

from models.budget import Budget
from utils.constants import (
    BUDGET_HIGH_PERCENT,
    BUDGET_MONTHLY,
    BUDGET_ON_TRACK,
    BUDGET_OVER,
    BUDGET_OVER_PERCENT,
    BUDGET_WARNING,
    BUDGET_WARNING_PERCENT,
    BUDGET_WEEKLY,
    BUDGET_YEARLY,
    SEVERITY_CRITICAL,
    SEVERITY_HIGH,
    SEVERITY_MEDIUM,
)
from utils.date_helpers import add_months, months_between, to_day
from utils.errors import InvalidRuleError

_PERIOD_MONTHS = {BUDGET_MONTHLY: 1, BUDGET_YEARLY: 12}


def current_period(
    period: str, anchor: date | datetime, now: date | datetime
) -> tuple[date, date]:
    """The [start, end) window of the given cadence that contains now.

    Weekly windows start on the anchor's weekday; monthly and yearly windows
    start on the anchor's day (and month), clamped in short months.
    """
    anchor = to_day(anchor)
    today = to_day(now)

    if period == BUDGET_WEEKLY:
        k = (today - anchor).days // 7
        start = anchor + timedelta(days=7 * k)
        return start, start + timedelta(days=7)

    if period not in _PERIOD_MONTHS:
        raise InvalidRuleError(f"Invalid budget period: {period}")

    step = _PERIOD_MONTHS[period]
    k = months_between(anchor, today) // step
    start = add_months(anchor, k * step, anchor.day)
    if start > today:
        k -= 1
        start = add_months(anchor, k * step, anchor.day)
    return start, add_months(anchor, (k + 1) * step, anchor.day)


def effective_period(budget: Budget, now: date | datetime) -> tuple[date, date]:
    """Current window clipped to the budget's own [start_date, end_date).

    Before the budget starts or after it ends the window is empty.
    """
    start, end = current_period(budget.period, budget.start_date, now)
    start = max(start, to_day(budget.start_date))
    if budget.end_date and budget.end_date < end:
        end = budget.end_date
    return start, max(start, end)


def next_period_start(period: str, current_start: date) -> date:
    if period == BUDGET_WEEKLY:
        return current_start + timedelta(days=7)
    if period not in _PERIOD_MONTHS:
        raise InvalidRuleError(f"Invalid budget period: {period}")
    return add_months(current_start, _PERIOD_MONTHS[period])


def percent_used(actual_spent: float, limit: float) -> int:
    """Whole percent of the limit spent, rounded half up; 0 for a non-positive limit."""
    if limit <= 0:
        return 0
    return max(0, math.floor(100 * actual_spent / limit + 0.5))


def budget_status(actual_spent: float, limit: float) -> str:
    if limit <= 0:
        return BUDGET_OVER if actual_spent > 0 else BUDGET_ON_TRACK
    used = 100 * actual_spent / limit
    if used < BUDGET_WARNING_PERCENT:
        return BUDGET_ON_TRACK
    if used < BUDGET_OVER_PERCENT:
        return BUDGET_WARNING
    return BUDGET_OVER


def alert_severity(actual_spent: float, limit: float) -> str | None:
    """Alert tier from the raw ratio: 100%+ critical, 90%+ high, 75%+ medium."""
    if limit <= 0:
        return None
    used = 100 * actual_spent / limit
    if used >= BUDGET_OVER_PERCENT:
        return SEVERITY_CRITICAL
    if used >= BUDGET_HIGH_PERCENT:
        return SEVERITY_HIGH
    if used >= BUDGET_WARNING_PERCENT:
        return SEVERITY_MEDIUM
    return None
