"""Next-due-date arithmetic for bill recurrence rules.

Everything here is pure: callers pass the reference instant explicitly and
get the same answer for the same inputs. Datetimes are truncated to dates
before comparison, so the time of day never shifts a due date.

A None result means the schedule is exhausted (one-time bill already due,
or past the rule's end date). It is a terminal signal, not an error.
"""
from datetime import date, datetime, timedelta

from models.bill_payment import UpcomingPayment
from models.recurrence_rule import RecurrenceRule
from utils.constants import (
    CADENCE_LABELS,
    DEFAULT_HORIZON_COUNT,
    MAX_SCHEDULE_STEPS,
    MONTH_INTERVALS,
    MONTHLY,
    ONE_TIME,
    WEEK_INTERVALS,
)
from utils.date_helpers import add_months, date_with_day, months_between, to_day


def next_occurrence(rule: RecurrenceRule, from_date: date | datetime) -> date | None:
    """Return the first due date on or after from_date, or None when there is none."""
    start = to_day(rule.anchor_date)
    ref = to_day(from_date)
    end = to_day(rule.end_date) if rule.end_date else None

    if ref < start:
        return _within_end(start, end)

    if end and ref > end:
        return None

    if rule.cadence == ONE_TIME:
        return start if ref == start else None

    if rule.cadence in WEEK_INTERVALS:
        candidate = _first_nweekly_on_or_after(start, WEEK_INTERVALS[rule.cadence], ref)
    elif rule.cadence == MONTHLY and rule.day_of_month:
        candidate = _first_monthly_after(rule.day_of_month, ref)
    elif rule.cadence in MONTH_INTERVALS:
        candidate = _first_nmonthly_on_or_after(start, MONTH_INTERVALS[rule.cadence], ref)
    else:
        return None

    if candidate is None:
        return None
    return _within_end(candidate, end)


def generate_horizon(
    rule: RecurrenceRule,
    amount: float,
    now: date | datetime,
    count: int = DEFAULT_HORIZON_COUNT,
) -> list[UpcomingPayment]:
    """Up to `count` upcoming (due_date, amount) pairs starting from now.

    Shorter than `count` when the schedule runs out. Due dates are strictly
    increasing because the cursor moves to the day after each result.
    """
    payments: list[UpcomingPayment] = []
    cursor = to_day(now)
    for _ in range(count):
        due = next_occurrence(rule, cursor)
        if due is None:
            break
        payments.append(UpcomingPayment(due_date=due, amount=amount))
        cursor = due + timedelta(days=1)
    return payments


def due_dates_within_year(rule: RecurrenceRule, now: date | datetime) -> list[date]:
    """Every due date from now up to (and including) one year ahead."""
    cursor = to_day(now)
    limit = add_months(cursor, 12)
    result = []
    while cursor < limit:
        due = next_occurrence(rule, cursor)
        if due is None or due > limit:
            break
        result.append(due)
        cursor = due + timedelta(days=1)
    return result


def format_cadence(cadence: str) -> str:
    return CADENCE_LABELS.get(cadence, cadence)


def _within_end(candidate: date, end: date | None) -> date | None:
    if end and candidate > end:
        return None
    return candidate


def _first_nweekly_on_or_after(anchor: date, interval: int, from_date: date) -> date:
    """Return the first date in the anchor + k*interval series that is >= from_date."""
    if from_date <= anchor:
        return anchor
    days_since = (from_date - anchor).days
    n = days_since // interval
    candidate = anchor + timedelta(days=n * interval)
    if candidate < from_date:
        candidate += timedelta(days=interval)
    return candidate


def _first_nmonthly_on_or_after(anchor: date, step: int, from_date: date) -> date | None:
    """First anchor + k*step months (day clamped) that is >= from_date."""
    k = max(0, months_between(anchor, from_date) // step)
    candidate = add_months(anchor, k * step, anchor.day)
    steps = 0
    while candidate < from_date:
        steps += 1
        if steps > MAX_SCHEDULE_STEPS:
            return None
        k += 1
        candidate = add_months(anchor, k * step, anchor.day)
    return candidate


def _first_monthly_after(day_of_month: int, from_date: date) -> date:
    """Clamped day_of_month in from_date's month, or next month's if not after from_date."""
    due = date_with_day(from_date.year, from_date.month, day_of_month)
    if due <= from_date:
        due = add_months(from_date.replace(day=1), 1, day_of_month)
    return due
