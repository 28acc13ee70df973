"""Display status and reminder eligibility for payment instances.

upcoming -> due_soon -> overdue are views recomputed from the date at read
time and never persisted; paid and cancelled are stored terminal states and
pass through unchanged.
"""
from datetime import date, datetime

from models.bill_payment import BillPayment
from utils.constants import (
    DUE_SOON_DAYS,
    STATUS_DUE_SOON,
    STATUS_LABELS,
    STATUS_OVERDUE,
    STATUS_UPCOMING,
    TERMINAL_STATUSES,
)
from utils.date_helpers import days_between


def days_until_due(payment: BillPayment, today: date | datetime) -> int:
    """Whole days until the due date; negative once overdue."""
    return days_between(today, payment.due_date)


def classify(
    payment: BillPayment,
    today: date | datetime,
    due_soon_days: int = DUE_SOON_DAYS,
) -> str:
    """Status as of `today`.

    due_soon_days is the "due soon" window: pass the bill's own
    reminder_days_before where a bill-specific threshold applies.
    """
    if payment.status in TERMINAL_STATUSES:
        return payment.status

    days = days_until_due(payment, today)
    if days < 0:
        return STATUS_OVERDUE
    if days <= due_soon_days:
        return STATUS_DUE_SOON
    return STATUS_UPCOMING


def is_overdue(payment: BillPayment, today: date | datetime) -> bool:
    if payment.status in TERMINAL_STATUSES:
        return False
    return days_until_due(payment, today) < 0


def is_due_today(payment: BillPayment, today: date | datetime) -> bool:
    return days_until_due(payment, today) == 0


def should_remind(
    payment: BillPayment,
    today: date | datetime,
    reminder_days_before: int | None = None,
) -> bool:
    """Eligible for the single-shot "due soon" reminder.

    Overdue instances are never eligible; they get overdue alerts instead.
    """
    if payment.status in TERMINAL_STATUSES or payment.reminder_sent:
        return False
    window = payment.reminder_days_before if reminder_days_before is None else reminder_days_before
    days = days_until_due(payment, today)
    return 0 <= days <= window


def status_label(status: str) -> str:
    return STATUS_LABELS.get(status, status)
