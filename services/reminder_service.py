from datetime import date, datetime, time, timedelta

import structlog

from database.bill_payment_dao import BillPaymentDAO
from database.insight_dao import InsightDAO
from models.bill_payment import BillPayment
from models.budget import Budget
from models.insight import Insight
from services.budget_period import alert_severity
from services.budget_service import BudgetService
from services.payment_status import days_until_due, is_overdue, should_remind
from utils.constants import (
    DEDUP_WINDOW_HOURS,
    DEFAULT_CURRENCY_SYMBOL,
    INSIGHT_BILL_OVERDUE,
    INSIGHT_BILL_REMINDER,
    INSIGHT_BUDGET_ALERT,
    SEVERITY_CRITICAL,
    SEVERITY_HIGH,
)
from utils.currency import format_currency
from utils.date_helpers import format_date, now as current_time

logger = structlog.get_logger(__name__)

_EPOCH = datetime(1970, 1, 1)


def _as_datetime(value: date | datetime) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.combine(value, time())


def _plural_days(n: int) -> str:
    return f"{n} day{'s' if n != 1 else ''}"


class ReminderService:
    """Emits bill reminders, overdue alerts and budget alerts, at most once
    per subject per dedup window.

    Every emitted event is appended to the insight log first. The log is the
    only debounce for overdue and budget alerts, while reminders are
    additionally single-shot through the payment's reminder_sent flag.

    The window is trailing: an event is suppressed while the previous one of
    the same type for the same subject is less than a window old. Each event
    also lands in a fixed slot (its timestamp floored to the window), and the
    log allows one event per subject, type and slot. Two events a full window
    apart always fall in different slots, so the slot only ever rejects a
    concurrent pass that lost the race.
    """

    def __init__(
        self,
        payment_dao: BillPaymentDAO,
        insight_dao: InsightDAO,
        budget_service: BudgetService | None = None,
        dedup_window_hours: int = DEDUP_WINDOW_HOURS,
        currency_symbol: str = DEFAULT_CURRENCY_SYMBOL,
    ):
        if dedup_window_hours <= 0:
            raise ValueError("Dedup window must be at least one hour.")
        self._payments = payment_dao
        self._insights = insight_dao
        self._budgets = budget_service
        self._window = timedelta(hours=dedup_window_hours)
        self._symbol = currency_symbol
        self._logger = logger.bind(component="reminder_service")

    def get_notifications(
        self, reference_time: date | datetime | None = None
    ) -> list[Insight]:
        """Overdue alerts first, then budget alerts, then reminders."""
        now = _as_datetime(reference_time or current_time())
        return (
            self.generate_overdue_alerts(now)
            + self.generate_budget_alerts(now)
            + self.generate_reminders(now)
        )

    def generate_reminders(
        self,
        reference_time: date | datetime | None = None,
        payments: list[BillPayment] | None = None,
    ) -> list[Insight]:
        now = _as_datetime(reference_time or current_time())
        today = now.date()
        reminders: list[Insight] = []

        for payment in self._candidates(payments):
            if not should_remind(payment, today):
                continue
            insight = self._build_reminder(payment, today, now)
            if not self._emit(insight, now):
                continue
            self._payments.mark_reminder_sent(payment.id, now)
            payment.reminder_sent = True
            payment.reminder_sent_at = now
            reminders.append(insight)

        if reminders:
            self._logger.info("reminders_emitted", count=len(reminders))
        return reminders

    def generate_overdue_alerts(
        self,
        reference_time: date | datetime | None = None,
        payments: list[BillPayment] | None = None,
    ) -> list[Insight]:
        now = _as_datetime(reference_time or current_time())
        today = now.date()
        alerts: list[Insight] = []

        for payment in self._candidates(payments):
            if not is_overdue(payment, today):
                continue
            insight = self._build_alert(payment, today, now)
            if self._emit(insight, now):
                alerts.append(insight)

        if alerts:
            self._logger.info("overdue_alerts_emitted", count=len(alerts))
        return alerts

    def generate_budget_alerts(
        self,
        reference_time: date | datetime | None = None,
        budgets: list[Budget] | None = None,
    ) -> list[Insight]:
        """Alerts for running budgets at 75%, 90% or 100% of their limit."""
        now = _as_datetime(reference_time or current_time())
        if budgets is None:
            if self._budgets is None:
                return []
            budgets = self._budgets.get_budget_status(now)
        alerts: list[Insight] = []

        for budget in budgets:
            # not started yet or already ended
            if budget.period_start is None or budget.period_start >= budget.period_end:
                continue
            severity = alert_severity(budget.actual_spent, budget.amount)
            if severity is None:
                continue
            insight = self._build_budget_alert(budget, severity, now)
            if self._emit(insight, now):
                alerts.append(insight)

        if alerts:
            self._logger.info("budget_alerts_emitted", count=len(alerts))
        return alerts

    def dedup_slot(self, moment: datetime) -> int:
        return (moment - _EPOCH) // self._window

    def _candidates(self, payments: list[BillPayment] | None) -> list[BillPayment]:
        if payments is None:
            return self._payments.get_unpaid_for_active_bills()
        return [p for p in payments if p.bill_is_active]

    def _emit(self, insight: Insight, now: datetime) -> bool:
        """Append to the log unless the subject was notified within the window."""
        key = insight.subject_key
        if self._insights.exists_since(key, insight.type, now - self._window):
            self._logger.debug("notification_suppressed", subject=key, type=insight.type)
            return False
        if not self._insights.record(insight, self.dedup_slot(now)):
            self._logger.debug("notification_raced", subject=key, type=insight.type)
            return False
        return True

    def _payload(self, payment: BillPayment) -> dict:
        return {
            "bill_id": payment.bill_id,
            "payment_id": payment.id,
            "bill_name": payment.bill_name,
            "amount": payment.amount,
            "due_date": format_date(payment.due_date),
            "bill_type": payment.bill_type,
        }

    def _build_reminder(self, payment: BillPayment, today: date, now: datetime) -> Insight:
        days_away = days_until_due(payment, today)
        day_label = "today" if days_away == 0 else (
            "tomorrow" if days_away == 1 else f"in {days_away} days"
        )
        data = self._payload(payment)
        data["days_until_due"] = days_away
        return Insight(
            type=INSIGHT_BILL_REMINDER,
            title=f"{payment.bill_name} bill due {day_label}",
            description=(
                f"Your {payment.bill_name} bill "
                f"({format_currency(payment.amount, self._symbol)}) is due on "
                f"{payment.due_date.strftime('%b %d, %Y')}. Don't forget to pay!"
            ),
            payment_id=payment.id,
            bill_id=payment.bill_id,
            created_at=now,
            data=data,
        )

    def _build_alert(self, payment: BillPayment, today: date, now: datetime) -> Insight:
        days_overdue = abs(days_until_due(payment, today))
        data = self._payload(payment)
        data["days_overdue"] = days_overdue
        data["severity"] = SEVERITY_CRITICAL
        return Insight(
            type=INSIGHT_BILL_OVERDUE,
            title=f"Overdue: {payment.bill_name} bill",
            description=(
                f"Your {payment.bill_name} bill "
                f"({format_currency(payment.amount, self._symbol)}) was due on "
                f"{payment.due_date.strftime('%b %d, %Y')} and is now "
                f"{_plural_days(days_overdue)} overdue. Pay now to avoid late fees!"
            ),
            payment_id=payment.id,
            bill_id=payment.bill_id,
            created_at=now,
            data=data,
        )

    def _build_budget_alert(self, budget: Budget, severity: str, now: datetime) -> Insight:
        name = budget.category_name
        pct = budget.percent_used
        if severity == SEVERITY_CRITICAL:
            title = f"{name} budget exceeded"
            description = (
                f"You've exceeded your {budget.period} budget by "
                f"{self._money(-budget.remaining)}. Current spending: "
                f"{self._money(budget.actual_spent)} ({pct}% of {self._money(budget.amount)})."
            )
        elif severity == SEVERITY_HIGH:
            title = f"{name} budget almost exceeded"
            description = (
                f"You've used {pct}% of your {budget.period} budget. Only "
                f"{self._money(budget.remaining)} remaining out of {self._money(budget.amount)}."
            )
        else:
            title = f"{name} budget at {pct}%"
            description = (
                f"You've used {self._money(budget.actual_spent)} of your "
                f"{self._money(budget.amount)} {budget.period} budget. You have "
                f"{self._money(budget.remaining)} remaining."
            )
        return Insight(
            type=INSIGHT_BUDGET_ALERT,
            title=title,
            description=description,
            budget_id=budget.id,
            created_at=now,
            data={
                "budget_id": budget.id,
                "category_id": budget.category_id,
                "category_name": name,
                "percent_used": pct,
                "actual_spent": budget.actual_spent,
                "budget_amount": budget.amount,
                "period": budget.period,
                "period_start": format_date(budget.period_start),
                "period_end": format_date(budget.period_end),
                "severity": severity,
            },
        )

    def _money(self, amount: float) -> str:
        return format_currency(amount, self._symbol)
