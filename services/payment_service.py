import dataclasses
from datetime import date, datetime, timedelta

import structlog

from database.bill_dao import BillDAO
from database.bill_payment_dao import BillPaymentDAO
from database.db_manager import DatabaseManager
from database.transaction_dao import TransactionDAO
from models.bill_payment import BillPayment
from models.transaction import Transaction
from services.payment_status import classify, is_overdue
from utils.constants import (
    DUE_SOON_DAYS,
    PAYMENT_RETENTION_MONTHS,
    STATUS_CANCELLED,
    STATUS_PAID,
    UPCOMING_LOOKAHEAD_DAYS,
)
from utils.date_helpers import add_months, now as current_time, to_day
from utils.errors import PaymentNotFoundError, PaymentStateError

logger = structlog.get_logger(__name__)


@dataclasses.dataclass
class BillStats:
    total_bills: int
    active_bills: int
    upcoming_payments: int
    overdue_payments: int
    upcoming_total: float
    overdue_total: float
    by_type: dict[str, int]


class PaymentService:
    def __init__(
        self,
        db: DatabaseManager,
        payment_dao: BillPaymentDAO,
        bill_dao: BillDAO,
        tx_dao: TransactionDAO,
        due_soon_days: int = DUE_SOON_DAYS,
    ):
        self._db = db
        self._payments = payment_dao
        self._bills = bill_dao
        self._tx_dao = tx_dao
        self._due_soon_days = due_soon_days
        self._logger = logger.bind(component="payment_service")

    def get_payments(
        self, bill_id: int, reference_time: date | datetime | None = None
    ) -> list[BillPayment]:
        """All payments of a bill, status classified with the bill's own reminder window."""
        today = to_day(reference_time or current_time())
        return [
            dataclasses.replace(p, status=classify(p, today, p.reminder_days_before))
            for p in self._payments.get_by_bill(bill_id)
        ]

    def get_upcoming(
        self,
        reference_time: date | datetime | None = None,
        days: int = UPCOMING_LOOKAHEAD_DAYS,
    ) -> list[BillPayment]:
        """Unpaid payments of active bills due within `days`, using the generic window."""
        today = to_day(reference_time or current_time())
        payments = self._payments.get_unpaid_for_active_bills(today, today + timedelta(days=days))
        return [
            dataclasses.replace(p, status=classify(p, today, self._due_soon_days))
            for p in payments
        ]

    def get_overdue(self, reference_time: date | datetime | None = None) -> list[BillPayment]:
        today = to_day(reference_time or current_time())
        return [
            dataclasses.replace(p, status=classify(p, today, p.reminder_days_before))
            for p in self._payments.get_unpaid_for_active_bills()
            if is_overdue(p, today)
        ]

    def mark_paid(
        self,
        payment_id: int,
        paid_amount: float,
        paid_date: date,
        bank_id: str | None = None,
        notes: str | None = None,
    ) -> tuple[BillPayment, Transaction]:
        """Record the payment and book a matching expense transaction.

        Paid is terminal: a paid or cancelled instance cannot be paid again.
        The state check and both writes run under the write lock, and the
        status update only applies to an open instance, so a concurrent
        payment never books a second transaction.
        """
        if paid_amount <= 0:
            raise ValueError("Paid amount must be positive.")

        with self._db.write_lock:
            payment = self._require(payment_id)
            self._check_payable(payment)
            tx = self._tx_dao.create(
                type_="expense",
                amount=paid_amount,
                date_=to_day(paid_date),
                category_id=payment.category_id,
                description=f"Bill Payment: {payment.bill_name}",
                notes=notes or f"Payment for {payment.bill_name} bill",
                bank_id=bank_id,
            )
            if not self._payments.mark_paid(payment.id, to_day(paid_date), paid_amount, tx.id, notes):
                self._tx_dao.delete(tx.id)
                self._logger.warning("payment_already_settled", payment_id=payment.id)
                raise PaymentStateError("Bill payment was settled by another request.")
            paid = self._payments.get_by_id(payment.id)

        self._logger.info(
            "payment_marked_paid",
            payment_id=payment.id,
            bill_id=payment.bill_id,
            transaction_id=tx.id,
        )
        return paid, tx

    def cancel(self, payment_id: int) -> BillPayment:
        with self._db.write_lock:
            payment = self._require(payment_id)
            if payment.status == STATUS_PAID:
                raise PaymentStateError("Paid bill payments cannot be cancelled.")
            if payment.status != STATUS_CANCELLED:
                self._payments.set_status(payment.id, STATUS_CANCELLED)
                self._logger.info("payment_cancelled", payment_id=payment.id)
        return self._payments.get_by_id(payment.id)

    def upcoming_total(self, start: date, end: date) -> float:
        """Sum of unpaid payments of active bills due in [start, end]."""
        return sum(
            p.amount
            for p in self._payments.get_unpaid_for_active_bills(to_day(start), to_day(end))
        )

    def get_stats(self, reference_time: date | datetime | None = None) -> BillStats:
        today = to_day(reference_time or current_time())
        unpaid = self._payments.get_unpaid_for_active_bills()
        horizon = today + timedelta(days=UPCOMING_LOOKAHEAD_DAYS)
        upcoming = [p for p in unpaid if today <= p.due_date <= horizon]
        overdue = [p for p in unpaid if is_overdue(p, today)]
        return BillStats(
            total_bills=self._bills.count(),
            active_bills=self._bills.count(active_only=True),
            upcoming_payments=len(upcoming),
            overdue_payments=len(overdue),
            upcoming_total=sum(p.amount for p in upcoming),
            overdue_total=sum(p.amount for p in overdue),
            by_type=self._bills.count_active_by_type(),
        )

    def cleanup_old_payments(
        self,
        reference_time: date | datetime | None = None,
        months_to_keep: int = PAYMENT_RETENTION_MONTHS,
    ) -> int:
        """Delete paid payments whose paid date is older than the retention window."""
        today = to_day(reference_time or current_time())
        cutoff = add_months(today, -months_to_keep)
        removed = self._payments.delete_paid_before(cutoff)
        if removed:
            self._logger.info("paid_payments_purged", removed=removed, cutoff=str(cutoff))
        return removed

    def _require(self, payment_id: int) -> BillPayment:
        payment = self._payments.get_by_id(payment_id)
        if payment is None:
            raise PaymentNotFoundError(f"Bill payment {payment_id} not found.")
        return payment

    @staticmethod
    def _check_payable(payment: BillPayment):
        if payment.status == STATUS_PAID:
            raise PaymentStateError("Bill payment is already marked as paid.")
        if payment.status == STATUS_CANCELLED:
            raise PaymentStateError("Cancelled bill payments cannot be paid.")
