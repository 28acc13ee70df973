import dataclasses
from datetime import date, datetime

import structlog

from database.bill_dao import BillDAO
from database.bill_payment_dao import BillPaymentDAO
from database.db_manager import DatabaseManager
from models.bill import Bill
from services.recurrence_calculator import generate_horizon
from utils.constants import (
    BILL_TYPES,
    CADENCES,
    DEFAULT_HORIZON_COUNT,
    DEFAULT_REMINDER_DAYS_BEFORE,
    MAX_REMINDER_DAYS_BEFORE,
    MONTH_INTERVALS,
    MONTHLY,
    ONE_TIME,
    SCHEDULE_FIELDS,
    WEEK_INTERVALS,
)
from utils.date_helpers import now as current_time, to_day
from utils.errors import BillNotFoundError, InvalidRuleError

logger = structlog.get_logger(__name__)


class BillService:
    def __init__(
        self,
        db: DatabaseManager,
        bill_dao: BillDAO,
        payment_dao: BillPaymentDAO,
        horizon_count: int = DEFAULT_HORIZON_COUNT,
    ):
        self._db = db
        self._dao = bill_dao
        self._payments = payment_dao
        self._horizon_count = horizon_count
        self._logger = logger.bind(component="bill_service")

    def get_all(self) -> list[Bill]:
        return self._dao.get_all()

    def get_active(self) -> list[Bill]:
        return self._dao.get_active()

    def get_by_id(self, bill_id: int) -> Bill | None:
        return self._dao.get_by_id(bill_id)

    def create(
        self,
        name: str,
        amount: float,
        cadence: str,
        start_date: date,
        end_date: date | None = None,
        day_of_month: int | None = None,
        day_of_week: int | None = None,
        reminder_days_before: int = DEFAULT_REMINDER_DAYS_BEFORE,
        bill_type: str = "other",
        category_id: int | None = None,
        bank_id: str | None = None,
        description: str = "",
        notes: str = "",
        auto_pay: bool = False,
        reference_time: date | datetime | None = None,
    ) -> Bill:
        """Validate and store a bill, then materialize its first payments."""
        bill = Bill(
            id=0, name=name, amount=amount, cadence=cadence,
            start_date=start_date, end_date=end_date,
            day_of_month=day_of_month, day_of_week=day_of_week,
            reminder_days_before=reminder_days_before, bill_type=bill_type,
            category_id=category_id, bank_id=bank_id, description=description,
            notes=notes, auto_pay=auto_pay,
        )
        self._validate(bill)
        bill = self._dao.create(bill)
        self._logger.info("bill_created", bill_id=bill.id, cadence=bill.cadence)
        self.reconcile(bill, reference_time)
        return bill

    def update(
        self,
        bill_id: int,
        reference_time: date | datetime | None = None,
        **changes,
    ) -> Bill:
        """Apply field changes.

        A change to any schedule field drops the bill's future unpaid
        payments and regenerates them from the new rule. Paid, cancelled
        and past instances are left alone.
        """
        ref = reference_time or current_time()
        old = self._require(bill_id)
        editable = {f.name for f in dataclasses.fields(Bill)} - {"id", "category_name"}
        unknown = set(changes) - editable
        if unknown:
            raise InvalidRuleError(f"Unknown bill fields: {', '.join(sorted(unknown))}")

        new = dataclasses.replace(old, **changes)
        self._validate(new)
        schedule_changed = any(getattr(old, f) != getattr(new, f) for f in SCHEDULE_FIELDS)

        with self._db.write_lock:
            bill = self._dao.update(new)
            if schedule_changed:
                removed = self._payments.delete_future_unpaid(bill.id, to_day(ref))
                self._logger.info("schedule_changed", bill_id=bill.id, removed=removed)
                self.reconcile(bill, ref)
            elif bill.is_active and not old.is_active:
                self.reconcile(bill, ref)
        return bill

    def set_active(self, bill_id: int, is_active: bool, reference_time: date | datetime | None = None):
        self._require(bill_id)
        self._dao.set_active(bill_id, is_active)
        if is_active:
            self.reconcile(self._dao.get_by_id(bill_id), reference_time)

    def delete(self, bill_id: int):
        self._dao.delete(bill_id)
        self._logger.info("bill_deleted", bill_id=bill_id)

    def reconcile(
        self,
        bill: Bill,
        reference_time: date | datetime | None = None,
        count: int | None = None,
    ) -> int:
        """Make sure the next `count` payments of an active bill exist.

        Returns the number of instances created; 0 when nothing was missing,
        so repeated calls without elapsed time are no-ops.
        """
        if not bill.is_active:
            return 0
        ref = reference_time or current_time()
        count = count or self._horizon_count

        created = 0
        with self._db.write_lock:
            if bill.cadence == ONE_TIME and self._payments.count_for_bill(bill.id) > 0:
                return 0

            existing = self._payments.get_due_dates(bill.id)
            for upcoming in generate_horizon(bill.rule, bill.amount, ref, count):
                if upcoming.due_date in existing:
                    continue
                # False means a concurrent pass inserted it first
                if self._payments.create_if_absent(bill.id, upcoming.due_date, upcoming.amount):
                    created += 1

        if created:
            self._logger.info("payments_created", bill_id=bill.id, created=created)
        return created

    def reconcile_all(self, reference_time: date | datetime | None = None) -> int:
        ref = reference_time or current_time()
        return sum(self.reconcile(bill, ref) for bill in self._dao.get_active())

    def _require(self, bill_id: int) -> Bill:
        bill = self._dao.get_by_id(bill_id)
        if bill is None:
            raise BillNotFoundError(f"Bill {bill_id} not found.")
        return bill

    def _validate(self, bill: Bill):
        if not bill.name.strip():
            raise InvalidRuleError("Name cannot be empty.")
        if bill.amount <= 0:
            raise InvalidRuleError("Amount must be positive.")
        if bill.cadence not in CADENCES:
            raise InvalidRuleError("Invalid cadence.")
        if not isinstance(bill.start_date, date):
            raise InvalidRuleError("Invalid start date.")
        if bill.end_date is not None and to_day(bill.end_date) < to_day(bill.start_date):
            raise InvalidRuleError("End date cannot be before start date.")

        if bill.day_of_month is not None:
            if bill.cadence not in MONTH_INTERVALS:
                raise InvalidRuleError("Day of month only applies to month-based cadences.")
            if not 1 <= bill.day_of_month <= 31:
                raise InvalidRuleError("Day of month must be between 1 and 31.")
        elif bill.cadence == MONTHLY:
            raise InvalidRuleError("Monthly bills need a day of month.")

        if bill.day_of_week is not None:
            if bill.cadence not in WEEK_INTERVALS:
                raise InvalidRuleError("Day of week only applies to weekly cadences.")
            if not 0 <= bill.day_of_week <= 6:
                raise InvalidRuleError("Day of week must be between 0 and 6.")

        if not 0 <= bill.reminder_days_before <= MAX_REMINDER_DAYS_BEFORE:
            raise InvalidRuleError(
                f"Reminder days must be between 0 and {MAX_REMINDER_DAYS_BEFORE}."
            )
        if bill.bill_type not in BILL_TYPES:
            raise InvalidRuleError("Invalid bill type.")
