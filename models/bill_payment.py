from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional


@dataclass
class UpcomingPayment:
    due_date: date
    amount: float


@dataclass
class BillPayment:
    id: int
    bill_id: int
    due_date: date
    amount: float
    status: str                               # persisted lifecycle, see PAYMENT_STATUSES
    paid_date: Optional[date] = None
    paid_amount: Optional[float] = None
    reminder_sent: bool = False
    reminder_sent_at: Optional[datetime] = None
    transaction_id: Optional[int] = None
    notes: str = ""
    # joined from bills
    bill_name: str = ""
    bill_type: str = "other"
    reminder_days_before: int = 3
    bill_is_active: bool = True
    category_id: Optional[int] = None
