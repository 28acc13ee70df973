from dataclasses import dataclass
from datetime import date
from typing import Optional

from models.recurrence_rule import RecurrenceRule


@dataclass
class Bill:
    id: int
    name: str
    amount: float
    cadence: str
    start_date: date
    is_active: bool = True
    end_date: Optional[date] = None
    day_of_month: Optional[int] = None
    day_of_week: Optional[int] = None
    reminder_days_before: int = 3
    bill_type: str = "other"
    category_id: Optional[int] = None
    bank_id: Optional[str] = None        # opaque reference, never inspected
    description: str = ""
    notes: str = ""
    auto_pay: bool = False
    category_name: str = ""

    @property
    def rule(self) -> RecurrenceRule:
        return RecurrenceRule(
            cadence=self.cadence,
            anchor_date=self.start_date,
            end_date=self.end_date,
            day_of_month=self.day_of_month,
            day_of_week=self.day_of_week,
        )
