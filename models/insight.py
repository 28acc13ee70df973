from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional


@dataclass
class Insight:
    type: str           # 'bill_reminder' | 'bill_overdue' | 'budget_alert'
    title: str
    description: str
    created_at: datetime
    data: dict = field(default_factory=dict)
    payment_id: Optional[int] = None
    bill_id: Optional[int] = None
    budget_id: Optional[int] = None
    id: Optional[int] = None

    @property
    def subject_key(self) -> str:
        """What the event is about; the dedup unit together with type."""
        if self.budget_id is not None:
            return f"budget:{self.budget_id}"
        return f"payment:{self.payment_id}"
