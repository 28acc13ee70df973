from dataclasses import dataclass
from datetime import date
from typing import Optional


@dataclass
class Budget:
    id: int
    category_id: int
    category_name: str
    amount: float
    period: str              # 'weekly' | 'monthly' | 'yearly'
    start_date: date
    end_date: Optional[date] = None   # exclusive
    # read-time snapshot, never stored
    period_start: Optional[date] = None
    period_end: Optional[date] = None
    actual_spent: float = 0.0
    percent_used: int = 0
    status: str = "on_track"

    @property
    def remaining(self) -> float:
        # negative signals overage
        return self.amount - self.actual_spent
