from dataclasses import dataclass
from datetime import date
from typing import Optional


@dataclass(frozen=True)
class RecurrenceRule:
    cadence: str                         # see utils.constants.CADENCES
    anchor_date: date                    # first possible occurrence
    end_date: Optional[date] = None      # inclusive, day granularity
    day_of_month: Optional[int] = None   # 1-31, monthly family only
    day_of_week: Optional[int] = None    # 0=Sun..6=Sat, weekly family only
