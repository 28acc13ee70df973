from dataclasses import dataclass
from datetime import date
from typing import Optional


@dataclass
class Transaction:
    id: int
    type: str               # 'income' | 'expense'
    amount: float
    category_id: Optional[int]
    date: date
    description: str = ""
    notes: str = ""
    bank_id: Optional[str] = None
    created_at: str = ""
