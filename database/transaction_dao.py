from datetime import date
from typing import Optional
from database.db_manager import DatabaseManager
from models.transaction import Transaction
from utils.date_helpers import parse_date, format_date


class TransactionDAO:
    def __init__(self, db: DatabaseManager):
        self._db = db

    def _row_to_model(self, row) -> Transaction:
        return Transaction(
            id=row["id"],
            type=row["type"],
            amount=row["amount"],
            category_id=row["category_id"],
            date=parse_date(row["date"]),
            description=row["description"],
            notes=row["notes"],
            bank_id=row["bank_id"],
            created_at=row["created_at"],
        )

    def get_by_id(self, tx_id: int) -> Optional[Transaction]:
        conn = self._db.get_connection()
        row = conn.execute(
            "SELECT * FROM transactions WHERE id = ?", (tx_id,)
        ).fetchone()
        return self._row_to_model(row) if row else None

    def create(
        self,
        type_: str,
        amount: float,
        date_: date,
        category_id: int | None = None,
        description: str = "",
        notes: str = "",
        bank_id: str | None = None,
    ) -> Transaction:
        conn = self._db.get_connection()
        cursor = conn.execute(
            """INSERT INTO transactions
               (type, amount, category_id, bank_id, description, notes, date)
               VALUES (?, ?, ?, ?, ?, ?, ?)""",
            (type_, amount, category_id, bank_id, description, notes, format_date(date_)),
        )
        conn.commit()
        return self.get_by_id(cursor.lastrowid)

    def delete(self, tx_id: int):
        conn = self._db.get_connection()
        conn.execute("DELETE FROM transactions WHERE id = ?", (tx_id,))
        conn.commit()

    def sum_expenses(self, category_id: int, start: date, end: date) -> float:
        """Total expense amount for a category over the half-open range [start, end)."""
        conn = self._db.get_connection()
        row = conn.execute(
            """SELECT COALESCE(SUM(amount), 0) AS total
               FROM transactions
               WHERE type = 'expense'
                 AND category_id = ?
                 AND date >= ?
                 AND date < ?""",
            (category_id, format_date(start), format_date(end)),
        ).fetchone()
        return float(row["total"])
