from datetime import date
from typing import Optional
from database.db_manager import DatabaseManager
from models.budget import Budget
from utils.date_helpers import parse_date, format_date


class BudgetDAO:
    def __init__(self, db: DatabaseManager):
        self._db = db

    def _row_to_model(self, row) -> Budget:
        return Budget(
            id=row["id"],
            category_id=row["category_id"],
            category_name=row["category_name"] if "category_name" in row.keys() else "",
            amount=row["amount"],
            period=row["period"],
            start_date=parse_date(row["start_date"]),
            end_date=parse_date(row["end_date"]),
        )

    def _select(self) -> str:
        return """
            SELECT b.*, c.name AS category_name
            FROM budgets b
            JOIN categories c ON b.category_id = c.id
        """

    def get_all(self) -> list[Budget]:
        conn = self._db.get_connection()
        rows = conn.execute(
            self._select() + " ORDER BY c.name, b.start_date"
        ).fetchall()
        return [self._row_to_model(r) for r in rows]

    def get_by_id(self, budget_id: int) -> Optional[Budget]:
        conn = self._db.get_connection()
        row = conn.execute(
            self._select() + " WHERE b.id = ?", (budget_id,)
        ).fetchone()
        return self._row_to_model(row) if row else None

    def find_overlapping(
        self,
        category_id: int,
        period: str,
        start_date: date,
        end_date: date | None,
    ) -> Optional[Budget]:
        """First budget for (category, period) whose [start, end) meets the given range."""
        conn = self._db.get_connection()
        sql = self._select() + """
            WHERE b.category_id = ? AND b.period = ?
              AND (b.end_date IS NULL OR b.end_date > ?)
        """
        params: list = [category_id, period, format_date(start_date)]
        if end_date is not None:
            sql += " AND b.start_date < ?"
            params.append(format_date(end_date))
        row = conn.execute(sql + " LIMIT 1", params).fetchone()
        return self._row_to_model(row) if row else None

    def create(
        self,
        category_id: int,
        amount: float,
        period: str,
        start_date: date,
        end_date: date | None = None,
    ) -> Budget:
        conn = self._db.get_connection()
        cursor = conn.execute(
            """INSERT INTO budgets(category_id, amount, period, start_date, end_date)
               VALUES (?, ?, ?, ?, ?)""",
            (category_id, amount, period, format_date(start_date), format_date(end_date)),
        )
        conn.commit()
        return self.get_by_id(cursor.lastrowid)

    def delete(self, budget_id: int):
        conn = self._db.get_connection()
        conn.execute("DELETE FROM budgets WHERE id = ?", (budget_id,))
        conn.commit()
