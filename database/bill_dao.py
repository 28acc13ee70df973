from typing import Optional
from database.db_manager import DatabaseManager
from models.bill import Bill
from utils.date_helpers import parse_date, format_date

_COLUMNS = (
    "name", "amount", "cadence", "start_date", "end_date", "day_of_month",
    "day_of_week", "reminder_days_before", "bill_type", "category_id",
    "bank_id", "description", "notes", "auto_pay", "is_active",
)


class BillDAO:
    def __init__(self, db: DatabaseManager):
        self._db = db

    def _row_to_model(self, row) -> Bill:
        return Bill(
            id=row["id"],
            name=row["name"],
            amount=row["amount"],
            cadence=row["cadence"],
            start_date=parse_date(row["start_date"]),
            end_date=parse_date(row["end_date"]),
            is_active=bool(row["is_active"]),
            day_of_month=row["day_of_month"],
            day_of_week=row["day_of_week"],
            reminder_days_before=row["reminder_days_before"],
            bill_type=row["bill_type"],
            category_id=row["category_id"],
            bank_id=row["bank_id"],
            description=row["description"],
            notes=row["notes"],
            auto_pay=bool(row["auto_pay"]),
            category_name=row["category_name"] or "",
        )

    def _select(self) -> str:
        return """
            SELECT b.*,
                   c.name AS category_name
            FROM bills b
            LEFT JOIN categories c ON b.category_id = c.id
        """

    @staticmethod
    def _to_params(bill: Bill) -> tuple:
        return (
            bill.name, bill.amount, bill.cadence, format_date(bill.start_date),
            format_date(bill.end_date), bill.day_of_month, bill.day_of_week,
            bill.reminder_days_before, bill.bill_type, bill.category_id,
            bill.bank_id, bill.description, bill.notes,
            1 if bill.auto_pay else 0, 1 if bill.is_active else 0,
        )

    def get_all(self) -> list[Bill]:
        conn = self._db.get_connection()
        rows = conn.execute(self._select() + " ORDER BY b.name").fetchall()
        return [self._row_to_model(r) for r in rows]

    def get_active(self) -> list[Bill]:
        conn = self._db.get_connection()
        rows = conn.execute(
            self._select() + " WHERE b.is_active = 1 ORDER BY b.name"
        ).fetchall()
        return [self._row_to_model(r) for r in rows]

    def get_by_id(self, bill_id: int) -> Optional[Bill]:
        conn = self._db.get_connection()
        row = conn.execute(
            self._select() + " WHERE b.id = ?", (bill_id,)
        ).fetchone()
        return self._row_to_model(row) if row else None

    def create(self, bill: Bill) -> Bill:
        """Insert bill (its id is ignored) and return the stored row."""
        conn = self._db.get_connection()
        placeholders = ", ".join("?" * len(_COLUMNS))
        cursor = conn.execute(
            f"INSERT INTO bills ({', '.join(_COLUMNS)}) VALUES ({placeholders})",
            self._to_params(bill),
        )
        conn.commit()
        return self.get_by_id(cursor.lastrowid)

    def update(self, bill: Bill) -> Bill:
        conn = self._db.get_connection()
        assignments = ", ".join(f"{col}=?" for col in _COLUMNS)
        conn.execute(
            f"UPDATE bills SET {assignments} WHERE id=?",
            self._to_params(bill) + (bill.id,),
        )
        conn.commit()
        return self.get_by_id(bill.id)

    def set_active(self, bill_id: int, is_active: bool):
        conn = self._db.get_connection()
        conn.execute(
            "UPDATE bills SET is_active = ? WHERE id = ?",
            (1 if is_active else 0, bill_id),
        )
        conn.commit()

    def delete(self, bill_id: int):
        """Payments and their insights go with it (ON DELETE CASCADE)."""
        conn = self._db.get_connection()
        conn.execute("DELETE FROM bills WHERE id = ?", (bill_id,))
        conn.commit()

    def count(self, active_only: bool = False) -> int:
        conn = self._db.get_connection()
        sql = "SELECT COUNT(*) FROM bills"
        if active_only:
            sql += " WHERE is_active = 1"
        return conn.execute(sql).fetchone()[0]

    def count_active_by_type(self) -> dict[str, int]:
        conn = self._db.get_connection()
        rows = conn.execute(
            """SELECT bill_type, COUNT(*) AS n
               FROM bills WHERE is_active = 1
               GROUP BY bill_type"""
        ).fetchall()
        return {r["bill_type"]: r["n"] for r in rows}
