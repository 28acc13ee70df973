from datetime import date, datetime
from typing import Optional
from database.db_manager import DatabaseManager
from models.bill_payment import BillPayment
from utils.constants import STATUS_UPCOMING, STATUS_DUE_SOON, STATUS_PAID, STATUS_CANCELLED
from utils.date_helpers import parse_date, format_date, parse_timestamp, format_timestamp


class BillPaymentDAO:
    def __init__(self, db: DatabaseManager):
        self._db = db

    def _row_to_model(self, row) -> BillPayment:
        return BillPayment(
            id=row["id"],
            bill_id=row["bill_id"],
            due_date=parse_date(row["due_date"]),
            amount=row["amount"],
            status=row["status"],
            paid_date=parse_date(row["paid_date"]),
            paid_amount=row["paid_amount"],
            reminder_sent=bool(row["reminder_sent"]),
            reminder_sent_at=parse_timestamp(row["reminder_sent_at"]),
            transaction_id=row["transaction_id"],
            notes=row["notes"],
            bill_name=row["bill_name"],
            bill_type=row["bill_type"],
            reminder_days_before=row["reminder_days_before"],
            bill_is_active=bool(row["bill_is_active"]),
            category_id=row["category_id"],
        )

    def _select(self) -> str:
        return """
            SELECT p.*,
                   b.name AS bill_name,
                   b.bill_type,
                   b.reminder_days_before,
                   b.is_active AS bill_is_active,
                   b.category_id
            FROM bill_payments p
            JOIN bills b ON p.bill_id = b.id
        """

    def get_by_id(self, payment_id: int) -> Optional[BillPayment]:
        conn = self._db.get_connection()
        row = conn.execute(
            self._select() + " WHERE p.id = ?", (payment_id,)
        ).fetchone()
        return self._row_to_model(row) if row else None

    def get_by_bill(self, bill_id: int) -> list[BillPayment]:
        conn = self._db.get_connection()
        rows = conn.execute(
            self._select() + " WHERE p.bill_id = ? ORDER BY p.due_date",
            (bill_id,),
        ).fetchall()
        return [self._row_to_model(r) for r in rows]

    def get_unpaid_for_active_bills(
        self,
        due_from: date | None = None,
        due_to: date | None = None,
    ) -> list[BillPayment]:
        """Instances not yet paid/cancelled whose bill is active, optional due range."""
        conn = self._db.get_connection()
        sql = self._select() + " WHERE b.is_active = 1 AND p.status NOT IN (?, ?)"
        params: list = [STATUS_PAID, STATUS_CANCELLED]
        if due_from is not None:
            sql += " AND p.due_date >= ?"
            params.append(format_date(due_from))
        if due_to is not None:
            sql += " AND p.due_date <= ?"
            params.append(format_date(due_to))
        sql += " ORDER BY p.due_date, p.id"
        rows = conn.execute(sql, params).fetchall()
        return [self._row_to_model(r) for r in rows]

    def get_due_dates(self, bill_id: int) -> set[date]:
        conn = self._db.get_connection()
        rows = conn.execute(
            "SELECT due_date FROM bill_payments WHERE bill_id = ?", (bill_id,)
        ).fetchall()
        return {parse_date(r["due_date"]) for r in rows}

    def count_for_bill(self, bill_id: int) -> int:
        conn = self._db.get_connection()
        return conn.execute(
            "SELECT COUNT(*) FROM bill_payments WHERE bill_id = ?", (bill_id,)
        ).fetchone()[0]

    def create_if_absent(self, bill_id: int, due_date: date, amount: float) -> bool:
        """Insert an upcoming instance. False when (bill_id, due_date) already exists."""
        conn = self._db.get_connection()
        cursor = conn.execute(
            """INSERT INTO bill_payments(bill_id, due_date, amount, status)
               VALUES (?, ?, ?, ?)
               ON CONFLICT(bill_id, due_date) DO NOTHING""",
            (bill_id, format_date(due_date), amount, STATUS_UPCOMING),
        )
        conn.commit()
        return cursor.rowcount == 1

    def delete_future_unpaid(self, bill_id: int, from_date: date) -> int:
        """Drop upcoming/due-soon instances due on or after from_date."""
        conn = self._db.get_connection()
        cursor = conn.execute(
            """DELETE FROM bill_payments
               WHERE bill_id = ?
                 AND status IN (?, ?)
                 AND due_date >= ?""",
            (bill_id, STATUS_UPCOMING, STATUS_DUE_SOON, format_date(from_date)),
        )
        conn.commit()
        return cursor.rowcount

    def mark_reminder_sent(self, payment_id: int, sent_at: datetime):
        conn = self._db.get_connection()
        conn.execute(
            "UPDATE bill_payments SET reminder_sent = 1, reminder_sent_at = ? WHERE id = ?",
            (format_timestamp(sent_at), payment_id),
        )
        conn.commit()

    def mark_paid(
        self,
        payment_id: int,
        paid_date: date,
        paid_amount: float,
        transaction_id: int | None,
        notes: str | None = None,
    ) -> bool:
        """Move an open instance to paid. False if it was already paid or cancelled."""
        conn = self._db.get_connection()
        cursor = conn.execute(
            """UPDATE bill_payments SET
               status = ?, paid_date = ?, paid_amount = ?, transaction_id = ?,
               notes = COALESCE(?, notes)
               WHERE id = ? AND status NOT IN (?, ?)""",
            (
                STATUS_PAID, format_date(paid_date), paid_amount, transaction_id, notes,
                payment_id, STATUS_PAID, STATUS_CANCELLED,
            ),
        )
        conn.commit()
        return cursor.rowcount == 1

    def set_status(self, payment_id: int, status: str):
        conn = self._db.get_connection()
        conn.execute(
            "UPDATE bill_payments SET status = ? WHERE id = ?", (status, payment_id)
        )
        conn.commit()

    def delete_paid_before(self, cutoff: date) -> int:
        conn = self._db.get_connection()
        cursor = conn.execute(
            "DELETE FROM bill_payments WHERE status = ? AND paid_date < ?",
            (STATUS_PAID, format_date(cutoff)),
        )
        conn.commit()
        return cursor.rowcount
