import json
import sqlite3
from datetime import datetime
from database.db_manager import DatabaseManager
from models.insight import Insight
from utils.date_helpers import format_timestamp, parse_timestamp


class InsightDAO:
    """Append-only log of emitted notifications, one per subject/type/dedup slot."""

    def __init__(self, db: DatabaseManager):
        self._db = db

    def _row_to_model(self, row) -> Insight:
        return Insight(
            id=row["id"],
            type=row["type"],
            title=row["title"],
            description=row["description"],
            payment_id=row["payment_id"],
            bill_id=row["bill_id"],
            budget_id=row["budget_id"],
            created_at=parse_timestamp(row["created_at"]),
            data=json.loads(row["data"]),
        )

    def record(self, insight: Insight, dedup_slot: int) -> bool:
        """Insert the event. False if this subject/type already has one in the slot."""
        conn = self._db.get_connection()
        try:
            cursor = conn.execute(
                """INSERT INTO insights
                   (type, subject_key, payment_id, bill_id, budget_id,
                    title, description, data, created_at, dedup_slot)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                (
                    insight.type, insight.subject_key, insight.payment_id,
                    insight.bill_id, insight.budget_id,
                    insight.title, insight.description, json.dumps(insight.data),
                    format_timestamp(insight.created_at), dedup_slot,
                ),
            )
        except sqlite3.IntegrityError:
            conn.rollback()
            return False
        conn.commit()
        insight.id = cursor.lastrowid
        return True

    def exists_since(self, subject_key: str, type_: str, since: datetime) -> bool:
        """True if an event was logged strictly after `since`."""
        conn = self._db.get_connection()
        row = conn.execute(
            """SELECT 1 FROM insights
               WHERE subject_key = ? AND type = ? AND created_at > ?
               LIMIT 1""",
            (subject_key, type_, format_timestamp(since)),
        ).fetchone()
        return row is not None

    def get_recent(self, limit: int = 50) -> list[Insight]:
        conn = self._db.get_connection()
        rows = conn.execute(
            "SELECT * FROM insights ORDER BY created_at DESC, id DESC LIMIT ?",
            (limit,),
        ).fetchall()
        return [self._row_to_model(r) for r in rows]

    def get_by_payment(self, payment_id: int) -> list[Insight]:
        conn = self._db.get_connection()
        rows = conn.execute(
            "SELECT * FROM insights WHERE payment_id = ? ORDER BY created_at, id",
            (payment_id,),
        ).fetchall()
        return [self._row_to_model(r) for r in rows]

    def get_by_budget(self, budget_id: int) -> list[Insight]:
        conn = self._db.get_connection()
        rows = conn.execute(
            "SELECT * FROM insights WHERE budget_id = ? ORDER BY created_at, id",
            (budget_id,),
        ).fetchall()
        return [self._row_to_model(r) for r in rows]
