import os
import sqlite3
import threading
from utils.constants import (
    DB_FILE,
    DEFAULT_CATEGORIES,
    DEFAULT_CURRENCY_SYMBOL,
    DEFAULT_HORIZON_COUNT,
    DEDUP_WINDOW_HOURS,
    DUE_SOON_DAYS,
    PAYMENT_RETENTION_MONTHS,
)


class DatabaseManager:
    def __init__(self, db_path: str | None = None):
        self.db_path = db_path or DB_FILE
        self._conn: sqlite3.Connection | None = None
        # Serializes multi-statement write units (e.g. reconciling one bill)
        self.write_lock = threading.RLock()

    def get_connection(self) -> sqlite3.Connection:
        if self._conn is None:
            self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
            self._conn.row_factory = sqlite3.Row
            self._conn.execute("PRAGMA foreign_keys = ON")
            self._conn.execute("PRAGMA journal_mode = WAL")
        return self._conn

    def initialize(self):
        """Create schema and seed defaults."""
        conn = self.get_connection()
        self._create_schema(conn)
        self._seed_defaults(conn)
        conn.commit()

    def _create_schema(self, conn: sqlite3.Connection):
        conn.executescript("""
            CREATE TABLE IF NOT EXISTS categories (
                id         INTEGER PRIMARY KEY AUTOINCREMENT,
                name       TEXT NOT NULL UNIQUE,
                type       TEXT NOT NULL CHECK(type IN ('income','expense','both')),
                is_system  INTEGER NOT NULL DEFAULT 0
            );

            CREATE TABLE IF NOT EXISTS bills (
                id                   INTEGER PRIMARY KEY AUTOINCREMENT,
                name                 TEXT NOT NULL,
                amount               REAL NOT NULL CHECK(amount > 0),
                cadence              TEXT NOT NULL CHECK(cadence IN
                    ('one_time','weekly','biweekly','monthly','quarterly','semi_annual','annual')),
                start_date           TEXT NOT NULL,
                end_date             TEXT,
                day_of_month         INTEGER CHECK(day_of_month BETWEEN 1 AND 31),
                day_of_week          INTEGER CHECK(day_of_week BETWEEN 0 AND 6),
                reminder_days_before INTEGER NOT NULL DEFAULT 3,
                bill_type            TEXT NOT NULL DEFAULT 'other',
                category_id          INTEGER REFERENCES categories(id) ON DELETE SET NULL,
                bank_id              TEXT,
                description          TEXT NOT NULL DEFAULT '',
                notes                TEXT NOT NULL DEFAULT '',
                auto_pay             INTEGER NOT NULL DEFAULT 0,
                is_active            INTEGER NOT NULL DEFAULT 1,
                created_at           TEXT NOT NULL DEFAULT (datetime('now'))
            );

            CREATE TABLE IF NOT EXISTS transactions (
                id          INTEGER PRIMARY KEY AUTOINCREMENT,
                type        TEXT NOT NULL CHECK(type IN ('income','expense')),
                amount      REAL NOT NULL CHECK(amount > 0),
                category_id INTEGER REFERENCES categories(id) ON DELETE RESTRICT,
                bank_id     TEXT,
                description TEXT NOT NULL DEFAULT '',
                notes       TEXT NOT NULL DEFAULT '',
                date        TEXT NOT NULL,
                created_at  TEXT NOT NULL DEFAULT (datetime('now'))
            );

            CREATE TABLE IF NOT EXISTS bill_payments (
                id               INTEGER PRIMARY KEY AUTOINCREMENT,
                bill_id          INTEGER NOT NULL REFERENCES bills(id) ON DELETE CASCADE,
                due_date         TEXT NOT NULL,
                amount           REAL NOT NULL,
                status           TEXT NOT NULL DEFAULT 'upcoming' CHECK(status IN
                    ('upcoming','due_soon','overdue','paid','cancelled')),
                paid_date        TEXT,
                paid_amount      REAL,
                reminder_sent    INTEGER NOT NULL DEFAULT 0,
                reminder_sent_at TEXT,
                transaction_id   INTEGER REFERENCES transactions(id) ON DELETE SET NULL,
                notes            TEXT NOT NULL DEFAULT '',
                UNIQUE(bill_id, due_date)
            );

            CREATE TABLE IF NOT EXISTS budgets (
                id          INTEGER PRIMARY KEY AUTOINCREMENT,
                category_id INTEGER NOT NULL REFERENCES categories(id) ON DELETE CASCADE,
                amount      REAL NOT NULL CHECK(amount > 0),
                period      TEXT NOT NULL CHECK(period IN ('weekly','monthly','yearly')),
                start_date  TEXT NOT NULL,
                end_date    TEXT
            );

            -- subject_key is 'payment:<id>' or 'budget:<id>'; dedup_slot is
            -- created_at floored to the dedup window
            CREATE TABLE IF NOT EXISTS insights (
                id          INTEGER PRIMARY KEY AUTOINCREMENT,
                type        TEXT NOT NULL,
                subject_key TEXT NOT NULL,
                payment_id  INTEGER REFERENCES bill_payments(id) ON DELETE CASCADE,
                bill_id     INTEGER,
                budget_id   INTEGER REFERENCES budgets(id) ON DELETE CASCADE,
                title       TEXT NOT NULL,
                description TEXT NOT NULL DEFAULT '',
                data        TEXT NOT NULL DEFAULT '{}',
                created_at  TEXT NOT NULL,
                dedup_slot  INTEGER NOT NULL,
                UNIQUE(subject_key, type, dedup_slot)
            );

            CREATE TABLE IF NOT EXISTS app_settings (
                key   TEXT PRIMARY KEY,
                value TEXT NOT NULL
            );

            CREATE INDEX IF NOT EXISTS idx_bill_payments_due_date  ON bill_payments(due_date);
            CREATE INDEX IF NOT EXISTS idx_transactions_category   ON transactions(category_id, date);
            CREATE INDEX IF NOT EXISTS idx_budgets_category_period ON budgets(category_id, period);
            CREATE INDEX IF NOT EXISTS idx_insights_lookup         ON insights(subject_key, type, created_at);
        """)

    def _seed_defaults(self, conn: sqlite3.Connection):
        defaults = [
            ("horizon_count", str(DEFAULT_HORIZON_COUNT)),
            ("due_soon_days", str(DUE_SOON_DAYS)),
            ("dedup_window_hours", str(DEDUP_WINDOW_HOURS)),
            ("currency_symbol", DEFAULT_CURRENCY_SYMBOL),
            ("payment_retention_months", str(PAYMENT_RETENTION_MONTHS)),
        ]
        for key, value in defaults:
            conn.execute(
                "INSERT OR IGNORE INTO app_settings(key, value) VALUES (?, ?)",
                (key, value),
            )

        for cat in DEFAULT_CATEGORIES:
            conn.execute(
                """INSERT OR IGNORE INTO categories(name, type, is_system)
                   VALUES (?, ?, ?)""",
                (cat["name"], cat["type"], cat["is_system"]),
            )

    def get_setting(self, key: str, default: str = "") -> str:
        conn = self.get_connection()
        row = conn.execute(
            "SELECT value FROM app_settings WHERE key = ?", (key,)
        ).fetchone()
        return row["value"] if row else default

    def get_int_setting(self, key: str, default: int) -> int:
        try:
            return int(self.get_setting(key, str(default)))
        except ValueError:
            return default

    def set_setting(self, key: str, value: str):
        conn = self.get_connection()
        conn.execute(
            "INSERT OR REPLACE INTO app_settings(key, value) VALUES (?, ?)",
            (key, value),
        )
        conn.commit()

    def get_category_id(self, name: str) -> int | None:
        row = self.get_connection().execute(
            "SELECT id FROM categories WHERE name = ?", (name,)
        ).fetchone()
        return row["id"] if row else None

    @staticmethod
    def open(db_folder: str | None = None) -> "DatabaseManager":
        """Startup factory: opens (creating if needed) the DB in db_folder or CWD."""
        path = os.path.join(db_folder, DB_FILE) if db_folder else DB_FILE
        db = DatabaseManager(path)
        db.initialize()
        return db

    def close(self):
        if self._conn:
            self._conn.close()
            self._conn = None
