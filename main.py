import os
import sys

import structlog

# Ensure project root is on sys.path when run directly
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from database.db_manager import DatabaseManager
from database.bill_dao import BillDAO
from database.bill_payment_dao import BillPaymentDAO
from database.budget_dao import BudgetDAO
from database.insight_dao import InsightDAO
from database.transaction_dao import TransactionDAO

from services.bill_service import BillService
from services.budget_service import BudgetService
from services.payment_service import PaymentService
from services.reminder_service import ReminderService

from utils.app_config import get_db_folder, get_log_level
from utils.constants import (
    APP_NAME,
    BUDGET_OVER,
    DEDUP_WINDOW_HOURS,
    DEFAULT_CURRENCY_SYMBOL,
    DEFAULT_HORIZON_COUNT,
    DUE_SOON_DAYS,
    PAYMENT_RETENTION_MONTHS,
)
from utils.date_helpers import now
from utils.logging_setup import configure_logging


def run_sync(db: DatabaseManager, reference_time=None) -> dict:
    """One scheduling pass: top up payment horizons, then emit notifications.

    Safe to run on any cadence; every step is idempotent.
    """
    ref = reference_time or now()

    # ── DAOs ─────────────────────────────────────────────────────────────────
    bill_dao = BillDAO(db)
    payment_dao = BillPaymentDAO(db)
    budget_dao = BudgetDAO(db)
    insight_dao = InsightDAO(db)
    tx_dao = TransactionDAO(db)

    # ── Services ─────────────────────────────────────────────────────────────
    bill_svc = BillService(
        db, bill_dao, payment_dao,
        horizon_count=db.get_int_setting("horizon_count", DEFAULT_HORIZON_COUNT),
    )
    payment_svc = PaymentService(
        db, payment_dao, bill_dao, tx_dao,
        due_soon_days=db.get_int_setting("due_soon_days", DUE_SOON_DAYS),
    )
    budget_svc = BudgetService(budget_dao, tx_dao)
    reminder_svc = ReminderService(
        payment_dao, insight_dao, budget_svc,
        dedup_window_hours=db.get_int_setting("dedup_window_hours", DEDUP_WINDOW_HOURS),
        currency_symbol=db.get_setting("currency_symbol", DEFAULT_CURRENCY_SYMBOL),
    )

    # ── Horizon, notifications, housekeeping ─────────────────────────────────
    created = bill_svc.reconcile_all(ref)
    notifications = reminder_svc.get_notifications(ref)
    purged = payment_svc.cleanup_old_payments(
        ref, db.get_int_setting("payment_retention_months", PAYMENT_RETENTION_MONTHS)
    )
    budgets = budget_svc.get_budget_status(ref)

    return {
        "payments_created": created,
        "notifications": notifications,
        "payments_purged": purged,
        "budgets_over": [b.category_name for b in budgets if b.status == BUDGET_OVER],
    }


def main():
    # ── Bootstrap: read DB folder and log level from pre-DB config ───────────
    configure_logging(get_log_level(), json_output=not sys.stderr.isatty())
    log = structlog.get_logger(APP_NAME)

    db = DatabaseManager.open(get_db_folder())
    try:
        summary = run_sync(db)
    finally:
        db.close()

    log.info(
        "sync_complete",
        payments_created=summary["payments_created"],
        notifications=len(summary["notifications"]),
        payments_purged=summary["payments_purged"],
        budgets_over=summary["budgets_over"],
    )
    for insight in summary["notifications"]:
        log.info("notification", type=insight.type, title=insight.title)


if __name__ == "__main__":
    main()
