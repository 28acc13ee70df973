from datetime import date, timedelta

from main import run_sync
from tests.conftest import NOW


def test_sync_pass_is_idempotent(db, make_bill):
    make_bill(reference_time=date(2024, 1, 1), reminder_days_before=5)

    first = run_sync(db, NOW)
    assert first["payments_created"] == 2
    assert [n.type for n in first["notifications"]] == ["bill_overdue", "bill_overdue", "bill_reminder"]
    assert first["payments_purged"] == 0

    second = run_sync(db, NOW + timedelta(minutes=5))
    assert second["payments_created"] == 0
    assert second["notifications"] == []


def test_sync_reports_budgets_over_limit(db, make_bill, payment_service, payment_dao, budget_service, utilities_id):
    bill = make_bill()
    budget_service.create(utilities_id, 1000.0, "monthly", date(2024, 1, 1))
    payment_service.mark_paid(payment_dao.get_by_bill(bill.id)[0].id, 1500.0, date(2024, 3, 9))

    summary = run_sync(db, NOW)
    assert summary["budgets_over"] == ["Utilities"]
    alerts = [n for n in summary["notifications"] if n.type == "budget_alert"]
    assert [a.title for a in alerts] == ["Utilities budget exceeded"]


def test_sync_reads_settings(db, make_bill):
    db.set_setting("horizon_count", "8")
    make_bill()
    assert run_sync(db, NOW)["payments_created"] == 2
