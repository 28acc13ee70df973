import dataclasses
from datetime import date, datetime, timedelta

import pytest

from models.insight import Insight
from services.reminder_service import ReminderService

from tests.conftest import NOW


class TestReminders:
    def test_emitted_once_and_flagged(self, make_bill, reminder_service, payment_dao, insight_dao):
        bill = make_bill(reminder_days_before=5)

        reminders = reminder_service.generate_reminders(NOW)

        assert len(reminders) == 1
        reminder = reminders[0]
        assert reminder.type == "bill_reminder"
        assert reminder.title == "Electricity bill due in 5 days"
        assert reminder.data["days_until_due"] == 5
        assert reminder.data["due_date"] == "2024-03-15"
        assert reminder.data["bill_id"] == bill.id
        assert "₹1,500.00" in reminder.description

        stored = payment_dao.get_by_id(reminder.payment_id)
        assert stored.reminder_sent is True
        assert stored.reminder_sent_at == NOW
        assert [i.id for i in insight_dao.get_by_payment(stored.id)] == [reminder.id]

    def test_reminder_is_single_shot(self, make_bill, reminder_service):
        make_bill(reminder_days_before=5)
        assert len(reminder_service.generate_reminders(NOW)) == 1
        assert reminder_service.generate_reminders(NOW) == []
        assert reminder_service.generate_reminders(NOW + timedelta(days=2)) == []

    def test_outside_window_is_quiet(self, make_bill, reminder_service):
        make_bill()
        assert reminder_service.generate_reminders(NOW) == []

    def test_due_tomorrow_title(self, make_bill, reminder_service):
        make_bill()
        reminders = reminder_service.generate_reminders(datetime(2024, 3, 14, 8, 0))
        assert reminders[0].title == "Electricity bill due tomorrow"

    def test_due_today_title(self, make_bill, reminder_service):
        make_bill(reminder_days_before=0)
        reminders = reminder_service.generate_reminders(date(2024, 3, 15))
        assert reminders[0].title == "Electricity bill due today"

    def test_inactive_bill_in_supplied_list_is_skipped(self, make_bill, reminder_service, payment_dao):
        bill = make_bill(reminder_days_before=5)
        payments = [
            dataclasses.replace(p, bill_is_active=False) for p in payment_dao.get_by_bill(bill.id)
        ]
        assert reminder_service.generate_reminders(NOW, payments) == []

    def test_supplied_list_is_updated_in_place(self, make_bill, reminder_service, payment_dao):
        bill = make_bill(reminder_days_before=5)
        payments = payment_dao.get_by_bill(bill.id)
        reminder_service.generate_reminders(NOW, payments)
        assert payments[0].reminder_sent is True
        assert not any(p.reminder_sent for p in payments[1:])


class TestOverdueAlerts:
    def test_alert_payload(self, make_bill, reminder_service):
        bill = make_bill(reference_time=date(2024, 1, 1))

        alerts = reminder_service.generate_overdue_alerts(NOW)

        assert [a.data["due_date"] for a in alerts] == ["2024-01-15", "2024-02-15"]
        latest = alerts[1]
        assert latest.type == "bill_overdue"
        assert latest.title == "Overdue: Electricity bill"
        assert latest.data["days_overdue"] == 24
        assert latest.data["severity"] == "critical"
        assert latest.data["bill_id"] == bill.id
        assert "24 days overdue" in latest.description

    def test_debounced_within_window(self, make_bill, reminder_service):
        make_bill(reference_time=date(2024, 1, 1))
        assert len(reminder_service.generate_overdue_alerts(NOW)) == 2
        assert reminder_service.generate_overdue_alerts(NOW + timedelta(hours=1)) == []
        assert reminder_service.generate_overdue_alerts(NOW + timedelta(hours=23)) == []

    def test_refires_after_window(self, make_bill, reminder_service, insight_dao):
        make_bill(reference_time=date(2024, 1, 1))
        reminder_service.generate_overdue_alerts(NOW)
        again = reminder_service.generate_overdue_alerts(NOW + timedelta(hours=25))
        assert len(again) == 2
        assert len(insight_dao.get_recent()) == 4

    def test_paid_payment_is_not_alerted(self, make_bill, reminder_service, payment_service, payment_dao):
        bill = make_bill(reference_time=date(2024, 1, 1))
        first = payment_dao.get_by_bill(bill.id)[0]
        payment_service.mark_paid(first.id, 1500.0, date(2024, 3, 1))
        alerts = reminder_service.generate_overdue_alerts(NOW)
        assert [a.data["due_date"] for a in alerts] == ["2024-02-15"]

    def test_inactive_bill_is_not_alerted(self, make_bill, bill_service, reminder_service):
        bill = make_bill(reference_time=date(2024, 1, 1))
        bill_service.set_active(bill.id, False)
        assert reminder_service.generate_overdue_alerts(NOW) == []


def test_notifications_put_alerts_first(make_bill, reminder_service):
    make_bill(reference_time=date(2024, 1, 1), reminder_days_before=5)
    notifications = reminder_service.get_notifications(NOW)
    assert [n.type for n in notifications] == ["bill_overdue", "bill_overdue", "bill_reminder"]


class TestDedupWindow:
    def test_date_driven_daily_runs_alert_every_day(self, make_bill, reminder_service):
        make_bill(reference_time=date(2024, 1, 1))
        assert len(reminder_service.generate_overdue_alerts(date(2024, 3, 10))) == 2
        assert len(reminder_service.generate_overdue_alerts(date(2024, 3, 11))) == 2
        assert reminder_service.generate_overdue_alerts(date(2024, 3, 11)) == []

    def test_shorter_window_refires_within_the_day(self, make_bill, payment_dao, insight_dao):
        make_bill(reference_time=date(2024, 1, 1))
        service = ReminderService(payment_dao, insight_dao, dedup_window_hours=6)
        assert len(service.generate_overdue_alerts(datetime(2024, 3, 10, 1, 0))) == 2
        assert service.generate_overdue_alerts(datetime(2024, 3, 10, 5, 0)) == []
        assert len(service.generate_overdue_alerts(datetime(2024, 3, 10, 13, 0))) == 2

    def test_events_a_window_apart_never_share_a_slot(self, reminder_service):
        first = datetime(2024, 3, 10, 17, 45)
        assert reminder_service.dedup_slot(first + timedelta(hours=24)) == reminder_service.dedup_slot(first) + 1
        assert reminder_service.dedup_slot(datetime(2024, 3, 10)) == reminder_service.dedup_slot(first)

    def test_window_must_be_positive(self, payment_dao, insight_dao):
        with pytest.raises(ValueError):
            ReminderService(payment_dao, insight_dao, dedup_window_hours=0)


class TestLostRace:
    """Another pass logged the event between this pass's check and insert."""

    def test_slot_rejects_second_event(self, make_bill, payment_dao, insight_dao, reminder_service):
        bill = make_bill()
        target = payment_dao.get_by_bill(bill.id)[0]
        slot = reminder_service.dedup_slot(NOW)

        first = Insight(type="bill_reminder", title="a", description="", created_at=NOW,
                        payment_id=target.id, bill_id=bill.id)
        second = Insight(type="bill_reminder", title="b", description="", created_at=NOW,
                         payment_id=target.id, bill_id=bill.id)
        assert insight_dao.record(first, slot) is True
        assert insight_dao.record(second, slot) is False
        assert second.id is None

    def test_reminder_dropped_without_flagging(
        self, make_bill, payment_dao, insight_dao, reminder_service, monkeypatch
    ):
        bill = make_bill(reminder_days_before=5)
        target = payment_dao.get_by_bill(bill.id)[0]
        earlier = Insight(type="bill_reminder", title="Electricity bill due in 5 days", description="",
                          created_at=NOW - timedelta(minutes=1), payment_id=target.id, bill_id=bill.id)
        insight_dao.record(earlier, reminder_service.dedup_slot(NOW))
        monkeypatch.setattr(insight_dao, "exists_since", lambda *args: False)

        assert reminder_service.generate_reminders(NOW) == []
        assert payment_dao.get_by_id(target.id).reminder_sent is False
        assert len(insight_dao.get_by_payment(target.id)) == 1


class TestBudgetAlerts:
    @pytest.fixture
    def budget(self, budget_service, utilities_id):
        return budget_service.create(utilities_id, 10000.0, "monthly", date(2024, 1, 1))

    @pytest.fixture
    def spend(self, tx_dao, utilities_id):
        def _spend(amount, day=date(2024, 3, 5)):
            tx_dao.create("expense", amount, day, utilities_id)
        return _spend

    @pytest.mark.parametrize(
        "spent, severity, title",
        [
            (7500.0, "medium", "Utilities budget at 75%"),
            (9200.0, "high", "Utilities budget almost exceeded"),
            (10500.0, "critical", "Utilities budget exceeded"),
        ],
    )
    def test_tiers(self, reminder_service, budget, spend, spent, severity, title):
        spend(spent)
        alerts = reminder_service.generate_budget_alerts(NOW)
        assert [(a.title, a.data["severity"]) for a in alerts] == [(title, severity)]
        assert alerts[0].budget_id == budget.id

    def test_below_threshold_is_quiet(self, reminder_service, budget, spend):
        spend(7400.0)
        assert reminder_service.generate_budget_alerts(NOW) == []

    def test_exceeded_payload(self, reminder_service, budget, spend):
        spend(10500.0)
        alert = reminder_service.generate_budget_alerts(NOW)[0]
        assert "by ₹500.00" in alert.description
        assert alert.data["budget_id"] == budget.id
        assert alert.data["category_name"] == "Utilities"
        assert alert.data["percent_used"] == 105
        assert alert.data["actual_spent"] == 10500.0
        assert alert.data["budget_amount"] == 10000.0
        assert alert.data["period_start"] == "2024-03-01"
        assert alert.data["period_end"] == "2024-04-01"

    def test_debounced_per_budget(self, reminder_service, budget, spend):
        spend(9200.0)
        assert len(reminder_service.generate_budget_alerts(NOW)) == 1
        assert reminder_service.generate_budget_alerts(NOW + timedelta(hours=1)) == []
        assert len(reminder_service.generate_budget_alerts(NOW + timedelta(hours=25))) == 1

    def test_ended_budget_is_skipped(self, reminder_service, budget_service, tx_dao, db):
        transport = db.get_category_id("Transport")
        budget_service.create(transport, 100.0, "monthly", date(2024, 1, 1), date(2024, 3, 1))
        tx_dao.create("expense", 500.0, date(2024, 2, 20), transport)
        assert reminder_service.generate_budget_alerts(NOW) == []

    def test_deleting_budget_drops_its_log(self, reminder_service, budget_service, insight_dao, budget, spend):
        spend(9200.0)
        reminder_service.generate_budget_alerts(NOW)
        assert len(insight_dao.get_by_budget(budget.id)) == 1
        budget_service.delete(budget.id)
        assert insight_dao.get_by_budget(budget.id) == []

    def test_notifications_order(self, make_bill, reminder_service, budget, spend):
        make_bill(reference_time=date(2024, 1, 1), reminder_days_before=5)
        spend(9200.0)
        types = [n.type for n in reminder_service.get_notifications(NOW)]
        assert types == ["bill_overdue", "bill_overdue", "budget_alert", "bill_reminder"]

    def test_without_budget_service(self, payment_dao, insight_dao, budget, spend):
        spend(9200.0)
        assert ReminderService(payment_dao, insight_dao).generate_budget_alerts(NOW) == []
