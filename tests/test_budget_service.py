import dataclasses
from datetime import date

import pytest

from models.budget import Budget
from utils.errors import BudgetOverlapError, InvalidRuleError

from tests.conftest import NOW


@pytest.fixture
def utilities_budget(budget_service, utilities_id):
    return budget_service.create(utilities_id, 10000.0, "monthly", date(2024, 1, 1))


def test_snapshot_sums_current_window_expenses(budget_service, tx_dao, utilities_budget, utilities_id, db):
    food_id = db.get_category_id("Food & Dining")
    tx_dao.create("expense", 500.0, date(2024, 2, 29), utilities_id)
    tx_dao.create("expense", 6000.0, date(2024, 3, 1), utilities_id)
    tx_dao.create("expense", 3000.0, date(2024, 3, 31), utilities_id)
    tx_dao.create("expense", 700.0, date(2024, 4, 1), utilities_id)
    tx_dao.create("income", 1000.0, date(2024, 3, 6), utilities_id)
    tx_dao.create("expense", 250.0, date(2024, 3, 6), food_id)

    snapshot = budget_service.get_snapshot(utilities_budget.id, NOW)

    assert (snapshot.period_start, snapshot.period_end) == (date(2024, 3, 1), date(2024, 4, 1))
    assert snapshot.actual_spent == 9000.0
    assert snapshot.percent_used == 90
    assert snapshot.status == "warning"
    assert snapshot.remaining == 1000.0
    assert snapshot.category_name == "Utilities"


def test_status_lists_every_budget(budget_service, utilities_budget, db):
    budget_service.create(db.get_category_id("Transport"), 200.0, "weekly", date(2024, 1, 1))
    statuses = budget_service.get_budget_status(NOW)
    assert {b.category_name for b in statuses} == {"Utilities", "Transport"}
    assert all(b.status == "on_track" and b.actual_spent == 0 for b in statuses)


def test_bill_payment_counts_against_budget(
    make_bill, payment_service, payment_dao, budget_service, utilities_budget
):
    bill = make_bill()
    first = payment_dao.get_by_bill(bill.id)[0]
    payment_service.mark_paid(first.id, 1500.0, date(2024, 3, 9))
    assert budget_service.get_snapshot(utilities_budget.id, NOW).actual_spent == 1500.0


def test_missing_budget_snapshot(budget_service):
    assert budget_service.get_snapshot(99, NOW) is None


class TestCreate:
    def test_overlap_rejected(self, budget_service, utilities_budget, utilities_id):
        with pytest.raises(BudgetOverlapError):
            budget_service.create(utilities_id, 5000.0, "monthly", date(2024, 6, 1))

    def test_other_period_allowed(self, budget_service, utilities_budget, utilities_id):
        weekly = budget_service.create(utilities_id, 2500.0, "weekly", date(2024, 1, 1))
        assert weekly.id != utilities_budget.id

    def test_adjacent_ranges_do_not_overlap(self, budget_service, utilities_id):
        budget_service.create(utilities_id, 100.0, "monthly", date(2024, 1, 1), date(2024, 3, 1))
        later = budget_service.create(utilities_id, 120.0, "monthly", date(2024, 3, 1))
        assert later.start_date == date(2024, 3, 1)

    def test_earlier_bounded_range_overlapping_open_budget(self, budget_service, utilities_budget, utilities_id):
        with pytest.raises(BudgetOverlapError):
            budget_service.create(utilities_id, 100.0, "monthly", date(2023, 6, 1), date(2024, 2, 1))

    @pytest.mark.parametrize(
        "amount, period, end",
        [(0, "monthly", None), (100.0, "daily", None), (100.0, "monthly", date(2024, 1, 1))],
    )
    def test_invalid(self, budget_service, utilities_id, amount, period, end):
        with pytest.raises(InvalidRuleError):
            budget_service.create(utilities_id, amount, period, date(2024, 1, 1), end)

    def test_delete(self, budget_service, utilities_budget):
        budget_service.delete(utilities_budget.id)
        assert budget_service.get_snapshot(utilities_budget.id, NOW) is None


def test_spend_before_budget_start_is_not_counted(budget_service, tx_dao, db):
    transport = db.get_category_id("Transport")
    budget = budget_service.create(transport, 1000.0, "monthly", date(2024, 4, 1))
    tx_dao.create("expense", 800.0, date(2024, 3, 5), transport)

    snapshot = budget_service.get_snapshot(budget.id, NOW)

    assert (snapshot.period_start, snapshot.period_end) == (date(2024, 4, 1), date(2024, 4, 1))
    assert snapshot.actual_spent == 0.0
    assert snapshot.status == "on_track"


def test_budget_carries_no_display_fields(budget_service, utilities_budget, db):
    names = {f.name for f in dataclasses.fields(Budget)}
    assert names == {
        "id", "category_id", "category_name", "amount", "period", "start_date", "end_date",
        "period_start", "period_end", "actual_spent", "percent_used", "status",
    }
    columns = {row["name"] for row in db.get_connection().execute("PRAGMA table_info(categories)")}
    assert "color_hex" not in columns
    assert budget_service.get_snapshot(utilities_budget.id, NOW).category_name == "Utilities"
