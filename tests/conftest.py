from datetime import date, datetime

import pytest

from database.bill_dao import BillDAO
from database.bill_payment_dao import BillPaymentDAO
from database.budget_dao import BudgetDAO
from database.db_manager import DatabaseManager
from database.insight_dao import InsightDAO
from database.transaction_dao import TransactionDAO
from services.bill_service import BillService
from services.budget_service import BudgetService
from services.payment_service import PaymentService
from services.reminder_service import ReminderService

NOW = datetime(2024, 3, 10, 9, 30)


@pytest.fixture
def db():
    manager = DatabaseManager(":memory:")
    manager.initialize()
    yield manager
    manager.close()


@pytest.fixture
def bill_dao(db):
    return BillDAO(db)


@pytest.fixture
def payment_dao(db):
    return BillPaymentDAO(db)


@pytest.fixture
def insight_dao(db):
    return InsightDAO(db)


@pytest.fixture
def tx_dao(db):
    return TransactionDAO(db)


@pytest.fixture
def bill_service(db, bill_dao, payment_dao):
    return BillService(db, bill_dao, payment_dao)


@pytest.fixture
def payment_service(db, payment_dao, bill_dao, tx_dao):
    return PaymentService(db, payment_dao, bill_dao, tx_dao)


@pytest.fixture
def reminder_service(payment_dao, insight_dao, budget_service):
    return ReminderService(payment_dao, insight_dao, budget_service)


@pytest.fixture
def budget_service(db, tx_dao):
    return BudgetService(BudgetDAO(db), tx_dao)


@pytest.fixture
def utilities_id(db):
    return db.get_category_id("Utilities")


@pytest.fixture
def make_bill(bill_service, utilities_id):
    """Create a monthly bill anchored before NOW unless overridden."""

    def _make(**overrides):
        fields = dict(
            name="Electricity",
            amount=1500.0,
            cadence="monthly",
            start_date=date(2024, 1, 15),
            day_of_month=15,
            category_id=utilities_id,
            bill_type="utilities",
            reference_time=NOW,
        )
        fields.update(overrides)
        return bill_service.create(**fields)

    return _make
