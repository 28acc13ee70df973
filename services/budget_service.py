from datetime import date, datetime

import structlog

from database.budget_dao import BudgetDAO
from database.transaction_dao import TransactionDAO
from models.budget import Budget
from services.budget_period import budget_status, effective_period, percent_used
from utils.constants import BUDGET_PERIODS
from utils.date_helpers import now as current_time
from utils.errors import BudgetOverlapError, InvalidRuleError

logger = structlog.get_logger(__name__)


class BudgetService:
    def __init__(self, budget_dao: BudgetDAO, tx_dao: TransactionDAO):
        self._budget_dao = budget_dao
        self._tx_dao = tx_dao
        self._logger = logger.bind(component="budget_service")

    def get_budget_status(self, reference_time: date | datetime | None = None) -> list[Budget]:
        """Return all budgets with the current period's spend snapshot filled in."""
        ref = reference_time or current_time()
        return [self._attach_snapshot(b, ref) for b in self._budget_dao.get_all()]

    def get_snapshot(
        self, budget_id: int, reference_time: date | datetime | None = None
    ) -> Budget | None:
        budget = self._budget_dao.get_by_id(budget_id)
        if budget is None:
            return None
        return self._attach_snapshot(budget, reference_time or current_time())

    def create(
        self,
        category_id: int,
        amount: float,
        period: str,
        start_date: date,
        end_date: date | None = None,
    ) -> Budget:
        if amount <= 0:
            raise InvalidRuleError("Budget amount must be positive.")
        if period not in BUDGET_PERIODS:
            raise InvalidRuleError("Invalid budget period.")
        if end_date is not None and end_date <= start_date:
            raise InvalidRuleError("Budget end date must be after its start date.")

        overlapping = self._budget_dao.find_overlapping(category_id, period, start_date, end_date)
        if overlapping:
            self._logger.warning(
                "budget_overlap_rejected",
                category_id=category_id,
                period=period,
                existing_budget_id=overlapping.id,
            )
            raise BudgetOverlapError("A budget already exists for this category and period.")
        return self._budget_dao.create(category_id, amount, period, start_date, end_date)

    def delete(self, budget_id: int):
        self._budget_dao.delete(budget_id)

    def _attach_snapshot(self, budget: Budget, ref: date | datetime) -> Budget:
        start, end = effective_period(budget, ref)
        budget.period_start = start
        budget.period_end = end
        budget.actual_spent = self._tx_dao.sum_expenses(budget.category_id, start, end)
        budget.percent_used = percent_used(budget.actual_spent, budget.amount)
        budget.status = budget_status(budget.actual_spent, budget.amount)
        return budget
