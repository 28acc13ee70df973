class BillcycleError(Exception):
    """Base exception for the scheduling engine."""


class InvalidRuleError(BillcycleError, ValueError):
    """A bill or budget definition that cannot be scheduled."""


class BudgetOverlapError(BillcycleError):
    """A budget already covers this category and period."""


class PaymentNotFoundError(BillcycleError):
    """Payment instance does not exist."""


class PaymentStateError(BillcycleError):
    """Transition not allowed from the payment's current status."""


class BillNotFoundError(BillcycleError):
    """Bill does not exist."""
