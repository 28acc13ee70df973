APP_NAME = "Billcycle"
DB_FILE = "billcycle.db"

DATE_FORMAT = "%Y-%m-%d"

# ── Bill cadences ─────────────────────────────────────────────────────────────

ONE_TIME = "one_time"
WEEKLY = "weekly"
BIWEEKLY = "biweekly"
MONTHLY = "monthly"
QUARTERLY = "quarterly"
SEMI_ANNUAL = "semi_annual"
ANNUAL = "annual"

CADENCES = [ONE_TIME, WEEKLY, BIWEEKLY, MONTHLY, QUARTERLY, SEMI_ANNUAL, ANNUAL]
WEEK_INTERVALS = {
    WEEKLY: 7,
    BIWEEKLY: 14,
}
MONTH_INTERVALS = {
    MONTHLY: 1,
    QUARTERLY: 3,
    SEMI_ANNUAL: 6,
    ANNUAL: 12,
}
CADENCE_LABELS = {
    ONE_TIME: "One-time",
    WEEKLY: "Weekly",
    BIWEEKLY: "Every 2 weeks",
    MONTHLY: "Monthly",
    QUARTERLY: "Quarterly",
    SEMI_ANNUAL: "Every 6 months",
    ANNUAL: "Annually",
}
# Fields whose change invalidates future unpaid payments
SCHEDULE_FIELDS = ("cadence", "day_of_month", "day_of_week", "start_date", "amount", "end_date")

BILL_TYPES = ("utilities", "subscription", "rent_mortgage", "insurance", "other")

# ── Payment lifecycle ─────────────────────────────────────────────────────────

STATUS_UPCOMING = "upcoming"
STATUS_DUE_SOON = "due_soon"
STATUS_OVERDUE = "overdue"
STATUS_PAID = "paid"
STATUS_CANCELLED = "cancelled"

PAYMENT_STATUSES = [STATUS_UPCOMING, STATUS_DUE_SOON, STATUS_OVERDUE, STATUS_PAID, STATUS_CANCELLED]
TERMINAL_STATUSES = (STATUS_PAID, STATUS_CANCELLED)
STATUS_LABELS = {
    STATUS_UPCOMING: "Upcoming",
    STATUS_DUE_SOON: "Due Soon",
    STATUS_OVERDUE: "Overdue",
    STATUS_PAID: "Paid",
    STATUS_CANCELLED: "Cancelled",
}

# ── Budgets ───────────────────────────────────────────────────────────────────

BUDGET_WEEKLY = "weekly"
BUDGET_MONTHLY = "monthly"
BUDGET_YEARLY = "yearly"
BUDGET_PERIODS = [BUDGET_WEEKLY, BUDGET_MONTHLY, BUDGET_YEARLY]

BUDGET_ON_TRACK = "on_track"
BUDGET_WARNING = "warning"
BUDGET_OVER = "over_budget"
BUDGET_WARNING_PERCENT = 75
BUDGET_OVER_PERCENT = 100
BUDGET_HIGH_PERCENT = 90

# ── Notifications ─────────────────────────────────────────────────────────────

INSIGHT_BILL_REMINDER = "bill_reminder"
INSIGHT_BILL_OVERDUE = "bill_overdue"
INSIGHT_BUDGET_ALERT = "budget_alert"

SEVERITY_CRITICAL = "critical"
SEVERITY_HIGH = "high"
SEVERITY_MEDIUM = "medium"

# ── Defaults (overridable through app_settings) ──────────────────────────────

DEFAULT_HORIZON_COUNT = 6
DUE_SOON_DAYS = 7
DEFAULT_REMINDER_DAYS_BEFORE = 3
MAX_REMINDER_DAYS_BEFORE = 30
DEDUP_WINDOW_HOURS = 24
UPCOMING_LOOKAHEAD_DAYS = 30
PAYMENT_RETENTION_MONTHS = 12
DEFAULT_CURRENCY_SYMBOL = "₹"
MAX_SCHEDULE_STEPS = 10000

DEFAULT_CATEGORIES = [
    {"name": "Salary",         "type": "income",   "is_system": 1},
    {"name": "Food & Dining",  "type": "expense",  "is_system": 1},
    {"name": "Rent/Mortgage",  "type": "expense",  "is_system": 1},
    {"name": "Utilities",      "type": "expense",  "is_system": 1},
    {"name": "Subscriptions",  "type": "expense",  "is_system": 1},
    {"name": "Insurance",      "type": "expense",  "is_system": 1},
    {"name": "Transport",      "type": "expense",  "is_system": 1},
    {"name": "Other",          "type": "both",     "is_system": 1},
]
