from datetime import date, datetime
import calendar
from utils.constants import DATE_FORMAT


def now() -> datetime:
    return datetime.now()


def to_day(value: date | datetime) -> date:
    """Strip the time of day; dates pass through unchanged."""
    if isinstance(value, datetime):
        return value.date()
    return value


def parse_date(date_str: str | None) -> date | None:
    """Parse a date string in YYYY-MM-DD format, returning None on failure."""
    if not date_str:
        return None
    for fmt in ("%Y-%m-%d", "%Y/%m/%d", "%Y.%m.%d"):
        try:
            return datetime.strptime(date_str[:10], fmt).date()
        except ValueError:
            continue
    return None


def format_date(d: date | None) -> str | None:
    if d is None:
        return None
    return to_day(d).strftime(DATE_FORMAT)


def parse_timestamp(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        return None


def format_timestamp(value: datetime | None) -> str | None:
    if value is None:
        return None
    return value.isoformat(timespec="seconds")


def last_day_of_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def clamp_day_to_month(year: int, month: int, day: int) -> int:
    """Clamp day to valid range for the given year/month."""
    return min(day, last_day_of_month(year, month))


def date_with_day(year: int, month: int, day: int) -> date:
    """Build a date, degrading day 29-31 to the month's last day."""
    return date(year, month, clamp_day_to_month(year, month, day))


def add_months(d: date, n: int, day: int | None = None) -> date:
    """Add n months to date d, clamping day to month end.

    `day` overrides d.day as the requested day, so repeated stepping from the
    same anchor never drifts (Jan 31 -> Feb 29 -> Mar 31).
    """
    month = d.month - 1 + n
    year = d.year + month // 12
    month = month % 12 + 1
    return date_with_day(year, month, day if day is not None else d.day)


def months_between(start: date, end: date) -> int:
    """Whole calendar months from start's month to end's month (days ignored)."""
    return (end.year - start.year) * 12 + (end.month - start.month)


def days_between(start: date | datetime, end: date | datetime) -> int:
    """Whole days from start to end; negative when end precedes start."""
    return (to_day(end) - to_day(start)).days
