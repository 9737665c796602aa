"""Date parsing utilities."""

from datetime import date, datetime, timedelta
from typing import Optional
from zoneinfo import ZoneInfo

from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

DEFAULT_TIMEZONE = "America/Mexico_City"

# Canonical period names plus the Spanish names the classifier may echo back
PERIOD_ALIASES = {
    "current_month": "current_month",
    "this-month": "current_month",
    "mes_actual": "current_month",
    "previous_month": "previous_month",
    "last-month": "previous_month",
    "mes_pasado": "previous_month",
    "current_week": "current_week",
    "this-week": "current_week",
    "semana_actual": "current_week",
    "today": "today",
    "hoy": "today",
    "all": "all",
    "todos": "all",
}


def today_in(timezone: str = DEFAULT_TIMEZONE) -> date:
    """Return the current calendar date in the given timezone."""
    return datetime.now(ZoneInfo(timezone)).date()


def parse_date(date_str: str, today: Optional[date] = None) -> date:
    """Parse a date string into a date object.

    Supports various formats including relative dates:
    - Absolute dates: "2024-01-15", "15/01/2024", etc. (day first)
    - Relative dates: "hoy", "ayer", "antier", "today", "yesterday"

    Args:
        date_str: Date string in various formats
        today: Reference date for relative expressions (defaults to date.today())

    Returns:
        Date object

    Raises:
        ValueError: If date string cannot be parsed
    """
    date_str = date_str.strip().lower()
    if today is None:
        today = date.today()

    relative_dates = {
        "today": today,
        "hoy": today,
        "yesterday": today - timedelta(days=1),
        "ayer": today - timedelta(days=1),
        "antier": today - timedelta(days=2),
        "anteayer": today - timedelta(days=2),
        "tomorrow": today + timedelta(days=1),
        "mañana": today + timedelta(days=1),
    }

    if date_str in relative_dates:
        return relative_dates[date_str]

    # ISO dates come from the classifier; anything else is read day-first
    try:
        return date.fromisoformat(date_str)
    except ValueError:
        pass

    try:
        dt = date_parser.parse(date_str, dayfirst=True)
        return dt.date()
    except (ValueError, TypeError, OverflowError) as e:
        raise ValueError(f"Could not parse date '{date_str}': {e}")


def normalize_period(period: Optional[str]) -> str:
    """Map a period name or alias to its canonical name.

    Args:
        period: Period name; None means the current month

    Returns:
        Canonical period name

    Raises:
        ValueError: If period string is not recognized
    """
    if period is None:
        return "current_month"
    key = period.strip().lower()
    if key not in PERIOD_ALIASES:
        raise ValueError(
            f"Unknown period: '{period}'. Supported periods: "
            "current_month, previous_month, current_week, today, all"
        )
    return PERIOD_ALIASES[key]


def get_date_range(
    period: Optional[str], today: Optional[date] = None
) -> tuple[Optional[date], Optional[date]]:
    """Get start and end dates for a specified period.

    Args:
        period: Period name (current_month, previous_month, current_week, today, all)
        today: Reference date (defaults to date.today())

    Returns:
        Tuple of (start_date, end_date); both None for "all"

    Raises:
        ValueError: If period string is not recognized
    """
    period = normalize_period(period)
    if today is None:
        today = date.today()

    if period == "current_month":
        start_date = today.replace(day=1)
        end_date = start_date + relativedelta(months=1) - timedelta(days=1)
        return (start_date, end_date)

    elif period == "previous_month":
        # First day of last month
        start_date = (today - relativedelta(months=1)).replace(day=1)
        # Last day of last month (day before first day of current month)
        end_date = today.replace(day=1) - timedelta(days=1)
        return (start_date, end_date)

    elif period == "current_week":
        start_date = today - timedelta(days=today.weekday())
        end_date = start_date + timedelta(days=6)
        return (start_date, end_date)

    elif period == "today":
        return (today, today)

    return (None, None)


def month_range(year: int, month: int) -> tuple[date, date]:
    """Return the first and last day of a calendar month."""
    start_date = date(year, month, 1)
    end_date = start_date + relativedelta(months=1) - timedelta(days=1)
    return (start_date, end_date)
