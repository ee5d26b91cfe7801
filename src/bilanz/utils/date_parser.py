"""Date parsing utilities."""

import re
from datetime import date, timedelta
from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

_QUARTER_RE = re.compile(r"^(\d{4})-?q([1-4])$")
_MONTH_RE = re.compile(r"^(\d{4})-(\d{1,2})$")


def parse_date(date_str: str, dayfirst: bool = True) -> date:
    """Parse a date string into a date object.

    Supports various formats including relative dates:
    - ISO dates: "2024-01-15"
    - German dates: "15.01.2024" (day first)
    - Relative dates: "today", "yesterday", "last month", "this year", etc.

    Args:
        date_str: Date string in various formats
        dayfirst: Read ambiguous numeric dates as day.month

    Returns:
        Date object

    Raises:
        ValueError: If date string cannot be parsed
    """
    date_str = date_str.strip().lower()
    today = date.today()

    relative_dates = {
        "today": today,
        "heute": today,
        "yesterday": today - timedelta(days=1),
        "tomorrow": today + timedelta(days=1),
    }

    if date_str in relative_dates:
        return relative_dates[date_str]

    # Handle "last/this/next" + time period
    if date_str.startswith("last "):
        period = date_str[5:]
        if period == "month":
            return (today - relativedelta(months=1)).replace(day=1)
        elif period == "quarter":
            return quarter_start(today) - relativedelta(months=3)
        elif period == "year":
            return today.replace(month=1, day=1) - relativedelta(years=1)

    elif date_str.startswith("this "):
        period = date_str[5:]
        if period == "month":
            return today.replace(day=1)
        elif period == "quarter":
            return quarter_start(today)
        elif period == "year":
            return today.replace(month=1, day=1)

    elif date_str.startswith("next "):
        period = date_str[5:]
        if period == "month":
            return (today + relativedelta(months=1)).replace(day=1)
        elif period == "year":
            return today.replace(month=1, day=1) + relativedelta(years=1)

    # dateutil reads "2024-01-05" as 1 May with dayfirst, so ISO goes first
    try:
        return date.fromisoformat(date_str)
    except ValueError:
        pass

    try:
        dt = date_parser.parse(date_str, dayfirst=dayfirst)
        return dt.date()
    except (ValueError, OverflowError) as e:
        raise ValueError(f"Could not parse date '{date_str}': {e}")


def quarter_start(day: date) -> date:
    return date(day.year, 3 * ((day.month - 1) // 3) + 1, 1)


def month_range(year: int, month: int) -> tuple[date, date]:
    """Return first and last day of a month."""
    start_date = date(year, month, 1)
    return (start_date, start_date + relativedelta(months=1) - timedelta(days=1))


def quarter_range(year: int, quarter: int) -> tuple[date, date]:
    """Return first and last day of a quarter (1-4)."""
    if quarter not in (1, 2, 3, 4):
        raise ValueError(f"Quarter must be 1-4, got {quarter}")
    start_date = date(year, 3 * (quarter - 1) + 1, 1)
    return (start_date, start_date + relativedelta(months=3) - timedelta(days=1))


def year_range(year: int) -> tuple[date, date]:
    return (date(year, 1, 1), date(year, 12, 31))


def parse_month(value: str) -> tuple[date, date]:
    """Parse "2024-03" into the range of that month."""
    match = _MONTH_RE.match(value.strip())
    if not match or not 1 <= int(match.group(2)) <= 12:
        raise ValueError(f"Could not parse month '{value}', expected YYYY-MM")
    return month_range(int(match.group(1)), int(match.group(2)))


def parse_quarter(value: str) -> tuple[date, date]:
    """Parse "2024-Q1" (or "2024Q1") into the range of that quarter."""
    match = _QUARTER_RE.match(value.strip().lower())
    if not match:
        raise ValueError(f"Could not parse quarter '{value}', expected YYYY-Q1 to YYYY-Q4")
    return quarter_range(int(match.group(1)), int(match.group(2)))


def get_date_range(period: str) -> tuple[date, date]:
    """Get start and end dates for a complete reporting period.

    Args:
        period: Period string (this-month, last-month, this-quarter,
            last-quarter, this-year, last-year)

    Returns:
        Tuple of (start_date, end_date) for the specified period

    Raises:
        ValueError: If period string is not recognized
    """
    period = period.strip().lower()
    today = date.today()

    if period == "this-month":
        return month_range(today.year, today.month)

    elif period == "last-month":
        last = today.replace(day=1) - timedelta(days=1)
        return month_range(last.year, last.month)

    elif period == "this-quarter":
        return quarter_range(today.year, (today.month - 1) // 3 + 1)

    elif period == "last-quarter":
        last = quarter_start(today) - timedelta(days=1)
        return quarter_range(last.year, (last.month - 1) // 3 + 1)

    elif period == "this-year":
        return year_range(today.year)

    elif period == "last-year":
        return year_range(today.year - 1)

    else:
        raise ValueError(
            f"Unknown period: '{period}'. Supported periods: this-month, last-month, "
            "this-quarter, last-quarter, this-year, last-year"
        )
