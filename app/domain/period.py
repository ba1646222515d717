"""
Calendar month helpers: (year, month) ranges, bounds and labels.
"""
import calendar
from datetime import date, datetime
from typing import List, Tuple
from zoneinfo import ZoneInfo

MONTH_NAMES = {
    1: "January", 2: "February", 3: "March", 4: "April", 5: "May", 6: "June",
    7: "July", 8: "August", 9: "September", 10: "October", 11: "November", 12: "December",
}


def month_range(y_from: int, m_from: int, y_to: int, m_to: int) -> List[Tuple[int, int]]:
    """Return list of (year, month) tuples from start to end inclusive."""
    result = []
    y, m = y_from, m_from
    while (y, m) <= (y_to, m_to):
        result.append((y, m))
        m += 1
        if m > 12:
            m = 1
            y += 1
    return result


def month_start(y: int, m: int) -> date:
    return date(y, m, 1)


def month_last_day(y: int, m: int) -> date:
    """Return the last calendar day of the month."""
    return date(y, m, calendar.monthrange(y, m)[1])


def month_name(y: int, m: int) -> str:
    return f"{MONTH_NAMES[m]} {y}"


def local_today(tz_name: str | None = None) -> date:
    """Today in the given timezone (server local time if None)."""
    now = datetime.now(ZoneInfo(tz_name)) if tz_name else datetime.now()
    return now.date()


def current_year_month(tz_name: str | None = None) -> Tuple[int, int]:
    today = local_today(tz_name)
    return today.year, today.month
