"""Pure calendar arithmetic shared by the phrase interpreter and the
recurrence calculator.

All helpers work on ``datetime.date`` values in the proleptic Gregorian
calendar and have no side effects. Month and year steps clamp to the end of
the target month (Jan 31 + 1 month -> Feb 28/29, Feb 29 + 1 year -> Feb 28),
which is what ``dateutil.relativedelta`` does.
"""
from datetime import date, datetime, timedelta

from dateutil.relativedelta import relativedelta, weekdays as _RD_WEEKDAYS

# Python's convention: Monday == 0 ... Sunday == 6
MONDAY, TUESDAY, WEDNESDAY, THURSDAY, FRIDAY, SATURDAY, SUNDAY = range(7)

_MONTH_LENGTHS = (31, 28, 31, 30, 31, 30, 31, 31, 30, 31, 30, 31)


def is_leap_year(year: int) -> bool:
    """Divisible by 4, except centuries not divisible by 400."""
    return year % 4 == 0 and (year % 100 != 0 or year % 400 == 0)


def days_in_month(year: int, month: int) -> int:
    if not 1 <= month <= 12:
        raise ValueError(f'month must be in 1..12, got {month}')
    if month == 2 and is_leap_year(year):
        return 29
    return _MONTH_LENGTHS[month - 1]


def weekday_of(d: date) -> int:
    return d.weekday()


def add_days(d: date, days: int) -> date:
    return d + timedelta(days=days)


def add_months(d: date, months: int) -> date:
    return d + relativedelta(months=months)


def add_years(d: date, years: int) -> date:
    return d + relativedelta(years=years)


def clamped_date(year: int, month: int, day: int) -> date:
    """Build a date, pulling ``day`` back to the last day of a short month."""
    return date(year, month, min(day, days_in_month(year, month)))


def end_of_month(d: date) -> date:
    return d.replace(day=days_in_month(d.year, d.month))


def nth_weekday_of_month(year: int, month: int, weekday: int, n: int) -> date | None:
    """Return the n-th ``weekday`` of the month, or None if it does not exist.

    ``n`` counts from 1; ``n == -1`` selects the last such weekday. A 5th
    occurrence only exists in some months, so callers must handle None.
    """
    if not 0 <= weekday <= 6:
        raise ValueError(f'weekday must be in 0..6, got {weekday}')
    if n == -1:
        return date(year, month, 1) + relativedelta(day=31, weekday=_RD_WEEKDAYS[weekday](-1))
    if not 1 <= n <= 5:
        raise ValueError(f'n must be in 1..5 or -1, got {n}')
    candidate = date(year, month, 1) + relativedelta(weekday=_RD_WEEKDAYS[weekday](+n))
    if candidate.month != month:
        return None
    return candidate


def next_weekday_after(d: date, weekday: int) -> date:
    """First date strictly after ``d`` falling on ``weekday``."""
    delta = (weekday - d.weekday()) % 7 or 7
    return d + timedelta(days=delta)


def weekday_on_or_after(d: date, weekday: int) -> date:
    return d + timedelta(days=(weekday - d.weekday()) % 7)


def previous_weekday_before(d: date, weekday: int) -> date:
    """Last date strictly before ``d`` falling on ``weekday``."""
    delta = (d.weekday() - weekday) % 7 or 7
    return d - timedelta(days=delta)


def start_of_week(d: date) -> date:
    """Monday of the week containing ``d``."""
    return d - timedelta(days=d.weekday())


def to_date(value) -> date:
    """Normalize an anchor given as a date, datetime or ISO 'YYYY-MM-DD' string."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return date.fromisoformat(value.strip())
    raise TypeError(f'anchor must be a date or ISO date string, got {type(value).__name__}')
