import pytest
from datetime import date, datetime

from quickdate.calendar_math import (
    FRIDAY,
    MONDAY,
    THURSDAY,
    WEDNESDAY,
    add_days,
    add_months,
    add_years,
    clamped_date,
    days_in_month,
    end_of_month,
    is_leap_year,
    next_weekday_after,
    nth_weekday_of_month,
    previous_weekday_before,
    start_of_week,
    to_date,
    weekday_of,
    weekday_on_or_after,
)


@pytest.mark.parametrize('year,expected', [(2024, True), (2025, False), (1900, False), (2000, True)])
def test_is_leap_year(year, expected):
    assert is_leap_year(year) is expected


def test_days_in_month():
    assert days_in_month(2024, 2) == 29
    assert days_in_month(2025, 2) == 28
    assert days_in_month(2025, 4) == 30
    assert days_in_month(2025, 12) == 31


def test_days_in_month_rejects_bad_month():
    with pytest.raises(ValueError):
        days_in_month(2025, 13)


def test_weekday_of_uses_monday_zero():
    assert weekday_of(date(2025, 1, 6)) == MONDAY
    assert weekday_of(date(2025, 1, 8)) == WEDNESDAY


def test_add_days_crosses_year():
    assert add_days(date(2024, 12, 31), 1) == date(2025, 1, 1)
    assert add_days(date(2025, 1, 1), -1) == date(2024, 12, 31)


def test_add_months_clamps_to_month_end():
    assert add_months(date(2025, 1, 31), 1) == date(2025, 2, 28)
    assert add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)
    assert add_months(date(2025, 3, 31), 1) == date(2025, 4, 30)
    assert add_months(date(2025, 12, 15), 1) == date(2026, 1, 15)


def test_add_years_leap_day():
    assert add_years(date(2024, 2, 29), 1) == date(2025, 2, 28)
    assert add_years(date(2024, 2, 29), 4) == date(2028, 2, 29)


def test_clamped_date_and_end_of_month():
    assert clamped_date(2025, 2, 31) == date(2025, 2, 28)
    assert clamped_date(2025, 6, 15) == date(2025, 6, 15)
    assert end_of_month(date(2024, 2, 10)) == date(2024, 2, 29)


def test_nth_weekday_of_month():
    assert nth_weekday_of_month(2025, 1, THURSDAY, 3) == date(2025, 1, 16)
    assert nth_weekday_of_month(2025, 1, WEDNESDAY, 1) == date(2025, 1, 1)
    assert nth_weekday_of_month(2025, 1, FRIDAY, 5) == date(2025, 1, 31)


def test_nth_weekday_missing_fifth_returns_none():
    # February 2025 has four Fridays
    assert nth_weekday_of_month(2025, 2, FRIDAY, 5) is None


def test_nth_weekday_last():
    assert nth_weekday_of_month(2025, 1, FRIDAY, -1) == date(2025, 1, 31)
    assert nth_weekday_of_month(2025, 2, FRIDAY, -1) == date(2025, 2, 28)
    assert nth_weekday_of_month(2025, 11, THURSDAY, 4) == date(2025, 11, 27)


@pytest.mark.parametrize('n', [0, 6, -2])
def test_nth_weekday_rejects_bad_n(n):
    with pytest.raises(ValueError):
        nth_weekday_of_month(2025, 1, MONDAY, n)


def test_weekday_steps_around_anchor():
    wed = date(2025, 1, 8)
    assert next_weekday_after(wed, WEDNESDAY) == date(2025, 1, 15)
    assert next_weekday_after(wed, FRIDAY) == date(2025, 1, 10)
    assert weekday_on_or_after(wed, WEDNESDAY) == wed
    assert previous_weekday_before(wed, WEDNESDAY) == date(2025, 1, 1)
    assert previous_weekday_before(wed, MONDAY) == date(2025, 1, 6)
    assert start_of_week(wed) == date(2025, 1, 6)


def test_to_date_accepts_date_datetime_and_iso():
    assert to_date(date(2025, 1, 8)) == date(2025, 1, 8)
    assert to_date(datetime(2025, 1, 8, 13, 30)) == date(2025, 1, 8)
    assert to_date(' 2025-01-08 ') == date(2025, 1, 8)


def test_to_date_rejects_garbage():
    with pytest.raises(ValueError):
        to_date('next tuesday')
    with pytest.raises(TypeError):
        to_date(20250108)
