import pytest
from datetime import date

from quickdate import (
    IntervalRule,
    MonthlyDayRule,
    MonthlyNthWeekdayRule,
    PhraseInputError,
    WeeklyRule,
    YearlyDateRule,
    next_occurrence,
    parse_recurrence_phrase,
)
from quickdate.models import Weekday


@pytest.mark.parametrize('text,kind', [
    ('daily', 'daily'),
    ('every day', 'daily'),
    ('Every Day.', 'daily'),
    ('weekly', 'weekly'),
    ('every week', 'weekly'),
    ('biweekly', 'biweekly'),
    ('bi-weekly', 'biweekly'),
    ('fortnightly', 'biweekly'),
    ('every other week', 'biweekly'),
    ('every 2 weeks', 'biweekly'),
    ('monthly', 'monthly'),
    ('each month', 'monthly'),
    ('yearly', 'yearly'),
    ('annually', 'yearly'),
    ('recurring monthly', 'monthly'),
    ('repeats every day', 'daily'),
])
def test_interval_phrases(anchor, text, kind):
    assert parse_recurrence_phrase(text, anchor) == IntervalRule(kind=kind)


def test_every_weekday(anchor):
    rule = parse_recurrence_phrase('every weekday', anchor)
    assert rule.days_of_week == (Weekday.MONDAY, Weekday.TUESDAY, Weekday.WEDNESDAY,
                                 Weekday.THURSDAY, Weekday.FRIDAY)


def test_every_weekend(anchor):
    assert parse_recurrence_phrase('every weekend', anchor) == WeeklyRule(
        days_of_week=[Weekday.SATURDAY, Weekday.SUNDAY])


@pytest.mark.parametrize('text,days', [
    ('every monday', [Weekday.MONDAY]),
    ('every monday and wednesday', [Weekday.MONDAY, Weekday.WEDNESDAY]),
    ('every mon, wed and fri', [Weekday.MONDAY, Weekday.WEDNESDAY, Weekday.FRIDAY]),
    ('each tuesday, thursday', [Weekday.TUESDAY, Weekday.THURSDAY]),
    ('weekly on sundays', [Weekday.SUNDAY]),
    ('every mon wed fri', [Weekday.MONDAY, Weekday.WEDNESDAY, Weekday.FRIDAY]),
    ('every mondays and thursdays', [Weekday.MONDAY, Weekday.THURSDAY]),
])
def test_weekday_lists(anchor, text, days):
    assert parse_recurrence_phrase(text, anchor) == WeeklyRule(days_of_week=days)


@pytest.mark.parametrize('text,day', [
    ('every month on the 15th', 15),
    ('monthly on the 1st', 1),
    ('the 15th of every month', 15),
    ('on the 3rd of each month', 3),
    ('every 20th of the month', 20),
    ('last day of every month', 31),
    ('monthly on the last day', 31),
])
def test_monthly_day_phrases(anchor, text, day):
    assert parse_recurrence_phrase(text, anchor) == MonthlyDayRule(day_of_month=day)


@pytest.mark.parametrize('text,n,weekday', [
    ('the 3rd thursday of every month', 3, Weekday.THURSDAY),
    ('second tuesday of each month', 2, Weekday.TUESDAY),
    ('every 2nd tuesday', 2, Weekday.TUESDAY),
    ('last friday of every month', -1, Weekday.FRIDAY),
    ('monthly on the first monday', 1, Weekday.MONDAY),
])
def test_nth_weekday_phrases(anchor, text, n, weekday):
    assert parse_recurrence_phrase(text, anchor) == MonthlyNthWeekdayRule(n=n, weekday=weekday)


@pytest.mark.parametrize('text,month,day', [
    ('every year on dec 25', 12, 25),
    ('annually on the 1st of april', 4, 1),
    ('every feb 29', 2, 29),
    ('every 4th of july', 7, 4),
])
def test_yearly_phrases(anchor, text, month, day):
    assert parse_recurrence_phrase(text, anchor) == YearlyDateRule(month=month, day=day)


def test_impossible_yearly_date(anchor):
    assert parse_recurrence_phrase('every feb 30', anchor) is None


def test_until_is_inclusive(anchor):
    rule = parse_recurrence_phrase('every monday until jan 27', anchor)
    assert rule == WeeklyRule(days_of_week=[Weekday.MONDAY], end_date=date(2025, 1, 28))
    assert next_occurrence(rule, '2025-01-20') == '2025-01-27'
    assert next_occurrence(rule, '2025-01-27') is None


def test_until_relative_phrase(anchor):
    rule = parse_recurrence_phrase('daily until friday', anchor)
    assert rule == IntervalRule(kind='daily', end_date=date(2025, 1, 11))


def test_until_unresolvable_gives_none(anchor):
    assert parse_recurrence_phrase('every monday until whenever', anchor) is None


@pytest.mark.parametrize('text', ['', 'sometimes', 'every blue moon', 'every monday and someday'])
def test_unrecognized_gives_none(anchor, text):
    assert parse_recurrence_phrase(text, anchor) is None


def test_none_text_raises(anchor):
    with pytest.raises(PhraseInputError):
        parse_recurrence_phrase(None, anchor)


def test_monday_list_schedules_next_monday(anchor):
    rule = parse_recurrence_phrase('every monday and friday', anchor)
    assert next_occurrence(rule, anchor) == '2025-01-10'
    assert next_occurrence(rule, '2025-01-10') == '2025-01-13'
