"""Next-occurrence computation for recurring tasks.

The recurring-task workflow calls ``next_occurrence`` with a task's stored
rule and its current due date. A concrete ISO date means "spawn the next
instance there"; None means the series is over (end date reached) or the
stored rule is unusable. Bad stored data never raises here: generation must
not abort the caller's workflow.
"""
import logging
from datetime import date

from . import config
from .calendar_math import (
    add_days,
    add_months,
    add_years,
    clamped_date,
    days_in_month,
    nth_weekday_of_month,
    to_date,
)
from .models import (
    IntervalRule,
    MonthlyDayRule,
    MonthlyNthWeekdayRule,
    RecurrenceRule,
    WeeklyRule,
    YearlyDateRule,
    parse_rule,
)
from .phrases import MONTHS_EN, month_day_label

logger = logging.getLogger(__name__)


def _step_interval(rule: IntervalRule, anchor: date) -> date:
    if rule.kind == 'daily':
        return add_days(anchor, 1)
    if rule.kind == 'weekly':
        return add_days(anchor, 7)
    if rule.kind == 'biweekly':
        return add_days(anchor, 14)
    if rule.kind == 'monthly':
        return add_months(anchor, 1)
    return add_years(anchor, 1)


def _step_weekly(rule: WeeklyRule, anchor: date) -> date:
    wanted = {int(wd) for wd in rule.days_of_week}
    for offset in range(1, 8):
        candidate = add_days(anchor, offset)
        if candidate.weekday() in wanted:
            return candidate
    # unreachable: a validated rule has at least one weekday
    raise ValueError('weekly rule without weekdays')


def _step_monthly_day(rule: MonthlyDayRule, anchor: date) -> date:
    # the clamp is recomputed from the rule each month, so a "31st" rule
    # returns to the 31st after a short month
    candidate = clamped_date(anchor.year, anchor.month, rule.day_of_month)
    if candidate > anchor:
        return candidate
    following = add_months(anchor.replace(day=1), 1)
    return clamped_date(following.year, following.month, rule.day_of_month)


def _step_nth_weekday(rule: MonthlyNthWeekdayRule, anchor: date) -> date | None:
    month_start = anchor.replace(day=1)
    for i in range(config.MAX_MONTH_SCAN + 1):
        month = add_months(month_start, i)
        candidate = nth_weekday_of_month(month.year, month.month, int(rule.weekday), rule.n)
        # months without an n-th occurrence (e.g. a 5th Friday) are skipped
        if candidate is not None and candidate > anchor:
            return candidate
    logger.warning('no occurrence of %s within %d months of %s', rule, config.MAX_MONTH_SCAN, anchor)
    return None


def _step_yearly(rule: YearlyDateRule, anchor: date) -> date:
    candidate = clamped_date(anchor.year, rule.month, rule.day)
    if candidate > anchor:
        return candidate
    return clamped_date(anchor.year + 1, rule.month, rule.day)


_STEPS = {
    IntervalRule: _step_interval,
    WeeklyRule: _step_weekly,
    MonthlyDayRule: _step_monthly_day,
    MonthlyNthWeekdayRule: _step_nth_weekday,
    YearlyDateRule: _step_yearly,
}


def next_occurrence_date(rule, anchor) -> date | None:
    """Like next_occurrence() but returns a ``date``."""
    anchor = to_date(anchor)
    parsed = parse_rule(rule)
    if parsed is None:
        return None
    try:
        nxt = _STEPS[type(parsed)](parsed, anchor)
    except (ValueError, OverflowError):
        logger.exception('failed to step %r from %s', parsed, anchor)
        return None
    if nxt is None:
        return None
    if parsed.end_date is not None and nxt >= parsed.end_date:
        logger.debug('recurrence ended: %s is not before %s', nxt, parsed.end_date)
        return None
    return nxt


def next_occurrence(rule, anchor) -> str | None:
    """Return the ISO date of the next occurrence after ``anchor``, or None.

    ``rule`` is a RecurrenceRule model or its stored form (a legacy string
    like 'monthly' or a mapping such as ``{'type': 'monthly', 'nthWeekday':
    {'n': 3, 'weekday': 4}}``). Malformed stored rules give None.
    """
    nxt = next_occurrence_date(rule, anchor)
    return nxt.isoformat() if nxt is not None else None


def occurrences(rule, anchor, limit: int = 10):
    """Yield up to ``limit`` successive occurrence dates (ISO strings),
    feeding each result back in as the next anchor."""
    parsed = parse_rule(rule)
    current = to_date(anchor)
    for _ in range(limit):
        nxt = next_occurrence_date(parsed, current)
        if nxt is None:
            return
        yield nxt.isoformat()
        current = nxt


def ordinal(n: int) -> str:
    if n == -1:
        return 'last'
    if 10 <= n % 100 <= 20:
        suffix = 'th'
    else:
        suffix = {1: 'st', 2: 'nd', 3: 'rd'}.get(n % 10, 'th')
    return f'{n}{suffix}'


_INTERVAL_LABELS = {
    'daily': 'Daily',
    'weekly': 'Weekly',
    'biweekly': 'Every 2 weeks',
    'monthly': 'Monthly',
    'yearly': 'Yearly',
}


def describe_rule(rule) -> str:
    """Human-readable label for a rule, e.g. 'Monthly on the 3rd Thursday'.

    Returns 'None' when there is no usable rule so callers never render an
    empty or repr-like label.
    """
    parsed = parse_rule(rule)
    if parsed is None:
        return 'None'
    if isinstance(parsed, IntervalRule):
        text = _INTERVAL_LABELS[parsed.kind]
    elif isinstance(parsed, WeeklyRule):
        text = 'Weekly on ' + ', '.join(wd.short for wd in parsed.days_of_week)
    elif isinstance(parsed, MonthlyDayRule):
        text = f'Monthly on the {ordinal(parsed.day_of_month)}'
    elif isinstance(parsed, MonthlyNthWeekdayRule):
        text = f'Monthly on the {ordinal(parsed.n)} {parsed.weekday.label}'
    else:
        text = f'Yearly on {MONTHS_EN[parsed.month - 1][:3]} {parsed.day}'
    if parsed.end_date is not None:
        text += f' until {month_day_label(parsed.end_date, True)}'
    return text


def _monthday_part(day: int, shortest: int = 28) -> str:
    # days past the shortest month length clamp to the last day; "the
    # largest of shortest..day that exists" says the same in RRULE terms
    if day <= shortest:
        return f'BYMONTHDAY={day}'
    days = ','.join(str(d) for d in range(shortest, day + 1))
    return f'BYMONTHDAY={days};BYSETPOS=-1'


def rule_to_rrule_string(rule) -> str:
    """Export a rule as an RFC 5545 RRULE value (no leading 'RRULE:').

    The end date is exclusive here but UNTIL is inclusive, so UNTIL is the
    day before it. Returns '' when there is no usable rule.
    """
    parsed: RecurrenceRule | None = parse_rule(rule)
    if parsed is None:
        return ''
    parts: list[str] = []
    if isinstance(parsed, IntervalRule):
        freq = 'WEEKLY' if parsed.kind == 'biweekly' else parsed.kind.upper()
        parts.append(f'FREQ={freq}')
        if parsed.kind == 'biweekly':
            parts.append('INTERVAL=2')
    elif isinstance(parsed, WeeklyRule):
        parts.append('FREQ=WEEKLY')
        parts.append('BYDAY=' + ','.join(wd.rrule_code for wd in parsed.days_of_week))
    elif isinstance(parsed, MonthlyDayRule):
        parts.append('FREQ=MONTHLY')
        parts.append(_monthday_part(parsed.day_of_month))
    elif isinstance(parsed, MonthlyNthWeekdayRule):
        parts.append('FREQ=MONTHLY')
        parts.append(f'BYSETPOS={parsed.n}')
        parts.append(f'BYDAY={parsed.weekday.rrule_code}')
    else:
        parts.append('FREQ=YEARLY')
        parts.append(f'BYMONTH={parsed.month}')
        parts.append(_monthday_part(parsed.day, days_in_month(2001, parsed.month)))
    if parsed.end_date is not None:
        parts.append('UNTIL=' + add_days(parsed.end_date, -1).strftime('%Y%m%d'))
    return ';'.join(parts)
