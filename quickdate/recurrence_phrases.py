"""Parse short recurrence phrases ("every other week", "the 3rd thursday of
every month", "every monday and wednesday until march 1") into rules.

This is a heuristic parser for the quick-entry box: each phrase is matched
whole, the first matching pattern wins, and anything else gives None.
"""
import logging
import re

from .calendar_math import add_days, to_date
from .models import (
    WEEKDAY_LOOKUP,
    IntervalRule,
    MonthlyDayRule,
    MonthlyNthWeekdayRule,
    RecurrenceRule,
    Weekday,
    WeeklyRule,
    YearlyDateRule,
)
from .phrases import DAY, MONTH, MONTH_LOOKUP, WEEKDAY, PhraseInputError, interpret, normalize_phrase

logger = logging.getLogger(__name__)

ORDINAL_WORDS = {
    'first': 1, '1st': 1, 'second': 2, '2nd': 2, 'third': 3, '3rd': 3,
    'fourth': 4, '4th': 4, 'fifth': 5, '5th': 5, 'last': -1,
}
_ORDINAL = r'(?P<ord>first|second|third|fourth|fifth|last|1st|2nd|3rd|4th|5th)'
_EVERY = r'(?:every|each)'
_OF_EVERY_MONTH = rf'of (?:{_EVERY}|the) month'

_INTERVAL_PHRASES = (
    (re.compile(rf'daily|{_EVERY} day'), 'daily'),
    (re.compile(rf'bi-?weekly|fortnightly|{_EVERY} (?:other|2|two) weeks?|{_EVERY} fortnight'), 'biweekly'),
    (re.compile(rf'weekly|{_EVERY} week'), 'weekly'),
    (re.compile(rf'monthly|{_EVERY} month'), 'monthly'),
    (re.compile(rf'yearly|annually|{_EVERY} year'), 'yearly'),
)

_WEEKDAYS_ONLY = re.compile(rf'{_EVERY} weekday|weekdays')
_WEEKENDS_ONLY = re.compile(rf'{_EVERY} weekend|weekends')
_WEEKDAY_LIST = re.compile(rf'(?:{_EVERY}|on|weekly on) (?P<days>.+)')
_MONTH_DAY = (
    re.compile(rf'(?:monthly|{_EVERY} month) on (?:the )?{DAY}'),
    re.compile(rf'(?:on )?(?:the )?{DAY} {_OF_EVERY_MONTH}'),
    re.compile(rf'{_EVERY} {DAY} of the month'),
)
_LAST_DAY = re.compile(rf'(?:on )?(?:the )?last day {_OF_EVERY_MONTH}|(?:monthly|{_EVERY} month) on the last day')
_NTH_WEEKDAY = (
    re.compile(rf'(?:on )?(?:the )?{_ORDINAL} {WEEKDAY} {_OF_EVERY_MONTH}'),
    re.compile(rf'{_EVERY} {_ORDINAL} {WEEKDAY}(?: {_OF_EVERY_MONTH})?'),
    re.compile(rf'(?:monthly|{_EVERY} month) on the {_ORDINAL} {WEEKDAY}'),
)
_YEARLY_DATE = (
    re.compile(rf'(?:yearly|annually|{_EVERY} year) on {MONTH} {DAY}'),
    re.compile(rf'(?:yearly|annually|{_EVERY} year) on (?:the )?{DAY} (?:of )?{MONTH}'),
    re.compile(rf'{_EVERY} {MONTH} {DAY}'),
    re.compile(rf'{_EVERY} {DAY} (?:of )?{MONTH}'),
)
_UNTIL = re.compile(r'(?P<body>.+?),? (?:until|till|through|ending(?: on)?) (?P<until>.+)')
_RECURRING_PREFIX = re.compile(r'(?:recurring|repeats?|repeating) ')


def _weekday_list(text: str) -> list[Weekday] | None:
    """'monday, wednesday and fri' -> weekdays; None if any token is not one."""
    tokens = [t for t in re.split(r',? and |, |,| ', text) if t]
    days = []
    for tok in tokens:
        tok = tok.rstrip('.')
        wd = WEEKDAY_LOOKUP.get(tok)
        if wd is None and tok.endswith('s'):
            wd = WEEKDAY_LOOKUP.get(tok[:-1])
        if wd is None or len(tok) < 3:
            return None
        days.append(wd)
    return days or None


def _parse_body(p: str) -> RecurrenceRule | None:
    # "recurring monthly", "repeats every day"
    m = _RECURRING_PREFIX.match(p)
    if m:
        p = p[m.end():]
    for regex, kind in _INTERVAL_PHRASES:
        if regex.fullmatch(p):
            return IntervalRule(kind=kind)

    if _WEEKDAYS_ONLY.fullmatch(p):
        return WeeklyRule(days_of_week=[Weekday.MONDAY, Weekday.TUESDAY, Weekday.WEDNESDAY,
                                        Weekday.THURSDAY, Weekday.FRIDAY])
    if _WEEKENDS_ONLY.fullmatch(p):
        return WeeklyRule(days_of_week=[Weekday.SATURDAY, Weekday.SUNDAY])

    if _LAST_DAY.fullmatch(p):
        # 31 clamps to the last day of every month
        return MonthlyDayRule(day_of_month=31)
    for regex in _MONTH_DAY:
        m = regex.fullmatch(p)
        if m and 1 <= int(m.group('day')) <= 31:
            return MonthlyDayRule(day_of_month=int(m.group('day')))

    for regex in _NTH_WEEKDAY:
        m = regex.fullmatch(p)
        if m:
            return MonthlyNthWeekdayRule(n=ORDINAL_WORDS[m.group('ord')],
                                         weekday=WEEKDAY_LOOKUP[m.group('weekday')])

    for regex in _YEARLY_DATE:
        m = regex.fullmatch(p)
        if m:
            try:
                return YearlyDateRule(month=MONTH_LOOKUP[m.group('month')], day=int(m.group('day')))
            except ValueError:
                logger.debug('not a calendar day: %r', p)
                return None

    m = _WEEKDAY_LIST.fullmatch(p)
    if m:
        days = _weekday_list(m.group('days'))
        if days:
            return WeeklyRule(days_of_week=days)
    return None


def parse_recurrence_phrase(text: str, anchor) -> RecurrenceRule | None:
    """Parse a recurrence phrase into a rule, or None if it is not one.

    A trailing 'until <date phrase>' is resolved with interpret() against
    ``anchor`` and is inclusive: the rule's exclusive end date is the day
    after it.
    """
    if text is None:
        raise PhraseInputError('text is required')
    if not isinstance(text, str):
        raise PhraseInputError(f'text must be a str, got {type(text).__name__}')
    anchor = to_date(anchor)
    p = normalize_phrase(text)
    if not p:
        return None

    end_date = None
    m = _UNTIL.fullmatch(p)
    if m:
        found = interpret(m.group('until'), anchor)
        if not found:
            logger.debug('could not resolve end of recurrence %r', m.group('until'))
            return None
        end_date = add_days(found[0].as_date(), 1)
        p = m.group('body')

    rule = _parse_body(p)
    if rule is None:
        return None
    if end_date is not None:
        rule = rule.model_copy(update={'end_date': end_date})
    logger.debug('parsed recurrence %r -> %r', text, rule)
    return rule
