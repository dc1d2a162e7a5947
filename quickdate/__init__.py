"""Natural-language due dates and recurring-task scheduling."""
from .models import (
    DateCandidate,
    IntervalRule,
    MonthlyDayRule,
    MonthlyNthWeekdayRule,
    RecurrenceRule,
    Weekday,
    WeeklyRule,
    YearlyDateRule,
    parse_rule,
    rule_to_dict,
)
from .phrases import PhraseInputError, interpret
from .recurrence import (
    describe_rule,
    next_occurrence,
    next_occurrence_date,
    occurrences,
    rule_to_rrule_string,
)
from .recurrence_phrases import parse_recurrence_phrase

__all__ = [
    'DateCandidate',
    'IntervalRule',
    'MonthlyDayRule',
    'MonthlyNthWeekdayRule',
    'PhraseInputError',
    'RecurrenceRule',
    'Weekday',
    'WeeklyRule',
    'YearlyDateRule',
    'describe_rule',
    'interpret',
    'next_occurrence',
    'next_occurrence_date',
    'occurrences',
    'parse_recurrence_phrase',
    'parse_rule',
    'rule_to_dict',
    'rule_to_rrule_string',
]
