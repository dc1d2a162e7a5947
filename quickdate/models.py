from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import date
from enum import IntEnum
from typing import Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from .calendar_math import days_in_month

logger = logging.getLogger(__name__)


class Weekday(IntEnum):
    """Day of week using Python's numbering (Monday == 0)."""
    MONDAY = 0
    TUESDAY = 1
    WEDNESDAY = 2
    THURSDAY = 3
    FRIDAY = 4
    SATURDAY = 5
    SUNDAY = 6

    @property
    def label(self) -> str:
        return self.name.capitalize()

    @property
    def short(self) -> str:
        return self.label[:3]

    @property
    def rrule_code(self) -> str:
        return self.name[:2]

    def to_stored(self) -> int:
        """Task records number weekdays from Sunday == 0."""
        return (int(self) + 1) % 7

    @classmethod
    def from_stored(cls, value: Any) -> 'Weekday':
        """Convert a weekday as found in stored task data.

        Integers follow the task-record convention (0 == Sunday ... 6 ==
        Saturday, 7 is also accepted as Sunday). Strings may be a full name,
        a common abbreviation or a two-letter RRULE code.
        """
        if isinstance(value, Weekday):
            return value
        if isinstance(value, bool):
            raise ValueError(f'not a weekday: {value!r}')
        if isinstance(value, int):
            if not 0 <= value <= 7:
                raise ValueError(f'weekday number out of range: {value}')
            return cls((value - 1) % 7)
        if isinstance(value, str):
            found = WEEKDAY_LOOKUP.get(value.strip().lower())
            if found is not None:
                return found
        raise ValueError(f'not a weekday: {value!r}')


# name, abbreviation and RRULE code -> Weekday
WEEKDAY_LOOKUP: dict[str, Weekday] = {}
for _wd in Weekday:
    WEEKDAY_LOOKUP[_wd.name.lower()] = _wd
    WEEKDAY_LOOKUP[_wd.name.lower()[:3]] = _wd
    WEEKDAY_LOOKUP[_wd.rrule_code.lower()] = _wd
WEEKDAY_LOOKUP.update({
    'tues': Weekday.TUESDAY,
    'weds': Weekday.WEDNESDAY,
    'thur': Weekday.THURSDAY,
    'thurs': Weekday.THURSDAY,
})


class DateCandidate(BaseModel):
    """One possible reading of a date phrase."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    label: str
    iso_date: str = Field(alias='isoDate', pattern=r'^\d{4}-\d{2}-\d{2}$')

    @field_validator('iso_date')
    @classmethod
    def _real_calendar_date(cls, v: str) -> str:
        date.fromisoformat(v)
        return v

    @classmethod
    def on(cls, label: str, d: date) -> 'DateCandidate':
        return cls(label=label, iso_date=d.isoformat())

    def as_date(self) -> date:
        return date.fromisoformat(self.iso_date)


# --- Recurrence rules ---------------------------------------------------------
#
# A rule is exactly one of the variants below. Every variant may carry an
# exclusive end date: no occurrence is produced on or after it.

LEGACY_KINDS = ('daily', 'weekly', 'biweekly', 'monthly', 'yearly')


class _RuleBase(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    end_date: date | None = Field(default=None, alias='endDate')

    def _stored_end(self, out: dict) -> dict:
        if self.end_date is not None:
            out['endDate'] = self.end_date.isoformat()
        return out


class IntervalRule(_RuleBase):
    """Legacy fixed step: daily, weekly, biweekly, monthly or yearly."""
    kind: Literal['daily', 'weekly', 'biweekly', 'monthly', 'yearly']

    def to_dict(self) -> dict:
        return self._stored_end({'type': self.kind})


class WeeklyRule(_RuleBase):
    days_of_week: tuple[Weekday, ...] = Field(alias='daysOfWeek', min_length=1)

    @field_validator('days_of_week', mode='before')
    @classmethod
    def _coerce_days(cls, v: Any) -> tuple[Weekday, ...]:
        if isinstance(v, (str, bytes)) or not isinstance(v, (list, tuple, set, frozenset)):
            raise ValueError('daysOfWeek must be a list of weekdays')
        return tuple(sorted({Weekday.from_stored(x) for x in v}))

    def to_dict(self) -> dict:
        return self._stored_end({
            'type': 'weekly',
            'daysOfWeek': [wd.to_stored() for wd in self.days_of_week],
        })


class MonthlyDayRule(_RuleBase):
    day_of_month: int = Field(alias='dayOfMonth', ge=1, le=31)

    def to_dict(self) -> dict:
        return self._stored_end({'type': 'monthly', 'dayOfMonth': self.day_of_month})


class MonthlyNthWeekdayRule(_RuleBase):
    """The n-th ``weekday`` of each month; ``n == -1`` means the last one."""
    n: int
    weekday: Weekday

    @field_validator('n')
    @classmethod
    def _check_n(cls, v: int) -> int:
        if v != -1 and not 1 <= v <= 5:
            raise ValueError('n must be 1..5 or -1 (last)')
        return v

    @field_validator('weekday', mode='before')
    @classmethod
    def _coerce_weekday(cls, v: Any) -> Weekday:
        return Weekday.from_stored(v)

    def to_dict(self) -> dict:
        return self._stored_end({
            'type': 'monthly',
            'nthWeekday': {'n': self.n, 'weekday': self.weekday.to_stored()},
        })


class YearlyDateRule(_RuleBase):
    """A fixed month/day each year. Feb 29 is allowed and clamps in common years."""
    month: int = Field(ge=1, le=12)
    day: int = Field(ge=1, le=31)

    @model_validator(mode='after')
    def _day_exists(self) -> 'YearlyDateRule':
        # 2000 is a leap year, so Feb 29 passes
        if self.day > days_in_month(2000, self.month):
            raise ValueError(f'{self.month:02d}-{self.day:02d} is not a calendar day')
        return self

    def to_dict(self) -> dict:
        return self._stored_end({'type': 'yearly', 'dayOfYear': f'{self.month:02d}-{self.day:02d}'})


RecurrenceRule = Union[IntervalRule, WeeklyRule, MonthlyDayRule, MonthlyNthWeekdayRule, YearlyDateRule]
RULE_TYPES = (IntervalRule, WeeklyRule, MonthlyDayRule, MonthlyNthWeekdayRule, YearlyDateRule)


def _pick(raw: Mapping, *keys: str) -> Any:
    for k in keys:
        if raw.get(k) is not None:
            return raw[k]
    return None


def _split_day_of_year(value: Any) -> tuple[Any, Any]:
    if isinstance(value, str):
        parts = value.strip().split('-')
        if len(parts) != 2:
            raise ValueError(f'dayOfYear must look like MM-DD, got {value!r}')
        return int(parts[0]), int(parts[1])
    if isinstance(value, Mapping):
        return value.get('month'), value.get('day')
    raise ValueError(f'unsupported dayOfYear {value!r}')


def _rule_from_mapping(raw: Mapping) -> RecurrenceRule:
    rtype = str(raw.get('type') or '').strip().lower()
    end = _pick(raw, 'endDate', 'end_date', 'recurrenceEndDate') or None
    days = _pick(raw, 'daysOfWeek', 'days_of_week')
    day_of_month = _pick(raw, 'dayOfMonth', 'day_of_month')
    nth = _pick(raw, 'nthWeekday', 'nth_weekday')
    day_of_year = _pick(raw, 'dayOfYear', 'day_of_year')

    if rtype == 'weekly' and days is not None:
        # an explicit but empty set is malformed, not "every week"; null means absent
        return WeeklyRule(days_of_week=days, end_date=end)
    if rtype == 'monthly' and day_of_month is not None and nth is not None:
        raise ValueError('monthly rule sets both dayOfMonth and nthWeekday')
    if rtype == 'monthly' and day_of_month is not None:
        return MonthlyDayRule(day_of_month=day_of_month, end_date=end)
    if rtype == 'monthly' and nth is not None:
        if not isinstance(nth, Mapping):
            raise ValueError(f'nthWeekday must be a mapping, got {nth!r}')
        return MonthlyNthWeekdayRule(n=nth.get('n'), weekday=nth.get('weekday'), end_date=end)
    if rtype == 'yearly' and day_of_year is not None:
        month, day = _split_day_of_year(day_of_year)
        return YearlyDateRule(month=month, day=day, end_date=end)
    if rtype in LEGACY_KINDS:
        # structured record without variant fields: same step as the scalar form
        return IntervalRule(kind=rtype, end_date=end)
    raise ValueError(f'unknown recurrence type {rtype!r}')


def parse_rule(raw: Any) -> RecurrenceRule | None:
    """Deserialize a recurrence as stored on a task record.

    Returns None when there is no recurrence or when the stored data is
    malformed (logged). Raises TypeError for values that cannot be a stored
    rule at all, since those come from a caller bug rather than bad data.
    """
    if isinstance(raw, RULE_TYPES):
        return raw
    if raw is None:
        return None
    if isinstance(raw, str):
        key = raw.strip().lower()
        if not key:
            return None
        if key in LEGACY_KINDS:
            return IntervalRule(kind=key)
        logger.warning('ignoring unknown recurrence %r', raw)
        return None
    if not isinstance(raw, Mapping):
        raise TypeError(f'recurrence rule must be a str, mapping or rule model, got {type(raw).__name__}')
    try:
        return _rule_from_mapping(raw)
    except (ValidationError, ValueError, TypeError) as exc:
        logger.warning('ignoring malformed recurrence %r: %s', raw, exc)
        return None


def rule_to_dict(rule: RecurrenceRule) -> dict:
    """Serialize a rule into the camelCase form task records store."""
    return rule.to_dict()
