"""Turn everyday date phrases ("next monday", "in 3 weeks", "christmas")
into candidate calendar dates.

``interpret`` normalizes the text and runs it through an ordered battery of
recognizers. Each recognizer understands one family of phrases and may
contribute several candidates; more specific (absolute) readings come before
relative ones and exact duplicates are collapsed. Nothing here reads the
clock: every relative phrase is resolved against the caller's anchor date.
"""
import logging
import math
import re
from datetime import date, datetime

from . import config
from .calendar_math import (
    MONDAY,
    SUNDAY,
    THURSDAY,
    add_days,
    add_months,
    add_years,
    end_of_month,
    next_weekday_after,
    nth_weekday_of_month,
    previous_weekday_before,
    start_of_week,
    to_date,
    weekday_on_or_after,
)
from .models import WEEKDAY_LOOKUP, DateCandidate

logger = logging.getLogger(__name__)


class PhraseInputError(ValueError):
    """Raised when interpret() is called without text (a caller bug)."""


MONTHS_EN = [
    'January', 'February', 'March', 'April', 'May', 'June', 'July', 'August',
    'September', 'October', 'November', 'December',
]
MONTH_LOOKUP = {m.lower(): i + 1 for i, m in enumerate(MONTHS_EN)}
MONTH_LOOKUP.update({m[:3].lower(): i + 1 for i, m in enumerate(MONTHS_EN)})
MONTH_LOOKUP['sept'] = 9

# Spelled-out counts accepted wherever a number is expected ("in three days").
NUMBER_WORDS = {
    'zero': 0, 'one': 1, 'two': 2, 'three': 3, 'four': 4, 'five': 5, 'six': 6,
    'seven': 7, 'eight': 8, 'nine': 9, 'ten': 10, 'eleven': 11, 'twelve': 12,
    'a': 1, 'an': 1,
}


def _alternation(words) -> str:
    # longest first so 'march' wins over 'mar'
    return '|'.join(sorted((re.escape(w) for w in words), key=len, reverse=True))


MONTH = rf'(?P<month>{_alternation(MONTH_LOOKUP)})\.?'
WEEKDAY = rf'(?P<weekday>{_alternation(k for k in WEEKDAY_LOOKUP if len(k) > 2)})\.?'
DAY = r'(?P<day>\d{1,2})(?:st|nd|rd|th)?'
YEAR = r'(?P<year>\d{4})'
NUM = rf'(?P<n>\d+(?:\.\d+)?|{_alternation(NUMBER_WORDS)})'
UNIT = r'(?P<unit>day|week|month|year)s?'

_LEADING_FILLER = re.compile(r'^(?:due on|due|on|by) ')
_TRAILING_PUNCT = '.,!?;:'


def normalize_phrase(text: str) -> str:
    """Trim, casefold, collapse whitespace and drop trailing punctuation."""
    t = text.replace('’', "'").strip().casefold()
    t = re.sub(r'\s+', ' ', t)
    t = t.rstrip(_TRAILING_PUNCT).strip()
    return _LEADING_FILLER.sub('', t)


def month_day_label(d: date, with_year: bool = False) -> str:
    label = f'{MONTHS_EN[d.month - 1][:3]} {d.day}'
    if with_year:
        label += f', {d.year}'
    return label


def _count(token: str) -> int:
    if token in NUMBER_WORDS:
        return NUMBER_WORDS[token]
    return math.floor(float(token))


def _units(n: int, unit: str) -> str:
    return f'{n} {unit}' if n == 1 else f'{n} {unit}s'


def _shift(anchor: date, n: int, unit: str) -> date:
    if unit == 'day':
        return add_days(anchor, n)
    if unit == 'week':
        return add_days(anchor, 7 * n)
    if unit == 'month':
        return add_months(anchor, n)
    return add_years(anchor, n)


def _first_of_next_month(d: date) -> date:
    return add_months(d.replace(day=1), 1)


class Recognizer:
    """One family of date phrases.

    Subclasses list ``(regex, handler name)`` pairs in ``patterns`` (or
    override ``handlers``). ``recognize`` calls the handler of every pattern
    that fully matches the normalized text; ``scan`` looks for each pattern
    as whole words inside longer text ("call mom tomorrow"). A handler takes
    the match and the anchor and returns a DateCandidate or None.
    """
    name = 'recognizer'
    patterns: tuple = ()

    def __init__(self):
        self._compiled = [
            (re.compile(p), re.compile(rf'(?<!\S)(?:{p})(?![^\s.,;:!?])'), handler)
            for p, handler in self.handlers()
        ]

    def handlers(self):
        return [(p, getattr(self, h)) for p, h in self.patterns]

    def _resolve(self, handler, m, anchor: date):
        try:
            return handler(m, anchor)
        except (ValueError, OverflowError) as exc:
            # impossible calendar date (2/30) or a step past year 9999
            logger.debug('%s: %r matched but did not resolve: %s', self.name, m.group(0), exc)
            return None

    def recognize(self, text: str, anchor: date) -> list[DateCandidate]:
        out = []
        for regex, _, handler in self._compiled:
            m = regex.fullmatch(text)
            if not m:
                continue
            cand = self._resolve(handler, m, anchor)
            if cand is not None:
                out.append(cand)
        return out

    def scan(self, text: str, anchor: date) -> list[tuple[tuple[int, int], DateCandidate]]:
        """First whole-word hit of each pattern as ``(span, candidate)``."""
        out = []
        for _, regex, handler in self._compiled:
            m = regex.search(text)
            if not m:
                continue
            cand = self._resolve(handler, m, anchor)
            if cand is not None:
                out.append((m.span(), cand))
        return out


class AbsoluteDateRecognizer(Recognizer):
    name = 'absolute'
    patterns = (
        (rf'{YEAR}[-/](?P<m>\d{{1,2}})[-/](?P<d>\d{{1,2}})', 'iso'),
        (r'(?P<a>\d{1,2})[/-](?P<b>\d{1,2})(?:[/-](?P<year>\d{4}|\d{2}))?', 'numeric'),
        (rf'{MONTH} {DAY}(?:,? {YEAR})?', 'month_day'),
        (rf'(?:the )?{DAY} (?:of )?{MONTH}(?:,? {YEAR})?', 'month_day'),
        (rf'{MONTH},? {YEAR}', 'month_year'),
        (YEAR, 'bare_year'),
    )

    def iso(self, m, anchor):
        d = date(int(m.group('year')), int(m.group('m')), int(m.group('d')))
        return DateCandidate.on(month_day_label(d, True), d)

    def numeric(self, m, anchor):
        a, b = int(m.group('a')), int(m.group('b'))
        if config.DATE_ORDER == 'DMY':
            day, month = a, b
        else:
            month, day = a, b
        # a token above 12 can only be the day
        if month > 12 and day <= 12:
            month, day = day, month
        year_token = m.group('year')
        year = anchor.year
        if year_token:
            year = int(year_token)
            if len(year_token) == 2:
                year += 2000
        d = date(year, month, day)
        return DateCandidate.on(month_day_label(d, bool(year_token)), d)

    def month_day(self, m, anchor):
        year = int(m.group('year')) if m.group('year') else anchor.year
        d = date(year, MONTH_LOOKUP[m.group('month')], int(m.group('day')))
        return DateCandidate.on(month_day_label(d, bool(m.group('year'))), d)

    def month_year(self, m, anchor):
        d = date(int(m.group('year')), MONTH_LOOKUP[m.group('month')], 1)
        return DateCandidate.on(month_day_label(d, True), d)

    def bare_year(self, m, anchor):
        d = date(int(m.group('year')), 1, 1)
        return DateCandidate.on(month_day_label(d, True), d)


# label, alias pattern, resolver(anchor year) -> date
HOLIDAYS = (
    ('Christmas', r"(?:christmas|x-?mas)(?: day)?", lambda y: date(y, 12, 25)),
    ('Halloween', r"hall?owe'?en", lambda y: date(y, 10, 31)),
    ("Valentine's Day", r"(?:st\.? )?valentine'?s?(?: day)?", lambda y: date(y, 2, 14)),
    # a plain "July 4" reads as the holiday too
    ('Independence Day', r"independence day|(?:the )?(?:4th|fourth) of july|july (?:4|4th|fourth)",
     lambda y: date(y, 7, 4)),
    ("New Year's Eve", r"new year'?s? eve|nye", lambda y: date(y, 12, 31)),
    ("New Year's", r"new year(?:'?s)?(?: day)?", lambda y: date(y + 1, 1, 1)),
    ('Thanksgiving', r"thanksgiving(?: day)?", lambda y: nth_weekday_of_month(y, 11, THURSDAY, 4)),
)


class HolidayRecognizer(Recognizer):
    name = 'holiday'

    def handlers(self):
        def resolver(label, resolve):
            return lambda m, anchor: DateCandidate.on(label, resolve(anchor.year))

        return [(p, resolver(label, resolve)) for label, p, resolve in HOLIDAYS]


class WeekdayRecognizer(Recognizer):
    name = 'weekday'
    patterns = (
        (rf'(?:next )?{WEEKDAY}', 'upcoming'),
        (rf'this {WEEKDAY}', 'this'),
        (rf'last {WEEKDAY}', 'last'),
        (rf'{WEEKDAY} next week', 'next_week'),
    )

    @staticmethod
    def _weekday(m):
        return WEEKDAY_LOOKUP[m.group('weekday')]

    def upcoming(self, m, anchor):
        # always strictly in the future, never today
        wd = self._weekday(m)
        return DateCandidate.on(f'Next {wd.label}', next_weekday_after(anchor, wd))

    def this(self, m, anchor):
        wd = self._weekday(m)
        return DateCandidate.on(f'This {wd.label}', weekday_on_or_after(anchor, wd))

    def last(self, m, anchor):
        wd = self._weekday(m)
        return DateCandidate.on(f'Last {wd.label}', previous_weekday_before(anchor, wd))

    def next_week(self, m, anchor):
        wd = self._weekday(m)
        return DateCandidate.on(f'{wd.label} next week', add_days(next_weekday_after(anchor, wd), 7))


class BoundaryRecognizer(Recognizer):
    """Fuzzy period boundaries: end of month, beginning of next week, mid-March."""
    name = 'boundary'
    patterns = (
        (r'(?:the )?end of (?:the )?(?P<which>this |next )?(?P<unit>week|month|year)', 'end_of_period'),
        (r'(?P<abbr>eow|eom|eoy)', 'end_of_period'),
        (r'(?:the )?(?P<word>start|beginning) of (?:the )?(?P<which>this |next )?(?P<unit>week|month|year)',
         'start_of_period'),
        (r'(?P<abbr>sow|som)', 'start_of_period'),
        (r'(?:the )?(?:middle|mid)(?: of)?[ -](?:the )?(?P<which>this |next )?month', 'middle_of_month'),
        (rf'(?:the )?(?:middle|mid)(?: of)?[ -](?:the )?{MONTH}(?: {YEAR})?', 'middle_of_named_month'),
        (rf'(?:the )?end of (?:the )?{MONTH}(?: {YEAR})?', 'end_of_named_month'),
        (rf'(?:the )?(?P<word>start|beginning) of (?:the )?{MONTH}(?: {YEAR})?', 'start_of_named_month'),
    )
    _ABBR = {'eow': 'week', 'eom': 'month', 'eoy': 'year', 'sow': 'week', 'som': 'month'}

    def _parts(self, m):
        groups = m.groupdict()
        if groups.get('abbr'):
            return self._ABBR[groups['abbr']], False, 'start'
        which = (groups.get('which') or '').strip()
        return groups['unit'], which == 'next', groups.get('word') or 'start'

    def end_of_period(self, m, anchor):
        unit, nxt, _ = self._parts(m)
        if unit == 'week':
            sunday = weekday_on_or_after(anchor, SUNDAY)
            if nxt:
                return DateCandidate.on('End of next week', add_days(sunday, 7))
            return DateCandidate.on('End of week (Sunday)', sunday)
        if unit == 'month':
            if nxt:
                return DateCandidate.on('End of next month', end_of_month(_first_of_next_month(anchor)))
            return DateCandidate.on('End of month', end_of_month(anchor))
        if nxt:
            return DateCandidate.on('End of next year', date(anchor.year + 1, 12, 31))
        return DateCandidate.on('End of year', date(anchor.year, 12, 31))

    def start_of_period(self, m, anchor):
        unit, nxt, word = self._parts(m)
        word = word.capitalize()
        if unit == 'week':
            monday = next_weekday_after(anchor, MONDAY)
            if nxt:
                return DateCandidate.on(f'{word} of next week', monday)
            return DateCandidate.on(f'{word} of week (Monday)', monday)
        if unit == 'month':
            if nxt:
                return DateCandidate.on(f'{word} of next month', _first_of_next_month(anchor))
            first = anchor.replace(day=1)
            # on the 1st itself the upcoming start is next month's
            if first == anchor:
                first = _first_of_next_month(anchor)
            return DateCandidate.on(f'{word} of month', first)
        if nxt:
            return DateCandidate.on(f'{word} of next year', date(anchor.year + 1, 1, 1))
        first = date(anchor.year, 1, 1)
        if first == anchor:
            first = date(anchor.year + 1, 1, 1)
        return DateCandidate.on(f'{word} of year', first)

    def middle_of_month(self, m, anchor):
        if (m.group('which') or '').strip() == 'next':
            return DateCandidate.on('Middle of next month', _first_of_next_month(anchor).replace(day=15))
        return DateCandidate.on('Middle of month', anchor.replace(day=15))

    def _named_month(self, m, anchor):
        year = int(m.group('year')) if m.group('year') else anchor.year
        month = MONTH_LOOKUP[m.group('month')]
        name = MONTHS_EN[month - 1]
        if m.group('year'):
            name += f' {year}'
        return year, month, name

    def middle_of_named_month(self, m, anchor):
        year, month, name = self._named_month(m, anchor)
        return DateCandidate.on(f'Middle of {name}', date(year, month, 15))

    def end_of_named_month(self, m, anchor):
        year, month, name = self._named_month(m, anchor)
        return DateCandidate.on(f'End of {name}', end_of_month(date(year, month, 1)))

    def start_of_named_month(self, m, anchor):
        year, month, name = self._named_month(m, anchor)
        return DateCandidate.on(f'{m.group("word").capitalize()} of {name}', date(year, month, 1))


class RelativeOffsetRecognizer(Recognizer):
    name = 'relative'
    patterns = (
        (r'today', 'today'),
        (r'tomorrow|tmrw|tmr', 'tomorrow'),
        (r'yesterday', 'yesterday'),
        (r'(?:the )?day after tomorrow', 'day_after_tomorrow'),
        (r'(?:the )?day before yesterday', 'day_before_yesterday'),
        (rf'in {NUM} {UNIT}', 'in_n'),
        (rf'in {NUM} {UNIT} on {WEEKDAY}', 'in_n_on_weekday'),
        (rf'{NUM} {UNIT} from (?P<base>now|today)', 'from_now'),
        (rf'{NUM} {UNIT} ago', 'ago'),
        (r'(?P<which>next|this|last) (?P<unit>week|month|year)', 'named_period'),
    )

    def today(self, m, anchor):
        return DateCandidate.on('Today', anchor)

    def tomorrow(self, m, anchor):
        return DateCandidate.on('Tomorrow', add_days(anchor, 1))

    def yesterday(self, m, anchor):
        return DateCandidate.on('Yesterday', add_days(anchor, -1))

    def day_after_tomorrow(self, m, anchor):
        return DateCandidate.on('In 2 days', add_days(anchor, 2))

    def day_before_yesterday(self, m, anchor):
        return DateCandidate.on('Day before yesterday', add_days(anchor, -2))

    def in_n(self, m, anchor):
        n, unit = _count(m.group('n')), m.group('unit')
        return DateCandidate.on(f'In {_units(n, unit)}', _shift(anchor, n, unit))

    def in_n_on_weekday(self, m, anchor):
        # the named weekday on or after the shifted date
        n, unit = _count(m.group('n')), m.group('unit')
        wd = WEEKDAY_LOOKUP[m.group('weekday')]
        d = weekday_on_or_after(_shift(anchor, n, unit), wd)
        return DateCandidate.on(f'In {_units(n, unit)} on {wd.label}', d)

    def from_now(self, m, anchor):
        n, unit = _count(m.group('n')), m.group('unit')
        return DateCandidate.on(f'In {_units(n, unit)}', _shift(anchor, n, unit))

    def ago(self, m, anchor):
        n, unit = _count(m.group('n')), m.group('unit')
        return DateCandidate.on(f'{_units(n, unit)} ago', _shift(anchor, -n, unit))

    def named_period(self, m, anchor):
        which, unit = m.group('which'), m.group('unit')
        if which == 'this':
            return DateCandidate.on(f'This {unit}', anchor)
        if which == 'next':
            if unit == 'week':
                return DateCandidate.on('Next week (Monday)', next_weekday_after(anchor, MONDAY))
            if unit == 'month':
                return DateCandidate.on('Next month', _first_of_next_month(anchor))
            return DateCandidate.on('Next year', date(anchor.year + 1, 1, 1))
        if unit == 'week':
            return DateCandidate.on('Last week', add_days(start_of_week(anchor), -7))
        if unit == 'month':
            return DateCandidate.on('Last month', add_months(anchor.replace(day=1), -1))
        return DateCandidate.on('Last year', date(anchor.year - 1, 1, 1))


class DateparserRecognizer(Recognizer):
    """Last-resort reading through dateparser (ENABLE_DATEPARSER_FALLBACK)."""
    name = 'dateparser'

    def recognize(self, text, anchor):
        # single number-words and short numbers are not dates ('eight' is
        # not August); negative counts stay unrecognized
        if text in NUMBER_WORDS or re.fullmatch(r'\d{1,2}', text) or re.search(r'-\d', text):
            return []
        import dateparser

        settings = {
            'RELATIVE_BASE': datetime(anchor.year, anchor.month, anchor.day),
            'PREFER_DATES_FROM': 'future',
            'RETURN_AS_TIMEZONE_AWARE': False,
        }
        dt = dateparser.parse(text, languages=['en'], settings=settings)
        if dt is None:
            return []
        d = dt.date()
        return [DateCandidate.on(month_day_label(d, d.year != anchor.year), d)]


DEFAULT_RECOGNIZERS = (
    AbsoluteDateRecognizer(),
    HolidayRecognizer(),
    WeekdayRecognizer(),
    BoundaryRecognizer(),
    RelativeOffsetRecognizer(),
)
_FALLBACK = DateparserRecognizer()

_PERIOD_RE = re.compile(
    r'(?:(?P<body>.+?) )??(?:(?P<lead>this|in the|at) )?(?P<period>morning|afternoon|evening|night|tonight)'
)
_PAREN_SUFFIX = re.compile(r' \(.*\)$')


def _scan(text: str, anchor: date, recognizers) -> list[DateCandidate]:
    """Date phrases embedded in longer text, in reading order."""
    hits = []
    for recognizer in recognizers:
        hits.extend(recognizer.scan(text, anchor))
    # a hit inside a longer hit is part of that phrase ('2 weeks' in 'in 2 weeks on monday')
    spans = {span for span, _ in hits}
    kept = [
        (span, cand) for span, cand in hits
        if not any(o != span and o[0] <= span[0] and span[1] <= o[1] for o in spans)
    ]
    kept.sort(key=lambda hit: hit[0][0])
    if kept:
        logger.debug('found %s inside %r', [c.iso_date for _, c in kept], text[:80])
    return [cand for _, cand in kept]


def _run(text: str, anchor: date, recognizers) -> list[DateCandidate]:
    found: list[DateCandidate] = []
    for recognizer in recognizers:
        hits = recognizer.recognize(text, anchor)
        if hits:
            logger.debug('%s recognized %r -> %s', recognizer.name, text, [c.iso_date for c in hits])
        found.extend(hits)
    if not found:
        found = _scan(text, anchor, recognizers)
    if not found and config.ENABLE_DATEPARSER_FALLBACK:
        found = _FALLBACK.recognize(text, anchor)
    seen = set()
    unique = []
    for cand in found:
        key = (cand.label, cand.iso_date)
        if key in seen:
            continue
        seen.add(key)
        unique.append(cand)
    return unique


def _with_time_of_day(m, anchor: date, recognizers) -> list[DateCandidate]:
    body, lead, period = m.group('body'), m.group('lead'), m.group('period')
    if body is None:
        if period == 'tonight':
            return [DateCandidate.on('Tonight', anchor)]
        if lead == 'this':
            return [DateCandidate.on(f'This {period}', anchor)]
        return [DateCandidate.on(period.capitalize(), anchor)]
    if body == 'last' and period == 'night':
        return [DateCandidate.on('Last night', add_days(anchor, -1))]
    suffix = 'night' if period == 'tonight' else period
    return [
        DateCandidate.on(f"{_PAREN_SUFFIX.sub('', c.label)} {suffix}", c.as_date())
        for c in _run(body, anchor, recognizers)
    ]


def interpret(text: str, anchor, recognizers=None) -> list[DateCandidate]:
    """Return the candidate dates ``text`` could mean, relative to ``anchor``.

    Unrecognized text yields an empty list. ``text`` of None is a caller bug
    and raises PhraseInputError.
    """
    if text is None:
        raise PhraseInputError('text is required')
    if not isinstance(text, str):
        raise PhraseInputError(f'text must be a str, got {type(text).__name__}')
    anchor = to_date(anchor)
    if recognizers is None:
        recognizers = DEFAULT_RECOGNIZERS
    normalized = normalize_phrase(text)
    if not normalized:
        return []
    m = _PERIOD_RE.fullmatch(normalized)
    if m:
        return _with_time_of_day(m, anchor, recognizers)
    return _run(normalized, anchor, recognizers)
