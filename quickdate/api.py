"""HTTP adapter for the quick-capture date picker and the recurring-task
generator.

The core is clock-free; this module is the one place that decides what
"today" is (in DEFAULT_TIMEZONE) when a client does not send an anchor.
"""
import logging
import sys
import zoneinfo
from datetime import date, datetime, timezone
from typing import Any

from fastapi import FastAPI, Form, HTTPException, Request
from pydantic import BaseModel

from . import config
from .calendar_math import to_date
from .models import DateCandidate, rule_to_dict
from .phrases import PhraseInputError, interpret
from .recurrence import describe_rule, next_occurrence, rule_to_rrule_string
from .recurrence_phrases import parse_recurrence_phrase

logger = logging.getLogger(__name__)
# Ensure INFO-level messages from this module appear on the console when
# no handlers are configured.
if not logger.handlers:
    handler = logging.StreamHandler(sys.stdout)
    formatter = logging.Formatter('%(asctime)s %(levelname)s:%(name)s: %(message)s')
    handler.setFormatter(formatter)
    logger.addHandler(handler)
logger.setLevel(getattr(logging, config.LOG_LEVEL, logging.INFO))

app = FastAPI(title='quickdate')


class InterpretResponse(BaseModel):
    anchor: str
    candidates: list[DateCandidate]


class NextOccurrenceRequest(BaseModel):
    rule: Any = None
    anchor: date | None = None


class NextOccurrenceResponse(BaseModel):
    next: str | None
    description: str
    rrule: str


class ParseRecurrenceResponse(BaseModel):
    rule: dict | None
    description: str
    rrule: str
    next: str | None


def today() -> date:
    """Current date in DEFAULT_TIMEZONE, falling back to UTC."""
    try:
        tz = zoneinfo.ZoneInfo(config.DEFAULT_TIMEZONE)
    except (zoneinfo.ZoneInfoNotFoundError, ValueError):
        logger.exception('failed to find timezone %s; using UTC', config.DEFAULT_TIMEZONE)
        tz = timezone.utc
    return datetime.now(tz).date()


def _anchor_or_today(raw: str | None) -> date:
    if not raw:
        return today()
    try:
        return to_date(raw)
    except ValueError:
        raise HTTPException(status_code=422, detail='anchor must be an ISO date (YYYY-MM-DD)')


@app.get('/health')
async def health():
    return {'ok': True}


@app.post('/interpret', response_model=InterpretResponse)
async def api_interpret(request: Request, text: str = Form(None), anchor: str = Form(None)):
    """Return candidate dates for a typed phrase.

    Accepts `text` and `anchor` as form data or query params.
    """
    # fallback to query params if form not provided
    if text is None:
        text = request.query_params.get('text')
    if anchor is None:
        anchor = request.query_params.get('anchor')
    anchor_date = _anchor_or_today(anchor)
    try:
        candidates = interpret(text, anchor_date)
    except PhraseInputError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    except Exception:
        logger.exception('failed to interpret %r', text)
        raise HTTPException(status_code=500, detail='failed to interpret text')
    logger.debug('interpret %r @ %s -> %d candidates', text, anchor_date, len(candidates))
    return InterpretResponse(anchor=anchor_date.isoformat(), candidates=candidates)


@app.post('/recurrence/next', response_model=NextOccurrenceResponse)
async def api_next_occurrence(payload: NextOccurrenceRequest):
    """Compute the next occurrence of a stored rule after `anchor`.

    A malformed rule is not an error: `next` comes back null.
    """
    anchor_date = payload.anchor or today()
    try:
        nxt = next_occurrence(payload.rule, anchor_date)
    except TypeError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    return NextOccurrenceResponse(
        next=nxt,
        description=describe_rule(payload.rule),
        rrule=rule_to_rrule_string(payload.rule),
    )


@app.post('/recurrence/parse', response_model=ParseRecurrenceResponse)
async def api_parse_recurrence(request: Request, text: str = Form(None), anchor: str = Form(None)):
    """Parse a recurrence phrase ('every 2nd tuesday of the month') into a stored rule."""
    if text is None:
        text = request.query_params.get('text')
    if anchor is None:
        anchor = request.query_params.get('anchor')
    anchor_date = _anchor_or_today(anchor)
    try:
        rule = parse_recurrence_phrase(text, anchor_date)
    except PhraseInputError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    except Exception:
        logger.exception('failed to parse recurrence %r', text)
        raise HTTPException(status_code=500, detail='failed to parse recurrence')
    if rule is None:
        return ParseRecurrenceResponse(rule=None, description=describe_rule(None), rrule='', next=None)
    return ParseRecurrenceResponse(
        rule=rule_to_dict(rule),
        description=describe_rule(rule),
        rrule=rule_to_rrule_string(rule),
        next=next_occurrence(rule, anchor_date),
    )
