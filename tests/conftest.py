import sys
import pathlib
from datetime import date, datetime

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

# ensure project root is on PYTHONPATH for test runs
ROOT = pathlib.Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from quickdate.api import app


@pytest.fixture
def anchor():
    """Wednesday, January 8 2025: the reference anchor for most phrase tests."""
    return date(2025, 1, 8)


@pytest.fixture
def leap_anchor():
    return date(2024, 3, 1)


# --- Test helpers for stubbing dateparser ---
# Usage:
# - Tests that exercise the dateparser fallback without depending on the
#   installed dateparser release can opt-in to a deterministic fake by
#   including the `use_fake_dateparser` fixture in their test signature. It
#   also switches ENABLE_DATEPARSER_FALLBACK on for the test.
#
#     def test_x(use_fake_dateparser, anchor):
#         interpret('a fortnight hence', anchor)
#
def _default_fake_dateparse(text, languages=None, settings=None):
    """Deterministic fake for `dateparser.parse`.

    - 'a fortnight hence' -> RELATIVE_BASE + 14 days.
    - 'first thing next may' -> May 1 of the year after RELATIVE_BASE.
    - Otherwise None.
    """
    from datetime import timedelta
    base = (settings or {}).get('RELATIVE_BASE') or datetime(2000, 1, 1)
    if text == 'a fortnight hence':
        return base + timedelta(days=14)
    if text == 'first thing next may':
        return datetime(base.year + 1, 5, 1, 9, 0)
    return None


@pytest.fixture
def fake_dateparse():
    """Return a callable suitable for monkeypatching `dateparser.parse`."""
    return _default_fake_dateparse


@pytest.fixture
def use_fake_dateparser(monkeypatch, fake_dateparse):
    """Convenience fixture: enable the dateparser fallback and patch
    `dateparser.parse` to the deterministic fake for the duration of the test.
    """
    import dateparser
    from quickdate import config
    monkeypatch.setattr(dateparser, 'parse', fake_dateparse)
    monkeypatch.setattr(config, 'ENABLE_DATEPARSER_FALLBACK', True)


@pytest_asyncio.fixture
async def client():
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
