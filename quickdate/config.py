"""Runtime configuration for quickdate.

Values are read from environment variables once at import time so they can
be toggled in development or production without code changes.
"""
import os


def _trueish(v: str | None) -> bool:
    if not v:
        return False
    return v.lower() in ('1', 'true', 'yes', 'on')


# Ordering used for ambiguous numeric dates like '5/9': 'MDY' (month/day,
# the default) or 'DMY' (day/month). A token greater than 12 always forces
# that token to be the day regardless of this setting.
DATE_ORDER = os.getenv('DATE_ORDER', 'MDY').upper()
if DATE_ORDER not in ('MDY', 'DMY'):
    DATE_ORDER = 'MDY'

# IANA timezone name used by the HTTP adapter to decide what "today" is when
# the caller does not send an anchor date. The core never reads the clock.
DEFAULT_TIMEZONE = os.getenv('DEFAULT_TIMEZONE', 'UTC')

# When true, phrases none of the built-in recognizers understand are handed
# to dateparser as a last resort. Off by default: dateparser is far more
# permissive than the built-in grammar and can turn noise into dates.
ENABLE_DATEPARSER_FALLBACK = _trueish(os.getenv('ENABLE_DATEPARSER_FALLBACK', '0'))

# Upper bound on the number of months scanned when looking for an n-th
# weekday that some months lack (e.g. a 5th Friday).
try:
    MAX_MONTH_SCAN = int(os.getenv('MAX_MONTH_SCAN', '24'))
except ValueError:
    MAX_MONTH_SCAN = 24

LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO').upper()


# Optional local overrides: define variables in quickdate/local_config.py to
# override the defaults above without changing versioned config. Keep that
# file out of version control.
try:
    from .local_config import *  # type: ignore  # noqa: F401,F403
except ImportError:
    # No local overrides present; proceed with defaults.
    pass
