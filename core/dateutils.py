"""
Lexibox – Numeric & date helpers
=================================
Small pure helpers shared by the scheduling modules: clamping, the
half-away-from-zero rounding used for intervals, and day arithmetic on
timezone-aware datetimes.
"""

from __future__ import annotations

import logging
import math
from datetime import datetime, timedelta, timezone

log = logging.getLogger(__name__)

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
SECONDS_PER_DAY = 86400


def clamp(value, lower, upper):
    """Return *value* limited to the closed range [lower, upper]."""
    return max(lower, min(upper, value))


def clamp_finite(value: float, lower: float, upper: float, *, nan: float | None = None) -> float:
    """Clamp *value*, sending infinities to the nearest bound and NaN to *nan*.

    *nan* defaults to *lower*.
    """
    value = float(value)
    if math.isnan(value):
        return lower if nan is None else nan
    return clamp(value, lower, upper)


def to_count(value) -> int:
    """Whole non-negative count; non-finite values become 0."""
    value = float(value)
    if not math.isfinite(value):
        return 0
    return max(0, int(value))


def round_half_away(value: float, ndigits: int = 0) -> float:
    """Round to *ndigits* with .5 always going away from zero.

    Python's built-in ``round`` uses banker's rounding (``round(2.5) == 2``),
    which would make intervals drift by a day on exact halves.
    """
    factor = 10 ** ndigits
    rounded = math.floor(abs(value) * factor + 0.5) / factor
    return math.copysign(rounded, value) if rounded else 0.0


def round_days(value: float) -> int:
    """Round a fractional day count to a whole number of days."""
    return int(round_half_away(value))


def as_utc(moment: datetime) -> datetime:
    """Return *moment* in UTC; naive values (as SQLite hands them back) are UTC."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def parse_timestamp(value) -> datetime | None:
    """Coerce *value* to an aware datetime, or ``None`` if it cannot be read.

    Accepts datetimes and ISO-8601 strings (a trailing ``Z`` is understood).
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return as_utc(value)
    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return as_utc(datetime.fromisoformat(text))
        except ValueError:
            log.debug("Unparseable timestamp %r treated as missing", value)
            return None
    log.debug("Unsupported timestamp type %s treated as missing", type(value).__name__)
    return None


def add_days(moment: datetime, days: int) -> datetime:
    """Return *moment* shifted by a whole number of days."""
    return as_utc(moment) + timedelta(days=days)


def whole_days_between(start: datetime, end: datetime) -> int:
    """Floor of (end - start) in days; negative when *end* precedes *start*."""
    delta = as_utc(end) - as_utc(start)
    return math.floor(delta.total_seconds() / SECONDS_PER_DAY)
