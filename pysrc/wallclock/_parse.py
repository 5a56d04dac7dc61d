"""Parsing of date/time strings into epoch milliseconds"""

from __future__ import annotations

import re
import warnings
from datetime import datetime as _datetime, timedelta as _timedelta

from dateutil import parser as _dateutil_parser
from dateutil.parser import UnknownTimezoneWarning

from ._common import EPOCH, NAN, UTC, Millis
from ._math import civil_to_millis, days_in_month, in_range

__all__ = ["is_ambiguous_time_zone", "parse"]

_TIMEZONE_RE = re.compile(r"Z|[A-Z]{3}|[+-]\d{2}:?\d{2}$")


def is_ambiguous_time_zone(s: str) -> bool:
    """Whether the string lacks any marker of its offset, meaning its
    wall-clock time must be read in the zone of the caller's choosing

    >>> is_ambiguous_time_zone("2024-11-07T14:53:00")
    True
    >>> is_ambiguous_time_zone("Thu, 07 Nov 2024 14:53:00 GMT")
    False
    """
    return _TIMEZONE_RE.search(s) is None


_BARE_DATE_RE = re.compile(r"(\d{4})(?:-(\d{2})(?:-(\d{2}))?)?")

# dateutil reads "GMT+3" the POSIX way (as UTC-3), so the prefix goes
_PREFIXED_OFFSET_RE = re.compile(r"\b(?:GMT|UTC)\s*(?=[+-]\d{2}:?\d{2}\b)")

_HOUR = 3600
_TZINFOS = {
    "UTC": 0,
    "GMT": 0,
    "EST": -5 * _HOUR,
    "EDT": -4 * _HOUR,
    "CST": -6 * _HOUR,
    "CDT": -5 * _HOUR,
    "MST": -7 * _HOUR,
    "MDT": -6 * _HOUR,
    "PST": -8 * _HOUR,
    "PDT": -7 * _HOUR,
}

_ONE_MS = _timedelta(milliseconds=1)


def parse(s: str, *, default_year: int) -> tuple[Millis, bool]:
    """Parse a string into epoch milliseconds.

    The second item tells whether the result is wall-clock time (UTC
    fields standing for the civil time in some zone) that still needs
    to be anchored to an instant. Unparseable input gives nan.
    """
    s = s.strip()
    if not s:
        return NAN, False
    if m := _BARE_DATE_RE.fullmatch(s):
        return _bare_date(*m.groups()), True

    dt = _parse_datetime(s, default_year)
    if dt is None:
        return NAN, False
    if is_ambiguous_time_zone(s) or dt.tzinfo is None:
        # The latter when a month name ("3 JUN") or an unknown zone
        # looked like an abbreviation. No offset was found either way.
        return _to_millis(dt.replace(tzinfo=UTC)), True
    return _to_millis(dt), False


def _bare_date(year: str, month: str | None, day: str | None) -> Millis:
    y, m, d = int(year), int(month or 1), int(day or 1)
    if not 1 <= m <= 12 or not 1 <= d <= days_in_month(y, m):
        return NAN
    return civil_to_millis(y, m, d)


def _parse_datetime(s: str, default_year: int) -> _datetime | None:
    try:
        return _datetime.fromisoformat(s)
    except ValueError:
        pass
    try:
        with warnings.catch_warnings():
            warnings.simplefilter("ignore", UnknownTimezoneWarning)
            return _dateutil_parser.parse(
                _PREFIXED_OFFSET_RE.sub("", s),
                default=_datetime(default_year, 1, 1),
                tzinfos=_TZINFOS,
            )
    except (ValueError, OverflowError, _dateutil_parser.ParserError):
        return None


def _to_millis(dt: _datetime) -> Millis:
    try:
        ms = (dt - EPOCH) // _ONE_MS
    except OverflowError:
        return NAN
    return ms if in_range(ms) else NAN
