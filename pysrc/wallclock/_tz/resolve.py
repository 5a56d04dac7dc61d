"""Offsets of instants in named zones.

Offsets are in minutes with the sign convention of ECMAScript's
``getTimezoneOffset``: positive west of UTC, so ``Asia/Tokyo`` is -540.
"""

from __future__ import annotations

import re
from datetime import datetime as _datetime

from .._common import MS_PER_MINUTE, Millis, UTC, is_nan
from .._intl import naive_iso, offset_token
from .system import system_offset

__all__ = [
    "FormatError",
    "resolve_offset",
    "parse_offset_token",
    "probe_offset",
]


class FormatError(Exception):
    """An offset token couldn't be read"""


_TOKEN_RE = re.compile(
    r"(?:GMT|UTC)(?:([+-])(\d{1,2})(?::?(\d{2}))?(?::?(\d{2}))?)?"
)


def parse_offset_token(token: str) -> int:
    """Parse a short offset token into minutes west of UTC

    >>> parse_offset_token("GMT+09:00")
    -540
    >>> parse_offset_token("GMT-05:00")
    300
    """
    if (m := _TOKEN_RE.fullmatch(token.strip())) is None:
        raise FormatError(f"Could not parse offset token {token!r}")
    sign, hours, minutes, seconds = m.groups()
    if sign is None:
        return 0
    total = int(hours) * 60 + int(minutes or 0) + round(int(seconds or 0) / 60)
    return -total if sign == "+" else total


def resolve_offset(ms: Millis, time_zone: str | None) -> int | None:
    """The offset of the instant in the zone, or None for invalid instants.
    Without a zone, the host's offset is used."""
    if is_nan(ms):
        return None
    if time_zone is None:
        return system_offset(ms)
    return parse_offset_token(offset_token(ms, time_zone))


def probe_offset(ms: Millis, time_zone: str | None) -> int | None:
    """Like :func:`resolve_offset`, but found by reading the zone's
    wall-clock time back as if it were UTC"""
    if is_nan(ms):
        return None
    wall = _datetime.fromisoformat(naive_iso(ms, time_zone)).replace(
        tzinfo=UTC
    )
    wall_ms = round(wall.timestamp() * 1000)
    return round((ms - wall_ms) / MS_PER_MINUTE)
