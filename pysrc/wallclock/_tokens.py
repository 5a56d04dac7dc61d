"""Formatting with tokens like ``yyyy-MM-dd``.

Runs of the same character form a token. Text between quote characters
(``'`` or ``"``) is copied as-is, as is any run that isn't a token.
"""

from __future__ import annotations

import re
from datetime import datetime as _datetime
from typing import Callable

from . import _intl

__all__ = ["TOKENS", "format_tokens"]


def _hour12(dt: _datetime) -> int:
    return dt.hour % 12 or 12


def _offset(dt: _datetime, tag: str, width: str, empty: str) -> str:
    s = re.sub("^[a-z]+", "", _intl.timezone_name(dt, tag, width), flags=re.I)
    return s or empty


_TokenFunc = Callable[[_datetime, str], str]

TOKENS: dict[str, _TokenFunc] = {
    "yy": lambda dt, _: f"{dt.year % 100:02d}",
    "yyyy": lambda dt, _: str(dt.year),
    "M": lambda dt, _: str(dt.month),
    "MM": lambda dt, _: f"{dt.month:02d}",
    "d": lambda dt, _: str(dt.day),
    "dd": lambda dt, _: f"{dt.day:02d}",
    "h": lambda dt, _: str(_hour12(dt)),
    "hh": lambda dt, _: f"{_hour12(dt):02d}",
    "H": lambda dt, _: str(dt.hour),
    "HH": lambda dt, _: f"{dt.hour:02d}",
    # minutes are always padded, as they would be next to an hour
    "m": lambda dt, _: f"{dt.minute:02d}",
    "mm": lambda dt, _: f"{dt.minute:02d}",
    "s": lambda dt, _: str(dt.second),
    "ss": lambda dt, _: f"{dt.second:02d}",
    "a": lambda dt, tag: _intl.meridiem(dt.hour, tag, lower=True),
    "A": lambda dt, tag: _intl.meridiem(dt.hour, tag),
    "Z": lambda dt, tag: _offset(dt, tag, "shortOffset", "+0"),
    "ZZ": lambda dt, tag: _offset(dt, tag, "longOffset", "+0000").replace(
        ":", "", 1
    ),
    "ZZZ": lambda dt, tag: _offset(dt, tag, "longOffset", "+00:00"),
    "ZZZZ": lambda dt, tag: _intl.timezone_name(dt, tag, "short"),
    "ZZZZZ": lambda dt, tag: _intl.timezone_name(dt, tag, "long"),
}

_QUOTES = ("'", '"')


def format_tokens(dt: _datetime, fmt: str, tag: str) -> str:
    """Format an aware datetime (already in the desired zone)

    >>> format_tokens(datetime(2020, 1, 1, 9, tzinfo=UTC), "yyyy-MM-dd", "en")
    '2020-01-01'
    """
    parts: list[str] = []
    buffer = ""
    literal = False

    def flush() -> None:
        nonlocal buffer
        func = TOKENS.get(buffer)
        parts.append(func(dt, tag) if func and not literal else buffer)
        buffer = ""

    for char in fmt:
        if char in _QUOTES:
            flush()
            literal = not literal
            continue
        if buffer and buffer[-1] != char:
            flush()
        buffer += char
    flush()
    return "".join(parts)
