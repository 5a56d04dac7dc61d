"""Gregorian calendar and epoch-millisecond helpers."""

from datetime import date as _date
from typing import NamedTuple

from ._common import (
    MS_PER_DAY,
    MS_PER_HOUR,
    MS_PER_MINUTE,
    MS_PER_SECOND,
    NAN,
    Millis,
    is_nan,
)

_EPOCH_ORDINAL = _date(1970, 1, 1).toordinal()

# Keep a day of slack on both ends so any UTC offset stays representable
MIN_MILLIS: Millis = (_date(1, 1, 2).toordinal() - _EPOCH_ORDINAL) * MS_PER_DAY
MAX_MILLIS: Millis = (
    _date(9999, 12, 31).toordinal() - _EPOCH_ORDINAL
) * MS_PER_DAY - 1


class CivilFields(NamedTuple):
    year: int
    month: int  # 1-12
    day: int
    hour: int
    minute: int
    second: int
    millisecond: int
    weekday: int  # 0 is Sunday


def is_leap(year: int) -> bool:
    return year % 4 == 0 and (year % 100 != 0 or year % 400 == 0)


# 1-indexed days per month
_MONTHDAYS = [0, 31, 28, 31, 30, 31, 30, 31, 31, 30, 31, 30, 31]


def days_in_month(year: int, month: int) -> int:
    # normalize overflowing months the same way civil_to_millis does
    year_delta, month0 = divmod(month - 1, 12)
    year += year_delta
    month = month0 + 1
    return _MONTHDAYS[month] + (month == 2 and is_leap(year))


def in_range(ms: float) -> bool:
    return not is_nan(ms) and MIN_MILLIS <= ms <= MAX_MILLIS


def civil_to_millis(
    year: int,
    month: int = 1,
    day: int = 1,
    hour: int = 0,
    minute: int = 0,
    second: int = 0,
    millisecond: int = 0,
) -> Millis:
    """Epoch milliseconds of the given UTC fields.

    Like ``Date.UTC`` in ECMAScript, fields overflow into their neighbours:
    month 13 is January of the next year, day 0 is the last day of the
    previous month, hour 24 is midnight of the next day, and so on.
    Returns nan if the result falls outside the supported range.
    """
    fields = (year, month, day, hour, minute, second, millisecond)
    if any(is_nan(f) for f in fields):
        return NAN
    year_delta, month0 = divmod(int(month) - 1, 12)
    try:
        first = _date(int(year) + year_delta, month0 + 1, 1)
    except (ValueError, OverflowError):
        return NAN
    days = first.toordinal() - _EPOCH_ORDINAL + int(day) - 1
    ms = (
        days * MS_PER_DAY
        + int(hour) * MS_PER_HOUR
        + int(minute) * MS_PER_MINUTE
        + int(second) * MS_PER_SECOND
        + int(millisecond)
    )
    return ms if in_range(ms) else NAN


def millis_to_civil(ms: Millis) -> CivilFields:
    """The UTC fields of the given epoch milliseconds"""
    days, rem = divmod(int(ms), MS_PER_DAY)
    d = _date.fromordinal(days + _EPOCH_ORDINAL)
    hour, rem = divmod(rem, MS_PER_HOUR)
    minute, rem = divmod(rem, MS_PER_MINUTE)
    second, millisecond = divmod(rem, MS_PER_SECOND)
    return CivilFields(
        d.year,
        d.month,
        d.day,
        hour,
        minute,
        second,
        millisecond,
        d.isoweekday() % 7,
    )
