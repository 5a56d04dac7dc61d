# The MIT License (MIT)
#
# Copyright (c) Arie Bovenberg
#
# Permission is hereby granted, free of charge, to any person obtaining a copy
# of this software and associated documentation files (the "Software"), to deal
# in the Software without restriction, including without limitation the rights
# to use, copy, modify, merge, publish, distribute, sublicense, and/or sell
# copies of the Software, and to permit persons to whom the Software is
# furnished to do so, subject to the following conditions:
#
# The above copyright notice and this permission notice shall be included in all
# copies or substantial portions of the Software.
#
# THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND, EXPRESS OR
# IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF MERCHANTABILITY,
# FITNESS FOR A PARTICULAR PURPOSE AND NONINFRINGEMENT. IN NO EVENT SHALL THE
# AUTHORS OR COPYRIGHT HOLDERS BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER
# LIABILITY, WHETHER IN AN ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING FROM,
# OUT OF OR IN CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS IN THE
# SOFTWARE.

# Maintainer's notes:
#
# - DateTime and Interval live in one file, since they 'know' about each
#   other and it keeps imports free of cycles.
# - The epoch millisecond count is the only state that matters. Civil fields
#   are always derived from it and the offset resolved at construction.
# - Everything needing tz rules or locale data goes through ``_intl``.
from __future__ import annotations

__version__ = "0.1.0"

from datetime import datetime as _datetime, timedelta as _timedelta
from math import floor, isfinite
from time import time_ns
from typing import (
    TYPE_CHECKING,
    Any,
    Literal,
    Mapping,
    Union,
    no_type_check,
)

from . import _intl, _tokens
from ._common import (
    EPOCH,
    MS_PER_DAY,
    MS_PER_MINUTE,
    MS_PER_WEEK,
    NAN,
    UTC,
    Millis,
    is_nan,
)
from ._config import (
    Options,
    get_default_locale,
    get_default_options,
    get_default_time_zone,
    reset_default_options,
    resolve_options,
    set_default_locale,
    set_default_options,
    set_default_time_zone,
)
from ._intl import ConfigurationError
from ._math import (
    CivilFields,
    civil_to_millis,
    days_in_month as _days_in_month,
    in_range,
    millis_to_civil,
)
from ._parse import is_ambiguous_time_zone, parse as _parse
from ._tz.resolve import FormatError, resolve_offset
from ._units import (
    Unit,
    UnitLike,
    UnknownUnitError,
    normalize_unit,
    sort_units,
)

__all__ = [
    # Core types
    "DateTime",
    "Interval",
    "Options",
    "Unit",
    # Exceptions
    "InvalidIntervalError",
    "InvalidDateError",
    "RangeOrderError",
    "UnknownUnitError",
    "ConfigurationError",
    "FormatError",
    # Format presets
    "DATE_LONG",
    "DATE_MEDIUM",
    "DATE_SHORT",
    "TIME_LONG",
    "TIME_MEDIUM",
    "TIME_SHORT",
    "DATETIME_LONG",
    "DATETIME_MEDIUM",
    "DATETIME_SHORT",
    "MONTH_YEAR",
    "MONTH_DAY",
    # Configuration
    "set_default_options",
    "get_default_options",
    "reset_default_options",
    "set_default_time_zone",
    "get_default_time_zone",
    "set_default_locale",
    "get_default_locale",
    "is_ambiguous_time_zone",
]

# Format presets, as options for a locale's date/time patterns

DATE_LONG: Mapping[str, str] = {
    "year": "numeric",
    "month": "long",
    "day": "numeric",
}
"""e.g. January 1, 2020"""
DATE_MEDIUM: Mapping[str, str] = {
    "year": "numeric",
    "month": "short",
    "day": "numeric",
}
"""e.g. Jan 1, 2020"""
DATE_SHORT: Mapping[str, str] = {
    "year": "numeric",
    "month": "numeric",
    "day": "numeric",
}
"""e.g. 1/1/2020"""
TIME_LONG: Mapping[str, str] = {
    "hour": "numeric",
    "minute": "2-digit",
    "second": "numeric",
}
"""e.g. 9:00:00am"""
TIME_MEDIUM: Mapping[str, str] = {"hour": "numeric", "minute": "2-digit"}
"""e.g. 9:00am"""
TIME_SHORT: Mapping[str, str] = {"hour": "numeric"}
"""e.g. 9am"""
DATETIME_LONG: Mapping[str, str] = {**DATE_LONG, **TIME_MEDIUM}
"""e.g. January 1, 2020, 9:00am"""
DATETIME_MEDIUM: Mapping[str, str] = {**DATE_MEDIUM, **TIME_MEDIUM}
"""e.g. Jan 1, 2020, 9:00am"""
DATETIME_SHORT: Mapping[str, str] = {**DATE_SHORT, **TIME_MEDIUM}
"""e.g. 1/1/2020, 9:00am"""
MONTH_YEAR: Mapping[str, str] = {"year": "numeric", "month": "long"}
"""e.g. January 2020"""
MONTH_DAY: Mapping[str, str] = {"month": "long", "day": "numeric"}
"""e.g. January 15"""

INVALID = "Invalid DateTime"

_object_new = object.__new__
_UNSET: Any = object()
_ONE_MS = _timedelta(milliseconds=1)


class _ImmutableBase:
    __slots__ = ()

    # Immutable classes don't need to be copied
    @no_type_check
    def __copy__(self):
        return self

    @no_type_check
    def __deepcopy__(self, _):
        return self


if TYPE_CHECKING:
    from typing import final
else:

    def final(cls):

        def init_subclass_not_allowed(cls, **kwargs):  # pragma: no cover
            raise TypeError("Subclassing not allowed")

        cls.__init_subclass__ = init_subclass_not_allowed
        return cls


class InvalidIntervalError(ValueError):
    """An interval couldn't be created from the given endpoints"""


class InvalidDateError(InvalidIntervalError):
    """An interval endpoint is not a valid instant"""


class RangeOrderError(InvalidIntervalError):
    """An interval's start is not before its end"""


DateLike = Union["DateTime", _datetime, int, float, str, None]

_FIELD_NAMES = (
    "year",
    "month",
    "day",
    "hour",
    "minute",
    "second",
    "millisecond",
)


def _now_millis() -> int:
    return time_ns() // 1_000_000


def _millis_of(value: Any) -> Millis | None:
    """Epoch milliseconds of anything instant-like, or None"""
    if isinstance(value, _datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        try:
            return (value - EPOCH) // _ONE_MS
        except OverflowError:
            return NAN
    method = getattr(value, "timestamp_millis", None)
    if callable(method):
        return method()
    return None


def _clip(ms: float) -> Millis:
    if isinstance(ms, float):
        if not isfinite(ms):
            return NAN
        ms = int(ms)
    return ms if in_range(ms) else NAN


def _round_half_up(x: float) -> int:
    # halves go toward positive infinity, e.g. -1.5 becomes -1
    return floor(x + 0.5)


def _offset_at(ms: float, time_zone: str | None) -> int | None:
    return resolve_offset(ms, time_zone) if in_range(ms) else None


def _anchor(
    wall: Millis, time_zone: str | None, prefer: int | None = None
) -> Millis:
    """Find the instant showing the given wall-clock time in the zone.

    The offsets on either side of the wall time give the candidates.
    A candidate is valid if the zone actually has its offset at that
    instant. A repeated wall time keeps the ``prefer`` offset if that is
    one of its occurrences, and otherwise resolves to the earlier
    instant. Skipped wall times are moved forward by the length of the
    gap.
    """
    if not in_range(wall):
        return NAN
    if prefer is not None:
        t = wall + prefer * MS_PER_MINUTE
        if _offset_at(t, time_zone) == prefer:
            return _clip(t)
    candidates: list[int] = []
    for guess in (wall - MS_PER_DAY, wall, wall + MS_PER_DAY):
        if (offset := _offset_at(guess, time_zone)) is None:
            continue
        t = wall + offset * MS_PER_MINUTE
        if t not in candidates:
            candidates.append(t)
    if not candidates:
        return NAN
    valid = [
        t
        for t in candidates
        if _offset_at(t, time_zone) == (t - wall) // MS_PER_MINUTE
    ]
    return _clip(min(valid) if valid else max(candidates))


def _format_offset(minutes_west: int) -> str:
    sign = "-" if minutes_west > 0 else "+"
    hrs, mins = divmod(abs(minutes_west), 60)
    return f"{sign}{hrs:02d}:{mins:02d}"


def _whole(amount: float, unit: Unit) -> int:
    if amount != int(amount):
        raise ValueError(
            f"Cannot shift by a fractional number of {unit.value}s: {amount}"
        )
    return int(amount)


def _resolve_named_param(
    arg: str | Mapping[str, Any] | None, name: str, preset: str
) -> dict[str, Any]:
    if isinstance(arg, str):
        return {name: arg}
    return {name: preset, **(arg or {})}


@final
class DateTime(_ImmutableBase):
    """A moment in time, observed in a timezone and described in a locale.

    Civil fields (year, month, ...) are those of the timezone. If no
    timezone is given, the default timezone or else the host's is used.

    Unparseable input gives an *invalid* DateTime instead of an error.
    Its civil fields are ``nan``, and arithmetic on it stays invalid.

    Example
    -------
    >>> DateTime("2020-01-01T00:00:00Z", time_zone="Asia/Tokyo")
    DateTime(2020-01-01 09:00:00.000+09:00[Asia/Tokyo])
    >>> DateTime(2020, 1, 1, time_zone="America/New_York").format_iso()
    '2020-01-01T05:00:00.000Z'
    >>> DateTime("2025-01-31", time_zone="UTC").advance(1, "month")
    DateTime(2025-02-28 00:00:00.000+00:00[UTC])
    """

    __slots__ = ("_ms", "_options", "_offset")
    _ms: Millis
    _options: Options
    _offset: int | None

    def __init__(
        self,
        *args: Any,
        locale: str | None = None,
        time_zone: str | None = None,
        first_day_of_week: int | None = None,
    ) -> None:
        explicit = {
            "locale": locale,
            "time_zone": time_zone,
            "first_day_of_week": first_day_of_week,
        }
        inherited: Options | None = None
        if len(args) >= 2:
            if len(args) > 7 or not all(
                type(a) is int for a in args  # noqa: E721
            ):
                raise TypeError(
                    "Expected 2 to 7 integers: "
                    "year, month, day, hour, minute, second, millisecond"
                )
            options = resolve_options(explicit)
            ms = _anchor(civil_to_millis(*args), options.time_zone)
        else:
            value = args[0] if args else None
            if isinstance(getattr(value, "options", None), Options):
                inherited = value.options
            options = resolve_options(explicit, inherited)
            if value is None:
                ms = _now_millis()
            elif isinstance(value, str):
                ms, is_wall = _parse(
                    value, default_year=millis_to_civil(_now_millis()).year
                )
                if is_wall:
                    ms = _anchor(ms, options.time_zone)
            elif isinstance(value, (int, float)) and not isinstance(
                value, bool
            ):
                ms = value
            elif (ms_ := _millis_of(value)) is not None:
                ms = ms_
            else:
                raise TypeError(
                    f"Cannot create DateTime from {type(value).__name__}"
                )
        self._ms = _clip(ms)
        self._options = options
        self._offset = resolve_offset(self._ms, options.time_zone)

    @classmethod
    def _from_millis(cls, ms: float, options: Options) -> DateTime:
        self = _object_new(cls)
        self._ms = _clip(ms)
        self._options = options
        self._offset = resolve_offset(self._ms, options.time_zone)
        return self

    @classmethod
    def now(cls, **options: Any) -> DateTime:
        """The current time"""
        return cls(None, **options)

    # --- Enumeration helpers ---------------------------------------------

    @staticmethod
    def _locale_or_default(locale: str | None) -> str:
        return locale or resolve_options({}).locale

    @classmethod
    def month_names(
        cls,
        locale: str | None = None,
        style: Literal["long", "short", "narrow", "compact"] = "long",
    ) -> list[str]:
        """The names of the months, January first.

        ``compact`` is a two-character form like ``Ja``.
        """
        return _intl.month_names(cls._locale_or_default(locale), style)

    @classmethod
    def weekday_names(
        cls,
        locale: str | None = None,
        style: Literal["long", "short", "narrow", "compact"] = "long",
        start: int | None = None,
    ) -> list[str]:
        """The names of the weekdays, starting at ``start`` (0 is Sunday)
        or else at the locale's first day of the week.

        Example
        -------
        >>> DateTime.weekday_names("en-GB", style="short")
        ['Mon', 'Tue', 'Wed', 'Thu', 'Fri', 'Sat', 'Sun']
        """
        tag = cls._locale_or_default(locale)
        if start is None:
            start = get_default_options().get("first_day_of_week")
        if start is None:
            start = _intl.first_day_of_week(tag)
        names = _intl.weekday_names(tag, style)
        return names[start:] + names[:start]

    @classmethod
    def meridiem_names(
        cls,
        locale: str | None = None,
        style: Literal["long", "short"] = "long",
        lower: bool = False,
    ) -> list[str]:
        """The names for before and after noon, e.g. ``['AM', 'PM']``"""
        tag = cls._locale_or_default(locale)
        return [
            _intl.meridiem(hour, tag, style=style, lower=lower)
            for hour in (0, 12)
        ]

    @classmethod
    def min(cls, *values: DateLike) -> DateTime | None:
        """The earliest of the values, or None if there are none"""
        if not values:
            return None
        result = cls(values[0])
        for v in values[1:]:
            if (dt := cls(v)) < result:
                result = dt
        return result

    @classmethod
    def max(cls, *values: DateLike) -> DateTime | None:
        """The latest of the values, or None if there are none"""
        if not values:
            return None
        result = cls(values[0])
        for v in values[1:]:
            if (dt := cls(v)) > result:
                result = dt
        return result

    @classmethod
    def clamp(
        cls, value: DateLike, lower: DateLike, upper: DateLike
    ) -> DateTime:
        """The value, limited to the range between lower and upper"""
        result = cls.min(cls.max(value, lower), upper)
        assert result is not None
        return result

    # --- Basic accessors -------------------------------------------------

    @property
    def options(self) -> Options:
        return self._options

    @property
    def locale(self) -> str:
        return self._options.locale

    @property
    def time_zone(self) -> str | None:
        """The IANA timezone ID. None only if the host's zone
        has no known ID and its offsets are used directly."""
        return self._options.time_zone

    @property
    def timezone_offset(self) -> int | None:
        """The offset in minutes, positive *west* of UTC.
        Like ECMAScript's ``getTimezoneOffset``, Tokyo is -540.
        None for an invalid DateTime."""
        return self._offset

    def timestamp_millis(self) -> Millis:
        """Milliseconds since the UNIX epoch, or ``nan`` if invalid"""
        return self._ms

    def timestamp(self) -> float:
        """Seconds since the UNIX epoch, or ``nan`` if invalid"""
        return self._ms / 1000

    def is_valid(self) -> bool:
        return not is_nan(self._ms)

    def is_invalid(self) -> bool:
        return is_nan(self._ms)

    def py_datetime(self) -> _datetime:
        """An aware standard library datetime in this timezone.
        Sub-millisecond precision is always zero."""
        self._check_valid()
        return _intl.to_zone(self._ms, self._options.time_zone)

    def _check_valid(self) -> None:
        if self.is_invalid():
            raise ValueError("DateTime is invalid")

    def _fields(self) -> CivilFields:
        assert self._offset is not None
        return millis_to_civil(self._ms - self._offset * MS_PER_MINUTE)

    def _field(self, name: str) -> int | float:
        if self.is_invalid():
            return NAN
        return getattr(self._fields(), name)

    @property
    def year(self) -> int:
        return self._field("year")  # type: ignore[return-value]

    @property
    def month(self) -> int:
        """The month, 1 (January) to 12"""
        return self._field("month")  # type: ignore[return-value]

    @property
    def day(self) -> int:
        """The day of the month"""
        return self._field("day")  # type: ignore[return-value]

    @property
    def hour(self) -> int:
        return self._field("hour")  # type: ignore[return-value]

    @property
    def minute(self) -> int:
        return self._field("minute")  # type: ignore[return-value]

    @property
    def second(self) -> int:
        return self._field("second")  # type: ignore[return-value]

    @property
    def millisecond(self) -> int:
        return self._field("millisecond")  # type: ignore[return-value]

    @property
    def weekday(self) -> int:
        """The day of the week, 0 (Sunday) to 6 (Saturday)"""
        return self._field("weekday")  # type: ignore[return-value]

    def _utc_field(self, name: str) -> int | float:
        if self.is_invalid():
            return NAN
        return getattr(millis_to_civil(self._ms), name)

    @property
    def utc_year(self) -> int:
        return self._utc_field("year")  # type: ignore[return-value]

    @property
    def utc_month(self) -> int:
        return self._utc_field("month")  # type: ignore[return-value]

    @property
    def utc_day(self) -> int:
        return self._utc_field("day")  # type: ignore[return-value]

    @property
    def utc_hour(self) -> int:
        return self._utc_field("hour")  # type: ignore[return-value]

    @property
    def utc_minute(self) -> int:
        return self._utc_field("minute")  # type: ignore[return-value]

    @property
    def utc_second(self) -> int:
        return self._utc_field("second")  # type: ignore[return-value]

    @property
    def utc_millisecond(self) -> int:
        return self._utc_field("millisecond")  # type: ignore[return-value]

    @property
    def utc_weekday(self) -> int:
        return self._utc_field("weekday")  # type: ignore[return-value]

    def days_in_month(self) -> int:
        """The number of days in this month"""
        if self.is_invalid():
            return NAN  # type: ignore[return-value]
        f = self._fields()
        return _days_in_month(f.year, f.month)

    def month_name(
        self, style: Literal["long", "short", "narrow", "compact"] = "long"
    ) -> str:
        self._check_valid()
        return _intl.month_names(self.locale, style)[self.month - 1]

    def weekday_name(
        self, style: Literal["long", "short", "narrow", "compact"] = "long"
    ) -> str:
        self._check_valid()
        return _intl.weekday_names(self.locale, style)[self.weekday]

    def first_day_of_week(self) -> int:
        """The first day of the week (0 is Sunday): the option if given,
        otherwise the locale's"""
        if self._options.first_day_of_week is not None:
            return self._options.first_day_of_week
        return _intl.first_day_of_week(self.locale)

    # --- Creating modified copies ----------------------------------------

    def with_millis(self, ms: float) -> DateTime:
        """The same options at another instant"""
        return self._from_millis(ms, self._options)

    def with_time_zone(self, time_zone: str | None) -> DateTime:
        """The same instant, observed in another timezone"""
        return DateTime(self, time_zone=time_zone)

    def with_locale(self, locale: str | None) -> DateTime:
        return DateTime(self, locale=locale)

    def clone(self, **options: Any) -> DateTime:
        """A copy, optionally with some of the options replaced"""
        return DateTime(self, **options)

    def set_args(
        self,
        year: int,
        month: int = 1,
        day: int = 1,
        hour: int = 0,
        minute: int = 0,
        second: int = 0,
        millisecond: int = 0,
    ) -> DateTime:
        """The instant with the given civil fields in this timezone.

        Fields overflow into their neighbours, so ``day=0`` is the last
        day of the previous month. A wall time repeated by a DST change
        keeps the current offset if it can.

        Example
        -------
        >>> DateTime(time_zone="Asia/Tokyo").set_args(2020, 2, 2)
        DateTime(2020-02-02 00:00:00.000+09:00[Asia/Tokyo])
        """
        wall = civil_to_millis(
            year, month, day, hour, minute, second, millisecond
        )
        return self.with_millis(
            _anchor(wall, self._options.time_zone, self._offset)
        )

    def replace(self, **fields: int) -> DateTime:
        """Replace civil fields (e.g. ``day=15, hour=9``) in this timezone.
        Plural names are accepted. Fields overflow like in
        :meth:`set_args`.

        Example
        -------
        >>> d = DateTime("2020-01-31T10:00:00", time_zone="UTC")
        >>> d.replace(month=4, hours=8)
        DateTime(2020-05-01 08:00:00.000+00:00[UTC])
        """
        if self.is_invalid():
            return self
        values = self._fields()._asdict()
        for name, value in fields.items():
            unit = normalize_unit(name)
            if unit is Unit.WEEK:
                raise ValueError("Cannot set the week, set the day instead")
            values[unit.value] = value
        return self.set_args(*(values[n] for n in _FIELD_NAMES))

    def set_year(self, year: int) -> DateTime:
        return self.replace(year=year)

    def set_month(self, month: int) -> DateTime:
        """Set the month (1-12), overflowing into other years"""
        return self.replace(month=month)

    def set_day(self, day: int) -> DateTime:
        """Set the day of the month. ``0`` is the last day of the
        previous month, and overflowing days go into the next."""
        return self.replace(day=day)

    def set_hour(self, hour: int) -> DateTime:
        return self.replace(hour=hour)

    def set_minute(self, minute: int) -> DateTime:
        return self.replace(minute=minute)

    def set_second(self, second: int) -> DateTime:
        return self.replace(second=second)

    def set_millisecond(self, millisecond: int) -> DateTime:
        return self.replace(millisecond=millisecond)

    def reset_time(self) -> DateTime:
        """Midnight at the start of the same day"""
        return self.replace(hour=0, minute=0, second=0, millisecond=0)

    def _replace_utc(self, name: str, value: int) -> DateTime:
        if self.is_invalid():
            return self
        values = millis_to_civil(self._ms)._asdict()
        values[name] = value
        return self.with_millis(
            civil_to_millis(*(values[n] for n in _FIELD_NAMES))
        )

    def set_utc_year(self, year: int) -> DateTime:
        return self._replace_utc("year", year)

    def set_utc_month(self, month: int) -> DateTime:
        return self._replace_utc("month", month)

    def set_utc_day(self, day: int) -> DateTime:
        return self._replace_utc("day", day)

    def set_utc_hour(self, hour: int) -> DateTime:
        return self._replace_utc("hour", hour)

    def set_utc_minute(self, minute: int) -> DateTime:
        return self._replace_utc("minute", minute)

    def set_utc_second(self, second: int) -> DateTime:
        return self._replace_utc("second", second)

    def set_utc_millisecond(self, millisecond: int) -> DateTime:
        return self._replace_utc("millisecond", millisecond)

    # --- Arithmetic ------------------------------------------------------

    def advance(
        self,
        amount: float | Mapping[UnitLike, float] | None = None,
        unit: UnitLike | None = None,
        /,
        **units: float,
    ) -> DateTime:
        """Move forward by an amount of one or more units.

        Years, months, weeks and days keep the time of day, even across
        DST changes. Hours and smaller are exact elapsed time. Several
        units are applied from years down to milliseconds.

        Adding months never skips a month: Jan 31 plus one month is the
        last day of February.

        Example
        -------
        >>> d = DateTime("2020-01-31", time_zone="UTC")
        >>> d.advance(1, "month")
        DateTime(2020-02-29 00:00:00.000+00:00[UTC])
        >>> d.advance({"months": 6, "days": 15})
        DateTime(2020-08-15 00:00:00.000+00:00[UTC])
        >>> d.advance(hours=3)
        DateTime(2020-01-31 03:00:00.000+00:00[UTC])
        """
        return self._shift(1, amount, unit, units)

    def rewind(
        self,
        amount: float | Mapping[UnitLike, float] | None = None,
        unit: UnitLike | None = None,
        /,
        **units: float,
    ) -> DateTime:
        """Move backward by an amount of one or more units.
        The inverse of :meth:`advance`.

        Example
        -------
        >>> DateTime("2023-03-31", time_zone="UTC").rewind(1, "month")
        DateTime(2023-02-28 00:00:00.000+00:00[UTC])
        """
        return self._shift(-1, amount, unit, units)

    def _shift(
        self,
        sign: int,
        amount: float | Mapping[UnitLike, float] | None,
        unit: UnitLike | None,
        kwargs: Mapping[str, float],
    ) -> DateTime:
        if isinstance(amount, Mapping):
            if unit is not None or kwargs:
                raise TypeError("Give either a mapping or keyword units")
            units: Mapping[UnitLike, float] = amount
        elif amount is not None:
            if unit is None:
                raise TypeError("A unit is required with an amount")
            if kwargs:
                raise TypeError("Give either an amount or keyword units")
            units = {unit: amount}
        else:
            units = kwargs  # type: ignore[assignment]
        result = self
        for u, value in sort_units(dict(units)):
            result = result._shift_unit(u, sign * value)
        return result

    def _shift_unit(self, unit: Unit, amount: float) -> DateTime:
        if self.is_invalid():
            return self
        if unit is Unit.YEAR:
            return self.replace(year=self.year + _whole(amount, unit))
        elif unit is Unit.MONTH:
            return self._shift_months(_whole(amount, unit))
        elif unit is Unit.WEEK:
            return self.replace(day=self.day + 7 * _whole(amount, unit))
        elif unit is Unit.DAY:
            return self.replace(day=self.day + _whole(amount, unit))
        else:
            assert unit.fixed_millis is not None
            return self.with_millis(
                self._ms + round(amount * unit.fixed_millis)
            )

    def _shift_months(self, months: int) -> DateTime:
        day = self.day
        result = self.replace(month=self.month + months)
        # Day 29-31 overflowed into the month after the intended one
        if day > 28 and result.day < 4:
            result = result.set_day(0)
        return result

    def start_of(self, unit: UnitLike) -> DateTime:
        """The first millisecond of the unit containing this instant.
        Weeks start at :meth:`first_day_of_week`.

        Example
        -------
        >>> d = DateTime("2020-03-04T05:06:07Z", time_zone="Asia/Tokyo")
        >>> d.start_of("year")
        DateTime(2020-01-01 00:00:00.000+09:00[Asia/Tokyo])
        """
        u = normalize_unit(unit)
        if self.is_invalid() or u is Unit.MILLISECOND:
            return self
        f = self._fields()
        index = u.index
        month = 1 if index < 1 else f.month
        if u is Unit.WEEK:
            day = f.day - (f.weekday - self.first_day_of_week() + 7) % 7
        elif index < 3:
            day = 1
        else:
            day = f.day
        return self.set_args(
            f.year,
            month,
            day,
            0 if index < 4 else f.hour,
            0 if index < 5 else f.minute,
            0 if index < 6 else f.second,
        )

    def end_of(self, unit: UnitLike) -> DateTime:
        """The last millisecond of the unit containing this instant"""
        u = normalize_unit(unit)
        if self.is_invalid() or u is Unit.MILLISECOND:
            return self
        f = self._fields()
        index = u.index
        month = 12 if index < 1 else f.month
        if u is Unit.WEEK:
            day = f.day + (self.first_day_of_week() + 6 - f.weekday + 7) % 7
        elif index < 3:
            day = _days_in_month(f.year, month)
        else:
            day = f.day
        return self.set_args(
            f.year,
            month,
            day,
            23 if index < 4 else f.hour,
            59 if index < 5 else f.minute,
            59 if index < 6 else f.second,
            999,
        )

    def start_of_year(self) -> DateTime:
        return self.start_of(Unit.YEAR)

    def start_of_month(self) -> DateTime:
        return self.start_of(Unit.MONTH)

    def start_of_calendar_month(self) -> DateTime:
        """The start of the week containing the first of the month,
        i.e. the first cell of a month's calendar grid"""
        return self.start_of_month().start_of_week()

    def start_of_week(self) -> DateTime:
        return self.start_of(Unit.WEEK)

    def start_of_day(self) -> DateTime:
        return self.start_of(Unit.DAY)

    def end_of_year(self) -> DateTime:
        return self.end_of(Unit.YEAR)

    def end_of_month(self) -> DateTime:
        return self.end_of(Unit.MONTH)

    def end_of_calendar_month(self) -> DateTime:
        """The end of the week containing the last of the month"""
        return self.end_of_month().end_of_week()

    def end_of_week(self) -> DateTime:
        return self.end_of(Unit.WEEK)

    def end_of_day(self) -> DateTime:
        return self.end_of(Unit.DAY)

    # --- Formatting ------------------------------------------------------

    def format_iso(self) -> str:
        """Format in UTC as ``YYYY-MM-DDTHH:MM:SS.sssZ``"""
        if self.is_invalid():
            return INVALID
        f = millis_to_civil(self._ms)
        return (
            f"{f.year:04d}-{f.month:02d}-{f.day:02d}T"
            f"{f.hour:02d}:{f.minute:02d}:{f.second:02d}"
            f".{f.millisecond:03d}Z"
        )

    def format_iso_date(self) -> str:
        """The date in this timezone as ``YYYY-MM-DD``"""
        if self.is_invalid():
            return INVALID
        f = self._fields()
        return f"{f.year:04d}-{f.month:02d}-{f.day:02d}"

    def format_iso_time(self) -> str:
        """The time in this timezone as ``HH:MM:SS.sss``"""
        if self.is_invalid():
            return INVALID
        f = self._fields()
        return (
            f"{f.hour:02d}:{f.minute:02d}:{f.second:02d}"
            f".{f.millisecond:03d}"
        )

    def format(
        self,
        fmt: str | Mapping[str, Any] = DATETIME_LONG,
        /,
        **options: Any,
    ) -> str:
        """Format with tokens or with the locale's patterns.

        A string is read as tokens (``yyyy``, ``MM``, ``dd``, ``h``,
        ``HH``, ``mm``, ``ss``, ``a``, ``Z`` ...), with quoted text kept
        as-is. A mapping selects fields, as in the presets like
        :data:`DATE_LONG`. The ``locale`` and ``time_zone`` options
        override this DateTime's, other options add to the mapping.
        ``meridiem`` may be ``short``, ``period``, ``caps`` or ``space``.

        Example
        -------
        >>> d = DateTime("2020-01-01T00:00:00Z", time_zone="Asia/Tokyo")
        >>> d.format("yyyy-MM-dd 'at' h:mma")
        '2020-01-01 at 9:00am'
        >>> d.format(TIME_MEDIUM, meridiem="caps")
        '9:00AM'
        >>> d.format(DATE_LONG, locale="ja-JP")
        '2020年1月1日'
        """
        if self.is_invalid():
            return INVALID
        tag = options.pop("locale", None) or self.locale
        time_zone = options.pop("time_zone", None) or self.time_zone
        dt = _intl.to_zone(self._ms, time_zone)
        if isinstance(fmt, str):
            return _tokens.format_tokens(dt, fmt, tag)
        return _intl.format_options(dt, tag, {**fmt, **options})

    def format_date_long(self, **extra: Any) -> str:
        """e.g. January 1, 2020"""
        return self.format(DATE_LONG, **extra)

    def format_date_medium(self, **extra: Any) -> str:
        """e.g. Jan 1, 2020"""
        return self.format(DATE_MEDIUM, **extra)

    def format_date_short(self, **extra: Any) -> str:
        """e.g. 1/1/2020"""
        return self.format(DATE_SHORT, **extra)

    def format_time_long(self, **extra: Any) -> str:
        """e.g. 9:00:00am"""
        return self.format(TIME_LONG, **extra)

    def format_time_medium(self, **extra: Any) -> str:
        """e.g. 9:00am"""
        return self.format(TIME_MEDIUM, **extra)

    def format_time_short(self, **extra: Any) -> str:
        """e.g. 9am"""
        return self.format(TIME_SHORT, **extra)

    def format_time_with_zone(
        self, zone: str | Mapping[str, Any] | None = None
    ) -> str:
        """The time with the zone name, e.g. ``9:00am EST``.

        ``zone`` is the width of the name (``short``, ``long``,
        ``shortGeneric``, ``longGeneric``, ``shortOffset``,
        ``longOffset``) or a mapping of extra options.
        """
        return self.format(
            {
                **TIME_MEDIUM,
                **_resolve_named_param(zone, "time_zone_name", "short"),
            }
        )

    def format_month_year(
        self, month: str | Mapping[str, Any] | None = None
    ) -> str:
        """e.g. January 2020, or Jan 2020 with ``month="short"``"""
        return self.format(
            {**MONTH_YEAR, **_resolve_named_param(month, "month", "long")}
        )

    def format_month_day(
        self, month: str | Mapping[str, Any] | None = None
    ) -> str:
        """e.g. January 15, or Jan 15 with ``month="short"``"""
        return self.format(
            {**MONTH_DAY, **_resolve_named_param(month, "month", "long")}
        )

    def format_long(self, **extra: Any) -> str:
        """e.g. January 1, 2020, 9:00am"""
        return self.format(DATETIME_LONG, **extra)

    def format_medium(self, **extra: Any) -> str:
        """e.g. Jan 1, 2020, 9:00am"""
        return self.format(DATETIME_MEDIUM, **extra)

    def format_short(self, **extra: Any) -> str:
        """e.g. 1/1/2020, 9:00am"""
        return self.format(DATETIME_SHORT, **extra)

    def format_with_zone(
        self, zone: str | Mapping[str, Any] | None = None
    ) -> str:
        """e.g. January 1, 2020, 9:00am EST"""
        return self.format(
            {
                **DATETIME_LONG,
                **_resolve_named_param(zone, "time_zone_name", "short"),
            }
        )

    def relative(
        self,
        now: DateLike = None,
        *,
        min: DateLike = None,
        max: DateLike = None,
        numeric: Literal["auto", "always"] = "auto",
        locale: str | None = None,
    ) -> str:
        """Describe this moment relative to ``now`` (default: the
        current time), like "3 days ago" or "next month".

        Outside of ``min`` or ``max``, the moment is formatted absolutely
        instead: as a time if it's on the same day as ``now``, as a month
        and day in the same year, and as a long date otherwise.

        Example
        -------
        >>> now = DateTime("2025-01-01T00:00:00Z", time_zone="UTC")
        >>> DateTime("2024-12-25T00:00:00Z").relative(now)
        'last week'
        >>> DateTime("2023-01-01T00:00:00Z").relative(now)
        '2 years ago'
        """
        if self.is_invalid():
            return INVALID
        tag = locale or self.locale
        now_ = DateTime(now, **self._options.as_dict())
        if now_.is_invalid():
            return INVALID
        if min is not None and self < DateTime(min):
            if self > now_.start_of_day():
                return self.format_time_medium(locale=tag)
            elif self > now_.start_of_year():
                return self.format(MONTH_DAY, locale=tag)
            return self.format_date_long(locale=tag)
        if max is not None and self > DateTime(max):
            if self < now_.end_of_day():
                return self.format_time_medium(locale=tag)
            elif self < now_.end_of_year():
                return self.format(MONTH_DAY, locale=tag)
            return self.format_date_long(locale=tag)

        ms = self._ms - now_._ms
        ms_abs = abs(ms)
        if ms_abs < 1000:
            # under a second either way is "now"
            return _intl.format_relative(0, Unit.SECOND.value, tag, numeric)
        if ms_abs < MS_PER_WEEK:
            for unit in (Unit.SECOND, Unit.MINUTE, Unit.HOUR, Unit.DAY):
                assert unit.fixed_millis is not None
                if unit is Unit.DAY or ms_abs < _NEXT_UNIT_MILLIS[unit]:
                    return _intl.format_relative(
                        _round_half_up(ms / unit.fixed_millis),
                        unit.value,
                        tag,
                        numeric,
                    )

        me, other = self._fields(), now_._fields()
        months = (me.year - other.year) * 12 + (me.month - other.month)
        if months == 0:
            unit = Unit.WEEK
        elif abs(months) == 1:
            if months == 1:
                by_month = me.day >= other.day
            else:
                by_month = me.day <= other.day
            unit = Unit.MONTH if by_month else Unit.WEEK
        elif abs(months) >= 12:
            unit = Unit.YEAR
        else:
            unit = Unit.MONTH

        if unit is Unit.WEEK:
            value = _round_half_up(ms / MS_PER_WEEK)
        elif unit is Unit.MONTH:
            value = months
        else:
            value = _round_half_up(months / 12)
        return _intl.format_relative(value, unit.value, tag, numeric)

    # --- Comparison and other dunder methods ------------------------------

    def is_equal(self, other: Any) -> bool:
        """Whether the other value is the same instant.

        Unlike ``==``, this also accepts a :class:`~datetime.datetime`
        or anything else with a ``timestamp_millis()`` method.
        """
        ms = _millis_of(other)
        return ms is not None and ms == self._ms

    def __eq__(self, other: object) -> bool:
        """Same instant as another DateTime, regardless of options.

        Other types aren't equal, so that equal values hash alike.
        Use :meth:`is_equal` to compare with a ``datetime``.
        """
        if not isinstance(other, DateTime):
            return NotImplemented
        return self._ms == other._ms

    def __hash__(self) -> int:
        return hash(self._ms)

    def __lt__(self, other: Any) -> bool:
        if (ms := _millis_of(other)) is None:
            return NotImplemented
        return self._ms < ms

    def __le__(self, other: Any) -> bool:
        if (ms := _millis_of(other)) is None:
            return NotImplemented
        return self._ms <= ms

    def __gt__(self, other: Any) -> bool:
        if (ms := _millis_of(other)) is None:
            return NotImplemented
        return self._ms > ms

    def __ge__(self, other: Any) -> bool:
        if (ms := _millis_of(other)) is None:
            return NotImplemented
        return self._ms >= ms

    def __sub__(self, other: Any) -> Millis:
        """The difference in milliseconds"""
        if (ms := _millis_of(other)) is None:
            return NotImplemented
        return self._ms - ms

    def __str__(self) -> str:
        return self.format()

    def __repr__(self) -> str:
        if self.is_invalid():
            return "DateTime(invalid)"
        assert self._offset is not None
        zone = f"[{self.time_zone}]" if self.time_zone else ""
        return (
            f"DateTime({self.format_iso_date()} {self.format_iso_time()}"
            f"{_format_offset(self._offset)}{zone})"
        )


_NEXT_UNIT_MILLIS = {
    Unit.SECOND: Unit.MINUTE.fixed_millis,
    Unit.MINUTE: Unit.HOUR.fixed_millis,
    Unit.HOUR: Unit.DAY.fixed_millis,
}


@final
class Interval(_ImmutableBase):
    """The time between two instants, ``start`` before ``end``.

    Endpoints can be anything a :class:`DateTime` accepts. A single
    string ``"<start>/<end>"`` or another interval works too.

    Example
    -------
    >>> year = Interval("2025-01-01T00:00:00Z", "2026-01-01T00:00:00Z")
    >>> year.duration("days")
    365.0
    >>> year.contains("2025-06-01T00:00:00Z")
    True
    >>> Interval("2025-01-01T00:00:00Z/2025-01-02T00:00:00Z").divide(2)
    [Interval(2025-01-01T00:00:00.000Z/2025-01-01T12:00:00.000Z),
     Interval(2025-01-01T12:00:00.000Z/2025-01-02T00:00:00.000Z)]

    Raises
    ------
    InvalidDateError
        If an endpoint is not a valid instant
    RangeOrderError
        If the start isn't before the end
    """

    __slots__ = ("_start", "_end")
    _start: DateTime
    _end: DateTime

    def __init__(
        self,
        start: DateLike | Interval,
        end: DateLike = _UNSET,
        **options: Any,
    ) -> None:
        if end is _UNSET:
            if isinstance(start, Interval):
                start, end = start._start, start._end
            elif isinstance(start, str) and "/" in start:
                start, end = start.split("/", 1)
            else:
                raise TypeError(
                    "Expected two endpoints, an interval string, "
                    "or another Interval"
                )
        self._start = DateTime(start, **options)  # type: ignore[arg-type]
        self._end = DateTime(end, **options)
        if self._start.is_invalid() or self._end.is_invalid():
            raise InvalidDateError("Invalid dates for interval")
        if self._start >= self._end:
            raise RangeOrderError(
                f"Interval start {self._start.format_iso()} is not "
                f"before its end {self._end.format_iso()}"
            )

    @classmethod
    def _unchecked(cls, start: DateTime, end: DateTime) -> Interval:
        self = _object_new(cls)
        self._start = start
        self._end = end
        return self

    @classmethod
    def of_day(cls, value: DateLike = None, **options: Any) -> Interval:
        """The whole day containing the value (default: now)"""
        dt = DateTime(value, **options)
        return cls(dt.start_of_day(), dt.end_of_day())

    @classmethod
    def of_week(cls, value: DateLike = None, **options: Any) -> Interval:
        dt = DateTime(value, **options)
        return cls(dt.start_of_week(), dt.end_of_week())

    @classmethod
    def of_month(cls, value: DateLike = None, **options: Any) -> Interval:
        dt = DateTime(value, **options)
        return cls(dt.start_of_month(), dt.end_of_month())

    @classmethod
    def of_calendar_month(
        cls, value: DateLike = None, **options: Any
    ) -> Interval:
        """The whole weeks overlapping the month containing the value"""
        dt = DateTime(value, **options)
        return cls(dt.start_of_calendar_month(), dt.end_of_calendar_month())

    @property
    def start(self) -> DateTime:
        return self._start

    @property
    def end(self) -> DateTime:
        return self._end

    def clone(self) -> Interval:
        return Interval(self)

    def overlaps(self, other: DateLike | Interval) -> bool:
        """Whether the other interval or instant lies partly within this
        interval. Touching at an endpoint doesn't count."""
        if isinstance(other, Interval):
            return other._end > self._start and other._start < self._end
        return self._start < DateTime(other) < self._end

    def contains(self, other: DateLike | Interval) -> bool:
        """Whether the other interval or instant lies entirely within this
        interval, endpoints included"""
        if isinstance(other, Interval):
            return other._start >= self._start and other._end <= self._end
        return self._start <= DateTime(other) <= self._end

    def union(self, other: Interval) -> Interval:
        """The interval spanning both intervals, and any gap between them"""
        return Interval(
            self._start if self._start <= other._start else other._start,
            self._end if self._end >= other._end else other._end,
        )

    def intersection(self, other: Interval) -> Interval | None:
        """The time shared by both intervals, or None if there is none

        Example
        -------
        >>> a = Interval("2025-01-01Z", "2026-01-01Z")
        >>> a.intersection(Interval("2025-07-01Z", "2027-01-01Z"))
        Interval(2025-07-01T00:00:00.000Z/2026-01-01T00:00:00.000Z)
        >>> a.intersection(Interval("2026-01-01Z", "2027-01-01Z"))
        None
        """
        start = self._start if self._start >= other._start else other._start
        end = self._end if self._end <= other._end else other._end
        if start >= end:
            return None
        return Interval(start, end)

    def duration(self, unit: UnitLike | None = None) -> float:
        """The length of the interval, in milliseconds or in the unit.

        Weeks and smaller are exact elapsed time, so a day with a DST
        change lasts 23 or 25 hours. Months and years are counted on the
        calendar from the start, with a fraction for any remainder.

        Example
        -------
        >>> i = Interval("2025-01-01T00:00:00Z", "2025-01-16T12:00:00Z")
        >>> i.duration("months")
        0.5
        >>> i.duration("hours")
        372.0
        """
        ms = self._end - self._start
        if unit is None:
            return ms
        u = normalize_unit(unit)
        if u.fixed_millis is not None:
            return ms / u.fixed_millis
        count = 0
        current = self._start
        while (after := self._start.advance(count + 1, u)) <= self._end:
            count += 1
            current = after
        return count + (self._end - current) / (after - current)

    def get_units(self, unit: UnitLike) -> list[Interval]:
        """Split into whole calendar units, e.g. the days touched by the
        interval. The first and last units may extend past its ends.
        The end is exclusive, so a unit starting right at it is left out.

        Example
        -------
        >>> jan = Interval("2025-01-01Z", "2025-02-01Z", time_zone="UTC")
        >>> jan.get_weeks()[0]
        Interval(2024-12-29T00:00:00.000Z/2025-01-04T23:59:59.999Z)
        """
        u = normalize_unit(unit)
        result: list[Interval] = []
        current = self._start
        while current < self._end:
            result.append(
                Interval._unchecked(current.start_of(u), current.end_of(u))
            )
            current = current.advance(1, u)
        if result:
            last = result[-1]._end.advance(1, Unit.MILLISECOND)
            if last < self._end:
                result.append(
                    Interval._unchecked(last.start_of(u), last.end_of(u))
                )
        return result

    def get_years(self) -> list[Interval]:
        return self.get_units(Unit.YEAR)

    def get_months(self) -> list[Interval]:
        return self.get_units(Unit.MONTH)

    def get_weeks(self) -> list[Interval]:
        return self.get_units(Unit.WEEK)

    def get_days(self) -> list[Interval]:
        return self.get_units(Unit.DAY)

    def get_hours(self) -> list[Interval]:
        return self.get_units(Unit.HOUR)

    def get_minutes(self) -> list[Interval]:
        return self.get_units(Unit.MINUTE)

    def get_seconds(self) -> list[Interval]:
        return self.get_units(Unit.SECOND)

    def split(self, at: DateLike | Interval) -> list[Interval]:
        """Cut the interval at an instant, or cut out another interval.

        Returns the remaining pieces: two for a cut inside the interval,
        one if the cut is at or beyond an edge (or covers one), none if
        the cut covers everything.

        Example
        -------
        >>> year = Interval("2025-01-01Z", "2026-01-01Z")
        >>> year.split(Interval("2025-06-01Z", "2025-08-01Z"))
        [Interval(2025-01-01T00:00:00.000Z/2025-06-01T00:00:00.000Z),
         Interval(2025-08-01T00:00:00.000Z/2026-01-01T00:00:00.000Z)]
        """
        if isinstance(at, Interval):
            pieces = []
            if at._start > self._start:
                end = at._start if at._start < self._end else self._end
                pieces.append(Interval(self._start, end))
            if at._end < self._end:
                start = at._end if at._end > self._start else self._start
                pieces.append(Interval(start, self._end))
            return pieces
        point = DateTime(at)
        if self._start < point < self._end:
            return [Interval(self._start, point), Interval(point, self._end)]
        return [self.clone()]

    def divide(self, n: int) -> list[Interval]:
        """Split into ``n`` pieces of equal length, to the millisecond"""
        if not isinstance(n, int) or n < 1:
            raise ValueError(f"Cannot divide into {n!r} pieces")
        start_ms = self._start.timestamp_millis()
        total = self._end - self._start
        if n > total:
            raise ValueError(f"Cannot divide {total}ms into {n} pieces")
        bounds = [
            self._start.with_millis(start_ms + total * i // n)
            for i in range(n + 1)
        ]
        return [Interval(a, b) for a, b in zip(bounds, bounds[1:])]

    def is_equal(self, other: Any) -> bool:
        return (
            isinstance(other, Interval)
            and self._start == other._start
            and self._end == other._end
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Interval):
            return NotImplemented
        return self.is_equal(other)

    def __hash__(self) -> int:
        return hash((self._start, self._end))

    def format_iso(self) -> str:
        """Format as ``<start>/<end>``, both in UTC ISO format"""
        return f"{self._start.format_iso()}/{self._end.format_iso()}"

    def __str__(self) -> str:
        return f"{self._start} - {self._end}"

    def __repr__(self) -> str:
        return f"Interval({self.format_iso()})"


# We set the public module on all classes and functions
# since this is an implementation detail.
for name in __all__:
    member = locals()[name]
    if getattr(member, "__module__", None) == __name__:  # pragma: no branch
        member.__module__ = "wallclock"


# disable further subclassing
final(_ImmutableBase)


def _patch_time_frozen(ms: int) -> None:
    global time_ns

    def time_ns() -> int:
        return ms * 1_000_000


def _patch_time_keep_ticking(ms: int) -> None:
    global time_ns

    _patched_at = time_ns()
    _time_ns = time_ns

    def time_ns() -> int:
        return ms * 1_000_000 + _time_ns() - _patched_at


def _unpatch_time() -> None:
    global time_ns

    from time import time_ns
