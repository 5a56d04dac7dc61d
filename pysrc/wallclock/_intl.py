"""Civil-calendar formatting service.

Everything that needs timezone rules or locale data goes through here:
rendering an instant in a zone (via :mod:`zoneinfo`), and locale-aware
names, patterns and relative phrases (via Babel's CLDR data).
The rest of the package treats this module as a black box.
"""

from __future__ import annotations

import re
from datetime import datetime as _datetime, timedelta as _timedelta
from functools import lru_cache
from typing import Any, Literal, Mapping
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from babel import Locale, UnknownLocaleError
from babel.core import get_global
from babel.dates import (
    format_datetime as _babel_format_datetime,
    format_timedelta,
    get_day_names,
    get_month_names,
    get_period_names,
    get_timezone_name,
    match_skeleton,
    tokenize_pattern,
    untokenize_pattern,
)

from ._common import EPOCH, Millis
from ._tz.system import system_tzinfo

__all__ = [
    "ConfigurationError",
    "get_zone",
    "get_locale",
    "to_zone",
    "offset_token",
    "naive_iso",
    "first_day_of_week",
    "format_options",
    "format_relative",
    "month_names",
    "weekday_names",
    "meridiem",
    "timezone_name",
]


class ConfigurationError(ValueError):
    """An unknown timezone ID or locale tag was given"""


@lru_cache(maxsize=None)
def get_zone(key: str) -> ZoneInfo:
    try:
        return ZoneInfo(key)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ConfigurationError(f"Unknown timezone: {key!r}") from e


@lru_cache(maxsize=None)
def get_locale(tag: str) -> Locale:
    try:
        return Locale.parse(tag.replace("_", "-"), sep="-")
    except (UnknownLocaleError, ValueError, TypeError) as e:
        raise ConfigurationError(f"Unknown locale: {tag!r}") from e


def to_zone(ms: Millis, time_zone: str | None) -> _datetime:
    """The instant as an aware datetime in the given zone,
    or in the host zone if no zone is given"""
    dt = EPOCH + _timedelta(milliseconds=ms)
    if time_zone is None:
        return dt.astimezone(system_tzinfo(ms))
    return dt.astimezone(get_zone(time_zone))


def offset_token(ms: Millis, time_zone: str | None) -> str:
    """The short numeric offset of the instant in the zone,
    e.g. ``GMT+09:00``, ``GMT-03:30`` or ``GMT`` for a zero offset."""
    offset = to_zone(ms, time_zone).utcoffset()
    assert offset is not None
    secs = int(offset.total_seconds())
    if secs == 0:
        return "GMT"
    sign = "-" if secs < 0 else "+"
    hrs, rem = divmod(abs(secs), 3600)
    mins, secs = divmod(rem, 60)
    return f"GMT{sign}{hrs:02d}:{mins:02d}" + (f":{secs:02d}" if secs else "")


def naive_iso(ms: Millis, time_zone: str | None) -> str:
    """The wall-clock time of the instant in the zone, without an offset"""
    return to_zone(ms, time_zone).replace(tzinfo=None).isoformat()


def first_day_of_week(tag: str) -> int:
    """First day of the week for the locale's territory (0 is Sunday).
    Bare languages are expanded with their likely territory,
    so ``en`` behaves like ``en-US``."""
    locale = get_locale(tag)
    if locale.territory is None:
        likely = get_global("likely_subtags").get(locale.language)
        if likely:
            locale = Locale.parse(likely)
    # Babel counts from Monday
    return (locale.first_week_day + 1) % 7


def month_names(tag: str, style: str = "long") -> list[str]:
    names = get_month_names(_width(tag, style), locale=get_locale(tag))
    return [_compact(names[i], style) for i in range(1, 13)]


def weekday_names(tag: str, style: str = "long") -> list[str]:
    """Weekday names starting at Sunday"""
    names = get_day_names(_width(tag, style), locale=get_locale(tag))
    return [_compact(names[(i + 6) % 7], style) for i in range(7)]


def meridiem(
    hour: int,
    tag: str,
    *,
    style: Literal["long", "short"] = "long",
    lower: bool = False,
) -> str:
    name = get_period_names("abbreviated", locale=get_locale(tag))[
        "am" if hour < 12 else "pm"
    ]
    if style == "short" and re.fullmatch("[ap]m", name, re.IGNORECASE):
        name = name[0]
    return name.lower() if lower else name


def timezone_name(dt: _datetime, tag: str, width: str) -> str:
    """Specific (``short``/``long``) or generic (``shortGeneric``/
    ``longGeneric``) zone name, or the offset (``shortOffset``/
    ``longOffset``)"""
    locale = get_locale(tag)
    if width in _OFFSET_PATTERNS:
        return _babel_format_datetime(
            dt, _OFFSET_PATTERNS[width], locale=locale
        )
    if width in ("shortGeneric", "longGeneric"):
        return get_timezone_name(
            dt.tzinfo,
            "short" if width == "shortGeneric" else "long",
            locale=locale,
        )
    return get_timezone_name(dt, width, locale=locale)


_WIDTHS = {"long": "wide", "short": "abbreviated", "narrow": "narrow"}

_OFFSET_PATTERNS = {"shortOffset": "O", "longOffset": "OOOO"}

# Languages whose abbreviated names read well when cut to two letters
_HAS_COMPACT = frozenset(
    "en fr de es it pt nl ru sv da no fi is pl cs sk".split()
)


def _width(tag: str, style: str) -> str:
    if style == "compact":
        if get_locale(tag).language in _HAS_COMPACT:
            return "abbreviated"
        return "narrow"
    try:
        return _WIDTHS[style]
    except KeyError:
        raise ValueError(f"Unknown name style {style!r}") from None


def _compact(name: str, style: str) -> str:
    if style != "compact":
        return name
    return name[:1].upper() + name[1:2]


# --- Locale-aware formatting of option dicts -------------------------------

_DATE_FIELDS = {
    "weekday": {"long": "EEEE", "short": "E", "narrow": "EEEEE"},
    "year": {"numeric": "y", "2-digit": "yy"},
    "month": {
        "numeric": "M",
        "2-digit": "MM",
        "short": "MMM",
        "long": "MMMM",
        "narrow": "MMMMM",
    },
    "day": {"numeric": "d", "2-digit": "dd"},
}


def _hour_cycle_char(locale: Locale, options: Mapping[str, Any]) -> str:
    cycle = options.get("hour_cycle")
    if cycle in ("h23", "h24") or options.get("hour12") is False:
        return "H"
    if cycle in ("h11", "h12") or options.get("hour12"):
        return "h"
    return "H" if "H" in locale.time_formats["short"].pattern else "h"


def _skeletons(locale: Locale, options: Mapping[str, Any]) -> tuple[str, str]:
    date_skel = "".join(
        table[options[name]]
        for name, table in _DATE_FIELDS.items()
        if options.get(name) in table
    )
    time_skel = ""
    if options.get("hour"):
        char = _hour_cycle_char(locale, options)
        time_skel += char * (2 if options["hour"] == "2-digit" else 1)
    if options.get("minute"):
        time_skel += "m"
    if options.get("second"):
        time_skel += "s"
    return date_skel, time_skel


# Pattern characters that stand for the same field as a skeleton character.
# Hours, minutes and seconds keep the locale's widths.
_FIELD_FAMILIES = {
    "M": "M",
    "L": "M",
    "E": "E",
    "c": "E",
    "e": "E",
    "y": "y",
    "d": "d",
}


def _field_widths(skeleton: str) -> dict[str, int]:
    return {
        _FIELD_FAMILIES.get(char, char): width
        for kind, (char, width) in (
            t for t in tokenize_pattern(skeleton) if t[0] == "field"
        )
    }


def _format_skeleton(dt: _datetime, skeleton: str, locale: Locale) -> str:
    """Format with the locale pattern closest to the skeleton, adjusting
    field widths to the requested ones (``MMMM`` stays ``MMMM`` even if
    the closest pattern abbreviates the month).

    Like ICU, a field keeps the pattern's width if the matched skeleton
    already had the requested width, or if adjusting would turn a
    numeric field into text or the other way around.
    """
    available = locale.datetime_skeletons
    match = skeleton if skeleton in available else match_skeleton(
        skeleton, available
    )
    if match is None:
        match = match_skeleton(
            skeleton, available, allow_different_fields=True
        )
    if match is None:
        raise ConfigurationError(f"No pattern for {skeleton!r} in {locale}")
    requested = _field_widths(skeleton)
    matched = _field_widths(match)
    tokens = []
    for kind, value in tokenize_pattern(available[match].pattern):
        if kind == "field":
            char, width = value
            family = _FIELD_FAMILIES.get(char)
            if (
                family in requested
                and matched.get(family) != requested[family]
                and (width < 3) == (matched.get(family, width) < 3)
            ):
                value = (char, requested[family])
        tokens.append((kind, value))
    return _babel_format_datetime(
        dt, untokenize_pattern(tokens), locale=locale
    )


_MERIDIEM_RE = re.compile(r"\s(AM|PM)")


def _prettify_meridiem(s: str, style: str | None) -> str:
    def repl(match: re.Match[str]) -> str:
        ampm = match.group(1)
        if style == "space":
            ampm = " " + ampm
        if style != "caps":
            ampm = ampm.lower()
        return ampm

    s = _MERIDIEM_RE.sub(repl, s, count=1)
    if style == "short":
        s = re.sub("([ap])m", r"\1", s, count=1)
    elif style == "period":
        s = re.sub("([ap])m", r" \1.m.", s, count=1)
    return s


def format_options(dt: _datetime, tag: str, options: Mapping[str, Any]) -> str:
    """Format an aware datetime from Intl-style options, e.g.
    ``{"year": "numeric", "month": "long", "day": "numeric"}``.

    The date and time parts are formatted from the closest CLDR skeleton,
    then joined with the locale's date-time glue pattern.
    ``time_zone_name`` appends a zone name and ``meridiem`` controls the
    rendering of AM/PM.
    """
    locale = get_locale(tag)
    date_skel, time_skel = _skeletons(locale, options)
    date_str = _format_skeleton(dt, date_skel, locale) if date_skel else ""
    time_str = _format_skeleton(dt, time_skel, locale) if time_skel else ""
    if zone_width := options.get("time_zone_name"):
        zone_str = timezone_name(dt, tag, zone_width)
        time_str = f"{time_str} {zone_str}" if time_str else zone_str

    if date_str and time_str:
        glue = locale.datetime_formats.get(
            "long" if options.get("month") == "long" else "medium"
        )
        result = (
            str(glue).replace("'", "").replace("{0}", time_str).replace(
                "{1}", date_str
            )
            if glue
            else f"{date_str}, {time_str}"
        )
    else:
        result = date_str or time_str
    return _prettify_meridiem(result, options.get("meridiem"))


# --- Relative time phrasing -------------------------------------------------

RelativeUnit = Literal[
    "second", "minute", "hour", "day", "week", "month", "year"
]

_SECONDS_PER_UNIT = {
    "year": 3600 * 24 * 365,
    "month": 3600 * 24 * 30,
    "week": 3600 * 24 * 7,
    "day": 3600 * 24,
    "hour": 3600,
    "minute": 60,
    "second": 1,
}

# CLDR "relative" field names for offsets of -1, 0 and 1.
# Babel only ships the numeric "relativeTime" patterns.
_RELATIVE_NAMES: dict[str, dict[str, dict[int, str]]] = {
    "en": {
        "second": {0: "now"},
        "minute": {0: "this minute"},
        "hour": {0: "this hour"},
        "day": {-1: "yesterday", 0: "today", 1: "tomorrow"},
        "week": {-1: "last week", 0: "this week", 1: "next week"},
        "month": {-1: "last month", 0: "this month", 1: "next month"},
        "year": {-1: "last year", 0: "this year", 1: "next year"},
    },
    "ja": {
        "second": {0: "今"},
        "minute": {0: "1 分以内"},
        "hour": {0: "1 時間以内"},
        "day": {-1: "昨日", 0: "今日", 1: "明日"},
        "week": {-1: "先週", 0: "今週", 1: "来週"},
        "month": {-1: "先月", 0: "今月", 1: "翌月"},
        "year": {-1: "昨年", 0: "今年", 1: "来年"},
    },
    "fr": {
        "second": {0: "maintenant"},
        "minute": {0: "cette minute-ci"},
        "hour": {0: "cette heure-ci"},
        "day": {-1: "hier", 0: "aujourd’hui", 1: "demain"},
        "week": {
            -1: "la semaine dernière",
            0: "cette semaine",
            1: "la semaine prochaine",
        },
        "month": {
            -1: "le mois dernier",
            0: "ce mois-ci",
            1: "le mois prochain",
        },
        "year": {
            -1: "l’année dernière",
            0: "cette année",
            1: "l’année prochaine",
        },
    },
    "de": {
        "second": {0: "jetzt"},
        "minute": {0: "in dieser Minute"},
        "hour": {0: "in dieser Stunde"},
        "day": {-1: "gestern", 0: "heute", 1: "morgen"},
        "week": {-1: "letzte Woche", 0: "diese Woche", 1: "nächste Woche"},
        "month": {
            -1: "letzten Monat",
            0: "diesen Monat",
            1: "nächsten Monat",
        },
        "year": {-1: "letztes Jahr", 0: "dieses Jahr", 1: "nächstes Jahr"},
    },
    "es": {
        "second": {0: "ahora"},
        "minute": {0: "este minuto"},
        "hour": {0: "esta hora"},
        "day": {-1: "ayer", 0: "hoy", 1: "mañana"},
        "week": {
            -1: "la semana pasada",
            0: "esta semana",
            1: "la próxima semana",
        },
        "month": {-1: "el mes pasado", 0: "este mes", 1: "el próximo mes"},
        "year": {-1: "el año pasado", 0: "este año", 1: "el próximo año"},
    },
}


def format_relative(
    value: int,
    unit: RelativeUnit,
    tag: str,
    numeric: Literal["auto", "always"] = "auto",
) -> str:
    """Phrase a signed amount of a unit, e.g. ``(-3, "day")`` as "3 days ago".

    With ``numeric="auto"``, offsets that have a name in the locale
    are phrased with it ("yesterday", "next week").
    """
    locale = get_locale(tag)
    if numeric == "auto":
        named = _RELATIVE_NAMES.get(locale.language, {}).get(unit, {})
        if value in named:
            return named[value]
    # Babel picks the direction from the sign and the pattern from the unit
    # we force through the granularity, since the threshold is never reached.
    seconds = value * _SECONDS_PER_UNIT[unit]
    if seconds == 0:
        seconds = 0  # avoid "-0"
    return format_timedelta(
        seconds,
        granularity=unit,
        threshold=float("inf"),
        add_direction=True,
        format="long",
        locale=locale,
    )

