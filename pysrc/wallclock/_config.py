"""Process-wide default options"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from ._intl import ConfigurationError, get_locale, get_zone
from ._tz.system import system_locale, system_time_zone

__all__ = [
    "Options",
    "FALLBACK_LOCALE",
    "set_default_options",
    "get_default_options",
    "reset_default_options",
    "set_default_time_zone",
    "get_default_time_zone",
    "set_default_locale",
    "get_default_locale",
    "resolve_options",
]

logger = logging.getLogger(__name__)

FALLBACK_LOCALE = "en-US"
OPTION_NAMES = ("locale", "time_zone", "first_day_of_week")


@dataclass(frozen=True)
class Options:
    """The options a DateTime was created with.

    ``time_zone`` of None means the host zone couldn't be named
    and the host's offsets are used,
    ``first_day_of_week`` of None means the locale decides.
    """

    locale: str
    time_zone: Optional[str] = None
    first_day_of_week: Optional[int] = None

    def as_dict(self) -> dict[str, Any]:
        return {
            name: getattr(self, name)
            for name in OPTION_NAMES
            if getattr(self, name) is not None
        }


_defaults: dict[str, Any] = {}


def _validate(name: str, value: Any) -> None:
    if name == "locale":
        get_locale(value)
    elif name == "time_zone":
        get_zone(value)
    elif name == "first_day_of_week":
        if not isinstance(value, int) or not 0 <= value <= 6:
            raise ValueError(
                f"first_day_of_week must be 0 (Sunday) to 6, got {value!r}"
            )
    else:
        raise TypeError(f"Unknown option {name!r}")


def set_default_options(**options: Any) -> None:
    """Set options used by every DateTime created afterwards without
    explicit ones. Setting an option to None removes its default.

    Raises
    ------
    ConfigurationError
        If the locale or timezone is unknown.
    """
    for name, value in options.items():
        if value is not None:
            _validate(name, value)
    for name, value in options.items():
        if value is None:
            _defaults.pop(name, None)
        else:
            _defaults[name] = value
    logger.debug("Default options are now %r", _defaults)


def get_default_options() -> dict[str, Any]:
    return dict(_defaults)


def reset_default_options() -> None:
    """Remove all defaults, so the host's locale and timezone apply"""
    _defaults.clear()
    logger.debug("Default options reset")


def set_default_time_zone(time_zone: str | None) -> None:
    set_default_options(time_zone=time_zone)


def get_default_time_zone() -> str | None:
    return _defaults.get("time_zone")


def set_default_locale(locale: str | None) -> None:
    set_default_options(locale=locale)


def get_default_locale() -> str | None:
    return _defaults.get("locale")


def _host_locale() -> str:
    tag = system_locale()
    if tag is None:
        return FALLBACK_LOCALE
    try:
        get_locale(tag)
    except ConfigurationError:
        logger.debug(
            "Host locale %r is unknown, using %s", tag, FALLBACK_LOCALE
        )
        return FALLBACK_LOCALE
    return tag


def resolve_options(
    explicit: Mapping[str, Any], inherited: Options | None = None
) -> Options:
    """Combine options: explicit ones first, then those of the value
    being cloned, then the process defaults, then the host's."""
    resolved: dict[str, Any] = {}
    for name in OPTION_NAMES:
        value = explicit.get(name)
        if value is not None:
            _validate(name, value)
        elif inherited is not None and getattr(inherited, name) is not None:
            value = getattr(inherited, name)
        else:
            value = _defaults.get(name)
        resolved[name] = value
    for name in explicit:
        if name not in OPTION_NAMES:
            raise TypeError(f"Unknown option {name!r}")
    if resolved["locale"] is None:
        resolved["locale"] = _host_locale()
    if resolved["time_zone"] is None:
        resolved["time_zone"] = system_time_zone()
    return Options(**resolved)
