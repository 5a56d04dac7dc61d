"""Host timezone and locale detection"""

from __future__ import annotations

import logging
import os
import os.path
import platform
import time
from datetime import timedelta, timezone, tzinfo
from typing import Literal, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from babel import default_locale

from .._common import EPOCH

__all__ = [
    "get_tz",
    "system_time_zone",
    "system_tzinfo",
    "system_offset",
    "system_locale",
    "reset_system_tz",
]

logger = logging.getLogger(__name__)

SYSTEM = platform.system()
LOCALTIME = "/etc/localtime"

# Getting the system timezone key depends on the platform.
# On unix-like systems it's relatively straightforward.
# On other platforms, we use the tzlocal package.
if SYSTEM in ("Linux", "Darwin"):  # pragma: no cover

    def _key_or_file() -> tuple[Literal[0, 1], str]:
        tzif_path = os.path.realpath(LOCALTIME)
        if tzif_path == LOCALTIME:
            # Not a symlink: the key can't be determined
            return (1, LOCALTIME)

        if (tzid := _tzid_from_path(tzif_path)) is None:
            return (1, tzif_path)
        return (0, tzid)

else:  # pragma: no cover
    import tzlocal

    def _key_or_file() -> tuple[Literal[0, 1], str]:
        return (0, tzlocal.get_localzone_name())


def _tzid_from_path(path: str) -> Optional[str]:
    """Find the IANA timezone ID from a path to a zoneinfo file.
    Returns None if the path is not in a zoneinfo directory.
    """
    # Find the path segment containing 'zoneinfo',
    # e.g. `zoneinfo/` or `zoneinfo.default/`
    if (index := path.find("/", path.rfind("zoneinfo"))) == -1:
        return None
    return path[index + 1 :]


def get_tz() -> tuple[Literal[0, 1, 2], str]:
    """Where the system timezone comes from. The first item is the kind:
        - 0: zoneinfo key
        - 1: file path to a zoneinfo file (key unknown)
        - 2: zoneinfo key or posix TZ string (unknown which)
    """
    try:
        tz_env = os.environ["TZ"]
    except KeyError:
        return _key_or_file()
    if tz_env.startswith(":"):
        tz_env = tz_env[1:]
    if os.path.isabs(tz_env):
        if (tzid := _tzid_from_path(os.path.realpath(tz_env))) is not None:
            return (0, tzid)
        return (1, tz_env)
    # A digit suggests a posix TZ string like "EST5EDT",
    # though a zoneinfo key may contain one too.
    if any(c.isdigit() for c in tz_env):
        return (2, tz_env)
    return (0, tz_env)


def _read_system_tz() -> str | None:
    kind, value = get_tz()
    if kind == 1:
        logger.debug("System timezone file %s has no known key", value)
        return None
    try:
        ZoneInfo(value)
    except (ZoneInfoNotFoundError, ValueError):
        if kind == 0:
            logger.debug("System timezone %r is not in the database", value)
        return None
    return value


_UNREAD = object()
_cached_system_tz: str | None | object = _UNREAD


def system_time_zone() -> str | None:
    """The IANA key of the host timezone, or None if it can't be named"""
    global _cached_system_tz
    if _cached_system_tz is _UNREAD:
        _cached_system_tz = _read_system_tz()
    return _cached_system_tz  # type: ignore[return-value]


def reset_system_tz() -> None:
    """Re-read the host timezone, e.g. after changing the ``TZ``
    environment variable."""
    global _cached_system_tz
    if hasattr(time, "tzset"):
        time.tzset()
    _cached_system_tz = _read_system_tz()
    logger.debug("System timezone is now %r", _cached_system_tz)


def system_tzinfo(ms: float) -> tzinfo:
    """The host zone as a tzinfo. Without a known key this is a fixed
    offset, valid around the given instant only."""
    if (key := system_time_zone()) is not None:
        return ZoneInfo(key)
    try:
        gmtoff = time.localtime(ms // 1000).tm_gmtoff
    except (OverflowError, OSError, ValueError):
        gmtoff = 0
    return timezone(timedelta(seconds=gmtoff))


def system_offset(ms: float) -> int:
    """The host offset at the instant, in minutes west of UTC"""
    offset = (
        EPOCH + timedelta(milliseconds=ms)
    ).astimezone(system_tzinfo(ms)).utcoffset()
    assert offset is not None
    return -round(offset.total_seconds() / 60)


def system_locale() -> str | None:
    """The host locale as a BCP-47 tag (e.g. ``en-US``), if set"""
    name = default_locale("LC_TIME")
    if not name:
        return None
    return name.split(".")[0].replace("_", "-")
