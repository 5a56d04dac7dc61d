from __future__ import annotations

from ._pywallclock import *
from ._pywallclock import (  # for the docs
    __all__,
    __version__,
    _patch_time_frozen,
    _patch_time_keep_ticking,
    _unpatch_time,
)

from contextlib import contextmanager as _contextmanager
from dataclasses import dataclass as _dataclass
from typing import Iterator as _Iterator

from ._tz import reset_system_tz


@_dataclass
class _TimePatch:
    _pin: DateTime
    _keep_ticking: bool

    def shift(self, *args, **kwargs):
        """Move the patched time, with the arguments of
        :meth:`DateTime.advance`"""
        if self._keep_ticking:
            now = self._pin.with_millis(DateTime.now().timestamp_millis())
            self._pin = new = now.advance(*args, **kwargs)
            _patch_time_keep_ticking(new.timestamp_millis())
        else:
            self._pin = new = self._pin.advance(*args, **kwargs)
            _patch_time_frozen(new.timestamp_millis())


@_contextmanager
def patch_current_time(
    dt: DateTime,
    /,
    *,
    keep_ticking: bool,
) -> _Iterator[_TimePatch]:
    """Patch the current time to a fixed value (for testing purposes).
    Behaves as a context manager or decorator, with similar semantics to
    ``unittest.mock.patch``.

    Important
    ---------

    * This function should be used only for testing purposes. It is not
      thread-safe or part of the stable API.
    * This function only affects the current time as seen by ``wallclock``
      (e.g. ``DateTime()`` and :meth:`DateTime.relative`). It does not
      affect the standard library's time functions or any other libraries.
    * It doesn't affect the system timezone.
      If you need to patch the system timezone, set the ``TZ`` environment
      variable and call :func:`reset_system_tz`.

    Example
    -------

    >>> from wallclock import DateTime, patch_current_time
    >>> d = DateTime("1980-03-02T02:00:00Z")
    >>> with patch_current_time(d, keep_ticking=False) as p:
    ...     assert DateTime() == d
    ...     p.shift(hours=4)
    ...     assert DateTime() == d.advance(hours=4)
    ...
    >>> assert DateTime() != d
    """
    if not isinstance(dt, DateTime) or dt.is_invalid():
        raise ValueError("Can only patch the time to a valid DateTime")
    if keep_ticking:
        _patch_time_keep_ticking(dt.timestamp_millis())
    else:
        _patch_time_frozen(dt.timestamp_millis())

    try:
        yield _TimePatch(dt, keep_ticking)
    finally:
        _unpatch_time()


__all__ = [
    *__all__,
    "patch_current_time",
    "reset_system_tz",
]
