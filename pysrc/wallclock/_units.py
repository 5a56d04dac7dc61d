"""Calendar units and the normalisation of their names"""

from __future__ import annotations

import enum
from typing import Union

from ._common import (
    MS_PER_DAY,
    MS_PER_HOUR,
    MS_PER_MINUTE,
    MS_PER_SECOND,
    MS_PER_WEEK,
)


class UnknownUnitError(ValueError):
    """A unit name is not one of the supported calendar units"""


class Unit(enum.Enum):
    """Calendar units, from coarse to fine.

    Iteration order is the order in which several units are applied
    when advancing by more than one at once.
    """

    YEAR = "year"
    MONTH = "month"
    WEEK = "week"
    DAY = "day"
    HOUR = "hour"
    MINUTE = "minute"
    SECOND = "second"
    MILLISECOND = "millisecond"

    @property
    def index(self) -> int:
        return _ORDER.index(self)

    @property
    def fixed_millis(self) -> int | None:
        """The length in milliseconds, or None for months and years"""
        return _FIXED_MILLIS.get(self)


UnitLike = Union[Unit, str]

_ORDER = list(Unit)

_FIXED_MILLIS = {
    Unit.WEEK: MS_PER_WEEK,
    Unit.DAY: MS_PER_DAY,
    Unit.HOUR: MS_PER_HOUR,
    Unit.MINUTE: MS_PER_MINUTE,
    Unit.SECOND: MS_PER_SECOND,
    Unit.MILLISECOND: 1,
}


def normalize_unit(unit: UnitLike) -> Unit:
    """Resolve a unit or one of its names (singular or plural)

    >>> normalize_unit("months")
    <Unit.MONTH: 'month'>
    """
    if isinstance(unit, Unit):
        return unit
    if not isinstance(unit, str):
        raise UnknownUnitError(f"Unknown unit {unit!r}")
    name = unit[:-1] if unit.endswith("s") else unit
    try:
        return Unit(name)
    except ValueError:
        raise UnknownUnitError(f"Unknown unit {unit!r}") from None


def sort_units(units: dict[UnitLike, float]) -> list[tuple[Unit, float]]:
    """Normalise a mapping of units to amounts, in canonical order.
    Aliases of the same unit are summed."""
    totals: dict[Unit, float] = {}
    for name, amount in units.items():
        unit = normalize_unit(name)
        totals[unit] = totals.get(unit, 0) + amount
    return sorted(totals.items(), key=lambda item: item[0].index)
