from datetime import datetime, timezone

import pytest
from hypothesis import given
from hypothesis.strategies import integers, sampled_from

from wallclock import (
    DateTime,
    InvalidDateError,
    InvalidIntervalError,
    Interval,
    RangeOrderError,
    UnknownUnitError,
)

from .common import iso

START = "2025-01-01T00:00:00.000Z"
END = "2026-01-01T00:00:00.000Z"


@pytest.fixture
def year():
    return Interval(START, END)


def isos(intervals):
    return [i.format_iso() for i in intervals]


class TestInit:
    def test_strings(self, year):
        assert year.start.format_iso() == START
        assert year.end.format_iso() == END

    def test_datetimes(self):
        i = Interval(DateTime(START), DateTime(END))
        assert i.format_iso() == f"{START}/{END}"

    def test_py_datetimes(self):
        i = Interval(
            datetime(2025, 1, 1, tzinfo=timezone.utc),
            datetime(2026, 1, 1, tzinfo=timezone.utc),
        )
        assert i.format_iso() == f"{START}/{END}"

    def test_milliseconds(self):
        i = Interval(0, 1000)
        assert i.duration() == 1000

    def test_interval_string(self):
        i = Interval("2025-01-01Z/2026-01-01Z")
        assert i.format_iso() == f"{START}/{END}"

    def test_other_interval(self, year):
        i = Interval(year)
        assert i == year
        assert i is not year

    def test_options(self):
        i = Interval(
            "2024-03-10T00:00:00.000",
            "2024-03-11T00:00:00.000",
            time_zone="America/New_York",
        )
        assert i.start.format_iso() == "2024-03-10T05:00:00.000Z"
        assert i.start.time_zone == "America/New_York"

    def test_single_endpoint(self):
        with pytest.raises(TypeError):
            Interval(START)  # type: ignore[call-arg]

    @pytest.mark.parametrize(
        "start, end",
        [
            ("bad", END),
            (START, "bad"),
            (START, float("nan")),
        ],
    )
    def test_invalid_dates(self, start, end):
        with pytest.raises(InvalidDateError, match="Invalid dates"):
            Interval(start, end)

    def test_reversed(self):
        with pytest.raises(RangeOrderError):
            Interval(END, START)

    def test_empty(self):
        with pytest.raises(RangeOrderError):
            Interval(START, START)

    def test_errors_share_a_base(self):
        assert issubclass(InvalidDateError, InvalidIntervalError)
        assert issubclass(RangeOrderError, InvalidIntervalError)
        assert issubclass(InvalidIntervalError, ValueError)


class TestOfUnit:
    def test_day(self):
        i = Interval.of_day("2025-06-15T03:00:00.000Z")
        assert i.format_iso() == (
            "2025-06-14T15:00:00.000Z/2025-06-15T14:59:59.999Z"
        )

    def test_week(self):
        i = Interval.of_week("2025-01-01T00:00:00.000Z", time_zone="UTC")
        assert i.format_iso() == (
            "2024-12-29T00:00:00.000Z/2025-01-04T23:59:59.999Z"
        )

    def test_month(self):
        i = Interval.of_month("2025-02-10T00:00:00.000Z", time_zone="UTC")
        assert i.format_iso() == (
            "2025-02-01T00:00:00.000Z/2025-02-28T23:59:59.999Z"
        )

    def test_calendar_month(self):
        i = Interval.of_calendar_month(
            "2025-02-10T00:00:00.000Z", time_zone="UTC"
        )
        assert i.format_iso() == (
            "2025-01-26T00:00:00.000Z/2025-03-01T23:59:59.999Z"
        )


class TestOverlaps:
    def test_instants(self, year):
        assert year.overlaps("2025-06-01T00:00:00.000Z")
        assert year.overlaps(DateTime("2025-06-01T00:00:00.000Z"))
        assert year.overlaps(datetime(2025, 6, 1, tzinfo=timezone.utc))
        assert not year.overlaps("2027-01-01T00:00:00.000Z")

    def test_edges_dont_count(self, year):
        assert not year.overlaps(START)
        assert not year.overlaps(END)
        assert not year.overlaps(Interval(END, "2027-01-01T00:00:00.000Z"))

    def test_intervals(self, year):
        assert year.overlaps(Interval("2025-06-01Z", "2026-06-01Z"))
        assert year.overlaps(Interval("2024-06-01Z", "2025-06-01Z"))
        assert year.overlaps(Interval("2024-06-01Z", "2026-06-01Z"))
        assert not year.overlaps(Interval("2026-06-01Z", "2027-06-01Z"))


class TestContains:
    def test_instants(self, year):
        assert year.contains("2025-06-01T00:00:00.000Z")
        assert year.contains(START)
        assert year.contains(END)
        assert not year.contains("2024-06-01T00:00:00.000Z")

    def test_intervals(self, year):
        assert year.contains(Interval("2025-02-01Z", "2025-03-01Z"))
        assert year.contains(year)
        assert not year.contains(Interval("2025-06-01Z", "2026-06-01Z"))


class TestSetOperations:
    def test_union(self, year):
        other = Interval("2025-06-01Z", "2026-06-01Z")
        assert year.union(other).format_iso() == (
            f"{START}/2026-06-01T00:00:00.000Z"
        )
        assert other.union(year) == year.union(other)

    def test_union_with_gap(self):
        a = Interval("2025-01-01Z", "2025-02-01Z")
        b = Interval("2025-03-01Z", "2025-04-01Z")
        assert a.union(b).format_iso() == (
            "2025-01-01T00:00:00.000Z/2025-04-01T00:00:00.000Z"
        )

    def test_intersection(self, year):
        other = Interval("2025-06-01Z", "2026-06-01Z")
        assert year.intersection(other).format_iso() == (
            f"2025-06-01T00:00:00.000Z/{END}"
        )

    def test_no_intersection(self, year):
        assert year.intersection(Interval(END, "2027-01-01Z")) is None
        later = Interval("2027-01-01Z", "2028-01-01Z")
        assert year.intersection(later) is None


class TestDuration:
    def test_milliseconds(self, year):
        assert year.duration() == 365 * 24 * 3600 * 1000

    @pytest.mark.parametrize(
        "unit, expect",
        [
            ("years", 1),
            ("months", 12),
            ("weeks", 365 / 7),
            ("days", 365),
            ("hours", 365 * 24),
            ("day", 365),
        ],
    )
    def test_units(self, year, unit, expect):
        assert year.duration(unit) == pytest.approx(expect)

    def test_leap_year(self):
        assert Interval("2024-01-01Z", "2025-01-01Z").duration("days") == 366

    def test_fractional_year(self):
        i = Interval(START, "2025-07-02T12:00:00.000Z")
        assert i.duration("years") == pytest.approx(0.5)

    def test_fractional_month(self):
        i = Interval(START, "2025-01-16T12:00:00.000Z")
        assert i.duration("months") == pytest.approx(0.5)

    def test_minutes(self):
        i = Interval(START, "2025-01-01T00:30:00.000Z")
        assert i.duration("minutes") == 30

    @pytest.mark.parametrize(
        "start, end, hours",
        [
            ("2024-03-10T00:00:00.000", "2024-03-11T00:00:00.000", 23),
            ("2024-11-03T00:00:00.000", "2024-11-04T00:00:00.000", 25),
        ],
    )
    def test_dst_days(self, start, end, hours):
        i = Interval(start, end, time_zone="America/New_York")
        assert i.duration("hours") == hours
        assert i.duration("days") == pytest.approx(hours / 24)

    def test_unknown_unit(self, year):
        with pytest.raises(UnknownUnitError):
            year.duration("fortnights")


class TestSplit:
    def test_at_instant(self, year):
        assert isos(year.split("2025-06-01T00:00:00.000Z")) == [
            f"{START}/2025-06-01T00:00:00.000Z",
            f"2025-06-01T00:00:00.000Z/{END}",
        ]

    def test_by_interval_inside(self, year):
        cut = Interval("2025-06-01Z", "2025-08-01Z")
        assert isos(year.split(cut)) == [
            f"{START}/2025-06-01T00:00:00.000Z",
            f"2025-08-01T00:00:00.000Z/{END}",
        ]

    def test_by_interval_over_start(self, year):
        cut = Interval("2024-07-01Z", "2025-03-01Z")
        assert isos(year.split(cut)) == [f"2025-03-01T00:00:00.000Z/{END}"]

    def test_by_interval_over_end(self, year):
        cut = Interval("2025-10-01Z", "2026-06-01Z")
        assert isos(year.split(cut)) == [f"{START}/2025-10-01T00:00:00.000Z"]

    def test_by_covering_interval(self, year):
        assert year.split(Interval("2024-01-01Z", "2027-01-01Z")) == []

    @pytest.mark.parametrize(
        "at", ["2024-06-01T00:00:00.000Z", "2027-06-01T00:00:00.000Z", START]
    )
    def test_outside(self, year, at):
        assert year.split(at) == [year]


class TestDivide:
    def test_halves(self, year):
        assert isos(year.divide(2)) == [
            f"{START}/2025-07-02T12:00:00.000Z",
            f"2025-07-02T12:00:00.000Z/{END}",
        ]

    def test_hours(self):
        day = Interval(START, "2025-01-02T00:00:00.000Z")
        pieces = day.divide(6)
        assert len(pieces) == 6
        assert all(p.duration("hours") == 4 for p in pieces)
        assert pieces[0].start == day.start
        assert pieces[-1].end == day.end

    def test_uneven(self):
        pieces = Interval(0, 10).divide(3)
        assert [p.duration() for p in pieces] == [3, 3, 4]

    @pytest.mark.parametrize("n", [0, -1, 1.5, "2"])
    def test_bad_count(self, year, n):
        with pytest.raises(ValueError):
            year.divide(n)

    def test_too_many(self):
        with pytest.raises(ValueError):
            Interval(0, 5).divide(6)


class TestGetUnits:
    @pytest.fixture
    def jan(self):
        return Interval("2025-01-01Z", "2025-02-01Z", time_zone="UTC")

    def test_years(self, jan):
        assert isos(jan.get_years()) == [
            "2025-01-01T00:00:00.000Z/2025-12-31T23:59:59.999Z"
        ]

    def test_months(self, jan):
        assert isos(jan.get_months()) == [
            "2025-01-01T00:00:00.000Z/2025-01-31T23:59:59.999Z"
        ]

    def test_weeks(self, jan):
        weeks = jan.get_weeks()
        assert len(weeks) == 5
        assert weeks[0].format_iso() == (
            "2024-12-29T00:00:00.000Z/2025-01-04T23:59:59.999Z"
        )
        assert weeks[-1].format_iso() == (
            "2025-01-26T00:00:00.000Z/2025-02-01T23:59:59.999Z"
        )

    def test_days(self, jan):
        days = jan.get_days()
        assert len(days) == 31
        assert days[0].format_iso() == (
            "2025-01-01T00:00:00.000Z/2025-01-01T23:59:59.999Z"
        )

    def test_hours(self):
        i = Interval(
            "2025-01-01T00:30:00Z", "2025-01-01T02:00:00Z", time_zone="UTC"
        )
        assert isos(i.get_hours()) == [
            "2025-01-01T00:00:00.000Z/2025-01-01T00:59:59.999Z",
            "2025-01-01T01:00:00.000Z/2025-01-01T01:59:59.999Z",
        ]

    def test_minutes_and_seconds(self):
        i = Interval("2025-01-01T00:00:00Z", "2025-01-01T00:01:00Z")
        assert len(i.get_minutes()) == 1
        assert len(i.get_seconds()) == 60

    def test_month_from_the_middle(self):
        i = Interval("2025-01-15Z", "2025-03-10Z", time_zone="UTC")
        assert [m.start.month for m in i.get_months()] == [1, 2, 3]
        i = Interval("2025-01-15Z", "2025-03-01Z", time_zone="UTC")
        assert [m.start.month for m in i.get_months()] == [1, 2]

    def test_dst_fold(self):
        i = Interval(
            "2024-11-03T00:00:00.000",
            "2024-11-04T00:00:00.000",
            time_zone="America/New_York",
        )
        hours = i.get_hours()
        assert len(hours) == 25
        starts = [iso(h.start) for h in hours]
        assert len(set(starts)) == 25
        # 1am comes twice, an hour apart
        assert starts[1:3] == [
            "2024-11-03T05:00:00.000Z",
            "2024-11-03T06:00:00.000Z",
        ]
        assert iso(hours[1].end) == "2024-11-03T05:59:59.999Z"
        assert iso(hours[2].end) == "2024-11-03T06:59:59.999Z"

    def test_dst_gap(self):
        i = Interval(
            "2024-03-10T00:00:00.000",
            "2024-03-11T00:00:00.000",
            time_zone="America/New_York",
        )
        hours = i.get_hours()
        assert len(hours) == 23
        assert [h.start.hour for h in hours[:3]] == [0, 1, 3]

    def test_unknown_unit(self, jan):
        with pytest.raises(UnknownUnitError):
            jan.get_units("foo")


DAY = 24 * 3600 * 1000


def assert_covers(i, pieces):
    assert pieces[0].contains(i.start)
    assert pieces[-1].contains(i.end.rewind(1, "millisecond"))
    for a, b in zip(pieces, pieces[1:]):
        assert b.start - a.end == 1


@given(
    start=integers(0, 2_000_000_000_000),
    length=integers(1, 90 * DAY),
    unit=sampled_from(["year", "month", "week", "day", "hour"]),
    zone=sampled_from(["UTC", "Asia/Tokyo", "America/New_York"]),
)
def test_units_cover_interval(start, length, unit, zone):
    if unit == "hour":
        length = length % (3 * DAY) + 1
    i = Interval(start, start + length, time_zone=zone)
    assert_covers(i, i.get_units(unit))


@given(
    change=sampled_from(
        [
            ("2024-11-03T06:00:00Z", "America/New_York"),
            ("2024-03-10T07:00:00Z", "America/New_York"),
            ("2024-10-27T01:00:00Z", "Europe/Amsterdam"),
            ("2024-03-31T01:00:00Z", "Europe/Amsterdam"),
            ("2024-04-06T16:00:00Z", "Australia/Sydney"),
        ]
    ),
    before=integers(1, 2 * DAY),
    after=integers(1, 2 * DAY),
    unit=sampled_from(["day", "hour"]),
)
def test_units_cover_dst_change(change, before, after, unit):
    at, zone = change
    ms = DateTime(at).timestamp_millis()
    i = Interval(ms - before, ms + after, time_zone=zone)
    pieces = i.get_units(unit)
    assert_covers(i, pieces)
    assert len({p.start for p in pieces}) == len(pieces)


class TestEquality:
    def test_equal(self, year):
        same = Interval(START, END)
        assert year == same
        assert year.is_equal(same)
        assert hash(year) == hash(same)

    def test_not_equal(self, year):
        other = Interval(START, "2025-06-01Z")
        assert year != other
        assert not year.is_equal(other)
        assert not year.is_equal(None)
        assert year != START


def test_format_iso(year):
    assert year.format_iso() == f"{START}/{END}"
    assert iso(year.start) == START


def test_str(year):
    assert str(year) == (
        "January 1, 2025, 9:00am - January 1, 2026, 9:00am"
    )


def test_repr(year):
    assert repr(year) == f"Interval({START}/{END})"


def test_clone(year):
    assert year.clone() == year


def test_immutable(year):
    with pytest.raises(AttributeError):
        year.start = DateTime(START)  # type: ignore[misc]
