import logging
import sys

import pytest
from hypothesis import given
from hypothesis.strategies import integers, sampled_from

from wallclock import (
    DateTime,
    FormatError,
    reset_default_options,
    reset_system_tz,
)
from wallclock._tz.resolve import (
    parse_offset_token,
    probe_offset,
    resolve_offset,
)
from wallclock._tz.system import _tzid_from_path, get_tz

from .common import system_tz, system_tz_nyc


class TestParseOffsetToken:
    @pytest.mark.parametrize(
        "token, expect",
        [
            ("GMT", 0),
            ("UTC", 0),
            ("GMT+09:00", -540),
            ("GMT+9", -540),
            ("GMT-05:00", 300),
            ("GMT-5", 300),
            ("GMT+05:30", -330),
            ("GMT+0530", -330),
            ("GMT-03:30", 210),
            ("UTC+14:00", -840),
            ("GMT+00:19:32", -20),
            (" GMT+1 ", -60),
        ],
    )
    def test_valid(self, token, expect):
        assert parse_offset_token(token) == expect

    @pytest.mark.parametrize(
        "token", ["", "EST", "+09:00", "GMT+", "GMT+9 foo", "Asia/Tokyo"]
    )
    def test_invalid(self, token):
        with pytest.raises(FormatError, match="offset token"):
            parse_offset_token(token)


class TestResolveOffset:
    @pytest.mark.parametrize(
        "iso, zone, expect",
        [
            ("2020-01-01T00:00:00Z", "Asia/Tokyo", -540),
            ("2020-01-01T00:00:00Z", "UTC", 0),
            ("2020-01-01T00:00:00Z", "America/New_York", 300),
            ("2020-07-01T00:00:00Z", "America/New_York", 240),
            ("2020-07-01T00:00:00Z", "Asia/Kolkata", -330),
            ("2020-07-01T00:00:00Z", "Australia/Eucla", -525),
        ],
    )
    def test_zones(self, iso, zone, expect):
        ms = DateTime(iso).timestamp_millis()
        assert resolve_offset(ms, zone) == expect
        assert probe_offset(ms, zone) == expect

    def test_invalid_instant(self):
        assert resolve_offset(float("nan"), "UTC") is None
        assert probe_offset(float("nan"), "UTC") is None

    @given(
        ms=integers(0, 4_000_000_000_000),
        zone=sampled_from(
            [
                "UTC",
                "Asia/Tokyo",
                "America/New_York",
                "Europe/Amsterdam",
                "Australia/Lord_Howe",
                "America/St_Johns",
                "Pacific/Chatham",
            ]
        ),
    )
    def test_probe_agrees(self, ms, zone):
        assert resolve_offset(ms, zone) == probe_offset(ms, zone)


def test_tzid_from_path():
    assert (
        _tzid_from_path("/usr/share/zoneinfo/Europe/Amsterdam")
        == "Europe/Amsterdam"
    )
    assert _tzid_from_path("/usr/share/zoneinfo.default/UTC") == "UTC"
    assert _tzid_from_path("/etc/localtime") is None


@pytest.mark.skipif(
    sys.platform == "win32", reason="TZ is not read on Windows"
)
class TestSystemTimeZone:
    @pytest.fixture(autouse=True)
    def no_default_zone(self):
        reset_default_options()

    def test_key(self):
        with system_tz_nyc():
            assert get_tz() == (0, "America/New_York")
            d = DateTime("2020-01-01T00:00:00Z")
            assert d.time_zone == "America/New_York"
            assert d.timezone_offset == 300
            assert d.hour == 19

    def test_colon_prefix(self):
        with system_tz(":Europe/Amsterdam"):
            assert DateTime(0).time_zone == "Europe/Amsterdam"

    def test_changes_after_reset(self):
        with system_tz("Asia/Tokyo"):
            assert DateTime(0).time_zone == "Asia/Tokyo"
            with system_tz("Europe/Amsterdam"):
                assert DateTime(0).time_zone == "Europe/Amsterdam"

    def test_unnamed_zone(self):
        with system_tz("XYZ3"):
            d = DateTime("2020-01-01T00:00:00Z")
            assert d.time_zone is None
            assert d.timezone_offset == 180
            assert d.hour == 21
            assert repr(d) == "DateTime(2019-12-31 21:00:00.000-03:00)"

    def test_explicit_zone_wins(self):
        with system_tz_nyc():
            assert DateTime(0, time_zone="UTC").time_zone == "UTC"

    def test_logs_reset(self, caplog):
        caplog.set_level(logging.DEBUG, logger="wallclock")
        with system_tz_nyc():
            reset_system_tz()
        assert "System timezone is now 'America/New_York'" in caplog.text
