import pytest

from wallclock import reset_default_options, set_default_options


@pytest.fixture(autouse=True)
def default_options():
    """Tests run in Tokyo with US English, unless they say otherwise"""
    set_default_options(locale="en-US", time_zone="Asia/Tokyo")
    yield
    reset_default_options()
