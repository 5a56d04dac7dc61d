from .system import (
    reset_system_tz,
    system_locale,
    system_offset,
    system_time_zone,
)

__all__ = [
    "reset_system_tz",
    "system_locale",
    "system_offset",
    "system_time_zone",
]
