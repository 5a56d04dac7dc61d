from datetime import datetime as _datetime, timezone as _timezone
from math import isnan

UTC = _timezone.utc
EPOCH = _datetime(1970, 1, 1, tzinfo=UTC)
Millis = int  # milliseconds since the UNIX epoch, or nan when invalid

MS_PER_SECOND = 1_000
MS_PER_MINUTE = 60 * MS_PER_SECOND
MS_PER_HOUR = 60 * MS_PER_MINUTE
MS_PER_DAY = 24 * MS_PER_HOUR
MS_PER_WEEK = 7 * MS_PER_DAY

NAN = float("nan")


def is_nan(ms: float) -> bool:
    return isinstance(ms, float) and isnan(ms)
