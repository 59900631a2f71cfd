"""
Rotation window seeds.

A seed packs the calendar fields of a timestamp into one base-10 integer,
two digits per field after the year. Every timestamp inside the same
window maps to the same seed, and seeds grow monotonically across
window boundaries.
"""
from datetime import datetime, timedelta
from enum import Enum


class Granularity(Enum):
    """Length of a rotation window."""
    DAY = "day"
    HOUR = "hour"
    MINUTE = "minute"

    @property
    def seconds(self) -> int:
        return {
            Granularity.DAY: 86400,
            Granularity.HOUR: 3600,
            Granularity.MINUTE: 60,
        }[self]


def derive_seed(now: datetime, granularity: Granularity = Granularity.HOUR) -> int:
    """
    Seed for the window containing `now`.

    DAY    -> YYYYMMDD
    HOUR   -> YYYYMMDDHH
    MINUTE -> YYYYMMDDHHMM

    The fields are read from `now` as given, so pass an aware datetime in
    the zone whose calendar should define the window.
    """
    seed = now.year * 10000 + now.month * 100 + now.day
    if granularity == Granularity.DAY:
        return seed
    seed = seed * 100 + now.hour
    if granularity == Granularity.HOUR:
        return seed
    return seed * 100 + now.minute


def window_start(now: datetime, granularity: Granularity = Granularity.HOUR) -> datetime:
    """Start of the window containing `now`."""
    start = now.replace(second=0, microsecond=0)
    if granularity in (Granularity.HOUR, Granularity.DAY):
        start = start.replace(minute=0)
    if granularity == Granularity.DAY:
        start = start.replace(hour=0)
    return start


def window_end(now: datetime, granularity: Granularity = Granularity.HOUR) -> datetime:
    """First instant after the window containing `now`."""
    return window_start(now, granularity) + timedelta(seconds=granularity.seconds)
