"""
Wall-clock helpers shared by the reconcilers and the check-in gate.

All reservation windows are naive wall-clock times in the configured
municipal timezone, so every "now" handed to the engine is naive too.
"""
import math
from datetime import date, datetime, time, timedelta
from typing import Optional
from zoneinfo import ZoneInfo

ONE_MINUTE = timedelta(minutes=1)


class SystemClock:
    """Current local time in the configured timezone"""

    def __init__(self, timezone: str = "UTC"):
        self.tz = ZoneInfo(timezone)

    def now(self) -> datetime:
        return datetime.now(self.tz).replace(tzinfo=None, microsecond=0)

    def today(self) -> date:
        return self.now().date()


class FixedClock:
    """Clock pinned to a moment; `advance` moves it forward"""

    def __init__(self, moment: datetime):
        self.moment = moment

    def now(self) -> datetime:
        return self.moment

    def today(self) -> date:
        return self.moment.date()

    def advance(self, minutes: int = 0, seconds: int = 0) -> datetime:
        self.moment = self.moment + timedelta(minutes=minutes, seconds=seconds)
        return self.moment


def at(day: date, wall_time: time) -> datetime:
    """Combine a reservation date with a window bound, seconds dropped"""
    return datetime.combine(day, wall_time.replace(second=0, microsecond=0))


def minutes_between(earlier: datetime, later: datetime) -> int:
    """Whole minutes elapsed from `earlier` to `later` (floored, may be negative)"""
    return (later - earlier) // ONE_MINUTE


def window_start(reservation) -> datetime:
    return at(reservation.reservation_date, reservation.start_time)


def window_end(reservation) -> datetime:
    return at(reservation.reservation_date, reservation.end_time)


def minutes_since_start(reservation, now: datetime) -> int:
    return minutes_between(window_start(reservation), now)


def minutes_until_end(reservation, now: datetime) -> int:
    return minutes_between(now, window_end(reservation))


def overstay_minutes(reservation, now: datetime) -> int:
    return minutes_between(window_end(reservation), now)


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def no_show_fine(amount: Optional[int], ratio: float) -> int:
    return round_half_up((amount or 0) * ratio)


def overstay_blocks(minutes: int, block_minutes: int) -> int:
    if minutes <= 0:
        return 0
    return math.ceil(minutes / block_minutes)


def overstay_fine(minutes: int, block_minutes: int, rate_per_block: int) -> int:
    return overstay_blocks(minutes, block_minutes) * rate_per_block
