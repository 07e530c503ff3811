from datetime import date, datetime, time
from types import SimpleNamespace

import pytest

from parking_server.utils.phone_utils import format_phone_number
from parking_server.utils.time_utils import (
    FixedClock,
    minutes_between,
    minutes_since_start,
    minutes_until_end,
    no_show_fine,
    overstay_blocks,
    overstay_fine,
    overstay_minutes,
)

DAY = date(2026, 10, 18)


def window(start=time(9, 0), end=time(10, 0)):
    return SimpleNamespace(reservation_date=DAY, start_time=start, end_time=end)


def test_minutes_between_floors_partial_minutes():
    start = datetime(2026, 10, 18, 9, 0)
    assert minutes_between(start, datetime(2026, 10, 18, 9, 15, 59)) == 15
    assert minutes_between(start, datetime(2026, 10, 18, 9, 16)) == 16
    assert minutes_between(start, datetime(2026, 10, 18, 8, 59, 30)) == -1


def test_window_offsets():
    r = window()
    now = datetime(2026, 10, 18, 9, 30)
    assert minutes_since_start(r, now) == 30
    assert minutes_until_end(r, now) == 30
    assert overstay_minutes(r, datetime(2026, 10, 18, 10, 12)) == 12
    assert overstay_minutes(r, now) < 0


def test_window_ignores_seconds_on_bounds():
    r = window(start=time(9, 0, 45))
    assert minutes_since_start(r, datetime(2026, 10, 18, 9, 16)) == 16


@pytest.mark.parametrize("amount,expected", [
    (100, 50),
    (75, 38),
    (1, 1),
    (0, 0),
    (None, 0),
])
def test_no_show_fine_rounds_half_up(amount, expected):
    assert no_show_fine(amount, 0.5) == expected


@pytest.mark.parametrize("minutes,blocks", [
    (0, 0),
    (-3, 0),
    (1, 1),
    (7, 1),
    (15, 1),
    (16, 2),
    (30, 2),
    (31, 3),
])
def test_overstay_blocks(minutes, blocks):
    assert overstay_blocks(minutes, 15) == blocks


def test_overstay_fine_is_non_decreasing():
    fines = [overstay_fine(m, 15, 10) for m in range(0, 120)]
    assert fines == sorted(fines)
    assert overstay_fine(12, 15, 10) == 10
    assert overstay_fine(21, 15, 10) == 20


def test_fixed_clock_advance():
    clock = FixedClock(datetime(2026, 10, 18, 9, 0))
    assert clock.today() == DAY
    assert clock.advance(minutes=16) == datetime(2026, 10, 18, 9, 16)
    assert clock.now() == datetime(2026, 10, 18, 9, 16)


@pytest.mark.parametrize("raw,expected", [
    ("9876543210", "+919876543210"),
    ("09876543210", "+919876543210"),
    ("+1 (415) 555-0100", "+14155550100"),
    ("0044 20 7946 0958", "+442079460958"),
])
def test_format_phone_number(raw, expected):
    assert format_phone_number(raw) == expected


def test_format_phone_number_rejects_garbage():
    with pytest.raises(ValueError):
        format_phone_number("")
    with pytest.raises(ValueError):
        format_phone_number("12")
