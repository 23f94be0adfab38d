from datetime import date, datetime, time
from decimal import Decimal

import pytest

from salonbook.core import (
    end_of,
    format_minutes,
    format_time,
    from_minutes,
    hours_until,
    overlaps,
    resolve_timezone,
    round_half_up,
    to_minutes,
    weekday_number,
)
from salonbook.errors import ValidationError


def test_minutes_round_trip_through_time():
    assert to_minutes(time(9, 30)) == 570
    assert from_minutes(570) == time(9, 30)


def test_end_of_adds_duration():
    assert end_of(time(10, 0), 45) == time(10, 45)
    assert end_of(time(23, 0), 59) == time(23, 59)


def test_end_of_rejects_crossing_midnight():
    with pytest.raises(ValidationError):
        end_of(time(23, 30), 30)


def test_end_of_rejects_non_positive_duration():
    with pytest.raises(ValidationError):
        end_of(time(10, 0), 0)


def test_format_time():
    assert format_time(time(7, 0)) == "07:00"


def test_back_to_back_intervals_do_not_overlap():
    assert not overlaps(540, 600, 600, 660)
    assert overlaps(540, 601, 600, 660)
    assert overlaps(600, 630, 540, 720)


def test_weekday_number_starts_on_sunday():
    assert weekday_number(date(2030, 1, 13)) == 0  # Sunday
    assert weekday_number(date(2030, 1, 16)) == 3  # Wednesday
    assert weekday_number(date(2030, 1, 19)) == 6  # Saturday


def test_round_half_up():
    assert round_half_up(Decimal("2.5")) == 3
    assert round_half_up(Decimal("2.4")) == 2
    assert round_half_up(Decimal("0.5")) == 1


def test_hours_until():
    now = datetime(2030, 1, 15, 11, 0)
    assert hours_until(now, date(2030, 1, 16), time(10, 0)) == 23


def test_unknown_timezone_is_rejected():
    with pytest.raises(ValidationError):
        resolve_timezone("Mars/Olympus_Mons", "UTC")


def test_format_minutes():
    assert format_minutes(150) == "2h 30min"
    assert format_minutes(0) == "0h 0min"
