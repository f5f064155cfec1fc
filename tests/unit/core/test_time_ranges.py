from datetime import time

import pytest

from slotkeeper.core.exceptions import ValidationException
from slotkeeper.core.time_ranges import (
    contains,
    duration_minutes,
    format_hhmm,
    minutes_to_time,
    overlaps,
    parse_hhmm,
    time_to_minutes,
)


class TestOverlaps:
    @pytest.mark.parametrize(
        "a, b, expected",
        [
            (("08:15", "08:55"), ("08:30", "09:00"), True),
            (("08:15", "08:55"), ("08:55", "09:35"), False),
            (("08:55", "09:35"), ("08:15", "08:55"), False),
            (("08:00", "12:00"), ("09:00", "09:30"), True),
            (("09:00", "09:30"), ("08:00", "12:00"), True),
            (("08:00", "08:30"), ("10:00", "10:30"), False),
            (("08:00", "08:30"), ("08:00", "08:30"), True),
        ],
    )
    def test_half_open_semantics(self, a, b, expected):
        assert overlaps(a[0], a[1], b[0], b[1]) is expected

    def test_is_symmetric(self):
        assert overlaps(time(8, 0), time(9, 0), time(8, 30), time(10, 0)) == overlaps(
            time(8, 30), time(10, 0), time(8, 0), time(9, 0)
        )

    def test_accepts_mixed_representations(self):
        assert overlaps(time(8, 15), 535, "08:30", time(9, 0))

    def test_ignores_seconds(self):
        assert not overlaps(time(8, 0), time(8, 30, 59), time(8, 30), time(9, 0))


class TestContains:
    def test_inner_range_inside(self):
        assert contains("08:00", "12:00", "08:00", "12:00")
        assert contains("08:00", "12:00", "09:00", "10:00")

    def test_inner_range_sticking_out(self):
        assert not contains("08:00", "12:00", "11:30", "12:30")
        assert not contains("08:00", "12:00", "07:59", "09:00")


class TestConversions:
    def test_time_to_minutes(self):
        assert time_to_minutes(time(0, 0)) == 0
        assert time_to_minutes(time(23, 59)) == 1439
        assert time_to_minutes("08:15") == 495
        assert time_to_minutes(495) == 495

    def test_bool_is_rejected(self):
        with pytest.raises(TypeError):
            time_to_minutes(True)

    def test_minutes_to_time_round_trip_bounds(self):
        assert minutes_to_time(0) == time(0, 0)
        assert minutes_to_time(1439) == time(23, 59)
        with pytest.raises(ValueError):
            minutes_to_time(1440)
        with pytest.raises(ValueError):
            minutes_to_time(-1)

    @pytest.mark.parametrize("raw", ["24:00", "8", "08:60", "ab:cd", "", "1:2:3:4"])
    def test_parse_rejects_malformed(self, raw):
        with pytest.raises(ValidationException):
            parse_hhmm(raw)

    def test_parse_accepts_seconds_suffix(self):
        assert parse_hhmm("09:40:00") == 580

    def test_format_pads(self):
        assert format_hhmm(time(8, 5)) == "08:05"
        assert format_hhmm(0) == "00:00"

    def test_duration(self):
        assert duration_minutes(time(8, 15), time(8, 55)) == 40
