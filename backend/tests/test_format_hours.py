from __future__ import annotations

import pytest

from flextime.utils.durations import minutes_between, minutes_to_hours
from flextime.utils.format_hours import format_hours_long, format_hours_short
from tests.factories import at


class TestFormatHours:
    @pytest.mark.parametrize(
        "hours, expected",
        [
            (49.95, "49 hrs, 57 min"),
            (0, "0 hrs, 0 min"),
            (0.5, "30 min"),
            (2.0, "2 hrs"),
            (1.25, "1 hrs, 15 min"),
        ],
    )
    def test_long(self, hours: float, expected: str) -> None:
        assert format_hours_long(hours) == expected

    @pytest.mark.parametrize(
        "hours, expected",
        [
            (49.95, "49h 57m"),
            (0, "0h 0m"),
            (0.75, "45m"),
            (8.0, "8h"),
        ],
    )
    def test_short(self, hours: float, expected: str) -> None:
        assert format_hours_short(hours) == expected


class TestDurations:
    def test_minutes_between_half_up(self) -> None:
        assert minutes_between(at(9), at(9, 0, 29)) == 0
        assert minutes_between(at(9), at(9, 0, 30)) == 1
        assert minutes_between(at(9), at(10, 30)) == 90

    def test_minutes_to_hours(self) -> None:
        assert minutes_to_hours(0) == 0.0
        assert minutes_to_hours(2997) == 49.95
        assert minutes_to_hours(20) == 0.33
