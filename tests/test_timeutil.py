"""Tests for duration formatting."""

import pytest

from auto_mr.timeutil import format_duration


@pytest.mark.parametrize(
    ("seconds", "expected"),
    [
        (0, "0s"),
        (1, "1s"),
        (10, "10s"),
        (59, "59s"),
        (60, "1m 0s"),
        (90, "1m 30s"),
        (120, "2m 0s"),
        (1800, "30m 0s"),
        (8 * 3600, "480m 0s"),
        (1.2, "1s"),
        (9.8, "10s"),
    ],
)
def test_format_duration(seconds: float, expected: str) -> None:
    """Test durations render as minutes and seconds."""
    assert format_duration(seconds) == expected
