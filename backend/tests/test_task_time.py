# ruff: noqa: INP001
"""Clock-time and duration parsing used by High-priority scheduling."""

from __future__ import annotations

import pytest

from app.services.task_time import (
    format_duration,
    intervals_overlap,
    parse_clock_time,
    parse_duration,
    task_interval,
)


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("12:00 AM", 0),
        ("12:30 AM", 30),
        ("1:05 AM", 65),
        ("11:59 AM", 719),
        ("12:00 PM", 720),
        ("2:30 PM", 870),
        ("11:59 PM", 1439),
        ("  9:15 AM  ", 555),
    ],
)
def test_parse_clock_time_handles_twelve_hour_clock(value: str, expected: int) -> None:
    assert parse_clock_time(value) == expected


@pytest.mark.parametrize(
    "value",
    [None, "", "14:00", "2:30 pm", "2:30PM", "13:00 PM", "0:30 AM", "2:60 PM", "noon"],
)
def test_parse_clock_time_defaults_malformed_values_to_midnight(value: str | None) -> None:
    assert parse_clock_time(value) == 0


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("1h 30m", 90),
        ("45m", 45),
        ("2h", 120),
        ("90m", 90),
        ("0h 0m", 0),
        ("", 0),
        (None, 0),
        ("soon", 0),
    ],
)
def test_parse_duration(value: str | None, expected: int) -> None:
    assert parse_duration(value) == expected


@pytest.mark.parametrize(
    ("value", "canonical"),
    [
        ("1h 30m", "1h 30m"),
        ("90m", "1h 30m"),
        ("0h 0m", "0m"),
        ("2h", "2h"),
        ("120m", "2h"),
        ("45m", "45m"),
    ],
)
def test_format_duration_canonicalizes_parsed_value(value: str, canonical: str) -> None:
    assert format_duration(parse_duration(value)) == canonical


def test_format_duration_never_returns_empty_string() -> None:
    assert format_duration(0) == "0m"
    assert format_duration(-5) == "0m"


def test_intervals_overlap_is_half_open() -> None:
    assert intervals_overlap(60, 30, 80, 20)
    assert intervals_overlap(80, 20, 60, 30)
    assert not intervals_overlap(60, 30, 90, 30)
    assert not intervals_overlap(90, 30, 60, 30)


def test_zero_length_intervals_do_not_overlap_each_other() -> None:
    assert not intervals_overlap(60, 0, 60, 0)
    assert not intervals_overlap(60, 0, 60, 30)


def test_task_interval_combines_both_fields() -> None:
    assert task_interval("2:00 PM", "30m") == (840, 30)
    assert task_interval(None, None) == (0, 0)
