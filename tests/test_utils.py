"""Tests for parsing and formatting helpers."""

import logging
from datetime import datetime, timedelta, timezone

import pytest

from flashdeck.utils import TextParser, format_elapsed, format_remaining, parse_timestamp, setup_logger

FALLBACK = datetime(2000, 1, 1, tzinfo=timezone.utc)


def fallback():
    return FALLBACK


class TestParseTimestamp:

    def test_iso_with_zulu_suffix(self):
        assert parse_timestamp("2024-05-06T07:08:09Z") == datetime(2024, 5, 6, 7, 8, 9, tzinfo=timezone.utc)

    def test_nanosecond_fraction_is_trimmed(self):
        parsed = parse_timestamp("2024-05-06T07:08:09.123456789Z")

        assert parsed.microsecond == 123456

    def test_short_fraction_is_padded(self):
        assert parse_timestamp("2024-05-06T07:08:09.5+00:00").microsecond == 500000

    def test_offset_converted_to_utc(self):
        parsed = parse_timestamp("2024-05-06T09:00:00+02:00")

        assert parsed == datetime(2024, 5, 6, 7, 0, tzinfo=timezone.utc)
        assert parsed.tzinfo == timezone.utc

    def test_naive_datetime_assumed_utc(self):
        assert parse_timestamp(datetime(2024, 1, 1)) == datetime(2024, 1, 1, tzinfo=timezone.utc)

    def test_epoch_seconds(self):
        assert parse_timestamp(0) == datetime(1970, 1, 1, tzinfo=timezone.utc)

    def test_seconds_and_nanos_map(self):
        parsed = parse_timestamp({"seconds": 60, "nanoseconds": 500_000_000})

        assert parsed == datetime(1970, 1, 1, 0, 1, 0, 500000, tzinfo=timezone.utc)

    @pytest.mark.parametrize("value", [None, "", "not a date", True, {"nanos": 1}, []])
    def test_unparseable_values_fall_back(self, value):
        assert parse_timestamp(value, default=fallback) == FALLBACK


def test_clean_field():
    assert TextParser.clean_field("  dog ") == "dog"
    assert TextParser.clean_field("   ") is None
    assert TextParser.clean_field(None) is None
    assert TextParser.clean_field(3) is None


@pytest.mark.parametrize("remaining, expected", [
    (timedelta(hours=5, minutes=59, seconds=30), "5h 59min"),
    (timedelta(minutes=10), "0h 10min"),
    (timedelta(0), "0h 0min"),
    (timedelta(seconds=-5), "0h 0min"),
    (None, "0h 0min"),
])
def test_format_remaining(remaining, expected):
    assert format_remaining(remaining) == expected


@pytest.mark.parametrize("elapsed, expected", [
    (timedelta(days=2, hours=3), "2 days"),
    (timedelta(hours=1, minutes=20), "1 hour"),
    (timedelta(minutes=5), "5 minutes"),
    (timedelta(seconds=30), "just now"),
    (None, "n/a"),
])
def test_format_elapsed(elapsed, expected):
    assert format_elapsed(elapsed) == expected


def test_setup_logger_is_idempotent(tmp_path):
    log_file = tmp_path / "logs" / "flashdeck.log"

    first = setup_logger("flashdeck.test", logging.DEBUG, str(log_file))
    second = setup_logger("flashdeck.test", logging.DEBUG, str(log_file))
    first.info("hello")

    assert first is second
    assert len(first.handlers) == 2
    assert log_file.exists()

    for handler in list(first.handlers):
        handler.close()
        first.removeHandler(handler)
