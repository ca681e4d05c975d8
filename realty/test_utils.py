"""
Tests for parsing and formatting helpers.
"""
from datetime import datetime, timezone

from realty.utils import abbreviate, clean_text, parse_timestamp, to_float, to_int


def test_abbreviate():
    assert abbreviate(1_250_000) == "1.25M"
    assert abbreviate(85000) == "85K"
    assert abbreviate(1500) == "1.5K"
    assert abbreviate(999) == "999"
    assert abbreviate(0) == "0"
    assert abbreviate(2_500_000_000) == "2.5B"


def test_abbreviate_carries_rounding_into_next_unit():
    assert abbreviate(999_999) == "1M"


def test_abbreviate_keeps_three_significant_digits():
    assert abbreviate(123_456) == "123K"
    assert abbreviate(12_345_678) == "12.3M"
    assert abbreviate(999_499) == "999K"
    assert abbreviate(1_234.5) == "1.23K"
    assert abbreviate(100_000) == "100K"


def test_to_int_parses_like_a_number_input():
    assert to_int("12abc") == 12
    assert to_int(" -4") == -4
    assert to_int(3.7) == 3
    assert to_int("abc") is None
    assert to_int("") is None
    assert to_int(True) is None


def test_to_float():
    assert to_float("1.5") == 1.5
    assert to_float("n/a") is None
    assert to_float(None) is None


def test_parse_timestamp():
    assert parse_timestamp(0) == datetime(1970, 1, 1, tzinfo=timezone.utc)
    assert parse_timestamp("2024-01-01T00:00:00Z") == datetime(2024, 1, 1, tzinfo=timezone.utc)
    assert parse_timestamp("1717243200").year == 2024
    assert parse_timestamp("garbage") is None
    assert parse_timestamp(None) is None


def test_text_cleaning():
    assert clean_text("  Hello   World  \n") == "Hello World"
    assert clean_text(None) == ""
    assert clean_text("") == ""
