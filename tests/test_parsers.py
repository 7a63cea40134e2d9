from datetime import datetime, timedelta, timezone

import pytest

from viewing_periods.errors import CellParseError
from viewing_periods.models import EPOCH, Status
from viewing_periods.parsers import (
    clean_cell,
    datetime_from_string,
    duration_from_millis,
    duration_from_seconds,
    parse_ber,
    parse_status,
    parse_valid,
    timestamp_from_millis,
)


def test_clean_cell_strips_quotes_and_padding():
    assert clean_cell('  "329", ') == "329"
    assert clean_cell("'NO_MATCH'") == "NO_MATCH"
    assert clean_cell("a b") == "a b"


def test_parse_timestamp():
    assert timestamp_from_millis("1673531400000") == datetime(2023, 1, 12, 13, 50, 0, tzinfo=timezone.utc)


@pytest.mark.parametrize("millis", ["0", "1672617736352", "-1500", "253402300799999"])
def test_timestamp_millis_round_trip(millis):
    parsed = timestamp_from_millis(millis)
    delta = parsed - EPOCH
    assert (delta.days * 86_400 + delta.seconds) * 1000 + delta.microseconds // 1000 == int(millis)


@pytest.mark.parametrize("value", ["", "abc", "1.5", "1_000", "99999999999999999999", "\u0661\u0662\u0663", "12\n"])
def test_timestamp_rejects_non_integer(value):
    with pytest.raises(CellParseError):
        timestamp_from_millis(value)


def test_timestamp_rejects_out_of_range_epoch():
    with pytest.raises(CellParseError, match="out of range"):
        timestamp_from_millis("9223372036854775807")


def test_parse_time():
    assert datetime_from_string("2023-01-12 13:50:00.123") == datetime(
        2023, 1, 12, 13, 50, 0, 123_000, tzinfo=timezone.utc
    )


def test_parse_time_without_fraction():
    assert datetime_from_string("2023-01-02 04:43:05") == datetime(2023, 1, 2, 4, 43, 5, tzinfo=timezone.utc)


def test_parse_time_fraction_kept_at_millis():
    assert datetime_from_string("2023-01-12 13:50:00.5").microsecond == 500_000
    assert datetime_from_string("2023-01-12 13:50:00.12").microsecond == 120_000


@pytest.mark.parametrize("value", ["2023-01-12T13:50:00", "12/01/2023 13:50", "", "2023-01-12"])
def test_parse_time_rejects_other_formats(value):
    with pytest.raises(CellParseError):
        datetime_from_string(value)


def test_duration_from_millis():
    assert duration_from_millis("12928") == timedelta(milliseconds=12928)
    assert duration_from_millis("-250") == timedelta(milliseconds=-250)


def test_duration_from_seconds_floors_to_millis():
    assert duration_from_seconds("12.9285") == timedelta(milliseconds=12928)
    assert duration_from_seconds("-0.0005") == timedelta(milliseconds=-1)
    assert duration_from_seconds("3") == timedelta(seconds=3)


@pytest.mark.parametrize("value", ["", "ten", "inf", "nan", "1_5", "0x10", "\u0661.5"])
def test_duration_from_seconds_rejects(value):
    with pytest.raises(CellParseError):
        duration_from_seconds(value)


def test_parse_ber_single_precision():
    assert parse_ber("0.247597") == pytest.approx(0.247597, rel=1e-6)
    assert parse_ber("0.1") != 0.1


@pytest.mark.parametrize("value", ["high", "1_0", "0.2_5", "\u0660.5", ""])
def test_parse_ber_rejects_text(value):
    with pytest.raises(CellParseError):
        parse_ber(value)


def test_parse_ber_accepts_float_notations():
    assert parse_ber("1e-3") == pytest.approx(0.001, rel=1e-6)
    assert parse_ber(".5") == 0.5
    assert parse_ber("-2.") == -2.0
    assert parse_ber("inf") == float("inf")


@pytest.mark.parametrize("value,expected", [
    ("VALID", True), ("true", True), ("1", True),
    ("TRUE", False), ("0", False), ("", False), ("yes", False),
])
def test_parse_valid(value, expected):
    assert parse_valid(value) is expected


def test_parse_status_is_case_sensitive():
    assert parse_status("NO_SOUND") is Status.NO_SOUND
    assert parse_status("MATCH") is Status.MATCH
    assert parse_status("match") is None
    assert parse_status("0") is None
