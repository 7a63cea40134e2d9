"""
Typed cell parsers.

Every parser receives an already-cleaned cell (see ``clean_cell``). Parsers for
timestamps, durations and ber raise ``CellParseError``: a malformed value there
usually means the column mapping is wrong for the whole file, so callers let
the error abort the run. ``parse_valid`` never fails and ``parse_status``
returns ``None`` for unknown tokens.
"""

from __future__ import annotations

import math
import struct
from datetime import datetime, timedelta, timezone
from typing import Optional

from .errors import CellParseError
from .models import EPOCH, Status
from .rules import (
    DATETIME_FORMATS,
    FLOAT_PATTERN,
    INT64_MAX,
    INT64_MIN,
    INTEGER_PATTERN,
    REMOVABLE_CHARS,
    VALID_TOKENS,
)


def clean_cell(raw: str) -> str:
    return raw.strip().strip(REMOVABLE_CHARS)


def _parse_int64(value: str, field: str) -> int:
    if not INTEGER_PATTERN.match(value):
        raise CellParseError(field, value, "not an integer")
    number = int(value)
    if not INT64_MIN <= number <= INT64_MAX:
        raise CellParseError(field, value, "integer out of 64-bit range")
    return number


def _parse_float(value: str, field: str) -> float:
    if not FLOAT_PATTERN.match(value):
        raise CellParseError(field, value, "not a number")
    return float(value)


def timestamp_from_millis(value: str, field: str = "timestamp") -> datetime:
    millis = _parse_int64(value, field)
    try:
        return EPOCH + timedelta(milliseconds=millis)
    except OverflowError:
        raise CellParseError(field, value, "epoch milliseconds out of range") from None


def datetime_from_string(value: str, field: str = "datetime") -> datetime:
    """Parse ``YYYY-MM-DD HH:MM:SS[.fff]`` as UTC, keeping millisecond precision."""
    for fmt in DATETIME_FORMATS:
        try:
            parsed = datetime.strptime(value, fmt)
        except ValueError:
            continue
        parsed = parsed.replace(microsecond=parsed.microsecond // 1000 * 1000)
        return parsed.replace(tzinfo=timezone.utc)
    raise CellParseError(field, value, "expected format YYYY-MM-DD HH:MM:SS[.fff]")


def duration_from_millis(value: str, field: str = "duration") -> timedelta:
    millis = _parse_int64(value, field)
    try:
        return timedelta(milliseconds=millis)
    except OverflowError:
        raise CellParseError(field, value, "duration out of range") from None


def duration_from_seconds(value: str, field: str = "duration") -> timedelta:
    seconds = _parse_float(value, field)
    if not math.isfinite(seconds):
        raise CellParseError(field, value, "duration must be finite")
    try:
        return timedelta(milliseconds=math.floor(seconds * 1000.0))
    except OverflowError:
        raise CellParseError(field, value, "duration out of range") from None


def parse_ber(value: str, field: str = "ber") -> float:
    number = _parse_float(value, field)
    try:
        # round-trip through IEEE-754 single precision
        return struct.unpack("f", struct.pack("f", number))[0]
    except OverflowError:
        return math.copysign(math.inf, number)


def parse_valid(value: str) -> bool:
    return value in VALID_TOKENS


def parse_status(value: str) -> Optional[Status]:
    try:
        return Status(value)
    except ValueError:
        return None
