"""
Deterministic normalization rules.

This file exists to make the accepted input vocabulary explicit and enforceable.
Column aliases are matched exactly and case-sensitively.
"""

from __future__ import annotations

import re
from typing import Dict, Tuple

# Only the extension decides the delimiter; content is never sniffed.
DELIMITERS_BY_EXTENSION: Dict[str, str] = {
    "csv": ",",
    "tsv": "\t",
}

DEFAULT_ENCODING = "utf-8"

# Stripped from both ends of every cell after whitespace trimming.
REMOVABLE_CHARS = "'\" ,"

# stream_id values that do not imply a match
NO_MATCH_STREAM_TOKENS = frozenset({"", "0", "NO_DATA", "NO_MATCH", "NO_SOUND"})

VALID_TOKENS = frozenset({"VALID", "true", "1"})

DATETIME_FORMATS: Tuple[str, ...] = (
    "%Y-%m-%d %H:%M:%S.%f",
    "%Y-%m-%d %H:%M:%S",
)

INTEGER_PATTERN = re.compile(r"[+-]?[0-9]+\Z")
FLOAT_PATTERN = re.compile(
    r"[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?\Z"
    r"|[+-]?(?i:inf|infinity|nan)\Z"
)
INT64_MIN = -(2 ** 63)
INT64_MAX = 2 ** 63 - 1

DEFAULT_USER_ID = "0"

FIELD_ALIASES: Dict[str, Tuple[str, ...]] = {
    "status": ("status", "Status"),
    "user_id": ("userID", "rss_id", "DEVICE_ID"),
    "time_in_file_millis": ("timeInFile",),
    "query_time_millis": ("tStartMsec", "tStart"),
    "query_time_datetime": ("startTime", "start_ts", "START"),
    "duration_millis": ("durationMsec",),
    "duration_seconds": ("duration",),
    "stream_id": ("stream_id", "Stream_id", "stream_name", "name", "STREAM_LABEL"),
    "provider": ("module_ref",),
    "entry_id": ("period_id", "id"),
    "ber": ("bitErrorRate", "ber"),
    "valid": ("valid",),
    "offset_millis": ("offset",),
    "offset_seconds": ("offset_s", "OFFSET"),
    "end_time_datetime": ("endTime", "stop_ts", "END"),
}
