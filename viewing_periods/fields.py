"""
Column alias resolution.

Each ``FieldAction`` names the accumulator attribute it writes and the parser
that turns a cleaned cell into the attribute's value. ``offset`` and
``end_time`` are pending values that only feed the derivation rules.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Callable, Dict, Optional

from . import parsers
from .rules import FIELD_ALIASES


def _text(value: str) -> str:
    return value


class FieldAction(Enum):
    STATUS = ("status", "status", parsers.parse_status)
    USER_ID = ("user_id", "user_id", _text)
    TIME_IN_FILE_MILLIS = ("time_in_file_millis", "time_in_file", parsers.timestamp_from_millis)
    QUERY_TIME_MILLIS = ("query_time_millis", "query_time", parsers.timestamp_from_millis)
    QUERY_TIME_DATETIME = ("query_time_datetime", "query_time", parsers.datetime_from_string)
    DURATION_MILLIS = ("duration_millis", "duration", parsers.duration_from_millis)
    DURATION_SECONDS = ("duration_seconds", "duration", parsers.duration_from_seconds)
    STREAM_ID = ("stream_id", "stream_id", _text)
    PROVIDER = ("provider", "provider", _text)
    ENTRY_ID = ("entry_id", "entry_id", _text)
    BER = ("ber", "ber", parsers.parse_ber)
    VALID = ("valid", "valid", parsers.parse_valid)
    OFFSET_MILLIS = ("offset_millis", "offset", parsers.duration_from_millis)
    OFFSET_SECONDS = ("offset_seconds", "offset", parsers.duration_from_seconds)
    END_TIME_DATETIME = ("end_time_datetime", "end_time", parsers.datetime_from_string)

    def __init__(self, key: str, target: str, parser: Callable[[str], Any]):
        self.key = key
        self.target = target
        self.parser = parser

    def parse(self, value: str) -> Any:
        return self.parser(value)


def _build_alias_index() -> Dict[str, FieldAction]:
    by_key = {action.key: action for action in FieldAction}
    missing = set(by_key) ^ set(FIELD_ALIASES)
    if missing:
        raise RuntimeError(f"alias table and field actions disagree: {sorted(missing)}")

    index: Dict[str, FieldAction] = {}
    for key, aliases in FIELD_ALIASES.items():
        for alias in aliases:
            if alias in index:
                raise RuntimeError(f"column alias '{alias}' is mapped twice")
            index[alias] = by_key[key]
    return index


ALIAS_INDEX = _build_alias_index()


def lookup(column: str) -> Optional[FieldAction]:
    """Exact, case-sensitive match of a header column against the alias table."""
    return ALIAS_INDEX.get(column)
