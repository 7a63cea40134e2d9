"""
Viewing-period normalization.

Responsibilities:
- delimiter resolution from the file extension
- header splitting
- folding each row's header/value pairs into a period accumulator
- re-running the derivation rules after every column
- line decoding and warning reporting
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from charset_normalizer import from_bytes

from .errors import CellParseError, ConfigurationError, HeaderError
from .fields import FieldAction, lookup
from .models import EPOCH, NormalizationReport, Status, ViewingPeriod
from .parsers import clean_cell
from .rules import (
    DEFAULT_ENCODING,
    DEFAULT_USER_ID,
    DELIMITERS_BY_EXTENSION,
    NO_MATCH_STREAM_TOKENS,
)

log = logging.getLogger(__name__)

Line = Union[str, bytes]


def resolve_delimiter(path: Union[str, Path]) -> str:
    """Map ``.csv`` to a comma and ``.tsv`` to a tab; anything else is an error."""
    suffix = Path(path).suffix
    delimiter = DELIMITERS_BY_EXTENSION.get(suffix[1:]) if suffix else None
    if delimiter is None:
        raise ConfigurationError(f"unsupported file extension: '{path}'")
    return delimiter


def _strip_line_ending(line: str) -> str:
    if line.endswith("\n"):
        line = line[:-1]
    if line.endswith("\r"):
        line = line[:-1]
    return line


def split_lines(data: Line) -> List[Line]:
    """Split on ``\\n`` only; a trailing newline does not yield an empty line."""
    sep = b"\n" if isinstance(data, bytes) else "\n"
    lines = data.split(sep)  # type: ignore[arg-type]
    if lines and not lines[-1]:
        lines.pop()
    return lines


def parse_header(line: str, delimiter: str) -> List[str]:
    return _strip_line_ending(line).split(delimiter)


@dataclass
class PeriodAccumulator:
    """Mutable, per-row state while the row's columns are applied in order."""

    provider: Optional[str] = None
    status: Status = Status.NO_MATCH
    user_id: str = DEFAULT_USER_ID
    query_time: Optional[datetime] = None
    time_in_file: datetime = EPOCH
    duration: timedelta = timedelta(0)
    stream_id: Optional[str] = None
    entry_id: Optional[str] = None
    ber: float = 0.0
    valid: bool = False

    # pending values, only consumed by derive()
    offset: Optional[timedelta] = None
    end_time: Optional[datetime] = None
    # column and cell that last moved query_time or duration
    timing_source: Optional[Tuple[str, str]] = None

    def apply(self, action: FieldAction, value: Any, column: str, raw: str) -> None:
        setattr(self, action.target, value)
        if action.target in ("query_time", "duration", "end_time"):
            self.timing_source = (column, raw)

    def derive(self, column: str, value: str) -> None:
        try:
            if self.query_time is not None:
                if self.offset is not None:
                    self.time_in_file = self.query_time - self.offset
                if self.end_time is not None:
                    self.duration = self.end_time - self.query_time
        except OverflowError:
            raise CellParseError("time_in_file", value, "derived time in file out of range", column=column) from None

        # Runs after every column, including a later status column, so a
        # matched stream always ends up as MATCH.
        if self.stream_id is not None and self.stream_id not in NO_MATCH_STREAM_TOKENS:
            self.status = Status.MATCH

    def finish(self) -> ViewingPeriod:
        query_time = self.query_time if self.query_time is not None else EPOCH
        try:
            query_time + self.duration
        except OverflowError:
            column, value = self.timing_source or (None, str(self.duration))
            raise CellParseError("duration", value, "derived end time out of range", column=column) from None
        return ViewingPeriod(
            provider=self.provider,
            status=self.status,
            user_id=self.user_id,
            query_time=query_time,
            time_in_file=self.time_in_file,
            duration=self.duration,
            stream_id=self.stream_id,
            entry_id=self.entry_id,
            ber=self.ber,
            valid=self.valid,
        )


def line_to_period(
    line: str,
    header: Sequence[str],
    delimiter: str,
    report: Optional[NormalizationReport] = None,
    row: Optional[int] = None,
) -> ViewingPeriod:
    acc = PeriodAccumulator()

    for column, raw_value in zip(header, _strip_line_ending(line).split(delimiter)):
        value = clean_cell(raw_value)
        action = lookup(column)

        if action is None:
            log.warning("unrecognised field key %s", column)
            if report is not None:
                report.warn("unrecognized_column", "ignored", row=row, column=column, value=value)
        else:
            try:
                parsed = action.parse(value)
            except CellParseError as exc:
                raise exc.located(action.target, column) from None

            if action is FieldAction.STATUS and parsed is None:
                log.warning("failed to parse status '%s'", value)
                if report is not None:
                    report.warn("invalid_status", "kept_previous", row=row, column=column, value=value)
            else:
                acc.apply(action, parsed, column, value)

        acc.derive(column, value)

    return acc.finish()


def _decode(line: Line, encoding: str) -> str:
    if isinstance(line, bytes):
        return line.decode(encoding)
    return line


def read_periods(
    lines: Iterable[Line],
    delimiter: str,
    encoding: str = DEFAULT_ENCODING,
    report: Optional[NormalizationReport] = None,
) -> List[ViewingPeriod]:
    """
    Normalize a header line followed by data lines.

    Lines may be ``str`` or undecoded ``bytes``. Undecodable data lines are
    logged and skipped. Any fatal cell error propagates and no partial result
    is returned.
    """
    it = iter(lines)
    try:
        first = next(it)
    except StopIteration:
        raise HeaderError("expected table to have at least a header") from None

    try:
        header = parse_header(_decode(first, encoding), delimiter)
    except UnicodeDecodeError as exc:
        raise HeaderError(f"failed to read header: {exc}") from None

    if report is not None:
        _describe_header(report, header, delimiter, encoding)

    periods: List[ViewingPeriod] = []
    for row, raw in enumerate(it, start=1):
        try:
            line = _decode(raw, encoding)
        except UnicodeDecodeError as exc:
            log.warning("failed to read period line %d: %s", row, exc)
            if report is not None:
                report.warn("unreadable_line", "skipped", row=row, value=str(exc))
            continue
        periods.append(line_to_period(line, header, delimiter, report=report, row=row))

    if report is not None:
        report.summary.rows = len(periods)
    return periods


def _describe_header(report: NormalizationReport, header: List[str], delimiter: str, encoding: str) -> None:
    summary = report.summary
    summary.columns = len(header)
    summary.delimiter = delimiter
    summary.encoding = encoding
    summary.recognized_columns = [c for c in header if lookup(c) is not None]
    summary.unrecognized_columns = [c for c in header if lookup(c) is None]


def read(
    path: Union[str, Path],
    encoding: str = DEFAULT_ENCODING,
    report: Optional[NormalizationReport] = None,
) -> List[ViewingPeriod]:
    delimiter = resolve_delimiter(path)
    with open(path, "rb") as f:
        return read_periods(f, delimiter, encoding=encoding, report=report)


def detect_encoding(raw: bytes) -> str:
    """Best-effort encoding detection via charset-normalizer, utf-8 when unsure."""
    match = from_bytes(raw).best()
    encoding = match.encoding if match is not None else DEFAULT_ENCODING
    # decode with utf-8-sig so a BOM doesn't end up in the first column name
    if raw.startswith(b"\xef\xbb\xbf") and encoding.lower().replace("-", "_") in ("utf_8", "utf8"):
        encoding = "utf-8-sig"
    return encoding


def normalize_bytes(raw: bytes, filename: str) -> Dict[str, Any]:
    """
    Normalize an uploaded file.
    Returns a dict matching the API's response envelope.
    """
    delimiter = resolve_delimiter(filename)
    encoding = detect_encoding(raw)

    try:
        lines = split_lines(raw.decode(encoding))
    except UnicodeDecodeError:
        # decode line by line so only the broken lines are dropped
        lines = split_lines(raw)

    report = NormalizationReport()
    periods = read_periods(lines, delimiter, encoding=encoding, report=report)

    return {
        "periods": periods,
        "report": report,
    }
