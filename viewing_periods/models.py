from __future__ import annotations

from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field

from .rules import DEFAULT_USER_ID

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class Status(str, Enum):
    MATCH = "MATCH"
    NO_MATCH = "NO_MATCH"
    NO_DATA = "NO_DATA"
    NO_SOUND = "NO_SOUND"

    def __str__(self) -> str:
        return self.value


def _millis(delta: timedelta) -> int:
    return (delta.days * 86_400 + delta.seconds) * 1000 + delta.microseconds // 1000


def format_seconds(delta: timedelta) -> str:
    """Render a duration as seconds with millisecond precision, e.g. ``12.928``."""
    return f"{_millis(delta) / 1000:.3f}"


def format_rfc3339(moment: datetime) -> str:
    moment = moment.astimezone(timezone.utc)
    return (
        f"{moment.year:04d}-{moment.month:02d}-{moment.day:02d}"
        f"T{moment.hour:02d}:{moment.minute:02d}:{moment.second:02d}"
        f".{moment.microsecond // 1000:03d}Z"
    )


class ViewingPeriod(BaseModel):
    """
    One normalized observation of a device trying to identify a stream.

    ``end_time`` and ``offset`` are derived views and are never stored.
    """

    model_config = ConfigDict(frozen=True)

    provider: Optional[str] = None
    status: Status = Status.NO_MATCH
    user_id: str = DEFAULT_USER_ID
    query_time: datetime = EPOCH
    time_in_file: datetime = EPOCH
    duration: timedelta = timedelta(0)
    stream_id: Optional[str] = None
    entry_id: Optional[str] = None
    ber: float = 0.0
    valid: bool = False

    @computed_field  # type: ignore[misc]
    @property
    def end_time(self) -> datetime:
        return self.query_time + self.duration

    @computed_field  # type: ignore[misc]
    @property
    def offset(self) -> timedelta:
        return self.query_time - self.time_in_file

    def __str__(self) -> str:
        return (
            f"user_id: {self.user_id}, "
            f"status: {self.status}, "
            f"stream_id: {self.stream_id or ''}"
            f"entry_id: {self.entry_id or ''}"
            f"offset_s: {format_seconds(self.offset)}, "
            f"startTime: {format_rfc3339(self.query_time)}, "
            f"endTime: {format_rfc3339(self.end_time)}, "
            f"duration: {format_seconds(self.duration)}, "
            f"ber: {self.ber:.2f}, "
            f"valid: {str(self.valid).lower()}"
        )


class ReportSummary(BaseModel):
    rows: int = 0
    columns: int = 0
    recognized_columns: List[str] = Field(default_factory=list)
    unrecognized_columns: List[str] = Field(default_factory=list)
    warnings: int = 0
    delimiter: Optional[str] = None
    encoding: Optional[str] = None


class ReportItem(BaseModel):
    row: Optional[int] = None
    column: Optional[str] = None
    issue: str
    value: Optional[str] = None
    action: str


class NormalizationReport(BaseModel):
    summary: ReportSummary = Field(default_factory=ReportSummary)
    warnings: List[ReportItem] = Field(default_factory=list)

    def warn(self, issue: str, action: str, row: Optional[int] = None,
             column: Optional[str] = None, value: Optional[str] = None) -> None:
        self.warnings.append(
            ReportItem(row=row, column=column, issue=issue, value=value, action=action)
        )
        self.summary.warnings = len(self.warnings)


class NormalizeResponse(BaseModel):
    periods: List[ViewingPeriod]
    report: NormalizationReport


class HealthResponse(BaseModel):
    ok: bool = True
