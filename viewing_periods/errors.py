from __future__ import annotations

from typing import Optional


class NormalizationError(Exception):
    """Base class for errors that abort a normalization run."""


class ConfigurationError(NormalizationError):
    pass


class HeaderError(NormalizationError):
    pass


class CellParseError(NormalizationError, ValueError):
    """A cell could not be parsed for the field its column maps to."""

    def __init__(self, field: str, value: str, reason: str, column: Optional[str] = None):
        self.field = field
        self.value = value
        self.reason = reason
        self.column = column
        super().__init__(self._message())

    def _message(self) -> str:
        where = f"column '{self.column}' " if self.column else ""
        return f"failed to parse {self.field} from {where}value '{self.value}': {self.reason}"

    def located(self, field: str, column: str) -> "CellParseError":
        return CellParseError(field, self.value, self.reason, column=column)
