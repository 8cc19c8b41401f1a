from __future__ import annotations

import math
import re
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Union

"""Date normalization for values coming back from the sheet.

A date cell can arrive as an ISO string, a US slash date (M/D/YYYY or M/D/YY)
or a spreadsheet serial number (days since 1899-12-30). parse_date_value()
classifies the raw value once into a tagged variant; every variant knows how
to render itself as a canonical YYYY-MM-DD string.

The serial window (40000, 60000) is a heuristic, not a type check: a plain
amount inside that range is read as a date.
"""

__all__ = [
    "IsoDate",
    "UsSlashDate",
    "SerialDate",
    "UnparsedDate",
    "DateValue",
    "SERIAL_EPOCH",
    "UNIX_EPOCH_SERIAL",
    "parse_date_value",
    "normalize_date",
    "serial_to_iso",
    "iso_to_serial",
]

SERIAL_EPOCH = date(1899, 12, 30)
UNIX_EPOCH_SERIAL = 25569  # serial value of 1970-01-01
SERIAL_MIN = 40000  # exclusive
SERIAL_MAX = 60000  # exclusive

_US_SLASH_RE = re.compile(r"^\s*(\d{1,2})/(\d{1,2})/(\d{4}|\d{2})\s*$")
_NUMBER_RE = re.compile(r"^\s*\d+(\.\d+)?\s*$")


@dataclass(frozen=True)
class IsoDate:
    text: str

    def to_iso(self) -> str:
        return self.text


@dataclass(frozen=True)
class UsSlashDate:
    month: int
    day: int
    year: int

    def to_iso(self) -> str:
        return f"{self.year:04d}-{self.month:02d}-{self.day:02d}"


@dataclass(frozen=True)
class SerialDate:
    serial: float

    def to_iso(self) -> str:
        return serial_to_iso(self.serial)


@dataclass(frozen=True)
class UnparsedDate:
    """Value that matched none of the known formats; rendered unchanged."""
    raw: str

    def to_iso(self) -> str:
        return self.raw


DateValue = Union[IsoDate, UsSlashDate, SerialDate, UnparsedDate]


def serial_to_iso(serial: float) -> str:
    """Convert a spreadsheet serial (fractional part = time of day) to YYYY-MM-DD."""
    # epoch + (serial - 25569) days, counted from 1970-01-01
    unix_days = math.floor(serial) - UNIX_EPOCH_SERIAL
    return (date(1970, 1, 1) + timedelta(days=unix_days)).isoformat()


def iso_to_serial(iso: str) -> int:
    """Inverse of serial_to_iso for whole days."""
    return (date.fromisoformat(iso) - SERIAL_EPOCH).days


def _as_serial(value: object) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str) and _NUMBER_RE.match(value):
        number = float(value)
    else:
        return None
    if SERIAL_MIN < number < SERIAL_MAX:
        return number
    return None


def parse_date_value(value: object) -> DateValue:
    """Classify a raw cell value into one of the date variants.

    Order matters: anything containing '-' is taken as ISO already, then the
    serial window is tried, then the US slash pattern. Everything else is
    kept as an UnparsedDate so callers pass it through unchanged.
    """
    if value is None:
        return UnparsedDate("")
    if isinstance(value, str) and "-" in value:
        return IsoDate(value)
    serial = _as_serial(value)
    if serial is not None:
        return SerialDate(serial)
    text = value if isinstance(value, str) else str(value)
    m = _US_SLASH_RE.match(text)
    if m:
        month, day, year = m.groups()
        if len(year) == 2:
            year = "20" + year
        return UsSlashDate(month=int(month), day=int(day), year=int(year))
    return UnparsedDate(text)


def normalize_date(value: object) -> str:
    """Canonical YYYY-MM-DD for value, or value unchanged when unrecognised."""
    return parse_date_value(value).to_iso()
