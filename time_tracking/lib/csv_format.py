"""CSV formatting helpers for the worklog file.

Every field is written double-quoted with embedded quotes doubled. Rows
are read back with the csv module, so a field may contain any text,
including the '","' sequence.
"""

from __future__ import annotations

import csv
import math
from datetime import datetime


def escape(value: str) -> str:
    """Double embedded quotes: 'Say "hi"' -> 'Say ""hi""'."""
    return value.replace('"', '""')


def quote(value: object) -> str:
    """Render a single field: escaped and wrapped in double quotes."""
    text = "" if value is None else str(value)
    return f'"{escape(text)}"'


def single_line(value: str) -> str:
    """Collapse line breaks so a row always stays on one line."""
    return " ".join(value.splitlines())


def format_row(fields: list[object]) -> str:
    return ",".join(quote(f) for f in fields)


def format_date(ts: datetime) -> str:
    """ISO calendar date (YYYY-MM-DD) in local time."""
    return ts.astimezone().strftime("%Y-%m-%d")


def format_time(ts: datetime) -> str:
    """Wall-clock time (HH:MM:SS) in local time."""
    return ts.astimezone().strftime("%H:%M:%S")


def format_cost(cost: float) -> str:
    return f"{cost:.6f}"


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def count_columns(line: str) -> int:
    """Count the fields of a CSV line. An empty line has zero columns."""
    if not line or not line.strip():
        return 0
    return len(next(csv.reader([line])))


def pad_row(line: str, columns: int) -> str:
    """Append empty quoted fields until the line has `columns` fields.

    Lines already at or beyond `columns` are returned unchanged.
    """
    missing = columns - count_columns(line)
    if missing <= 0:
        return line
    return line + ',""' * missing


def split_row(line: str) -> list[str]:
    """Split a line produced by format_row back into unescaped values."""
    stripped = line.rstrip("\r\n")
    if not stripped:
        return []
    return next(csv.reader([stripped]))
