"""Worklog CSV writer.

Appends one fully quoted row per finalized session to a flat CSV file,
compatible with Jira/Tempo worklog imports.

The column layout has grown over releases:

    v1  15 columns  id ... notes
    v2  17 columns  + model, agent
    v3  23 columns  + tokens_input ... tokens_cache_write, cost

ensure_header() brings an existing file up to the current layout: a
missing header is added, and rows from a narrower layout are padded with
empty fields. Rows wider than the current layout are assumed to come from
a newer release and are never touched.
"""

from __future__ import annotations

import logging
import os
import tempfile
import uuid
from collections.abc import Callable
from pathlib import Path

from time_tracking.lib import csv_format
from time_tracking.lib.config import TimeTrackingConfig
from time_tracking.lib.models import CsvEntry

logger = logging.getLogger(__name__)

CSV_COLUMNS: list[str] = [
    "id",
    "start_date",
    "end_date",
    "user",
    "ticket_name",
    "issue_key",
    "account_key",
    "start_time",
    "end_time",
    "duration_seconds",
    "tokens_used",
    "tokens_remaining",
    "story_points",
    "description",
    "notes",
    "model",
    "agent",
    "tokens_input",
    "tokens_output",
    "tokens_reasoning",
    "tokens_cache_read",
    "tokens_cache_write",
    "cost",
]
CSV_HEADER = ",".join(CSV_COLUMNS)
COLUMN_COUNT = len(CSV_COLUMNS)


class CsvWriteError(OSError):
    """Filesystem failure while preparing or writing the worklog file."""


def is_header(line: str) -> bool:
    return line.startswith("id,start_date")


def resolve_csv_path(csv_file: str, directory: str | Path) -> Path:
    """Resolve the configured path.

    "~/x" expands to the user's home, "/x" is used as-is, anything else is
    relative to the project directory.
    """
    if csv_file.startswith("~/"):
        return Path.home() / csv_file[2:]
    if csv_file.startswith("/"):
        return Path(csv_file)
    return Path(directory) / csv_file


def _atomic_write(path: Path, content: str) -> None:
    """Replace path's content in a single rename."""
    fd, temp_path_str = tempfile.mkstemp(prefix=f".{path.name}-", suffix=".tmp", dir=str(path.parent))
    temp_path = Path(temp_path_str)
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
            f.write(content)
        os.replace(temp_path, path)
    except Exception:
        temp_path.unlink(missing_ok=True)
        raise


class CsvWriter:
    def __init__(
        self,
        config: TimeTrackingConfig,
        directory: str | Path,
        id_factory: Callable[[], str] = lambda: str(uuid.uuid4()),
    ):
        self.config = config
        self.path = resolve_csv_path(config.csv_file, directory)
        self._new_id = id_factory

    def ensure_header(self) -> None:
        """Make sure the file exists and carries the current header.

        Idempotent; call once at plugin activation.
        """
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            if not self.path.exists():
                self.path.write_text(CSV_HEADER + "\n", encoding="utf-8")
                logger.info(f"Created worklog file {self.path}")
                return

            content = self.path.read_text(encoding="utf-8")
            if not content.strip():
                self.path.write_text(CSV_HEADER + "\n", encoding="utf-8")
                logger.info(f"Wrote header to empty worklog file {self.path}")
                return

            migrated = self._migrate(content)
            if migrated is not None:
                _atomic_write(self.path, migrated)
        except UnicodeDecodeError as e:
            # Left as-is; appends are byte-level and still work
            raise CsvWriteError(f"Worklog file {self.path} is not UTF-8, not migrating: {e}") from e
        except OSError as e:
            raise CsvWriteError(f"Cannot prepare worklog file {self.path}: {e}") from e

    def _migrate(self, content: str) -> str | None:
        """Return the rewritten file content, or None if nothing changes."""
        lines = content.splitlines()
        first = lines[0]

        if is_header(first):
            header_columns = len(first.split(","))
            if header_columns >= COLUMN_COUNT:
                return None
            data = lines[1:]
            logger.info(
                f"Migrating worklog {self.path} from {header_columns} to {COLUMN_COUNT} columns"
            )
        else:
            data_columns = csv_format.count_columns(first)
            if data_columns > COLUMN_COUNT:
                logger.warning(
                    f"Worklog {self.path} has {data_columns} columns, more than the "
                    f"{COLUMN_COUNT} this version writes; leaving it untouched"
                )
                return None
            data = lines
            if data_columns == COLUMN_COUNT:
                logger.info(f"Adding missing header to worklog {self.path}")
            else:
                logger.info(
                    f"Migrating unheaded worklog {self.path} from {data_columns} "
                    f"to {COLUMN_COUNT} columns"
                )

        rows = []
        for line in data:
            if not line.strip():
                continue
            columns = csv_format.count_columns(line)
            if columns > COLUMN_COUNT:
                logger.warning(f"Keeping row with {columns} columns unchanged in {self.path}")
            rows.append(csv_format.pad_row(line, COLUMN_COUNT))

        return "\n".join([CSV_HEADER, *rows]) + "\n"

    def format_entry(self, entry: CsvEntry) -> str:
        tokens = entry.token_usage
        fields: list[object] = [
            self._new_id(),
            csv_format.format_date(entry.start_time),
            csv_format.format_date(entry.end_time),
            self.config.user_email,
            "",  # ticket_name
            entry.ticket or "",
            entry.account_key,
            csv_format.format_time(entry.start_time),
            csv_format.format_time(entry.end_time),
            entry.duration_seconds,
            tokens.total,
            "",  # tokens_remaining
            "",  # story_points
            csv_format.single_line(entry.description),
            csv_format.single_line(entry.notes),
            entry.model or "",
            entry.agent or "",
            tokens.input,
            tokens.output,
            tokens.reasoning,
            tokens.cache_read,
            tokens.cache_write,
            csv_format.format_cost(entry.cost),
        ]
        return csv_format.format_row(fields)

    def write(self, entry: CsvEntry) -> None:
        """Append one row. Not safe for concurrent writers on the same file."""
        line = self.format_entry(entry)
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            if not self.path.exists():
                self.path.write_text(CSV_HEADER + "\n" + line + "\n", encoding="utf-8")
                return

            with open(self.path, "rb+") as f:
                f.seek(0, os.SEEK_END)
                needs_newline = False
                if f.tell() > 0:
                    f.seek(-1, os.SEEK_END)
                    needs_newline = f.read(1) != b"\n"
                f.seek(0, os.SEEK_END)
                if needs_newline:
                    f.write(b"\n")
                f.write((line + "\n").encode("utf-8"))
        except OSError as e:
            raise CsvWriteError(f"Cannot write worklog entry to {self.path}: {e}") from e
