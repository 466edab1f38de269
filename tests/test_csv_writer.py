"""Tests for the worklog CSV writer and header migration."""

from datetime import timedelta
from pathlib import Path

import pytest

from time_tracking.lib import csv_format
from time_tracking.lib.csv_writer import (
    COLUMN_COUNT,
    CSV_COLUMNS,
    CSV_HEADER,
    CsvWriteError,
    CsvWriter,
    resolve_csv_path,
)
from time_tracking.lib.models import CsvEntry, TokenUsage


def _row(columns: int, prefix: str = "old") -> str:
    return csv_format.format_row([f"{prefix}{i}" for i in range(columns)])


@pytest.fixture
def writer(tmp_path, make_config):
    return CsvWriter(make_config(csv_file="logs/worklog.csv"), tmp_path, id_factory=lambda: "id-1")


@pytest.fixture
def entry(clock):
    start = clock()
    return CsvEntry(
        ticket="PROJ-9",
        account_key="ACC",
        start_time=start,
        end_time=start + timedelta(seconds=60),
        duration_seconds=60,
        description='Fixed "quoted" bug',
        notes="Auto-tracked: edit(1x)",
        token_usage=TokenUsage(input=100, output=50, reasoning=5, cache_read=20, cache_write=3),
        cost=0.0125,
        model="anthropic/claude-sonnet",
        agent="@developer",
    )


def _lines(path: Path) -> list[str]:
    return path.read_text(encoding="utf-8").splitlines()


class TestEnsureHeader:
    def test_creates_file_with_header(self, writer):
        writer.ensure_header()
        assert _lines(writer.path) == [CSV_HEADER]

    def test_empty_file_gets_header(self, writer):
        writer.path.parent.mkdir(parents=True)
        writer.path.write_text("")
        writer.ensure_header()
        assert _lines(writer.path) == [CSV_HEADER]

    def test_idempotent(self, writer):
        writer.ensure_header()
        writer.ensure_header()
        assert _lines(writer.path) == [CSV_HEADER]

    def test_unheaded_legacy_rows_are_padded(self, writer):
        """A 15-column file without header is migrated to the current layout."""
        writer.path.parent.mkdir(parents=True)
        legacy = [_row(15, "a"), _row(15, "b")]
        writer.path.write_text("\n".join(legacy) + "\n")

        writer.ensure_header()

        lines = _lines(writer.path)
        assert lines[0] == CSV_HEADER
        assert len(lines) == 3
        for original, migrated in zip(legacy, lines[1:]):
            assert migrated.startswith(original)
            assert csv_format.count_columns(migrated) == COLUMN_COUNT

    def test_narrow_header_is_replaced(self, writer):
        writer.path.parent.mkdir(parents=True)
        old_header = ",".join(CSV_COLUMNS[:17])
        writer.path.write_text(f"{old_header}\n{_row(17)}\n")

        writer.ensure_header()

        lines = _lines(writer.path)
        assert lines[0] == CSV_HEADER
        assert csv_format.count_columns(lines[1]) == COLUMN_COUNT

    def test_full_width_unheaded_file_gets_header_only(self, writer):
        writer.path.parent.mkdir(parents=True)
        row = _row(COLUMN_COUNT)
        writer.path.write_text(row + "\n")
        writer.ensure_header()
        assert _lines(writer.path) == [CSV_HEADER, row]

    def test_wider_file_left_untouched(self, writer):
        writer.path.parent.mkdir(parents=True)
        content = _row(COLUMN_COUNT + 2) + "\n"
        writer.path.write_text(content)
        writer.ensure_header()
        assert writer.path.read_text() == content

    def test_non_utf8_file_left_untouched(self, writer):
        """A worklog re-saved as Latin-1 is reported, not rewritten."""
        writer.path.parent.mkdir(parents=True)
        content = _row(15, "Müller").encode("latin-1") + b"\n"
        writer.path.write_bytes(content)

        with pytest.raises(CsvWriteError, match="not UTF-8"):
            writer.ensure_header()

        assert writer.path.read_bytes() == content

    def test_embedded_separator_in_legacy_row(self, writer):
        """A field containing '","' still counts as one column."""
        writer.path.parent.mkdir(parents=True)
        fields = [f"v{i}" for i in range(15)]
        fields[13] = 'Rename "a","b"'
        writer.path.write_text(csv_format.format_row(fields) + "\n")

        writer.ensure_header()

        lines = _lines(writer.path)
        assert lines[0] == CSV_HEADER
        migrated = csv_format.split_row(lines[1])
        assert len(migrated) == COLUMN_COUNT, f"migrated row has {len(migrated)} columns"
        assert migrated[13] == 'Rename "a","b"'
        assert migrated[15:] == [""] * (COLUMN_COUNT - 15)

    def test_embedded_separator_in_full_width_row(self, writer):
        writer.path.parent.mkdir(parents=True)
        fields = [f"v{i}" for i in range(COLUMN_COUNT)]
        fields[13] = 'a","b","c'
        row = csv_format.format_row(fields)
        writer.path.write_text(row + "\n")

        writer.ensure_header()

        assert _lines(writer.path) == [CSV_HEADER, row]

    def test_unwritable_location_raises(self, tmp_path, make_config):
        blocker = tmp_path / "blocker"
        blocker.write_text("a file, not a directory")
        writer = CsvWriter(make_config(csv_file="blocker/worklog.csv"), tmp_path)
        with pytest.raises(CsvWriteError):
            writer.ensure_header()


class TestWrite:
    def test_row_layout(self, writer, entry):
        writer.ensure_header()
        writer.write(entry)

        lines = _lines(writer.path)
        assert len(lines) == 2
        values = dict(zip(CSV_COLUMNS, csv_format.split_row(lines[1])))
        assert len(csv_format.split_row(lines[1])) == COLUMN_COUNT
        assert values["id"] == "id-1"
        assert values["user"] == "dev@example.com"
        assert values["ticket_name"] == ""
        assert values["issue_key"] == "PROJ-9"
        assert values["account_key"] == "ACC"
        assert values["start_date"] == csv_format.format_date(entry.start_time)
        assert values["start_time"] == csv_format.format_time(entry.start_time)
        assert values["duration_seconds"] == "60"
        assert values["tokens_used"] == "155", "input + output + reasoning"
        assert values["tokens_remaining"] == ""
        assert values["story_points"] == ""
        assert values["description"] == 'Fixed "quoted" bug'
        assert values["model"] == "anthropic/claude-sonnet"
        assert values["agent"] == "@developer"
        assert values["tokens_cache_read"] == "20"
        assert values["tokens_cache_write"] == "3"
        assert values["cost"] == "0.012500"

    def test_quotes_are_doubled_on_disk(self, writer, entry):
        writer.write(entry)
        assert '"Fixed ""quoted"" bug"' in writer.path.read_text()

    def test_missing_file_written_with_header(self, writer, entry):
        writer.write(entry)
        lines = _lines(writer.path)
        assert lines[0] == CSV_HEADER
        assert len(lines) == 2

    def test_appends_after_missing_trailing_newline(self, writer, entry):
        writer.path.parent.mkdir(parents=True)
        writer.path.write_text(CSV_HEADER)
        writer.write(entry)
        lines = _lines(writer.path)
        assert lines[0] == CSV_HEADER
        assert lines[1].startswith('"id-1"')

    def test_multiline_description_kept_on_one_line(self, writer, entry):
        writer.write(entry.model_copy(update={"description": "line one\nline two"}))
        lines = _lines(writer.path)
        assert len(lines) == 2
        assert '"line one line two"' in lines[1]

    def test_missing_ticket_and_model_are_empty(self, writer, entry):
        writer.write(entry.model_copy(update={"ticket": None, "model": None, "agent": None}))
        values = dict(zip(CSV_COLUMNS, csv_format.split_row(_lines(writer.path)[1])))
        assert values["issue_key"] == ""
        assert values["model"] == ""
        assert values["agent"] == ""

    def test_write_failure_raises(self, tmp_path, make_config, entry):
        (tmp_path / "worklog.csv").mkdir()
        writer = CsvWriter(make_config(csv_file="worklog.csv"), tmp_path)
        with pytest.raises(CsvWriteError):
            writer.write(entry)


class TestResolvePath:
    def test_home_relative(self):
        assert resolve_csv_path("~/time/log.csv", "/proj") == Path.home() / "time/log.csv"

    def test_absolute(self):
        assert resolve_csv_path("/var/log/time.csv", "/proj") == Path("/var/log/time.csv")

    def test_project_relative(self):
        assert resolve_csv_path("logs/time.csv", "/proj") == Path("/proj/logs/time.csv")
