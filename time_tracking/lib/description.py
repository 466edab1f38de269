"""Human-readable summaries of a session's tool activity."""

from __future__ import annotations

from collections import Counter
from collections.abc import Sequence

from time_tracking.lib.models import ActivityRecord

MAX_LISTED_FILES = 5

# (tools, label) in output order
ACTIVITY_GROUPS: list[tuple[tuple[str, ...], str]] = [
    (("edit", "write"), "file edit(s)"),
    (("read",), "file read(s)"),
    (("bash",), "command(s)"),
    (("glob", "grep"), "search(es)"),
]


def _tool_counts(activities: Sequence[ActivityRecord]) -> Counter[str]:
    return Counter(a.tool for a in activities)


def _basename(path: str) -> str:
    return path.rstrip("/").split("/")[-1] or path


def generate(activities: Sequence[ActivityRecord]) -> str:
    """Summarize activities, e.g. "3 file edit(s), 2 file read(s) - Files: a.py".

    Falls back to "N tool call(s)" when no recognized tool was used.
    """
    if not activities:
        return "No activities tracked"

    counts = _tool_counts(activities)

    parts = []
    for tools, label in ACTIVITY_GROUPS:
        n = sum(counts[t] for t in tools)
        if n:
            parts.append(f"{n} {label}")

    description = ", ".join(parts) if parts else f"{len(activities)} tool call(s)"

    files: list[str] = []
    for activity in activities:
        if activity.file:
            name = _basename(activity.file)
            if name not in files:
                files.append(name)

    if 0 < len(files) <= MAX_LISTED_FILES:
        description += f" - Files: {', '.join(files)}"
    elif len(files) > MAX_LISTED_FILES:
        description += f" - {len(files)} files"

    return description


def generate_tool_summary(activities: Sequence[ActivityRecord]) -> str:
    """Compact tally in first-seen order, e.g. "edit(3x), read(2x)"."""
    return ", ".join(f"{tool}({n}x)" for tool, n in _tool_counts(activities).items())
