"""
tool.execute.after handler: records one activity per tool execution.

On every call:
1. Start tracking the session if it is new
2. Re-scan the session context for a ticket (set-if-found)
3. Append the activity with the touched file, if any
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from typing import Any

from time_tracking.hooks.schemas import ToolExecuteAfterEvent, ToolExecuteOutput
from time_tracking.lib.models import ActivityRecord, now
from time_tracking.lib.session_manager import SessionManager
from time_tracking.lib.ticket_extractor import TicketExtractor

logger = logging.getLogger(__name__)

FILE_METADATA_KEYS = ("filePath", "filepath", "file")


def extract_file(output: ToolExecuteOutput) -> str | None:
    """File touched by a tool execution.

    Looks at the metadata keys filePath/filepath/file, then a nested
    filediff.file, then falls back to the execution title.
    """
    metadata: dict[str, Any] = output.metadata or {}

    for key in FILE_METADATA_KEYS:
        value = metadata.get(key)
        if isinstance(value, str) and value:
            return value

    filediff = metadata.get("filediff")
    if isinstance(filediff, dict):
        value = filediff.get("file")
        if isinstance(value, str) and value:
            return value

    return output.title or None


class ToolExecuteAfterHook:
    def __init__(
        self,
        sessions: SessionManager,
        extractor: TicketExtractor,
        clock: Callable[[], datetime] = now,
    ):
        self.sessions = sessions
        self.extractor = extractor
        self.clock = clock

    def __call__(self, event: ToolExecuteAfterEvent) -> None:
        session_id = event.input.session_id
        self.sessions.ensure(session_id)

        self.sessions.update_ticket(session_id, self.extractor.extract(session_id))

        activity = ActivityRecord(
            tool=event.input.tool,
            timestamp=self.clock(),
            file=extract_file(event.output),
        )
        self.sessions.add_activity(session_id, activity)
        logger.debug(f"Activity {activity.tool} recorded for {session_id}")
