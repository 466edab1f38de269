#!/usr/bin/env python3
"""
Time Tracking Hook Router.

Receives host events, validates them into the typed event union and
dispatches each kind to its handler:

- tool.execute.after   -> ToolExecuteAfterHook
- message.updated      -> EventHook.on_message_updated
- message.part.updated -> EventHook.on_message_part_updated
- session.idle         -> EventHook.on_session_idle
- session.deleted      -> EventHook.on_session_deleted

Run as a long-lived bridge process (`time-tracking-hook`): the host writes
one JSON event per line on stdin, the router writes requests (messages,
todos, toasts) as JSON lines on stdout. Logs go to stderr.
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from pathlib import Path
from typing import IO, Any

from pydantic import ValidationError

from time_tracking.hooks.event_hook import EventHook
from time_tracking.hooks.host_client import StdioHostClient
from time_tracking.hooks.schemas import (
    HostEvent,
    MessagePartUpdatedEvent,
    MessageUpdatedEvent,
    SessionDeletedEvent,
    SessionIdleEvent,
    ToolExecuteAfterEvent,
    parse_event,
)
from time_tracking.hooks.tool_execute_after import ToolExecuteAfterHook
from time_tracking.lib.session_manager import SessionManager

logger = logging.getLogger(__name__)

LOG_LEVEL_ENV = "TIME_TRACKING_LOG_LEVEL"


class HookRouter:
    def __init__(
        self,
        sessions: SessionManager,
        tool_hook: ToolExecuteAfterHook,
        event_hook: EventHook,
    ):
        self.sessions = sessions
        self.tool_hook = tool_hook
        self.event_hook = event_hook

    def dispatch(self, event: HostEvent) -> None:
        """Run the handler for one event. Handler errors are logged, never raised."""
        try:
            if isinstance(event, ToolExecuteAfterEvent):
                self.tool_hook(event)
            elif isinstance(event, MessageUpdatedEvent):
                self.event_hook.on_message_updated(event)
            elif isinstance(event, MessagePartUpdatedEvent):
                self.event_hook.on_message_part_updated(event)
            elif isinstance(event, SessionIdleEvent):
                self.event_hook.on_session_idle(event)
            elif isinstance(event, SessionDeletedEvent):
                self.event_hook.on_session_deleted(event)
        except Exception:
            logger.exception(f"Handler for {event.type} failed")

    def handle_raw(self, raw: dict[str, Any]) -> bool:
        """Validate and dispatch a raw event. Returns False if it was not dispatched."""
        try:
            event = parse_event(raw)
        except ValidationError as e:
            logger.warning(f"Malformed {raw.get('type')} event ignored: {e}")
            return False
        if event is None:
            logger.debug(f"Untracked event type ignored: {raw.get('type')}")
            return False
        self.dispatch(event)
        return True

    def serve(self, stdin: IO[str]) -> None:
        """Process events line by line until EOF."""
        for line in iter(stdin.readline, ""):
            if not line.strip():
                continue
            try:
                raw = json.loads(line)
            except json.JSONDecodeError as e:
                logger.warning(f"Skipping undecodable line: {e}")
                continue
            if not isinstance(raw, dict):
                logger.warning("Skipping non-object line")
                continue
            self.handle_raw(raw)


def configure_logging(verbose: bool = False) -> None:
    level_name = "DEBUG" if verbose else os.environ.get(LOG_LEVEL_ENV, "WARNING").upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.WARNING),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )


# --- Main Entry Point ---


def main(argv: list[str] | None = None) -> int:
    from time_tracking.lib import config as config_loader
    from time_tracking.plugin import activate

    parser = argparse.ArgumentParser(description="Time tracking hook bridge")
    parser.add_argument(
        "--directory",
        default=os.getcwd(),
        help="Project directory (default: current directory)",
    )
    parser.add_argument(
        "--check-config",
        action="store_true",
        help="Validate the configuration and exit",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    args = parser.parse_args(argv)

    configure_logging(args.verbose)
    directory = Path(args.directory).resolve()

    if args.check_config:
        try:
            config = config_loader.load_or_raise(directory)
        except config_loader.ConfigError as e:
            print(f"Time tracking inactive: {e}", file=sys.stderr)
            return 1
        print(f"Time tracking active: csv_file={config.csv_file}, user={config.user_email}")
        return 0

    client = StdioHostClient(sys.stdin, sys.stdout)
    router = activate(directory, client)
    if router is None:
        # Inactive plugin: drain events so the host never blocks on us
        for _ in iter(sys.stdin.readline, ""):
            pass
        return 0

    router.serve(sys.stdin)
    return 0


if __name__ == "__main__":
    sys.exit(main())
