"""Plugin activation: config loading and component wiring.

Usage:
    from time_tracking.plugin import activate

    router = activate("/path/to/project", client)
    if router is not None:
        router.handle_raw({"type": "session.idle", "properties": {"sessionID": "s1"}})
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from pathlib import Path

from time_tracking.hooks.event_hook import EventHook
from time_tracking.lib.host_api import HostClient
from time_tracking.hooks.router import HookRouter
from time_tracking.hooks.tool_execute_after import ToolExecuteAfterHook
from time_tracking.lib import config as config_loader
from time_tracking.lib.config import TimeTrackingConfig
from time_tracking.lib.csv_writer import CsvWriteError, CsvWriter
from time_tracking.lib.models import now
from time_tracking.lib.session_manager import SessionManager
from time_tracking.lib.ticket_extractor import TicketExtractor
from time_tracking.lib.ticket_resolver import TicketResolver

logger = logging.getLogger(__name__)


def build_router(
    config: TimeTrackingConfig,
    directory: str | Path,
    client: HostClient,
    clock: Callable[[], datetime] = now,
) -> HookRouter:
    """Wire all components for an already loaded configuration."""
    directory = Path(directory)
    sessions = SessionManager(clock=clock)
    writer = CsvWriter(config, directory)
    extractor = TicketExtractor(
        client,
        valid_projects=config.valid_projects,
        directory=directory,
        use_branch=config.ticket_from_branch,
    )
    resolver = TicketResolver(config, extractor)

    try:
        writer.ensure_header()
    except CsvWriteError as e:
        # Writes fall back to header+row if the file is still missing later
        logger.error(f"{e}")

    return HookRouter(
        sessions=sessions,
        tool_hook=ToolExecuteAfterHook(sessions, extractor, clock=clock),
        event_hook=EventHook(sessions, writer, client, resolver, config, clock=clock),
    )


def activate(directory: str | Path, client: HostClient) -> HookRouter | None:
    """Activate the plugin for a project. None means inactive (no hooks)."""
    config = config_loader.load(directory)
    if config is None:
        return None
    logger.info(f"Time tracking active for {directory}")
    return build_router(config, directory, client)
