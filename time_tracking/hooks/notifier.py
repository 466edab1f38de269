"""
Toast notifications for finalized sessions.

Non-blocking for the plugin: a failing toast is logged and never affects
the worklog write or the session lifecycle.
"""

from __future__ import annotations

import logging

from time_tracking.lib.host_api import HostClient, ToastVariant

logger = logging.getLogger(__name__)


def send_toast(client: HostClient, message: str, variant: ToastVariant) -> bool:
    try:
        client.show_toast(message, variant)
        return True
    except Exception as e:
        logger.warning(f"Toast failed ({variant}): {e}")
        return False


def notify_tracked(
    client: HostClient, minutes: int, total_tokens: int, ticket: str | None
) -> bool:
    """Send the success toast for a written worklog entry."""
    message = f"Time tracked: {minutes} min, {total_tokens} tokens"
    if ticket:
        message += f" for {ticket}"
    return send_toast(client, message, "success")


def notify_ignored_agent(client: HostClient, agent: str) -> bool:
    return send_toast(client, f"Time tracking skipped for {agent} (ignored agent)", "info")


def notify_write_failed(client: HostClient) -> bool:
    return send_toast(client, "Time Tracking: Failed to save entry", "error")
