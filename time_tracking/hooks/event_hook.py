"""
Event handler for session lifecycle and token tracking.

Handles:
1. message.updated      - model and agent from assistant messages
2. message.part.updated - token usage (step-finish) and agent name (agent parts)
3. session.idle         - finalizes the session and appends a worklog row
4. session.deleted      - discards the session (or finalizes, if configured)

Finalization pops the session first, so a repeated idle event for the same
id finds nothing and writes nothing. Failures never propagate to the host:
a failed write is reported with an error toast and the session is dropped.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime

from time_tracking.hooks import notifier
from time_tracking.lib.host_api import HostClient
from time_tracking.hooks.schemas import (
    MessagePartUpdatedEvent,
    MessageUpdatedEvent,
    SessionDeletedEvent,
    SessionIdleEvent,
)
from time_tracking.lib import agent_matcher, csv_format, description
from time_tracking.lib.config import TimeTrackingConfig
from time_tracking.lib.csv_writer import CsvWriter
from time_tracking.lib.models import (
    CsvEntry,
    ModelInfo,
    ResolvedTicketInfo,
    SessionState,
    TokenUsage,
    now,
)
from time_tracking.lib.session_manager import SessionManager
from time_tracking.lib.ticket_resolver import TicketResolver

logger = logging.getLogger(__name__)


def extract_summary_title(client: HostClient, session_id: str) -> str | None:
    """Summary title of the newest user message that has one."""
    try:
        messages = client.session_messages(session_id)
    except Exception as e:
        logger.warning(f"Could not fetch messages for summary of {session_id}: {e}")
        return None

    for message in reversed(messages):
        if message.info.role == "user" and message.info.summary_title:
            return message.info.summary_title
    return None


class EventHook:
    def __init__(
        self,
        sessions: SessionManager,
        writer: CsvWriter,
        client: HostClient,
        resolver: TicketResolver,
        config: TimeTrackingConfig,
        clock: Callable[[], datetime] = now,
    ):
        self.sessions = sessions
        self.writer = writer
        self.client = client
        self.resolver = resolver
        self.config = config
        self.clock = clock

    def on_message_updated(self, event: MessageUpdatedEvent) -> None:
        info = event.properties.info
        if info.role != "assistant" or not info.session_id:
            return

        self.sessions.ensure(info.session_id)

        if info.model_id and info.provider_id:
            self.sessions.set_model(
                info.session_id, ModelInfo(model_id=info.model_id, provider_id=info.provider_id)
            )
        if info.mode:
            self.sessions.set_agent(info.session_id, info.mode)

    def on_message_part_updated(self, event: MessagePartUpdatedEvent) -> None:
        part = event.properties.part
        if not part.session_id:
            return

        if part.type == "step-finish" and part.tokens is not None:
            self.sessions.ensure(part.session_id)
            tokens = part.tokens
            self.sessions.add_token_usage(
                part.session_id,
                TokenUsage(
                    input=tokens.input,
                    output=tokens.output,
                    reasoning=tokens.reasoning,
                    cache_read=tokens.cache.read,
                    cache_write=tokens.cache.write,
                ),
                cost=part.cost or 0.0,
            )
        elif part.type == "agent" and part.name:
            self.sessions.ensure(part.session_id)
            self.sessions.set_agent(part.session_id, part.name)

    def on_session_idle(self, event: SessionIdleEvent) -> None:
        session_id = event.properties.resolved_session_id
        if not session_id:
            return
        self.finalize(session_id)

    def on_session_deleted(self, event: SessionDeletedEvent) -> None:
        session_id = event.properties.resolved_session_id
        if not session_id:
            return
        if self.config.finalize_on_delete:
            self.finalize(session_id)
        else:
            self.sessions.delete(session_id)

    def finalize(self, session_id: str) -> bool:
        """Write the worklog row for a session. Returns True if a row was written."""
        state = self.sessions.get_and_delete(session_id)
        if state is None or not state.is_trackable():
            return False

        end_time = self.clock()
        duration_seconds = csv_format.round_half_up((end_time - state.start_time).total_seconds())
        agent = state.agent.name if state.agent else None

        if agent and agent_matcher.matches_any(agent, self.config.ignored_agents):
            logger.info(f"Session {session_id} not tracked: agent {agent} is ignored")
            notifier.notify_ignored_agent(self.client, agent)
            return False

        resolved = self.resolver.resolve(session_id, agent)
        entry = self._build_entry(session_id, state, end_time, duration_seconds, agent, resolved)

        try:
            self.writer.write(entry)
        except Exception as e:
            logger.error(f"Failed to write worklog entry for {session_id}: {e}")
            notifier.notify_write_failed(self.client)
            return False

        logger.info(
            f"Session {session_id} tracked: {duration_seconds}s, "
            f"{state.token_usage.total} tokens, ticket={resolved.ticket}"
        )
        notifier.notify_tracked(
            self.client,
            minutes=csv_format.round_half_up(duration_seconds / 60),
            total_tokens=state.token_usage.total,
            ticket=resolved.ticket,
        )
        return True

    def _build_entry(
        self,
        session_id: str,
        state: SessionState,
        end_time: datetime,
        duration_seconds: int,
        agent: str | None,
        resolved: ResolvedTicketInfo,
    ) -> CsvEntry:
        summary = extract_summary_title(self.client, session_id)
        return CsvEntry(
            ticket=resolved.ticket,
            account_key=resolved.account_key,
            start_time=state.start_time,
            end_time=end_time,
            duration_seconds=duration_seconds,
            description=summary or description.generate(state.activities),
            notes=f"Auto-tracked: {description.generate_tool_summary(state.activities)}",
            token_usage=state.token_usage,
            cost=state.cost,
            model=str(state.model) if state.model else None,
            agent=agent,
        )
