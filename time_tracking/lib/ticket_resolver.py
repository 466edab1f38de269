"""Ticket and account key resolution with config fallbacks.

Ticket, first present value of:
    1. ticket found in the session context
    2. the agent's configured default issue key
    3. the global default issue key

Account key, independent of where the ticket came from:
    1. the agent's configured account key
    2. the global default account key (required by config validation)

Agent names match with or without a leading "@".
"""

from __future__ import annotations

from collections.abc import Callable

from time_tracking.lib import agent_matcher
from time_tracking.lib.config import AgentDefault, TimeTrackingConfig
from time_tracking.lib.models import ResolvedTicketInfo
from time_tracking.lib.ticket_extractor import TicketExtractor


class TicketResolver:
    def __init__(self, config: TimeTrackingConfig, extractor: TicketExtractor):
        self.config = config
        self.extractor = extractor

    def _agent_default(self, agent_name: str | None) -> AgentDefault | None:
        return agent_matcher.lookup(agent_name, self.config.agent_defaults)

    def resolve(self, session_id: str, agent_name: str | None) -> ResolvedTicketInfo:
        agent_default = self._agent_default(agent_name)

        candidates: list[Callable[[], str | None]] = [
            lambda: self.extractor.extract(session_id),
            lambda: agent_default.issue_key if agent_default else None,
            lambda: self.config.global_default.issue_key,
        ]
        ticket = next((t for t in (c() for c in candidates) if t), None)

        return ResolvedTicketInfo(ticket=ticket, account_key=self.resolve_account_key(agent_name))

    def resolve_account_key(self, agent_name: str | None) -> str:
        agent_default = self._agent_default(agent_name)
        if agent_default and agent_default.account_key:
            return agent_default.account_key
        return self.config.global_default.account_key
