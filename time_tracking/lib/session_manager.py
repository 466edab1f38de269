"""In-memory store of live sessions, keyed by host session id.

The store is owned by one plugin activation and mutated only from hook
handlers. Mutators are no-ops for unknown sessions because events can
arrive after a session was finalized.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime

from time_tracking.lib.models import (
    ActivityRecord,
    AgentInfo,
    ModelInfo,
    SessionState,
    TokenUsage,
    now,
)


class SessionManager:
    def __init__(self, clock: Callable[[], datetime] = now):
        self._sessions: dict[str, SessionState] = {}
        self._clock = clock

    def __len__(self) -> int:
        return len(self._sessions)

    def get(self, session_id: str) -> SessionState | None:
        return self._sessions.get(session_id)

    def has(self, session_id: str) -> bool:
        return session_id in self._sessions

    def create(self, session_id: str, ticket: str | None = None) -> SessionState:
        """Create a zeroed session. Returns the existing one if already tracked."""
        existing = self._sessions.get(session_id)
        if existing is not None:
            return existing
        state = SessionState.create(ticket=ticket, start_time=self._clock())
        self._sessions[session_id] = state
        return state

    def ensure(self, session_id: str) -> SessionState:
        return self.create(session_id, None)

    def delete(self, session_id: str) -> None:
        self._sessions.pop(session_id, None)

    def get_and_delete(self, session_id: str) -> SessionState | None:
        """Remove and return a session in one step.

        A second call for the same id returns None, so a duplicated
        idle event cannot finalize the same session twice.
        """
        return self._sessions.pop(session_id, None)

    def add_activity(self, session_id: str, activity: ActivityRecord) -> None:
        state = self._sessions.get(session_id)
        if state is not None:
            state.activities.append(activity)

    def add_token_usage(self, session_id: str, tokens: TokenUsage, cost: float = 0.0) -> None:
        state = self._sessions.get(session_id)
        if state is not None:
            state.token_usage.add(tokens)
            if cost > 0:
                state.cost += cost

    def update_ticket(self, session_id: str, ticket: str | None) -> None:
        """Set the ticket only when one was found; never clear it."""
        state = self._sessions.get(session_id)
        if state is not None and ticket:
            state.ticket = ticket

    def set_model(self, session_id: str, model: ModelInfo) -> None:
        """First detected model wins."""
        state = self._sessions.get(session_id)
        if state is not None and state.model is None:
            state.model = model

    def set_agent(self, session_id: str, name: str) -> None:
        """First detected agent wins."""
        state = self._sessions.get(session_id)
        if state is not None and state.agent is None and name:
            state.agent = AgentInfo(name=name, timestamp=self._clock())
