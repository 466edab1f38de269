"""Internal Pydantic models for session tracking.

These models hold the in-memory state accumulated between hook events and
the derived values produced at finalization time. Host payload shapes are
defined separately in lib/host_api.py and hooks/schemas.py.

Usage:
    from time_tracking.lib.models import SessionState, TokenUsage

    state = SessionState.create(ticket=None)
    state.token_usage.add(TokenUsage(input=100, output=50))
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


def now() -> datetime:
    """Current local time, timezone-aware."""
    return datetime.now().astimezone()


class TokenUsage(BaseModel):
    """Cumulative token counts for a session.

    Attributes:
        input: Prompt tokens
        output: Completion tokens
        reasoning: Reasoning tokens
        cache_read: Tokens served from the prompt cache
        cache_write: Tokens written to the prompt cache
    """

    input: int = Field(0, ge=0)
    output: int = Field(0, ge=0)
    reasoning: int = Field(0, ge=0)
    cache_read: int = Field(0, ge=0)
    cache_write: int = Field(0, ge=0)

    def add(self, other: TokenUsage) -> None:
        self.input += other.input
        self.output += other.output
        self.reasoning += other.reasoning
        self.cache_read += other.cache_read
        self.cache_write += other.cache_write

    @property
    def total(self) -> int:
        """Tokens billed as used (cache traffic excluded)."""
        return self.input + self.output + self.reasoning

    def has_any(self) -> bool:
        return any(
            (self.input, self.output, self.reasoning, self.cache_read, self.cache_write)
        )


class ActivityRecord(BaseModel):
    """A single tool invocation within a session."""

    tool: str
    timestamp: datetime = Field(default_factory=now)
    file: str | None = None


class ModelInfo(BaseModel):
    model_config = ConfigDict(protected_namespaces=())

    model_id: str
    provider_id: str

    def __str__(self) -> str:
        return f"{self.provider_id}/{self.model_id}"


class AgentInfo(BaseModel):
    name: str
    timestamp: datetime = Field(default_factory=now)


class SessionState(BaseModel):
    """Aggregated state for one live session."""

    ticket: str | None = None
    start_time: datetime = Field(default_factory=now)
    activities: list[ActivityRecord] = Field(default_factory=list)
    token_usage: TokenUsage = Field(default_factory=TokenUsage)
    cost: float = 0.0
    model: ModelInfo | None = None
    agent: AgentInfo | None = None

    @classmethod
    def create(cls, ticket: str | None = None, start_time: datetime | None = None) -> SessionState:
        """Create a zeroed session state."""
        return cls(ticket=ticket, start_time=start_time or now())

    def is_trackable(self) -> bool:
        """True when the session recorded any activity, tokens or cost."""
        return bool(self.activities) or self.token_usage.has_any() or self.cost > 0


class ResolvedTicketInfo(BaseModel):
    """Ticket and account key chosen for a finalized session."""

    ticket: str | None = None
    account_key: str


class CsvEntry(BaseModel):
    """One worklog row, before formatting.

    Attributes:
        ticket: Issue key written to the issue_key column
        account_key: Billing account written to the account_key column
        start_time: Session start (local, timezone-aware)
        end_time: Session end (local, timezone-aware)
        duration_seconds: Elapsed time, rounded to whole seconds
        description: Human-readable summary of the work
        notes: Compact tool tally
        token_usage: Token totals for the session
        cost: Accumulated model cost
        model: "provider/model" string, if detected
        agent: Agent name, if detected
    """

    ticket: str | None = None
    account_key: str
    start_time: datetime
    end_time: datetime
    duration_seconds: int
    description: str
    notes: str
    token_usage: TokenUsage = Field(default_factory=TokenUsage)
    cost: float = 0.0
    model: str | None = None
    agent: str | None = None
