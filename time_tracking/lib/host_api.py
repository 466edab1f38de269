"""
Session content shapes and the host calls the core depends on.

The ticket extractor and the finalizer read a session's messages and
todos through HostClient; toasts go back the same way. Concrete clients
live in hooks/ (the stdio bridge) and in tests (in-memory fakes).
"""

from __future__ import annotations

from typing import Literal, Protocol

from pydantic import BaseModel, ConfigDict, Field

ToastVariant = Literal["info", "success", "warning", "error"]


# --- Shared base ---


class HostModel(BaseModel):
    """
    Base for all host payloads. Host field names are camelCase; we use
    snake_case attributes with aliases and ignore fields we don't read.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore", protected_namespaces=())


# --- Session content (fetched from the host) ---


class MessageSummary(HostModel):
    title: str | None = None
    body: str | None = None


class MessageInfo(HostModel):
    """Header of a conversation message."""

    id: str | None = None
    role: str = Field(..., description="Author role: 'user' or 'assistant'.")
    session_id: str | None = Field(None, alias="sessionID")
    model_id: str | None = Field(None, alias="modelID")
    provider_id: str | None = Field(None, alias="providerID")
    mode: str | None = Field(
        None, description="Execution mode of an assistant message; the agent name."
    )
    summary: MessageSummary | bool | None = Field(
        None, description="User messages may carry a generated summary title."
    )

    @property
    def summary_title(self) -> str | None:
        if isinstance(self.summary, MessageSummary) and self.summary.title:
            return self.summary.title
        return None


class MessagePart(HostModel):
    type: str
    text: str | None = None
    synthetic: bool = Field(
        False,
        description="Injected by the host (file dumps, resource text), not typed by the user.",
    )


class MessageWithParts(HostModel):
    info: MessageInfo
    parts: list[MessagePart] = Field(default_factory=list)


class Todo(HostModel):
    id: str | None = None
    content: str | None = None
    status: str | None = None


# --- Host calls ---


class HostClient(Protocol):
    def session_messages(self, session_id: str) -> list[MessageWithParts]: ...

    def session_todos(self, session_id: str) -> list[Todo]: ...

    def show_toast(self, message: str, variant: ToastVariant) -> None: ...
