from typing import Annotated, Any, Literal, Union

from pydantic import Field, TypeAdapter

from time_tracking.lib.host_api import (
    HostModel,
    MessageInfo,
    MessagePart,
    MessageWithParts,
    Todo,
)

# --- Event payloads ---


class CacheTokens(HostModel):
    read: int = 0
    write: int = 0


class StepTokens(HostModel):
    input: int = 0
    output: int = 0
    reasoning: int = 0
    cache: CacheTokens = Field(default_factory=CacheTokens)


class EventPart(HostModel):
    """
    A message part as carried by message.part.updated. Only step-finish
    parts (token accounting) and agent parts (agent name) are used.
    """

    type: str
    session_id: str | None = Field(None, alias="sessionID")
    tokens: StepTokens | None = None
    cost: float | None = None
    name: str | None = None


class ToolExecuteInput(HostModel):
    tool: str
    session_id: str = Field(..., alias="sessionID")
    call_id: str | None = Field(None, alias="callID")


class ToolExecuteOutput(HostModel):
    title: str | None = None
    output: str | None = None
    metadata: dict[str, Any] | None = None


class MessageUpdatedProperties(HostModel):
    info: MessageInfo


class MessagePartUpdatedProperties(HostModel):
    part: EventPart


class SessionInfo(HostModel):
    id: str | None = None


class SessionProperties(HostModel):
    session_id: str | None = Field(None, alias="sessionID")
    info: SessionInfo | None = None

    @property
    def resolved_session_id(self) -> str | None:
        if self.session_id:
            return self.session_id
        if self.info and self.info.id:
            return self.info.id
        return None


# --- Event union ---


class ToolExecuteAfterEvent(HostModel):
    type: Literal["tool.execute.after"]
    input: ToolExecuteInput
    output: ToolExecuteOutput = Field(default_factory=ToolExecuteOutput)


class MessageUpdatedEvent(HostModel):
    type: Literal["message.updated"]
    properties: MessageUpdatedProperties


class MessagePartUpdatedEvent(HostModel):
    type: Literal["message.part.updated"]
    properties: MessagePartUpdatedProperties


class SessionIdleEvent(HostModel):
    type: Literal["session.idle"]
    properties: SessionProperties = Field(default_factory=SessionProperties)


class SessionDeletedEvent(HostModel):
    type: Literal["session.deleted"]
    properties: SessionProperties = Field(default_factory=SessionProperties)


HostEvent = Annotated[
    Union[
        ToolExecuteAfterEvent,
        MessageUpdatedEvent,
        MessagePartUpdatedEvent,
        SessionIdleEvent,
        SessionDeletedEvent,
    ],
    Field(discriminator="type"),
]

EVENT_TYPES = frozenset(
    {
        "tool.execute.after",
        "message.updated",
        "message.part.updated",
        "session.idle",
        "session.deleted",
    }
)

_event_adapter: TypeAdapter[HostEvent] = TypeAdapter(HostEvent)


def parse_event(raw: dict[str, Any]) -> HostEvent | None:
    """
    Validate a raw host event. Returns None for event types we don't
    track; raises pydantic.ValidationError for a malformed tracked event.
    """
    if raw.get("type") not in EVENT_TYPES:
        return None
    return _event_adapter.validate_python(raw)


__all__ = [
    "EVENT_TYPES",
    "HostEvent",
    "MessageInfo",
    "MessagePart",
    "MessageWithParts",
    "Todo",
    "parse_event",
]
