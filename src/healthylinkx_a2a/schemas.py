"""A2A wire schemas.

Models serialize with camelCase aliases and accept either camelCase or
snake_case on input.
"""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def new_id(prefix: str) -> str:
    """Generate a prefixed identifier such as ``task-<uuid>``."""
    return f"{prefix}-{uuid.uuid4()}"


def now_iso() -> str:
    """Current UTC time as an ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat()


class A2AModel(BaseModel):
    """Base model for A2A wire objects."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict[str, Any]:
        """Dump as a JSON-compatible dict using wire field names."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class TaskState(str, Enum):
    """Task lifecycle states."""

    submitted = "submitted"
    working = "working"
    completed = "completed"
    failed = "failed"
    canceled = "canceled"

    @property
    def is_terminal(self) -> bool:
        return self in (TaskState.completed, TaskState.failed, TaskState.canceled)


class TextPart(A2AModel):
    kind: Literal["text"] = "text"
    text: str


class DataPart(A2AModel):
    kind: Literal["data"] = "data"
    data: dict[str, Any]


Part = Annotated[Union[TextPart, DataPart], Field(discriminator="kind")]


class Message(A2AModel):
    """A single message exchanged between a user and the agent."""

    kind: Literal["message"] = "message"
    message_id: str = Field(default_factory=lambda: new_id("msg"))
    role: Literal["user", "agent"]
    parts: list[Part] = Field(default_factory=list)
    task_id: str | None = None
    context_id: str | None = None
    metadata: dict[str, Any] | None = None

    def text(self) -> str:
        """Join all text parts with a single space."""
        return " ".join(p.text for p in self.parts if isinstance(p, TextPart) and p.text)


class TaskError(A2AModel):
    code: int
    message: str


class TaskStatus(A2AModel):
    state: TaskState
    timestamp: str = Field(default_factory=now_iso)
    message: Message | None = None
    error: TaskError | None = None


class Artifact(A2AModel):
    artifact_id: str = Field(default_factory=lambda: new_id("artifact"))
    name: str
    parts: list[Part]


class Task(A2AModel):
    kind: Literal["task"] = "task"
    id: str
    context_id: str
    status: TaskStatus
    history: list[Message] = Field(default_factory=list)
    artifacts: list[Artifact] = Field(default_factory=list)
    metadata: dict[str, Any] | None = None


class TaskStatusUpdateEvent(A2AModel):
    kind: Literal["status-update"] = "status-update"
    task_id: str
    context_id: str
    status: TaskStatus
    final: bool = False


class TaskArtifactUpdateEvent(A2AModel):
    kind: Literal["artifact-update"] = "artifact-update"
    task_id: str
    context_id: str
    artifact: Artifact


class MessageSendParams(A2AModel):
    """Parameters of ``message/send``."""

    message: Message
    configuration: dict[str, Any] | None = None
    metadata: dict[str, Any] | None = None


class TaskQueryParams(A2AModel):
    """Parameters of ``tasks/get``."""

    id: str = Field(..., min_length=1)
    history_length: int | None = Field(default=None, ge=0)
    metadata: dict[str, Any] | None = None


class TaskIdParams(A2AModel):
    """Parameters of ``tasks/cancel``."""

    id: str = Field(..., min_length=1)
    metadata: dict[str, Any] | None = None


class AgentCapabilities(A2AModel):
    streaming: bool = False
    push_notifications: bool = False
    state_transition_history: bool = True


class AgentSkill(A2AModel):
    id: str
    name: str
    description: str
    tags: list[str] = Field(default_factory=list)
    examples: list[str] = Field(default_factory=list)
    input_modes: list[str] | None = None
    output_modes: list[str] | None = None


class AgentInterface(A2AModel):
    url: str
    transport: str


class AgentCard(A2AModel):
    """Discoverable agent metadata."""

    protocol_version: str = "0.3.0"
    name: str
    description: str
    version: str
    url: str
    preferred_transport: str = "JSONRPC"
    additional_interfaces: list[AgentInterface] = Field(default_factory=list)
    capabilities: AgentCapabilities = Field(default_factory=AgentCapabilities)
    default_input_modes: list[str] = Field(default_factory=lambda: ["text"])
    default_output_modes: list[str] = Field(default_factory=lambda: ["text"])
    skills: list[AgentSkill] = Field(default_factory=list)


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    agent: str
