"""Task event publication.

The executor reports progress only through an :class:`EventQueue`, which has
two operations: ``emit_status`` and ``emit_artifact``. Both are synchronous
and ordered; an event has been applied by the time the call returns. A status
event with ``final=True`` ends the stream for its task.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Union

from .schemas import (
    Artifact,
    Message,
    Part,
    TaskArtifactUpdateEvent,
    TaskError,
    TaskState,
    TaskStatus,
    TaskStatusUpdateEvent,
    TextPart,
)
from .task_store import TaskStore

logger = logging.getLogger(__name__)

Event = Union[TaskStatusUpdateEvent, TaskArtifactUpdateEvent]


class EventQueue(ABC):
    """Receives status and artifact events for a task."""

    @abstractmethod
    def emit_status(self, event: TaskStatusUpdateEvent) -> None:
        """Publish a status update."""

    @abstractmethod
    def emit_artifact(self, event: TaskArtifactUpdateEvent) -> None:
        """Publish an artifact update."""


class TaskEventQueue(EventQueue):
    """Applies events to a stored task and keeps them in order.

    Events that arrive after a final status update are dropped with a warning.
    """

    def __init__(self, store: TaskStore, task_id: str) -> None:
        self.store = store
        self.task_id = task_id
        self.events: list[Event] = []
        self.closed = False

    def emit_status(self, event: TaskStatusUpdateEvent) -> None:
        if not self._accept(event):
            return
        task = self._load()
        task.status = event.status
        if event.status.message is not None:
            task.history.append(event.status.message)
        self.store.save(task)
        self.events.append(event)
        logger.info(
            "Task status update",
            extra={"task_id": self.task_id, "state": event.status.state.value, "final": event.final},
        )
        if event.final:
            self.closed = True

    def emit_artifact(self, event: TaskArtifactUpdateEvent) -> None:
        if not self._accept(event):
            return
        task = self._load()
        task.artifacts.append(event.artifact)
        self.store.save(task)
        self.events.append(event)
        logger.info(
            "Task artifact update",
            extra={"task_id": self.task_id, "artifact": event.artifact.name},
        )

    def _accept(self, event: Event) -> bool:
        if event.task_id != self.task_id:
            raise ValueError(f"Event for task {event.task_id} sent to queue for {self.task_id}")
        if self.closed:
            logger.warning("Dropping %s event after final status", event.kind, extra={"task_id": self.task_id})
            return False
        return True

    def _load(self):
        task = self.store.get(self.task_id)
        if task is None:
            raise KeyError(f"Task {self.task_id} is not in the store")
        return task


class TaskUpdater:
    """Convenience wrapper that builds events for one task."""

    def __init__(self, queue: EventQueue, task_id: str, context_id: str) -> None:
        self.queue = queue
        self.task_id = task_id
        self.context_id = context_id

    def new_agent_message(self, text: str) -> Message:
        return Message(
            role="agent",
            parts=[TextPart(text=text)],
            task_id=self.task_id,
            context_id=self.context_id,
        )

    def update_status(
        self,
        state: TaskState,
        *,
        message: Message | None = None,
        error: TaskError | None = None,
        final: bool = False,
    ) -> None:
        self.queue.emit_status(
            TaskStatusUpdateEvent(
                task_id=self.task_id,
                context_id=self.context_id,
                status=TaskStatus(state=state, message=message, error=error),
                final=final,
            )
        )

    def start_work(self) -> None:
        self.update_status(TaskState.working)

    def add_artifact(self, parts: list[Part], name: str) -> Artifact:
        artifact = Artifact(name=name, parts=parts)
        self.queue.emit_artifact(
            TaskArtifactUpdateEvent(
                task_id=self.task_id,
                context_id=self.context_id,
                artifact=artifact,
            )
        )
        return artifact

    def complete(self, message: Message | None = None) -> None:
        self.update_status(TaskState.completed, message=message, final=True)

    def failed(self, code: int, message: str) -> None:
        self.update_status(
            TaskState.failed,
            message=self.new_agent_message(f"Error: {message}"),
            error=TaskError(code=code, message=message),
            final=True,
        )
