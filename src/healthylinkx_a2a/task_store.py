"""Task storage.

Tasks live only as long as the process that created them. On Lambda a warm
instance may serve several requests one after another and will see the
tasks it created; another instance will not. Nothing relies on that reuse
for correctness.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from .schemas import Task

logger = logging.getLogger(__name__)


class TaskStore(ABC):
    """Holds tasks keyed by task id."""

    @abstractmethod
    def get(self, task_id: str) -> Task | None:
        """Return a copy of the stored task, or None."""

    @abstractmethod
    def save(self, task: Task) -> None:
        """Store (or replace) a task."""

    @abstractmethod
    def delete(self, task_id: str) -> None:
        """Forget a task; unknown ids are ignored."""


class InMemoryTaskStore(TaskStore):
    """Process-scoped task store backed by a dict.

    Tasks are deep-copied on the way in and out so callers never share the
    stored instance. Not synchronized: callers are expected to be serial.
    """

    def __init__(self) -> None:
        self._tasks: dict[str, Task] = {}

    def get(self, task_id: str) -> Task | None:
        task = self._tasks.get(task_id)
        return task.model_copy(deep=True) if task is not None else None

    def save(self, task: Task) -> None:
        self._tasks[task.id] = task.model_copy(deep=True)
        logger.debug("Task saved", extra={"task_id": task.id, "state": task.status.state.value})

    def delete(self, task_id: str) -> None:
        self._tasks.pop(task_id, None)

    def __len__(self) -> int:
        return len(self._tasks)

    def __contains__(self, task_id: object) -> bool:
        return task_id in self._tasks
