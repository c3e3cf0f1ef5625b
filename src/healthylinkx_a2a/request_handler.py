"""Transport-independent handling of A2A operations."""

from __future__ import annotations

import logging

from .config import Settings
from .errors import INVALID_PARAMS, InvalidParamsError, TaskNotCancelableError, TaskNotFoundError
from .events import TaskEventQueue
from .executor import DoctorSearchExecutor, RequestContext
from .schemas import (
    MessageSendParams,
    Task,
    TaskIdParams,
    TaskQueryParams,
    TaskState,
    TaskStatus,
    new_id,
)
from .task_store import TaskStore

logger = logging.getLogger(__name__)


class RequestHandler:
    """Implements message/send, tasks/get and tasks/cancel on top of a task store."""

    def __init__(self, executor: DoctorSearchExecutor, task_store: TaskStore, settings: Settings) -> None:
        self.executor = executor
        self.task_store = task_store
        self.settings = settings

    async def on_message_send(self, params: MessageSendParams) -> Task:
        """Create (or continue) a task for the message and run the executor.

        Returns:
            The task as stored after the run.

        Raises:
            InvalidParamsError: If the message targets a finished task, or if
                the run failed because the search parameters were insufficient.
                In the latter case the failed task remains retrievable.
        """
        message = params.message
        task_id = message.task_id or new_id("task")
        context_id = message.context_id or new_id("ctx")

        task = self.task_store.get(task_id)
        if task is None:
            task = Task(
                id=task_id,
                context_id=context_id,
                status=TaskStatus(state=TaskState.submitted),
                history=[message],
                metadata=params.metadata,
            )
        elif task.status.state.is_terminal:
            raise InvalidParamsError(
                f"Task {task_id} is in terminal state: {task.status.state.value}"
            )
        else:
            context_id = task.context_id
            task.history.append(message)
        self.task_store.save(task)
        logger.info("Task submitted", extra={"task_id": task_id, "context_id": context_id})

        context = RequestContext(
            message=message,
            task_id=task_id,
            context_id=context_id,
            current_task=task,
            metadata=params.metadata or {},
        )
        await self.executor.execute(context, TaskEventQueue(self.task_store, task_id))

        result = self.task_store.get(task_id)
        error = result.status.error
        if result.status.state is TaskState.failed and error is not None and error.code == INVALID_PARAMS:
            raise InvalidParamsError(error.message, data={"taskId": task_id})
        return result

    async def on_get_task(self, params: TaskQueryParams) -> Task:
        task = self.task_store.get(params.id)
        if task is None:
            raise TaskNotFoundError(f"Task not found: {params.id}")
        if params.history_length is not None:
            task.history = task.history[-params.history_length:] if params.history_length else []
        return task

    async def on_cancel_task(self, params: TaskIdParams) -> Task:
        """Mark a task canceled.

        By default the state is overwritten whatever it was, including
        terminal states. With ``allow_cancel_terminal_tasks`` disabled,
        finished tasks are rejected instead. An in-flight search is not
        interrupted.
        """
        task = self.task_store.get(params.id)
        if task is None:
            raise TaskNotFoundError(f"Task not found: {params.id}")
        if task.status.state.is_terminal and not self.settings.allow_cancel_terminal_tasks:
            raise TaskNotCancelableError(
                f"Task {params.id} is in terminal state: {task.status.state.value}"
            )

        task.status = TaskStatus(state=TaskState.canceled)
        self.task_store.save(task)
        logger.info("Task canceled", extra={"task_id": params.id})
        return task
