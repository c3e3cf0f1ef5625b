"""Tests for the transport-independent request handler."""

import asyncio

import pytest

from healthylinkx_a2a.config import Settings
from healthylinkx_a2a.errors import InvalidParamsError, TaskNotCancelableError, TaskNotFoundError
from healthylinkx_a2a.executor import DoctorSearchExecutor
from healthylinkx_a2a.request_handler import RequestHandler
from healthylinkx_a2a.schemas import (
    Message,
    MessageSendParams,
    TaskIdParams,
    TaskQueryParams,
    TaskState,
    TextPart,
)


def send(handler, text, **message_fields):
    message = Message(role="user", parts=[TextPart(text=text)], **message_fields)
    return asyncio.run(handler.on_message_send(MessageSendParams(message=message)))


def test_send_creates_completed_task(request_handler, store):
    task = send(request_handler, "Find doctors named Smith in 10001")

    assert task.id.startswith("task-")
    assert task.context_id.startswith("ctx-")
    assert task.status.state is TaskState.completed
    assert task.id in store


def test_send_keeps_client_ids(request_handler):
    task = send(request_handler, "named Doe", task_id="task-abc", context_id="ctx-abc")
    assert (task.id, task.context_id) == ("task-abc", "ctx-abc")


def test_invalid_params_raise_and_keep_failed_task(request_handler, store):
    with pytest.raises(InvalidParamsError) as exc_info:
        send(request_handler, "hello")

    task_id = exc_info.value.data["taskId"]
    assert store.get(task_id).status.state is TaskState.failed


def test_send_to_terminal_task_is_rejected(request_handler):
    task = send(request_handler, "named Doe")
    with pytest.raises(InvalidParamsError):
        send(request_handler, "named Doe", task_id=task.id)


def test_get_round_trip(request_handler):
    task = send(request_handler, "named Doe in 98052")
    fetched = asyncio.run(request_handler.on_get_task(TaskQueryParams(id=task.id)))

    assert (fetched.id, fetched.context_id, fetched.status) == (task.id, task.context_id, task.status)


def test_get_history_length(request_handler):
    task = send(request_handler, "named Doe")

    last = asyncio.run(request_handler.on_get_task(TaskQueryParams(id=task.id, history_length=1)))
    assert [m.role for m in last.history] == ["agent"]

    none = asyncio.run(request_handler.on_get_task(TaskQueryParams(id=task.id, history_length=0)))
    assert none.history == []


def test_get_unknown_task(request_handler):
    with pytest.raises(TaskNotFoundError):
        asyncio.run(request_handler.on_get_task(TaskQueryParams(id="task-missing")))


def test_cancel_overwrites_terminal_state(request_handler):
    task = send(request_handler, "named Doe")
    assert task.status.state is TaskState.completed

    asyncio.run(request_handler.on_cancel_task(TaskIdParams(id=task.id)))
    fetched = asyncio.run(request_handler.on_get_task(TaskQueryParams(id=task.id)))
    assert fetched.status.state is TaskState.canceled


def test_cancel_terminal_task_can_be_refused(backend, store):
    settings = Settings(allow_cancel_terminal_tasks=False)
    handler = RequestHandler(DoctorSearchExecutor(backend), store, settings)
    task = send(handler, "named Doe")

    with pytest.raises(TaskNotCancelableError):
        asyncio.run(handler.on_cancel_task(TaskIdParams(id=task.id)))
    assert store.get(task.id).status.state is TaskState.completed


def test_cancel_unknown_task(request_handler):
    with pytest.raises(TaskNotFoundError):
        asyncio.run(request_handler.on_cancel_task(TaskIdParams(id="task-missing")))
