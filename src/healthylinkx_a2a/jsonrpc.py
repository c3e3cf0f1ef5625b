"""JSON-RPC 2.0 dispatch for the A2A methods.

:func:`dispatch` takes the raw request body and always returns a response
envelope; it never raises.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from pydantic import ValidationError

from .errors import (
    A2AError,
    InternalError,
    InvalidParamsError,
    InvalidRequestError,
    MethodNotFoundError,
    ParseError,
    UnsupportedOperationError,
)
from .normalize import normalize_send_params
from .request_handler import RequestHandler
from .schemas import MessageSendParams, TaskIdParams, TaskQueryParams

logger = logging.getLogger(__name__)

SUPPORTED_METHODS = ("message/send", "tasks/get", "tasks/cancel")
STREAMING_METHODS = (
    "message/stream",
    "message:stream",
    "tasks/resubscribe",
    "tasks/subscribe",
    "tasks:subscribe",
)
PUSH_NOTIFICATION_PREFIX = "tasks/pushNotificationConfig/"


def success_response(request_id: Any, result: Any) -> dict[str, Any]:
    return {"jsonrpc": "2.0", "result": result, "id": request_id}


def error_response(request_id: Any, error: A2AError) -> dict[str, Any]:
    return {"jsonrpc": "2.0", "error": error.to_error(), "id": request_id}


def _validation_details(exc: ValidationError) -> list[dict[str, Any]]:
    return [
        {"loc": ".".join(str(p) for p in err["loc"]), "msg": err["msg"]}
        for err in exc.errors()
    ]


async def _call(handler: RequestHandler, method: str, params: Any) -> Any:
    if method in STREAMING_METHODS:
        raise UnsupportedOperationError(f"Unsupported operation: {method}")
    if method.startswith(PUSH_NOTIFICATION_PREFIX):
        raise UnsupportedOperationError("Push notifications are not supported")

    if method == "message/send":
        if not isinstance(params, dict) or ("message" not in params and "request" not in params):
            raise InvalidParamsError("Invalid params: message is required")
        send_params = MessageSendParams.model_validate(normalize_send_params(params))
        task = await handler.on_message_send(send_params)
        return task.to_wire()
    if method == "tasks/get":
        task = await handler.on_get_task(TaskQueryParams.model_validate(params or {}))
        return task.to_wire()
    if method == "tasks/cancel":
        task = await handler.on_cancel_task(TaskIdParams.model_validate(params or {}))
        return task.to_wire()

    raise MethodNotFoundError(
        f"Method not found: {method}. Supported methods: {', '.join(SUPPORTED_METHODS)}"
    )


async def dispatch(body: bytes | str, handler: RequestHandler, *, debug: bool = False) -> dict[str, Any]:
    """Decode a JSON-RPC request, run it and build the response envelope.

    Args:
        body: Raw request body.
        handler: Operation handler.
        debug: Include exception details in internal error responses.

    Returns:
        A JSON-RPC response object.
    """
    try:
        request = json.loads(body or b"{}")
    except (ValueError, UnicodeDecodeError):
        return error_response(None, ParseError())

    if not isinstance(request, dict):
        return error_response(None, InvalidRequestError("Invalid Request: expected a JSON object"))

    request_id = request.get("id")
    if request.get("jsonrpc") != "2.0":
        return error_response(request_id, InvalidRequestError('Invalid Request: jsonrpc must be "2.0"'))

    method = request.get("method")
    if not isinstance(method, str) or not method:
        return error_response(request_id, InvalidRequestError("Invalid Request: method is required"))

    logger.info("JSON-RPC request", extra={"rpc_method": method, "rpc_id": request_id})
    try:
        result = await _call(handler, method, request.get("params"))
    except ValidationError as e:
        return error_response(request_id, InvalidParamsError("Invalid params", data=_validation_details(e)))
    except A2AError as e:
        logger.info("JSON-RPC error %s: %s", e.code, e.message, extra={"rpc_method": method})
        return error_response(request_id, e)
    except Exception as e:
        logger.exception("Error handling JSON-RPC method %s", method)
        return error_response(request_id, InternalError("Internal server error", data=str(e) if debug else None))

    return success_response(request_id, result)
