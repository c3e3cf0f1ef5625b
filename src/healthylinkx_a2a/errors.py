"""Error taxonomy shared by the JSON-RPC and REST surfaces.

Every error carries a JSON-RPC code. The REST surface maps the code onto an
HTTP status; the JSON-RPC surface always answers with HTTP 200.
"""

from __future__ import annotations

from typing import Any

PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603

# A2A-specific codes (server error range -32000 to -32099)
COLLABORATOR_ERROR = -32000
TASK_NOT_FOUND = -32001
TASK_NOT_CANCELABLE = -32002
UNSUPPORTED_OPERATION = -32004

_HTTP_STATUS = {
    PARSE_ERROR: 400,
    INVALID_REQUEST: 400,
    INVALID_PARAMS: 400,
    UNSUPPORTED_OPERATION: 400,
    METHOD_NOT_FOUND: 404,
    TASK_NOT_FOUND: 404,
    TASK_NOT_CANCELABLE: 409,
}


def http_status_for(code: int) -> int:
    """Return the HTTP status used by the REST surface for an error code."""
    return _HTTP_STATUS.get(code, 500)


class A2AError(Exception):
    """Base class for errors reported to callers with a JSON-RPC code."""

    code: int = INTERNAL_ERROR
    default_message: str = "Internal error"

    def __init__(self, message: str | None = None, data: Any = None) -> None:
        self.message = message or self.default_message
        self.data = data
        super().__init__(self.message)

    @property
    def http_status(self) -> int:
        return http_status_for(self.code)

    def to_error(self) -> dict[str, Any]:
        """Serialize as a JSON-RPC error object."""
        error: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.data is not None:
            error["data"] = self.data
        return error


class ProtocolError(A2AError):
    """Malformed envelope or unsupported method."""


class ParseError(ProtocolError):
    code = PARSE_ERROR
    default_message = "Parse error: Invalid JSON"


class InvalidRequestError(ProtocolError):
    code = INVALID_REQUEST
    default_message = "Invalid Request"


class MethodNotFoundError(ProtocolError):
    code = METHOD_NOT_FOUND
    default_message = "Method not found"


class UnsupportedOperationError(ProtocolError):
    code = UNSUPPORTED_OPERATION
    default_message = "This operation is not supported"


class InvalidParamsError(A2AError):
    """Parameters are missing or malformed; raised before the collaborator is called."""

    code = INVALID_PARAMS
    default_message = "Invalid params"


class CollaboratorError(A2AError):
    """The doctor directory answered with a non-success status."""

    code = COLLABORATOR_ERROR
    default_message = "Doctor search failed"


class TaskNotFoundError(A2AError):
    code = TASK_NOT_FOUND
    default_message = "Task not found"


class TaskNotCancelableError(A2AError):
    code = TASK_NOT_CANCELABLE
    default_message = "Task cannot be canceled"


class InternalError(A2AError):
    code = INTERNAL_ERROR
    default_message = "Internal error"
