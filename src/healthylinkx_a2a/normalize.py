"""Bring older request dialects into the ``message/send`` params shape.

Clients have sent several variants over time: REST bodies wrapping the
message in ``request``, protobuf-style ``ROLE_USER`` enums, ``content``
instead of ``parts``, parts without a ``kind``, bare strings instead of a
message object, and messages without an id.
"""

from __future__ import annotations

from typing import Any

from .schemas import new_id

_ROLES = {
    "ROLE_USER": "user",
    "ROLE_AGENT": "agent",
    "USER": "user",
    "AGENT": "agent",
}


def normalize_role(role: Any) -> Any:
    if isinstance(role, str):
        return _ROLES.get(role.upper(), role)
    return role


def normalize_part(part: Any) -> Any:
    """Add a ``kind`` to a part that lacks one."""
    if not isinstance(part, dict) or "kind" in part:
        return part
    if "text" in part:
        return {**part, "kind": "text"}
    if "data" in part:
        return {**part, "kind": "data"}
    return part


def normalize_message(message: Any) -> Any:
    """Normalize a single message object; non-dicts other than strings pass through."""
    if isinstance(message, str):
        return {
            "kind": "message",
            "messageId": new_id("msg"),
            "role": "user",
            "parts": [{"kind": "text", "text": message}],
        }
    if not isinstance(message, dict):
        return message

    message = dict(message)
    if "parts" not in message and "content" in message:
        message["parts"] = message.pop("content")
    if isinstance(message.get("parts"), list):
        message["parts"] = [normalize_part(p) for p in message["parts"]]
    message["role"] = normalize_role(message.get("role", "user"))
    message.setdefault("kind", "message")
    if not message.get("messageId") and not message.get("message_id"):
        message["messageId"] = new_id("msg")
    return message


def normalize_send_params(body: Any) -> Any:
    """Normalize the params of a send-message call.

    Returns the body unchanged if it is not a JSON object.
    """
    if not isinstance(body, dict):
        return body

    body = dict(body)
    if "message" not in body and "request" in body:
        body["message"] = body.pop("request")
    if "message" in body:
        body["message"] = normalize_message(body["message"])
    return body
