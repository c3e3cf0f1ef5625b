"""Tests for request dialect normalization."""

from healthylinkx_a2a.normalize import normalize_message, normalize_part, normalize_role, normalize_send_params
from healthylinkx_a2a.schemas import MessageSendParams


def test_rest_request_is_renamed_to_message():
    params = normalize_send_params(
        {"request": {"messageId": "m1", "role": "ROLE_USER", "content": [{"text": "named Doe"}]}}
    )
    assert params == {
        "message": {
            "messageId": "m1",
            "role": "user",
            "kind": "message",
            "parts": [{"text": "named Doe", "kind": "text"}],
        }
    }


def test_string_message():
    params = MessageSendParams.model_validate(normalize_send_params({"message": "Find doctors named Smith in 10001"}))
    assert params.message.role == "user"
    assert params.message.text() == "Find doctors named Smith in 10001"
    assert params.message.message_id.startswith("msg-")


def test_roles_and_parts():
    assert normalize_role("AGENT") == "agent"
    assert normalize_role("user") == "user"
    assert normalize_part({"data": {"zipcode": 10001}}) == {"data": {"zipcode": 10001}, "kind": "data"}
    assert normalize_part({"kind": "text", "text": "x"}) == {"kind": "text", "text": "x"}


def test_message_defaults_role_and_keeps_existing_id():
    message = normalize_message({"message_id": "m2", "parts": []})
    assert message["role"] == "user"
    assert "messageId" not in message


def test_non_objects_pass_through():
    assert normalize_send_params(["x"]) == ["x"]
    assert normalize_message(42) == 42
