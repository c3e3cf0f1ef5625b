"""Tests for the domain and wire models."""

import pytest
from pydantic import ValidationError

from healthylinkx_a2a.models import DoctorRecord, SearchQuery, SearchResponse
from healthylinkx_a2a.schemas import Message, Task, TaskState, TaskStatus, TextPart


def test_search_query_coerces_zipcode_string():
    assert SearchQuery.model_validate({"zipcode": "98052"}).zipcode == 98052


@pytest.mark.parametrize("zipcode", [9999, 100000, "abcde"])
def test_search_query_rejects_bad_zipcode(zipcode):
    with pytest.raises(ValidationError):
        SearchQuery(zipcode=zipcode)


def test_search_query_rejects_blank_lastname_and_unknown_gender():
    with pytest.raises(ValidationError):
        SearchQuery(lastname="   ")
    with pytest.raises(ValidationError):
        SearchQuery(gender="other")


def test_search_query_present_fields():
    assert SearchQuery(zipcode=10001, gender="Male").present_fields() == {"zipcode", "gender"}


def test_doctor_record_is_frozen():
    doctor = DoctorRecord(name="A")
    with pytest.raises(ValidationError):
        doctor.name = "B"


def test_search_response_alias():
    response = SearchResponse.model_validate({"statusCode": 500, "result": "boom"})
    assert not response.ok
    assert SearchResponse(status_code=200, result=[]).ok


def test_task_wire_format_uses_camel_case():
    message = Message(role="user", parts=[TextPart(text="hi")], context_id="ctx-1")
    task = Task(id="task-1", context_id="ctx-1", status=TaskStatus(state=TaskState.submitted), history=[message])

    wire = task.to_wire()
    assert wire["kind"] == "task"
    assert wire["contextId"] == "ctx-1"
    assert wire["status"]["state"] == "submitted"
    assert wire["history"][0]["messageId"].startswith("msg-")
    assert "taskId" not in wire["history"][0]
    assert "metadata" not in wire


def test_message_accepts_camel_case_input():
    message = Message.model_validate(
        {"messageId": "m1", "role": "user", "parts": [{"kind": "text", "text": "a"}, {"kind": "text", "text": "b"}]}
    )
    assert message.message_id == "m1"
    assert message.text() == "a b"


def test_terminal_states():
    assert TaskState.completed.is_terminal
    assert TaskState.canceled.is_terminal
    assert not TaskState.working.is_terminal


def test_doctor_record_coerces_non_string_columns():
    doctor = DoctorRecord.from_row(
        {"Provider_Full_Name": "ANA DOE", "Provider_Full_Street": 300, "Provider_Full_City": None, "Classification": 207}
    )
    assert (doctor.address, doctor.city, doctor.classification) == ("300", "", "207")
