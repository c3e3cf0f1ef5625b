"""Tests for the doctor directory backends."""

import asyncio
import json

import httpx
import pytest

from healthylinkx_a2a.config import Settings
from healthylinkx_a2a.events import TaskEventQueue
from healthylinkx_a2a.executor import DoctorSearchExecutor, RequestContext
from healthylinkx_a2a.models import SearchQuery
from healthylinkx_a2a.schemas import Message, Task, TaskState, TaskStatus, TextPart
from healthylinkx_a2a.search import (
    HttpDoctorSearch,
    StaticDoctorSearch,
    UnavailableDoctorSearch,
    build_doctor_search,
)
from healthylinkx_a2a.search.static import MAX_ROWS

DIRECTORY_URL = "https://directory.example.com/search"


def http_search(handler, **kwargs):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return HttpDoctorSearch(DIRECTORY_URL, client=client, **kwargs)


def test_http_posts_query_and_accepts_row_list(directory_rows):
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["body"] = json.loads(request.content)
        seen["auth"] = request.headers.get("authorization")
        return httpx.Response(200, json=directory_rows[:1])

    backend = http_search(handler, api_key="secret")
    response = asyncio.run(backend.search(SearchQuery(lastname="Smith", zipcode=10001)))

    assert seen == {"body": {"zipcode": 10001, "lastname": "Smith"}, "auth": "Bearer secret"}
    assert response.ok
    assert response.result[0]["Provider_Full_Name"] == "JOHN SMITH MD"


def test_http_accepts_status_envelope():
    backend = http_search(lambda request: httpx.Response(200, json={"statusCode": 400, "result": "bad zipcode"}))
    response = asyncio.run(backend.search(SearchQuery(zipcode=10001)))

    assert response.status_code == 400
    assert response.result == "bad zipcode"


def test_http_error_status():
    backend = http_search(lambda request: httpx.Response(500, json={"message": "database offline"}))
    response = asyncio.run(backend.search(SearchQuery(zipcode=10001)))

    assert response.status_code == 500
    assert response.result == "database offline"


def test_http_transport_error_is_reported_not_raised():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    response = asyncio.run(http_search(handler).search(SearchQuery(zipcode=10001)))

    assert response.status_code == 502
    assert "connection refused" in response.result


def test_http_unexpected_body():
    backend = http_search(lambda request: httpx.Response(200, text="<html>"))
    response = asyncio.run(backend.search(SearchQuery(zipcode=10001)))
    assert response.status_code == 502


@pytest.mark.parametrize(
    "query, names",
    [
        (SearchQuery(lastname="smith"), ["JOHN SMITH MD", "JANE SMITH"]),
        (SearchQuery(zipcode=10001, gender="female"), ["JANE SMITH"]),
        (SearchQuery(specialty="cardio"), ["ANA DOE"]),
        (SearchQuery(zipcode=98052, lastname="Smith"), []),
    ],
)
def test_static_filters(backend, query, names):
    response = asyncio.run(backend.search(query))
    assert [row["Provider_Full_Name"] for row in response.result] == names


def test_static_caps_rows(directory_rows):
    backend = StaticDoctorSearch(directory_rows[:1] * (MAX_ROWS + 5))
    response = asyncio.run(backend.search(SearchQuery(lastname="Smith")))
    assert len(response.result) == MAX_ROWS


def test_static_from_file(tmp_path, directory_rows):
    path = tmp_path / "doctors.json"
    path.write_text(json.dumps(directory_rows))
    assert StaticDoctorSearch.from_file(path).rows == directory_rows

    path.write_text("{}")
    with pytest.raises(ValueError):
        StaticDoctorSearch.from_file(path)


def test_build_doctor_search(tmp_path, directory_rows):
    fixture = tmp_path / "doctors.json"
    fixture.write_text(json.dumps(directory_rows))

    assert isinstance(build_doctor_search(Settings(doctor_search_url=DIRECTORY_URL)), HttpDoctorSearch)
    assert isinstance(
        build_doctor_search(Settings(doctor_search_url=None, doctor_search_fixture=fixture)),
        StaticDoctorSearch,
    )
    assert isinstance(
        build_doctor_search(Settings(doctor_search_url=None, doctor_search_fixture=None)),
        UnavailableDoctorSearch,
    )


@pytest.mark.parametrize(
    "body",
    [
        {"statusCode": 500},
        {"statusCode": 200, "result": [1, 2]},
        {"statusCode": "later", "result": "x"},
    ],
)
def test_http_malformed_envelope_is_reported_not_raised(body):
    backend = http_search(lambda request: httpx.Response(500, json=body))
    response = asyncio.run(backend.search(SearchQuery(zipcode=10001)))

    assert response.status_code == 502
    assert response.result == "Unexpected response from doctor directory"


def test_http_row_list_of_non_objects():
    backend = http_search(lambda request: httpx.Response(200, json=["JOHN SMITH"]))
    response = asyncio.run(backend.search(SearchQuery(zipcode=10001)))
    assert response.status_code == 502


def test_malformed_envelope_fails_task_as_collaborator_error(store):
    message = Message(role="user", parts=[TextPart(text="named Smith")])
    store.save(Task(id="task-1", context_id="ctx-1", status=TaskStatus(state=TaskState.submitted), history=[message]))
    executor = DoctorSearchExecutor(http_search(lambda request: httpx.Response(500, json={"statusCode": 500})))
    context = RequestContext(message=message, task_id="task-1", context_id="ctx-1")

    asyncio.run(executor.execute(context, TaskEventQueue(store, "task-1")))

    task = store.get("task-1")
    assert task.status.state is TaskState.failed
    assert task.status.error.code == -32000
