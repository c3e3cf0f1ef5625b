"""Shared fixtures: a small doctor directory and a wired-up request handler."""

import pytest
from fastapi.testclient import TestClient

from healthylinkx_a2a.api import app, get_request_handler, get_settings
from healthylinkx_a2a.config import Settings
from healthylinkx_a2a.executor import DoctorSearchExecutor
from healthylinkx_a2a.request_handler import RequestHandler
from healthylinkx_a2a.search import StaticDoctorSearch
from healthylinkx_a2a.task_store import InMemoryTaskStore

DIRECTORY_ROWS = [
    {
        "Provider_Full_Name": "JOHN SMITH MD",
        "Provider_Full_Street": "1 MAIN ST",
        "Provider_Full_City": "NEW YORK",
        "Classification": "Internal Medicine",
        "Provider_Last_Name_Legal_Name": "SMITH",
        "Provider_Short_Postal_Code": "100011234",
        "Provider_Gender_Code": "M",
    },
    {
        "Provider_Full_Name": "JANE SMITH",
        "Provider_Full_Street": "20 BROADWAY ",
        "Provider_Full_City": "NEW YORK",
        "Classification": "Family Medicine",
        "Provider_Last_Name_Legal_Name": "SMITH",
        "Provider_Short_Postal_Code": "100015678",
        "Provider_Gender_Code": "F",
    },
    {
        "Provider_Full_Name": "ANA DOE",
        "Provider_Full_Street": "300 LAKE AVE",
        "Provider_Full_City": "REDMOND",
        "Classification": "Cardiology",
        "Provider_Last_Name_Legal_Name": "DOE",
        "Provider_Short_Postal_Code": "98052",
        "Provider_Gender_Code": "F",
    },
]


@pytest.fixture
def settings():
    return Settings(public_base_url=None, doctor_search_url=None, doctor_search_fixture=None)


@pytest.fixture
def backend():
    return StaticDoctorSearch(DIRECTORY_ROWS)


@pytest.fixture
def store():
    # A fresh store per test; nothing carries over between tests.
    return InMemoryTaskStore()


@pytest.fixture
def request_handler(backend, store, settings):
    executor = DoctorSearchExecutor(backend, policy=settings.search_required_fields)
    return RequestHandler(executor, store, settings)


@pytest.fixture
def client(request_handler, settings):
    app.dependency_overrides[get_request_handler] = lambda: request_handler
    app.dependency_overrides[get_settings] = lambda: settings
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def directory_rows():
    return [dict(row) for row in DIRECTORY_ROWS]
