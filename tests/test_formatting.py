"""Tests for result formatting."""

import pytest

from healthylinkx_a2a.formatting import (
    NO_RESULTS_TEXT,
    build_search_result,
    format_doctor,
    format_results_text,
)
from healthylinkx_a2a.models import DoctorRecord, SearchQuery


@pytest.fixture
def records(directory_rows):
    return [DoctorRecord.from_row(row) for row in directory_rows[:2]]


def test_no_results():
    assert format_results_text([]) == NO_RESULTS_TEXT


def test_single_result_uses_singular(records):
    text = format_results_text(records[:1])
    assert text == (
        "Found 1 doctor matching your search:\n\n"
        "1. JOHN SMITH MD\n"
        "   Address: 1 MAIN ST, NEW YORK\n"
        "   Specialty: Internal Medicine"
    )


def test_multiple_results_are_numbered_and_separated(records):
    text = format_results_text(records)
    assert text.startswith("Found 2 doctors matching your search:\n\n1. JOHN SMITH MD")
    # Trailing whitespace in the street column is stripped
    assert "\n\n2. JANE SMITH\n   Address: 20 BROADWAY, NEW YORK\n" in text


def test_formatting_is_idempotent(records):
    before = list(records)
    assert format_results_text(records) == format_results_text(records)
    assert records == before


def test_missing_columns_render_empty():
    doctor = DoctorRecord.from_row({"Provider_Full_Name": "NO ADDRESS", "Provider_Full_City": None})
    assert format_doctor(3, doctor) == "3. NO ADDRESS\n   Address: , \n   Specialty: "


def test_build_search_result(records):
    query = SearchQuery(lastname="Smith", zipcode=10001)
    result = build_search_result(records, query)
    assert result.count == 2
    assert result.doctors[1].classification == "Family Medicine"
    assert result.model_dump(mode="json", exclude_none=True)["query"] == {
        "zipcode": 10001,
        "lastname": "Smith",
    }
