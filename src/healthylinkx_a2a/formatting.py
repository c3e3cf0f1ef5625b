"""Render doctor search results for API responses and chat replies."""

from __future__ import annotations

from collections.abc import Sequence

from .models import DoctorRecord, SearchQuery, SearchResult

NO_RESULTS_TEXT = "No doctors found matching your search criteria."


def build_search_result(records: Sequence[DoctorRecord], query: SearchQuery) -> SearchResult:
    """Build the machine-readable result structure."""
    return SearchResult(count=len(records), doctors=list(records), query=query)


def format_doctor(index: int, doctor: DoctorRecord) -> str:
    """Format one entry, e.g.::

        1. JOHN SMITH
           Address: 1 MAIN ST, SEATTLE
           Specialty: Internal Medicine
    """
    return (
        f"{index}. {doctor.name.strip()}\n"
        f"   Address: {doctor.address.strip()}, {doctor.city.strip()}\n"
        f"   Specialty: {doctor.classification}"
    )


def format_results_text(records: Sequence[DoctorRecord]) -> str:
    """Format search results as human-readable text.

    Args:
        records: Directory records in the order returned by the backend.

    Returns:
        A count-aware header followed by one block per doctor, separated by
        blank lines, or a fixed sentence when nothing matched.
    """
    count = len(records)
    if count == 0:
        return NO_RESULTS_TEXT

    noun = "doctor" if count == 1 else "doctors"
    entries = [format_doctor(i, doctor) for i, doctor in enumerate(records, 1)]
    return f"Found {count} {noun} matching your search:\n\n" + "\n\n".join(entries)
