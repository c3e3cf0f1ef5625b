"""In-memory doctor directory.

Useful for running the agent locally without the Healthylinkx datastore.
Rows use the directory's column names.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from healthylinkx_a2a.models import SearchQuery, SearchResponse

from .base import DoctorSearch

MAX_ROWS = 50

_GENDER_CODES = {"male": "M", "female": "F"}


def _matches(row: dict[str, Any], query: SearchQuery) -> bool:
    if query.lastname is not None:
        if str(row.get("Provider_Last_Name_Legal_Name", "")).lower() != query.lastname.lower():
            return False
    if query.zipcode is not None:
        # Postal codes are stored as ZIP+4 in the directory
        if str(row.get("Provider_Short_Postal_Code", ""))[:5] != str(query.zipcode):
            return False
    if query.gender is not None:
        if row.get("Provider_Gender_Code") != _GENDER_CODES[query.gender]:
            return False
    if query.specialty is not None:
        if query.specialty.lower() not in str(row.get("Classification", "")).lower():
            return False
    return True


class StaticDoctorSearch(DoctorSearch):
    """Filters a fixed list of directory rows."""

    def __init__(self, rows: list[dict[str, Any]]) -> None:
        self.rows = rows

    @classmethod
    def from_file(cls, path: str | Path) -> "StaticDoctorSearch":
        """Load rows from a JSON file containing a list of objects."""
        with open(path, encoding="utf-8") as fh:
            rows = json.load(fh)
        if not isinstance(rows, list):
            raise ValueError(f"Expected a JSON list of rows in {path}")
        return cls(rows)

    async def search(self, query: SearchQuery) -> SearchResponse:
        matches = [row for row in self.rows if _matches(row, query)]
        return SearchResponse(status_code=200, result=matches[:MAX_ROWS])
