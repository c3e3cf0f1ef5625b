"""Doctor directory backend interface."""

from __future__ import annotations

from abc import ABC, abstractmethod

from healthylinkx_a2a.models import SearchQuery, SearchResponse


class DoctorSearch(ABC):
    """Looks up doctors in the directory.

    Implementations mirror ``SearchDoctors(gender, lastname, specialty, zipcode)``:
    they return a status code and either the matching rows or an error string,
    and report backend failures through the status code rather than raising.
    """

    @abstractmethod
    async def search(self, query: SearchQuery) -> SearchResponse:
        """Run a search for the given query."""

    async def aclose(self) -> None:
        """Release any held resources."""


class UnavailableDoctorSearch(DoctorSearch):
    """Backend used when no directory has been configured."""

    message = "Doctor search backend is not configured"

    async def search(self, query: SearchQuery) -> SearchResponse:
        return SearchResponse(status_code=503, result=self.message)
