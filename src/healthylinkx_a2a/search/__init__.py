"""Doctor directory backends."""

import logging

from healthylinkx_a2a.config import Settings

from .base import DoctorSearch, UnavailableDoctorSearch
from .client import HttpDoctorSearch
from .static import StaticDoctorSearch

logger = logging.getLogger(__name__)


def build_doctor_search(settings: Settings) -> DoctorSearch:
    """Pick the directory backend from configuration."""
    if settings.doctor_search_url:
        logger.info("Using HTTP doctor directory at %s", settings.doctor_search_url)
        return HttpDoctorSearch(
            settings.doctor_search_url,
            api_key=settings.doctor_search_api_key,
            timeout=settings.doctor_search_timeout,
        )
    if settings.doctor_search_fixture:
        logger.info("Using static doctor directory from %s", settings.doctor_search_fixture)
        return StaticDoctorSearch.from_file(settings.doctor_search_fixture)

    logger.warning("No doctor directory configured; searches will fail")
    return UnavailableDoctorSearch()


__all__ = [
    "DoctorSearch",
    "HttpDoctorSearch",
    "StaticDoctorSearch",
    "UnavailableDoctorSearch",
    "build_doctor_search",
]
