"""HTTP client for the Healthylinkx doctor directory."""

from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from healthylinkx_a2a.models import SearchQuery, SearchResponse

from .base import DoctorSearch

logger = logging.getLogger(__name__)

UNEXPECTED_RESPONSE = "Unexpected response from doctor directory"


class HttpDoctorSearch(DoctorSearch):
    """Calls the directory over HTTP.

    The query is posted as JSON (``gender``, ``lastname``, ``specialty``,
    ``zipcode``; unset fields omitted). The directory may answer with a bare
    list of rows or with a ``{"statusCode": ..., "result": ...}`` envelope.
    """

    def __init__(
        self,
        url: str,
        *,
        api_key: str | None = None,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.url = url
        headers = {"Content-Type": "application/json"}
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._headers = headers

    async def search(self, query: SearchQuery) -> SearchResponse:
        payload = query.model_dump(exclude_none=True)
        logger.info("Querying doctor directory", extra={"fields": sorted(payload)})

        try:
            response = await self._client.post(self.url, json=payload, headers=self._headers)
        except httpx.HTTPError as e:
            logger.warning("Doctor directory unreachable: %s", e)
            return SearchResponse(status_code=502, result=f"Doctor directory unreachable: {e}")

        return self._to_search_response(response)

    @staticmethod
    def _to_search_response(response: httpx.Response) -> SearchResponse:
        try:
            body: Any = response.json()
        except ValueError:
            body = response.text

        if isinstance(body, dict) and "statusCode" in body:
            try:
                return SearchResponse.model_validate(body)
            except ValidationError as e:
                logger.warning("Malformed doctor directory envelope: %s", e)
                return SearchResponse(status_code=502, result=UNEXPECTED_RESPONSE)

        if response.status_code == 200:
            if isinstance(body, list) and all(isinstance(row, dict) for row in body):
                return SearchResponse(status_code=200, result=body)
            return SearchResponse(status_code=502, result=UNEXPECTED_RESPONSE)

        message = body.get("message") if isinstance(body, dict) else body
        return SearchResponse(
            status_code=response.status_code,
            result=str(message or f"Doctor directory returned HTTP {response.status_code}"),
        )

    async def aclose(self) -> None:
        await self._client.aclose()
