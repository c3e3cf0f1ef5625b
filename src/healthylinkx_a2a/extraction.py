"""Turn an incoming message into a validated doctor search query.

Extraction is a pure function: it reads the message (and the request
metadata) and either returns a :class:`SearchQuery` or raises
:class:`InvalidParamsError`. Structured payloads are tried first, free text
last.
"""

from __future__ import annotations

import json
import re
from typing import Any, Iterator

from pydantic import ValidationError

from .config import RequirementPolicy
from .errors import InvalidParamsError
from .models import SearchQuery
from .schemas import DataPart, Message

METADATA_KEY = "searchDoctors"

_ZIPCODE_RE = re.compile(r"\b([1-9]\d{4})\b")
_LASTNAME_RE = re.compile(
    r"\b(?:last\s?name|named|name)\b\s*(?:[:=]\s*|is\s+)?([A-Za-z][A-Za-z'\-]*)",
    re.IGNORECASE,
)
_GENDER_RE = re.compile(r"\b(male|female)\b", re.IGNORECASE)
_SPECIALTY_RE = re.compile(
    r"\b(?:specialty|specialization|specializing\s+in|field)\b\s*(?:[:=]\s*|of\s+)?"
    r"([A-Za-z][A-Za-z \-]*?)"
    r"(?=\s+(?:at|named|in|near|with|and)\b|\s*[,.;]|\s*\d|\s*$)",
    re.IGNORECASE,
)
_KEY_VALUE_FIELDS = ("zipcode", "lastname", "specialty", "gender")

_POLICY_HINTS = {
    RequirementPolicy.ZIPCODE_OR_LASTNAME: "at least a zipcode or a last name",
    RequirementPolicy.ZIPCODE_LASTNAME_OR_SPECIALTY: "at least a zipcode, a last name or a specialty",
    RequirementPolicy.ZIPCODE_AND_LASTNAME: "both a zipcode and a last name",
}


def satisfies_policy(query: SearchQuery, policy: RequirementPolicy) -> bool:
    """Check whether the query carries the fields the policy requires."""
    present = query.present_fields()
    if policy is RequirementPolicy.ZIPCODE_AND_LASTNAME:
        return {"zipcode", "lastname"} <= present
    if policy is RequirementPolicy.ZIPCODE_LASTNAME_OR_SPECIALTY:
        return bool(present & {"zipcode", "lastname", "specialty"})
    return bool(present & {"zipcode", "lastname"})


def parse_search_text(text: str) -> dict[str, Any]:
    """Extract search fields from free text.

    Matching is case-insensitive and the first match wins for each field.
    Fields that do not match are absent from the returned dict.

    Examples:
        "Find doctors named Smith in 10001" -> {"lastname": "Smith", "zipcode": 10001}
        "female doctor with specialty Family Medicine at 98052"
            -> {"zipcode": 98052, "gender": "female", "specialty": "Family Medicine"}
    """
    fields: dict[str, Any] = {}

    zipcode = _ZIPCODE_RE.search(text)
    if zipcode:
        fields["zipcode"] = int(zipcode.group(1))

    lastname = _LASTNAME_RE.search(text)
    if lastname:
        fields["lastname"] = lastname.group(1)

    gender = _GENDER_RE.search(text)
    if gender:
        fields["gender"] = gender.group(1).lower()

    specialty = _SPECIALTY_RE.search(text)
    if specialty and specialty.group(1).strip():
        fields["specialty"] = specialty.group(1).strip()

    return fields


def parse_key_value_text(text: str) -> dict[str, str]:
    """Extract ``key=value`` tokens for the known search fields."""
    fields = {}
    for token in text.split():
        key, sep, value = token.partition("=")
        if sep and key.lower() in _KEY_VALUE_FIELDS and value:
            fields[key.lower()] = value
    return fields


def _structured_candidates(
    message: Message, request_metadata: dict[str, Any] | None
) -> Iterator[Any]:
    if request_metadata:
        yield request_metadata.get(METADATA_KEY)
    if message.metadata:
        yield message.metadata.get(METADATA_KEY)
    for part in message.parts:
        if isinstance(part, DataPart):
            yield part.data.get(METADATA_KEY, part.data)
            break

    text = message.text().strip()
    if text.startswith("{"):
        try:
            yield json.loads(text)
        except json.JSONDecodeError:
            pass
    if "=" in text:
        yield parse_key_value_text(text)


def _validate(candidate: Any) -> SearchQuery | None:
    if not isinstance(candidate, dict) or not candidate:
        return None
    try:
        return SearchQuery.model_validate(candidate)
    except ValidationError:
        return None


def extract_search_query(
    message: Message,
    request_metadata: dict[str, Any] | None = None,
    policy: RequirementPolicy = RequirementPolicy.ZIPCODE_OR_LASTNAME,
) -> SearchQuery:
    """Build a search query from a message.

    Args:
        message: The user message (text and/or data parts).
        request_metadata: Metadata of the send request; may carry a
            ``searchDoctors`` object.
        policy: Which fields must be present.

    Returns:
        The first candidate that validates and satisfies the policy.

    Raises:
        InvalidParamsError: If no candidate satisfies the policy.
    """
    for candidate in _structured_candidates(message, request_metadata):
        query = _validate(candidate)
        if query is not None and satisfies_policy(query, policy):
            return query

    free_text = {}
    for name, value in parse_search_text(message.text()).items():
        # Drop fields that fail validation on their own
        if _validate({name: value}) is not None:
            free_text[name] = value
    query = SearchQuery.model_validate(free_text)
    if satisfies_policy(query, policy):
        return query

    raise InvalidParamsError(
        "Missing required parameters. Please provide "
        f"{_POLICY_HINTS[policy]} in your message."
    )
