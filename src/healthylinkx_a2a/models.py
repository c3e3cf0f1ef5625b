"""Domain models for the doctor search."""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


class SearchQuery(BaseModel):
    """Validated parameters for a doctor directory search.

    Fields that were not supplied stay unset and are left out of
    ``model_dump(exclude_none=True)``. Which fields are required is decided by
    the configured requirement policy, not by the model.
    """

    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    zipcode: int | None = Field(default=None, ge=10000, le=99999)
    lastname: str | None = Field(default=None, min_length=1)
    specialty: str | None = Field(default=None, min_length=1)
    gender: Literal["male", "female"] | None = None

    @field_validator("gender", mode="before")
    @classmethod
    def _lower_gender(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower()
        return value

    def present_fields(self) -> set[str]:
        return {name for name, value in self.model_dump().items() if value is not None}


class DoctorRecord(BaseModel):
    """A single directory row, read-only."""

    model_config = ConfigDict(frozen=True)

    name: str = ""
    address: str = ""
    city: str = ""
    classification: str = ""

    @field_validator("*", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return "" if value is None else str(value)

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "DoctorRecord":
        """Map a raw directory row onto a record."""
        return cls(
            name=row.get("Provider_Full_Name"),
            address=row.get("Provider_Full_Street"),
            city=row.get("Provider_Full_City"),
            classification=row.get("Classification"),
        )


class SearchResult(BaseModel):
    """Machine-readable search result returned in the artifact data part."""

    count: int
    doctors: list[DoctorRecord]
    query: SearchQuery


class SearchResponse(BaseModel):
    """What the doctor directory returns: a status code and either rows or an error string."""

    status_code: int = Field(..., alias="statusCode")
    result: list[dict[str, Any]] | str

    model_config = ConfigDict(populate_by_name=True)

    @property
    def ok(self) -> bool:
        return self.status_code == 200
