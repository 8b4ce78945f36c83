"""Pydantic schemas for user API payloads."""

from __future__ import annotations

from datetime import date
from datetime import datetime
from typing import Any
from typing import Literal

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field
from pydantic import ValidationInfo
from pydantic import field_validator
from pydantic.alias_generators import to_camel

from userdesk.core.dates import format_date_for_api
from userdesk.core.dates import parse_api_date

USER_FIELDS = ("name", "aboutYou", "birthday", "mobileNumber", "email", "country")


class _WireModel(BaseModel):
    """Snake_case attributes exchanged as camelCase JSON keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class UserRecord(_WireModel):
    """User record as returned by the user API."""

    model_config = ConfigDict(extra="allow")

    id: int
    name: str
    about_you: str
    birthday: date
    mobile_number: str
    email: str
    country: str
    created_at: datetime | None = None

    @field_validator("birthday", mode="before")
    @classmethod
    def _parse_birthday(cls, value: Any) -> Any:
        parsed = parse_api_date(value)
        return value if parsed is None else parsed


class UserCreate(_WireModel):
    """Payload to create a user."""

    name: str
    about_you: str
    birthday: date
    mobile_number: str
    email: str
    country: str


class UserUpdate(_WireModel):
    """Payload to update mutable user fields; only fields that were set are sent."""

    name: str | None = None
    about_you: str | None = None
    birthday: date | None = None
    mobile_number: str | None = None
    email: str | None = None
    country: str | None = None


class UserFilters(_WireModel):
    """Server-interpreted list filters; empty values are not forwarded."""

    name: str | None = None
    email: str | None = None
    country: str | None = None
    from_date: date | str | None = None
    to_date: date | str | None = None
    search: str | None = None

    def to_query_params(self) -> dict[str, Any]:
        """Return filter query parameters keyed by wire name, in request order."""
        return {
            "name": self.name,
            "email": self.email,
            "country": self.country,
            "fromDate": _query_date(self.from_date),
            "toDate": _query_date(self.to_date),
            "search": self.search,
        }


class Pagination(_WireModel):
    """Paging and sort options for list requests."""

    page: int = Field(default=1, ge=1)
    limit: int = Field(default=10, ge=1)
    sort_by: str = "createdAt"
    sort_order: Literal["ASC", "DESC"] = "DESC"

    @field_validator("page", "limit", "sort_by", "sort_order", mode="before")
    @classmethod
    def _default_when_empty(cls, value: Any, info: ValidationInfo) -> Any:
        if value is None or value == "" or value == 0:
            return cls.model_fields[info.field_name].default
        if info.field_name == "sort_order" and isinstance(value, str):
            return value.upper()
        return value

    def to_query_params(self) -> dict[str, Any]:
        """Return pagination query parameters keyed by wire name."""
        return self.model_dump(by_alias=True)


class ResponseEnvelope(BaseModel):
    """Envelope wrapping every user API response body."""

    model_config = ConfigDict(coerce_numbers_to_str=True)

    error: bool = False
    payload: Any = None
    code: str | None = None


def _query_date(value: date | str | None) -> str | None:
    if isinstance(value, str):
        # Free-form strings are forwarded as typed; the server rejects bad ranges.
        return value
    return format_date_for_api(value)
