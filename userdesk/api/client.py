"""HTTP client for the user records API."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import date
import logging
from typing import Any
from urllib.parse import quote

import requests
from pydantic import BaseModel
from pydantic import ValidationError

from userdesk.api.envelope import unwrap_response
from userdesk.api.query import build_query_string
from userdesk.core.config import UserApiSettings
from userdesk.core.dates import format_date_for_api
from userdesk.core.errors import InvalidArgumentError
from userdesk.core.errors import RequestFailedError
from userdesk.core.errors import UserDeskError
from userdesk.schemas.user import Pagination
from userdesk.schemas.user import UserFilters

logger = logging.getLogger(__name__)

USERS_PATH = "/api/users"


class UserApiClient:
    """Single-attempt CRUD calls against the user API, unwrapping the `{error, payload}` envelope."""

    def __init__(
        self,
        *,
        base_url: str,
        timeout_seconds: float = 10.0,
        session: requests.Session | None = None,
    ) -> None:
        normalized = base_url.rstrip("/")
        if not normalized:
            raise ValueError("base_url is required")
        if timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be positive")

        self._base_url = normalized
        self._timeout_seconds = timeout_seconds
        self._session = session or requests.Session()

    @classmethod
    def from_settings(
        cls,
        settings: UserApiSettings,
        *,
        session: requests.Session | None = None,
    ) -> UserApiClient:
        """Build a client from loaded settings."""
        return cls(
            base_url=settings.api_base_url,
            timeout_seconds=settings.http_timeout_seconds,
            session=session,
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    def list_users(
        self,
        filters: UserFilters | Mapping[str, Any] | None = None,
        pagination: Pagination | Mapping[str, Any] | None = None,
    ) -> Any:
        """Fetch one page of users; the server's payload is returned verbatim."""
        try:
            params = {
                **_as_filters(filters).to_query_params(),
                **_as_pagination(pagination).to_query_params(),
            }
            return self._request("GET", USERS_PATH + build_query_string(params))
        except UserDeskError:
            logger.exception("Error fetching users")
            raise

    def get_user(self, user_id: int | str) -> Any:
        """Fetch a single user by identifier."""
        try:
            _require_user_id(user_id)
            return self._request("GET", _user_path(user_id))
        except UserDeskError:
            logger.exception("Error fetching user %s", user_id)
            raise

    def create_user(self, data: BaseModel | Mapping[str, Any] | None) -> Any:
        """Create a user and return the server's success payload."""
        try:
            if data is None:
                raise InvalidArgumentError("User data is required")
            return self._request("POST", USERS_PATH, body=_request_body(data))
        except UserDeskError:
            logger.exception("Error creating user")
            raise

    def update_user(
        self,
        user_id: int | str,
        data: BaseModel | Mapping[str, Any] | None,
    ) -> Any:
        """Send a partial update for one user."""
        try:
            _require_user_id(user_id)
            if data is None:
                raise InvalidArgumentError("User data is required")
            return self._request("PUT", _user_path(user_id), body=_request_body(data))
        except UserDeskError:
            logger.exception("Error updating user %s", user_id)
            raise

    def delete_user(self, user_id: int | str) -> Any:
        """Delete one user."""
        try:
            _require_user_id(user_id)
            return self._request("DELETE", _user_path(user_id))
        except UserDeskError:
            logger.exception("Error deleting user %s", user_id)
            raise

    def _request(
        self,
        method: str,
        path: str,
        *,
        body: dict[str, Any] | None = None,
    ) -> Any:
        url = f"{self._base_url}{path}"
        logger.debug("%s %s", method, url)
        try:
            response = self._session.request(
                method,
                url,
                headers=self._headers(),
                json=body,
                timeout=self._timeout_seconds,
            )
        except requests.RequestException as exc:
            raise RequestFailedError(f"Request to {url} failed: {exc}") from exc

        return unwrap_response(response)

    @staticmethod
    def _headers() -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Accept": "application/json",
        }


def _require_user_id(user_id: Any) -> None:
    # Falsy ids (including 0) are rejected before any request is made.
    if not user_id:
        raise InvalidArgumentError("User ID is required")


def _user_path(user_id: int | str) -> str:
    return f"{USERS_PATH}/{quote(str(user_id), safe='')}"


def _as_filters(filters: UserFilters | Mapping[str, Any] | None) -> UserFilters:
    if isinstance(filters, UserFilters):
        return filters
    try:
        return UserFilters.model_validate(dict(filters or {}))
    except ValidationError as exc:
        raise InvalidArgumentError(f"Invalid user filters: {exc}") from exc


def _as_pagination(pagination: Pagination | Mapping[str, Any] | None) -> Pagination:
    if isinstance(pagination, Pagination):
        return pagination
    try:
        return Pagination.model_validate(dict(pagination or {}))
    except ValidationError as exc:
        raise InvalidArgumentError(f"Invalid pagination: {exc}") from exc


def _request_body(data: BaseModel | Mapping[str, Any]) -> dict[str, Any]:
    if isinstance(data, BaseModel):
        return data.model_dump(by_alias=True, mode="json", exclude_unset=True)
    if not isinstance(data, Mapping):
        raise InvalidArgumentError("User data must be a mapping or model")
    return {
        key: format_date_for_api(value) if isinstance(value, date) else value
        for key, value in data.items()
    }
