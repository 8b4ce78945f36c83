"""Shared pytest fixtures for userdesk test suites."""

from collections.abc import Generator
from pathlib import Path
import sys
from typing import Any

import pytest
from fastapi import FastAPI
from fastapi import Request
from fastapi.responses import JSONResponse
from fastapi.testclient import TestClient

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

FAKE_API_BASE_URL = "http://testserver"


def _ok(payload: Any, status_code: int = 200) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": False, "payload": payload})


def _fail(message: str, status_code: int) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": True, "payload": message})


def _matches_search(user: dict[str, Any], term: str) -> bool:
    needle = term.lower()
    return any(needle in str(user.get(key, "")).lower() for key in ("name", "email", "country", "aboutYou"))


def build_fake_user_api() -> FastAPI:
    """In-memory stand-in for the user records API speaking the `{error, payload}` envelope."""
    app = FastAPI()
    app.state.users = {}
    app.state.next_id = 1
    app.state.seen_urls = []

    @app.middleware("http")
    async def record_url(request: Request, call_next):
        app.state.seen_urls.append((request.method, str(request.url)))
        return await call_next(request)

    @app.get("/api/users")
    def list_users(request: Request) -> JSONResponse:
        params = request.query_params
        users = list(app.state.users.values())
        if params.get("search"):
            users = [user for user in users if _matches_search(user, params["search"])]
        if params.get("country"):
            users = [user for user in users if user["country"] == params["country"]]

        sort_by = params.get("sortBy", "createdAt")
        users.sort(key=lambda user: str(user.get(sort_by, "")), reverse=params.get("sortOrder", "DESC") == "DESC")

        page = int(params.get("page", 1))
        limit = int(params.get("limit", 10))
        start = (page - 1) * limit
        return _ok(
            {
                "users": users[start : start + limit],
                "pagination": {"page": page, "limit": limit, "total": len(users)},
            }
        )

    @app.get("/api/users/{user_id}")
    def get_user(user_id: int) -> JSONResponse:
        user = app.state.users.get(user_id)
        if user is None:
            return _fail("User not found", 404)
        return _ok(user)

    @app.post("/api/users")
    def create_user(payload: dict[str, Any]) -> JSONResponse:
        for user in app.state.users.values():
            if user["email"] == payload.get("email"):
                return _fail("User with this email already exists", 409)
            if user["mobileNumber"] == payload.get("mobileNumber"):
                return _fail("User with this mobile number already exists", 409)

        user_id = app.state.next_id
        app.state.next_id += 1
        app.state.users[user_id] = {
            "id": user_id,
            **payload,
            "createdAt": f"2024-01-01T00:00:{user_id:02d}.000Z",
        }
        return _ok("User created successfully", 201)

    @app.put("/api/users/{user_id}")
    def update_user(user_id: int, payload: dict[str, Any]) -> JSONResponse:
        user = app.state.users.get(user_id)
        if user is None:
            return _fail("User not found", 404)
        user.update(payload)
        return _ok("User updated successfully")

    @app.delete("/api/users/{user_id}")
    def delete_user(user_id: int) -> JSONResponse:
        if app.state.users.pop(user_id, None) is None:
            return _fail("User not found", 404)
        return _ok("User deleted successfully")

    return app


@pytest.fixture
def fake_user_api() -> Generator[TestClient, None, None]:
    """Provide a test client bound to the in-memory user API."""
    with TestClient(build_fake_user_api()) as test_client:
        yield test_client


@pytest.fixture
def user_api_client(fake_user_api: TestClient):
    """Provide a `UserApiClient` that talks to the in-memory user API."""
    from userdesk.api.client import UserApiClient

    return UserApiClient(base_url=FAKE_API_BASE_URL, session=fake_user_api)  # type: ignore[arg-type]
