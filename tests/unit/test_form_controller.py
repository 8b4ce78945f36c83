"""Unit tests for the create/edit user form state machine."""

from __future__ import annotations

from collections.abc import Callable
from datetime import date
from typing import Any

import pytest

from userdesk.core.errors import InvalidArgumentError
from userdesk.core.errors import RequestFailedError
from userdesk.forms.controller import FormStatus
from userdesk.forms.controller import UserFormController
from userdesk.schemas.user import UserRecord

TODAY = date(2026, 10, 16)

VALID_VALUES: dict[str, Any] = {
    "name": "Test User",
    "aboutYou": "This is a test user created for API testing purposes.",
    "birthday": date(1995, 6, 15),
    "mobileNumber": "+1234567890",
    "email": "testuser@example.com",
    "country": "USA",
}

EXISTING_USER: dict[str, Any] = {
    "id": 12,
    "name": "Alice Smith",
    "aboutYou": "Backend engineer who likes tea.",
    "birthday": "1990-01-02T00:00:00.000Z",
    "mobileNumber": "+4415550000",
    "email": "alice@example.com",
    "country": "England",
    "createdAt": "2024-01-01T00:00:00.000Z",
}


class _ApiStub:
    def __init__(self, error: Exception | None = None, result: Any = "User saved successfully") -> None:
        self._error = error
        self._result = result
        self.calls: list[tuple[Any, ...]] = []

    def create_user(self, data: dict[str, Any]) -> Any:
        self.calls.append(("create", data))
        return self._respond()

    def update_user(self, user_id: Any, data: dict[str, Any]) -> Any:
        self.calls.append(("update", user_id, data))
        return self._respond()

    def _respond(self) -> Any:
        if self._error is not None:
            raise self._error
        return self._result


class _Scheduler:
    def __init__(self) -> None:
        self.scheduled: list[tuple[float, Callable[[], None]]] = []

    def __call__(self, delay: float, callback: Callable[[], None]) -> None:
        self.scheduled.append((delay, callback))


def _controller(api: _ApiStub, **kwargs: Any) -> UserFormController:
    kwargs.setdefault("schedule", _Scheduler())
    return UserFormController(api_client=api, today_fn=lambda: TODAY, **kwargs)  # type: ignore[arg-type]


def _fill(form: UserFormController, values: dict[str, Any]) -> None:
    for name, value in values.items():
        form.change(name, value)


def test_change_does_not_validate_untouched_fields() -> None:
    form = _controller(_ApiStub())

    form.change("name", "T")

    assert form.state.values["name"] == "T"
    assert "name" not in form.state.errors


def test_blur_marks_touched_and_enables_live_validation() -> None:
    form = _controller(_ApiStub())
    form.change("name", "T")

    form.blur("name")
    assert "name" in form.state.touched
    assert form.state.errors["name"] == "Name is required and must be at least 2 characters"

    form.change("name", "Tom")
    assert form.state.errors["name"] == ""
    assert not form.has_field_errors


def test_unknown_fields_are_rejected() -> None:
    form = _controller(_ApiStub())

    with pytest.raises(InvalidArgumentError):
        form.change("nickname", "x")


def test_invalid_submit_makes_no_request_and_populates_errors() -> None:
    api = _ApiStub()
    form = _controller(api)
    _fill(form, {**VALID_VALUES, "name": "T"})

    status = form.submit()

    assert status is FormStatus.IDLE
    assert api.calls == []
    assert form.state.errors == {"name": "Name is required and must be at least 2 characters"}
    assert form.state.touched == set(VALID_VALUES)
    assert form.state.loading is False


def test_valid_create_submits_formatted_payload_and_schedules_redirect() -> None:
    api = _ApiStub(result="User created successfully")
    scheduler = _Scheduler()
    visited: list[str] = []
    form = _controller(api, schedule=scheduler, navigate=visited.append)
    _fill(form, VALID_VALUES)

    status = form.submit()

    assert status is FormStatus.SUCCESS
    assert form.state.success is True
    assert form.state.loading is False
    assert api.calls == [("create", {**VALID_VALUES, "birthday": "1995-06-15"})]

    [(delay, callback)] = scheduler.scheduled
    assert delay == 1.5
    callback()
    assert visited == ["/users"]


def test_success_callback_replaces_redirect() -> None:
    received: list[Any] = []
    scheduler = _Scheduler()
    form = _controller(_ApiStub(result="done"), on_success=received.append, schedule=scheduler)
    _fill(form, VALID_VALUES)

    form.submit()

    assert received == ["done"]
    assert scheduler.scheduled == []


def test_edit_mode_seeds_values_and_updates_by_id() -> None:
    api = _ApiStub()
    form = _controller(api, user=EXISTING_USER, mode="edit", on_success=lambda _: None)

    assert form.is_edit_mode
    assert form.state.values["birthday"] == date(1990, 1, 2)
    assert form.state.values["name"] == "Alice Smith"
    assert not form.has_changes()

    form.change("country", "Wales")
    assert form.has_changes()
    form.submit()

    [(action, user_id, payload)] = api.calls
    assert (action, user_id) == ("update", 12)
    assert payload["country"] == "Wales"
    assert payload["birthday"] == "1990-01-02"


def test_edit_mode_accepts_user_record_models() -> None:
    form = _controller(_ApiStub(), user=UserRecord.model_validate(EXISTING_USER), mode="edit")

    assert form.user_id == 12
    assert form.state.values["email"] == "alice@example.com"
    assert not form.has_changes()


def test_edit_mode_without_user_falls_back_to_create() -> None:
    api = _ApiStub()
    form = _controller(api, mode="edit", on_success=lambda _: None)
    _fill(form, VALID_VALUES)

    form.submit()

    assert not form.is_edit_mode
    assert api.calls[0][0] == "create"


def test_duplicate_email_failure_is_attached_to_email_field() -> None:
    api = _ApiStub(error=RequestFailedError("User with this email already exists", status_code=409))
    form = _controller(api)
    _fill(form, VALID_VALUES)

    status = form.submit()

    assert status is FormStatus.FAILED
    assert form.state.loading is False
    assert form.state.success is False
    assert form.state.errors["email"] == "A user with this email already exists"
    assert "general" not in form.state.errors


def test_generic_failure_goes_to_general_and_form_stays_editable() -> None:
    api = _ApiStub(error=RequestFailedError("HTTP error! status: 500", status_code=500))
    form = _controller(api)
    _fill(form, VALID_VALUES)

    form.submit()
    assert form.state.errors["general"] == "HTTP error! status: 500"

    form.dismiss_general_error()
    assert "general" not in form.state.errors

    form.change("country", "Canada")
    assert form.state.status is FormStatus.IDLE


def test_general_error_does_not_block_resubmission() -> None:
    api = _ApiStub(error=RequestFailedError("Service unavailable", status_code=503))
    form = _controller(api)
    _fill(form, VALID_VALUES)
    form.submit()

    api._error = None
    status = form.submit()

    assert status is FormStatus.SUCCESS
    assert len(api.calls) == 2


def test_submit_is_ignored_while_loading() -> None:
    api = _ApiStub()
    form = _controller(api)
    _fill(form, VALID_VALUES)
    form.state.loading = True

    form.submit()

    assert api.calls == []


def test_editing_after_success_clears_success_flag() -> None:
    form = _controller(_ApiStub(), on_success=lambda _: None)
    _fill(form, VALID_VALUES)
    form.submit()

    form.change("name", "Another Name")

    assert form.state.success is False
    assert form.state.status is FormStatus.IDLE


def test_cancel_uses_callback_or_navigates_to_list() -> None:
    cancelled: list[bool] = []
    _controller(_ApiStub(), on_cancel=lambda: cancelled.append(True)).cancel()
    assert cancelled == [True]

    visited: list[str] = []
    _controller(_ApiStub(), navigate=visited.append).cancel()
    assert visited == ["/users"]


def test_has_changes_in_create_mode_ignores_blank_input() -> None:
    form = _controller(_ApiStub())
    assert not form.has_changes()

    form.change("name", "   ")
    assert not form.has_changes()

    form.change("birthday", date(2000, 1, 1))
    assert form.has_changes()


class _Handle:
    def __init__(self) -> None:
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


def test_dispose_cancels_pending_redirect() -> None:
    handle = _Handle()
    scheduled: list[float] = []

    def schedule(delay: float, _: Callable[[], None]) -> _Handle:
        scheduled.append(delay)
        return handle

    form = _controller(_ApiStub(), schedule=schedule, navigate=lambda _: None)
    _fill(form, VALID_VALUES)
    form.submit()

    form.dispose()

    assert scheduled == [1.5]
    assert handle.cancelled is True


def test_dispose_stops_default_timer_redirect() -> None:
    visited: list[str] = []
    form = UserFormController(
        api_client=_ApiStub(),  # type: ignore[arg-type]
        navigate=visited.append,
        redirect_delay_seconds=60.0,
        today_fn=lambda: TODAY,
    )
    _fill(form, VALID_VALUES)
    form.submit()
    timer = form._pending_redirect

    form.dispose()
    timer.join(timeout=1.0)

    assert not timer.is_alive()
    assert visited == []


def test_dispose_without_pending_redirect_is_a_no_op() -> None:
    _controller(_ApiStub()).dispose()


def test_unexpected_errors_mark_submission_failed_and_propagate() -> None:
    form = _controller(_ApiStub(error=TypeError("Object of type set is not JSON serializable")))
    _fill(form, VALID_VALUES)

    with pytest.raises(TypeError):
        form.submit()

    assert form.state.status is FormStatus.FAILED
    assert form.state.loading is False
    assert form.state.success is False
