"""Create/edit user form state machine."""

from __future__ import annotations

from collections.abc import Callable
from collections.abc import Mapping
from dataclasses import dataclass
from dataclasses import field
from datetime import date
from enum import Enum
import logging
import threading
from typing import Any

from pydantic import BaseModel

from userdesk.api.client import UserApiClient
from userdesk.core.config import DEFAULT_REDIRECT_DELAY_SECONDS
from userdesk.core.dates import format_date_for_api
from userdesk.core.dates import parse_api_date
from userdesk.core.errors import FormValidationError
from userdesk.core.errors import InvalidArgumentError
from userdesk.core.errors import UserDeskError
from userdesk.forms.error_mapping import GENERAL_ERROR_KEY
from userdesk.forms.error_mapping import map_submission_error
from userdesk.forms.validators import validate_field
from userdesk.schemas.user import USER_FIELDS

logger = logging.getLogger(__name__)

USERS_LIST_PATH = "/users"

_TEXT_FIELDS = ("name", "aboutYou", "mobileNumber", "email", "country")


class FormMode(str, Enum):
    CREATE = "create"
    EDIT = "edit"


class FormStatus(str, Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    SUBMITTING = "submitting"
    SUCCESS = "success"
    FAILED = "failed"


def _empty_values() -> dict[str, Any]:
    return {
        "name": "",
        "aboutYou": "",
        "birthday": None,
        "mobileNumber": "",
        "email": "",
        "country": "",
    }


@dataclass
class FormState:
    """Working copy of the form fields plus validation and submission flags."""

    values: dict[str, Any] = field(default_factory=_empty_values)
    errors: dict[str, str] = field(default_factory=dict)
    touched: set[str] = field(default_factory=set)
    loading: bool = False
    success: bool = False
    status: FormStatus = FormStatus.IDLE


def _schedule_with_timer(delay_seconds: float, callback: Callable[[], None]) -> threading.Timer:
    timer = threading.Timer(delay_seconds, callback)
    timer.daemon = True
    timer.start()
    return timer


def _record_fields(user: BaseModel | Mapping[str, Any] | None) -> dict[str, Any]:
    if user is None:
        return {}
    if isinstance(user, BaseModel):
        return user.model_dump(by_alias=True)
    return dict(user)


class UserFormController:
    """Drive a create or edit user form: field state, live validation and submission.

    Fields are keyed by their API names (`name`, `aboutYou`, `birthday`,
    `mobileNumber`, `email`, `country`). Server failures are attached to a
    field when recognisable, otherwise to the `general` key.

    `schedule` runs the post-success redirect; the default uses a daemon
    `threading.Timer`. Event-loop hosts can pass `loop.call_later` instead.
    Whatever it returns is cancelled by `dispose()`.
    """

    def __init__(
        self,
        *,
        api_client: UserApiClient,
        user: BaseModel | Mapping[str, Any] | None = None,
        mode: FormMode | str = FormMode.CREATE,
        on_success: Callable[[Any], None] | None = None,
        on_cancel: Callable[[], None] | None = None,
        navigate: Callable[[str], None] | None = None,
        schedule: Callable[[float, Callable[[], None]], Any] = _schedule_with_timer,
        redirect_delay_seconds: float = DEFAULT_REDIRECT_DELAY_SECONDS,
        today_fn: Callable[[], date] = date.today,
    ) -> None:
        self._api_client = api_client
        self._on_success = on_success
        self._on_cancel = on_cancel
        self._navigate = navigate
        self._schedule = schedule
        self._redirect_delay_seconds = redirect_delay_seconds
        self._today_fn = today_fn
        self._pending_redirect: Any = None

        self._original = _record_fields(user)
        self._is_edit_mode = FormMode(mode) is FormMode.EDIT and bool(self._original)
        self.state = FormState()
        if self._is_edit_mode:
            self.state.values = self._seed_values()

    @property
    def is_edit_mode(self) -> bool:
        return self._is_edit_mode

    @property
    def user_id(self) -> Any:
        return self._original.get("id") if self._is_edit_mode else None

    @property
    def has_field_errors(self) -> bool:
        return any(message for key, message in self.state.errors.items() if key != GENERAL_ERROR_KEY)

    def change(self, name: str, value: Any) -> None:
        """Record a new field value, revalidating it once the field has been touched."""
        self._require_field(name)
        self.state.values[name] = value

        if self.state.success or self.state.status is FormStatus.FAILED:
            self.state.success = False
            self.state.status = FormStatus.IDLE

        if name in self.state.touched:
            self.state.errors[name] = self._validate(name, value)

    def blur(self, name: str) -> None:
        """Mark a field as touched and validate its current value."""
        self._require_field(name)
        self.state.touched.add(name)
        self.state.errors[name] = self._validate(name, self.state.values[name])

    def validate_form(self) -> dict[str, str]:
        """Return the current violations for every field, omitting valid ones."""
        errors: dict[str, str] = {}
        for name in USER_FIELDS:
            message = self._validate(name, self.state.values[name])
            if message:
                errors[name] = message
        return errors

    def build_payload(self) -> dict[str, Any]:
        """Return the request body for the current values with the birthday in API format."""
        return {
            **self.state.values,
            "birthday": format_date_for_api(self.state.values["birthday"]),
        }

    def submit(self) -> FormStatus:
        """Validate and send the form, returning the status it ends in."""
        if self.state.loading:
            logger.warning("Ignoring user form submit while a request is in flight")
            return self.state.status

        self.state.status = FormStatus.VALIDATING
        try:
            self._validate_all()
        except FormValidationError as exc:
            logger.info("User form blocked by invalid fields: %s", sorted(exc.errors))
            self.state.status = FormStatus.IDLE
            return self.state.status

        action = "update" if self._is_edit_mode else "create"
        self.state.loading = True
        self.state.status = FormStatus.SUBMITTING
        try:
            payload = self.build_payload()
            if self._is_edit_mode:
                result = self._api_client.update_user(self.user_id, payload)
            else:
                result = self._api_client.create_user(payload)
        except UserDeskError as exc:
            logger.warning("Error trying to %s user: %s", action, exc)
            mapped = map_submission_error(exc, fallback_message=f"Failed to {action} user")
            self.state.errors[mapped.field] = mapped.message
            self.state.status = FormStatus.FAILED
            return self.state.status
        except Exception:
            logger.exception("Unexpected error trying to %s user", action)
            self.state.status = FormStatus.FAILED
            raise
        finally:
            self.state.loading = False

        logger.info("User %sd successfully: %s", action, result)
        self.state.success = True
        self.state.status = FormStatus.SUCCESS

        if self._on_success is not None:
            self._on_success(result)
        else:
            self._pending_redirect = self._schedule(self._redirect_delay_seconds, self._go_to_list)
        return self.state.status

    def cancel(self) -> None:
        """Leave the form through the cancel callback, or back to the user list."""
        if self._on_cancel is not None:
            self._on_cancel()
        else:
            self._go_to_list()

    def has_changes(self) -> bool:
        """Report whether the form holds unsaved input."""
        values = self.state.values
        if not self._is_edit_mode:
            return any(
                value.strip() if isinstance(value, str) else value is not None
                for value in values.values()
            )

        for name in _TEXT_FIELDS:
            if values[name] != (self._original.get(name) or ""):
                return True
        original_birthday = parse_api_date(self._original.get("birthday"))
        return format_date_for_api(values["birthday"]) != format_date_for_api(original_birthday)

    def dismiss_general_error(self) -> None:
        self.state.errors.pop(GENERAL_ERROR_KEY, None)

    def dispose(self) -> None:
        """Cancel a pending redirect; call when the form is torn down."""
        pending, self._pending_redirect = self._pending_redirect, None
        if pending is not None and hasattr(pending, "cancel"):
            pending.cancel()

    def _seed_values(self) -> dict[str, Any]:
        values = {name: self._original.get(name) or "" for name in _TEXT_FIELDS}
        values["birthday"] = parse_api_date(self._original.get("birthday"))
        return {name: values[name] for name in USER_FIELDS}

    def _validate_all(self) -> None:
        form_errors = self.validate_form()
        self.state.errors = dict(form_errors)
        self.state.touched = set(USER_FIELDS)
        if form_errors:
            raise FormValidationError(form_errors)

    def _validate(self, name: str, value: Any) -> str:
        return validate_field(name, value, today=self._today_fn())

    def _go_to_list(self) -> None:
        if self._navigate is None:
            logger.debug("No navigator configured; staying on the user form")
            return
        self._navigate(USERS_LIST_PATH)

    @staticmethod
    def _require_field(name: str) -> None:
        if name not in USER_FIELDS:
            raise InvalidArgumentError(f"Unknown form field: {name}")
