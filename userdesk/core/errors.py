"""Client-side error taxonomy for user API access and form handling."""

from __future__ import annotations

from collections.abc import Mapping
from collections.abc import Sequence


class UserDeskError(Exception):
    """Base error raised by userdesk operations."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidArgumentError(UserDeskError, ValueError):
    """Raised when a required call parameter is missing before any network call."""


class RequestFailedError(UserDeskError):
    """Raised when the user API answers with a non-success HTTP status or cannot be reached."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        code: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.code = code


class ApiLogicalError(UserDeskError):
    """Raised when a success status carries an envelope flagged with `error: true`."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        code: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.code = code


class FormValidationError(UserDeskError):
    """Raised inside the form controller when one or more fields break a rule."""

    def __init__(self, errors: Mapping[str, str]) -> None:
        self.errors = {field: message for field, message in errors.items() if message}
        super().__init__(f"{len(self.errors)} field(s) failed validation")


class RecordValidationError(UserDeskError):
    """Raised by the pre-flight record check with the ordered list of violations."""

    def __init__(self, errors: Sequence[str]) -> None:
        self.errors = list(errors)
        super().__init__("; ".join(self.errors) or "Record failed validation")
