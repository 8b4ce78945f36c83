"""Map user API submission failures onto form fields."""

from __future__ import annotations

from typing import NamedTuple

GENERAL_ERROR_KEY = "general"

DUPLICATE_EMAIL_MESSAGE = "A user with this email already exists"
DUPLICATE_MOBILE_NUMBER_MESSAGE = "A user with this mobile number already exists"

_CODE_MAP: dict[str, tuple[str, str]] = {
    "duplicate_email": ("email", DUPLICATE_EMAIL_MESSAGE),
    "duplicate_mobile_number": ("mobileNumber", DUPLICATE_MOBILE_NUMBER_MESSAGE),
}

# Fallback for servers that only report uniqueness violations as free text.
_MESSAGE_FRAGMENTS: tuple[tuple[str, str, str], ...] = (
    ("email already exists", "email", DUPLICATE_EMAIL_MESSAGE),
    ("mobile number", "mobileNumber", DUPLICATE_MOBILE_NUMBER_MESSAGE),
)


class FieldError(NamedTuple):
    field: str
    message: str


def map_submission_error(exc: BaseException, *, fallback_message: str) -> FieldError:
    """Return the form field and message a failed create/update should be shown under."""
    code = getattr(exc, "code", None)
    if code is not None:
        mapped = _CODE_MAP.get(str(code).lower())
        if mapped is not None:
            return FieldError(*mapped)

    message = str(getattr(exc, "message", None) or exc)
    for fragment, field, field_message in _MESSAGE_FRAGMENTS:
        if fragment in message:
            return FieldError(field, field_message)

    return FieldError(GENERAL_ERROR_KEY, message or fallback_message)
