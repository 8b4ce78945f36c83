"""Field and record validation rules mirroring the user API's server-side checks."""

from __future__ import annotations

from collections.abc import Callable
from collections.abc import Mapping
from datetime import date
from datetime import datetime
import re
from typing import Any

from userdesk.core.dates import parse_api_date
from userdesk.core.errors import RecordValidationError

MAX_AGE_YEARS = 120

_LETTERS_AND_SPACES = re.compile(r"[a-zA-Z\s]+")
_MOBILE_NUMBER = re.compile(r"[+]?[0-9\s\-()]{10,15}")
_EMAIL = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")


def _text(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def _validate_name(value: Any, _: date) -> str:
    text = _text(value).strip()
    if len(text) < 2:
        return "Name is required and must be at least 2 characters"
    if len(text) > 50:
        return "Name must be 50 characters or less"
    if not _LETTERS_AND_SPACES.fullmatch(text):
        return "Name should only contain letters and spaces"
    return ""


def _validate_about_you(value: Any, _: date) -> str:
    text = _text(value).strip()
    if len(text) < 10:
        return "About You is required and must be at least 10 characters"
    if len(text) > 250:
        return "About You must be 250 characters or less"
    return ""


def _validate_birthday(value: Any, today: date) -> str:
    if value is None or value == "":
        return "Birthday is required"
    if isinstance(value, datetime):
        birthday: date | None = value.date()
    else:
        birthday = parse_api_date(value)
    if birthday is None:
        return "Birthday must be a valid date"
    if birthday > today:
        return "Birthday cannot be in the future"
    # Year difference only; month and day are ignored.
    if today.year - birthday.year > MAX_AGE_YEARS:
        return "Invalid age"
    return ""


def _validate_mobile_number(value: Any, _: date) -> str:
    text = _text(value)
    if len(text.strip()) < 10:
        return "Mobile number is required and must be at least 10 characters"
    if not _MOBILE_NUMBER.fullmatch(text):
        return "Invalid mobile number format"
    return ""


def _validate_email(value: Any, _: date) -> str:
    text = _text(value)
    if not text.strip():
        return "Email is required"
    if not _EMAIL.fullmatch(text):
        return "Invalid email format"
    return ""


def _validate_country(value: Any, _: date) -> str:
    text = _text(value).strip()
    if len(text) < 2:
        return "Country is required and must be at least 2 characters"
    if len(text) > 20:
        return "Country must be 20 characters or less"
    if not _LETTERS_AND_SPACES.fullmatch(text):
        return "Country should only contain letters and spaces"
    return ""


_FIELD_RULES: dict[str, Callable[[Any, date], str]] = {
    "name": _validate_name,
    "aboutYou": _validate_about_you,
    "birthday": _validate_birthday,
    "mobileNumber": _validate_mobile_number,
    "email": _validate_email,
    "country": _validate_country,
}


def validate_field(name: str, value: Any, *, today: date | None = None) -> str:
    """Return the first rule violation for a form field, or an empty string."""
    rule = _FIELD_RULES.get(name)
    if rule is None:
        return ""
    return rule(value, today or date.today())


def _has_min_length(value: Any, minimum: int) -> bool:
    return len(_text(value).strip()) >= minimum


# Pre-flight rules are lighter than the form rules: presence and minimum length only.
_RECORD_RULES: tuple[tuple[str, Callable[[Any], bool], str], ...] = (
    ("name", lambda value: _has_min_length(value, 2), "Name is required and must be at least 2 characters"),
    ("email", lambda value: bool(_EMAIL.fullmatch(_text(value))), "Valid email is required"),
    ("aboutYou", lambda value: _has_min_length(value, 10), "About You is required and must be at least 10 characters"),
    ("birthday", lambda value: value is not None and value != "", "Birthday is required"),
    ("mobileNumber", lambda value: _has_min_length(value, 10), "Mobile number is required"),
    ("country", lambda value: _has_min_length(value, 2), "Country is required"),
)


def validate_record(data: Mapping[str, Any], is_update: bool = False) -> list[str]:
    """Collect pre-flight violations for a create or partial-update payload.

    On update, fields missing from `data` are skipped; a field that is present
    with an empty value is still checked.
    """
    errors: list[str] = []
    for field, check, message in _RECORD_RULES:
        if is_update and field not in data:
            continue
        if not check(data.get(field)):
            errors.append(message)
    return errors


def ensure_valid_record(data: Mapping[str, Any], is_update: bool = False) -> None:
    """Raise `RecordValidationError` when `validate_record` reports violations."""
    errors = validate_record(data, is_update)
    if errors:
        raise RecordValidationError(errors)
