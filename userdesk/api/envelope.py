"""Response envelope unwrapping for the user API."""

from __future__ import annotations

from typing import Any
from typing import Protocol

from userdesk.core.errors import ApiLogicalError
from userdesk.core.errors import RequestFailedError
from userdesk.schemas.user import ResponseEnvelope

DEFAULT_LOGICAL_ERROR_MESSAGE = "An error occurred"
MALFORMED_ENVELOPE_MESSAGE = "Malformed response envelope"


class JSONResponse(Protocol):
    status_code: int

    def json(self) -> Any: ...


def unwrap_response(response: JSONResponse) -> Any:
    """Return the envelope payload, or raise when the status or envelope signals failure."""
    envelope = _read_envelope(response)

    if not 200 <= response.status_code < 300:
        payload = envelope.payload if envelope is not None else None
        raise RequestFailedError(
            _message(payload) or f"HTTP error! status: {response.status_code}",
            status_code=response.status_code,
            code=envelope.code if envelope is not None else None,
        )

    if envelope is None:
        raise ApiLogicalError(MALFORMED_ENVELOPE_MESSAGE, status_code=response.status_code)

    if envelope.error:
        raise ApiLogicalError(
            _message(envelope.payload) or DEFAULT_LOGICAL_ERROR_MESSAGE,
            status_code=response.status_code,
            code=envelope.code,
        )

    return envelope.payload


def _read_envelope(response: JSONResponse) -> ResponseEnvelope | None:
    try:
        body = response.json()
    except ValueError:
        return None
    if not isinstance(body, dict):
        return None
    # The error flag is read by truthiness; payload and code are kept whatever its type.
    code = body.get("code")
    return ResponseEnvelope(
        error=bool(body.get("error")),
        payload=body.get("payload"),
        code=None if code is None else str(code),
    )


def _message(payload: Any) -> str:
    if not payload:
        return ""
    return payload if isinstance(payload, str) else str(payload)
