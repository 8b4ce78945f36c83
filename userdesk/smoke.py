"""Smoke checks that exercise every user API operation against a running backend."""

from __future__ import annotations

import argparse
from collections.abc import Callable
from collections.abc import Sequence
from dataclasses import dataclass
from dataclasses import replace
import logging
import time
from typing import Any

from userdesk.api.client import UserApiClient
from userdesk.core.config import get_user_api_settings
from userdesk.core.errors import UserDeskError
from userdesk.forms.validators import validate_record

logger = logging.getLogger(__name__)

SAMPLE_USER: dict[str, str] = {
    "name": "Test User",
    "aboutYou": "This is a test user created for API testing purposes.",
    "birthday": "1995-06-15",
    "mobileNumber": "+1234567890",
    "email": "testuser@example.com",
    "country": "USA",
}

SAMPLE_UPDATE: dict[str, str] = {
    "name": "Updated Test User",
    "aboutYou": "This user has been updated via API test.",
}

INVALID_USER: dict[str, str] = {
    "name": "T",
    "email": "invalid-email",
    "aboutYou": "Short",
    "birthday": "",
    "mobileNumber": "",
    "country": "",
}

ID_CHECKS = frozenset({"get", "update", "delete"})
DEFAULT_CHECKS = ("list", "list-filtered", "list-paginated", "create", "get", "update", "validation")
ALL_CHECKS = DEFAULT_CHECKS + ("delete",)


@dataclass(frozen=True)
class SmokeCheckResult:
    """Outcome of one smoke check."""

    name: str
    ok: bool
    elapsed_ms: int
    data: Any = None
    error: str | None = None


def _unique_email() -> str:
    return f"test{int(time.time() * 1000)}@example.com"


def _build_checks(
    client: UserApiClient,
    user_id: int | None,
    email_factory: Callable[[], str],
) -> dict[str, Callable[[], Any]]:
    return {
        "list": lambda: client.list_users(),
        "list-filtered": lambda: client.list_users(
            {"search": "test"},
            {"page": 1, "limit": 5, "sortBy": "createdAt", "sortOrder": "DESC"},
        ),
        "list-paginated": lambda: client.list_users(
            {},
            {"page": 1, "limit": 3, "sortBy": "name", "sortOrder": "ASC"},
        ),
        "create": lambda: client.create_user({**SAMPLE_USER, "email": email_factory()}),
        "get": lambda: client.get_user(user_id),
        "update": lambda: client.update_user(user_id, SAMPLE_UPDATE),
        "delete": lambda: client.delete_user(user_id),
        "validation": lambda: _validation_report(),
    }


def _validation_report() -> dict[str, Any]:
    errors = validate_record(INVALID_USER)
    return {"invalid_data": INVALID_USER, "validation_errors": errors, "is_valid": not errors}


def run_smoke_checks(
    client: UserApiClient,
    *,
    user_id: int | None = None,
    checks: Sequence[str] | None = None,
    email_factory: Callable[[], str] = _unique_email,
    clock: Callable[[], float] = time.perf_counter,
) -> list[SmokeCheckResult]:
    """Run the selected checks in order; a failing check does not stop the run.

    Checks that need an existing user (`get`, `update`, `delete`) fail
    without a request when `user_id` is not given.
    """
    selected = list(checks) if checks is not None else list(DEFAULT_CHECKS)
    unknown = [name for name in selected if name not in ALL_CHECKS]
    if unknown:
        raise ValueError(f"Unknown smoke checks: {', '.join(unknown)}")

    registry = _build_checks(client, user_id, email_factory)
    results: list[SmokeCheckResult] = []

    for name in selected:
        if name in ID_CHECKS and not user_id:
            results.append(SmokeCheckResult(name=name, ok=False, elapsed_ms=0, error="A user ID is required"))
            continue

        started = clock()
        try:
            data = registry[name]()
        except UserDeskError as exc:
            elapsed_ms = int((clock() - started) * 1000)
            logger.warning("Smoke check %s failed: %s", name, exc)
            results.append(SmokeCheckResult(name=name, ok=False, elapsed_ms=elapsed_ms, error=str(exc)))
            continue

        elapsed_ms = int((clock() - started) * 1000)
        logger.info("Smoke check %s completed in %sms", name, elapsed_ms)
        results.append(SmokeCheckResult(name=name, ok=True, elapsed_ms=elapsed_ms, data=data))

    return results


def _cli(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Run smoke checks against the user API.")
    parser.add_argument(
        "--base-url",
        default=None,
        help="User API base URL (defaults to USERDESK_API_URL)",
    )
    parser.add_argument(
        "--user-id",
        type=int,
        default=None,
        help="Existing user ID for get/update/delete checks",
    )
    parser.add_argument(
        "--check",
        dest="checks",
        action="append",
        choices=ALL_CHECKS,
        help="Check to run; repeat to select several (default: all but delete)",
    )
    parser.add_argument(
        "--yes",
        action="store_true",
        help="Confirm destructive checks such as delete",
    )
    args = parser.parse_args(argv)

    if args.checks and "delete" in args.checks and not args.yes:
        parser.error("the delete check cannot be undone; pass --yes to confirm")

    settings = get_user_api_settings()
    if args.base_url:
        settings = replace(settings, api_base_url=args.base_url)
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    logger.info("Running smoke checks with settings=%s", settings.safe_for_logging())

    results = run_smoke_checks(
        UserApiClient.from_settings(settings),
        user_id=args.user_id,
        checks=args.checks,
    )

    for result in results:
        outcome = "pass" if result.ok else f"fail: {result.error}"
        print(f"{result.name}: {outcome} ({result.elapsed_ms}ms)")

    return 0 if all(result.ok for result in results) else 1


def main() -> None:
    """CLI entrypoint."""
    raise SystemExit(_cli())


if __name__ == "__main__":
    main()
