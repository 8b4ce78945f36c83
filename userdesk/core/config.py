"""Application configuration helpers."""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
import os

DEFAULT_API_BASE_URL = "http://localhost:3000"
DEFAULT_HTTP_TIMEOUT_SECONDS = 10.0
DEFAULT_REDIRECT_DELAY_SECONDS = 1.5


def _get_float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    return float(raw)


def _get_base_url_env() -> str:
    for name in ("USERDESK_API_URL", "NEXT_PUBLIC_API_URL"):
        raw = os.getenv(name)
        if raw:
            return raw
    return DEFAULT_API_BASE_URL


@dataclass(frozen=True)
class UserApiSettings:
    """Runtime settings for user API calls and form navigation."""

    api_base_url: str
    http_timeout_seconds: float
    redirect_delay_seconds: float

    def safe_for_logging(self) -> dict[str, str | float]:
        """Return settings safe for logs."""
        return {
            "api_base_url": self.api_base_url,
            "http_timeout_seconds": self.http_timeout_seconds,
            "redirect_delay_seconds": self.redirect_delay_seconds,
        }


@lru_cache(maxsize=1)
def get_user_api_settings() -> UserApiSettings:
    """Load user API settings from the environment."""
    return UserApiSettings(
        api_base_url=_get_base_url_env(),
        http_timeout_seconds=_get_float_env("USERDESK_HTTP_TIMEOUT_SECONDS", DEFAULT_HTTP_TIMEOUT_SECONDS),
        redirect_delay_seconds=_get_float_env("USERDESK_REDIRECT_DELAY_SECONDS", DEFAULT_REDIRECT_DELAY_SECONDS),
    )
