"""Configuration of the PIO backend service."""

from __future__ import annotations

from dataclasses import dataclass

from .env import optional_float_env_var, require_env_vars
from .http_resilience import RateLimit, ResilienceConfig

BACKEND_URL_ENV = "PIO_BACKEND_URL"
BACKEND_TIMEOUT_ENV = "PIO_BACKEND_TIMEOUT"
BACKEND_TIMEOUT_SECONDS = 15.0


@dataclass(frozen=True)
class BackendConfig:
    """Holds the backend base URL and how to talk to it."""

    base_url: str
    resilience: ResilienceConfig


def _with_trailing_slash(url: str) -> str:
    # httpx joins relative endpoints onto the base URL's last path segment
    return url if url.endswith("/") else f"{url}/"


def get_backend_config(*, resilience: ResilienceConfig | None = None) -> BackendConfig:
    values = require_env_vars((BACKEND_URL_ENV,))
    base_url = _with_trailing_slash(values[BACKEND_URL_ENV])
    timeout = optional_float_env_var(BACKEND_TIMEOUT_ENV) or BACKEND_TIMEOUT_SECONDS
    return BackendConfig(
        base_url=base_url,
        resilience=resilience
        or ResilienceConfig(
            name="pio-backend",
            base_url=base_url,
            timeout_seconds=timeout,
            ratelimit=RateLimit(max_calls=20, per_seconds=1.0),
        ),
    )
