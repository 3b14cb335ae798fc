from __future__ import annotations

import pytest

from piosync.config import (
    BackendConfig,
    ConfigurationError,
    MissingConfigurationError,
    ResilienceConfig,
    get_backend_config,
    optional_float_env_var,
    require_env_vars,
)
from piosync.config.backend import BACKEND_TIMEOUT_ENV, BACKEND_TIMEOUT_SECONDS, BACKEND_URL_ENV


def test_require_env_vars_returns_stripped_values(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EXAMPLE_VAR", " value ")

    result = require_env_vars(["EXAMPLE_VAR"])

    assert result == {"EXAMPLE_VAR": "value"}


def test_require_env_vars_lists_every_missing_name(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("MISSING_B", raising=False)
    monkeypatch.setenv("MISSING_A", "   ")

    with pytest.raises(MissingConfigurationError) as exc:
        require_env_vars(["MISSING_B", "MISSING_A"])

    assert "MISSING_A, MISSING_B" in str(exc.value)
    assert isinstance(exc.value, ConfigurationError)


def test_optional_float_env_var(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("SOME_TIMEOUT", raising=False)
    assert optional_float_env_var("SOME_TIMEOUT") is None

    monkeypatch.setenv("SOME_TIMEOUT", "2.5")
    assert optional_float_env_var("SOME_TIMEOUT") == 2.5


@pytest.mark.parametrize("raw", ["soon", "0", "-3"])
def test_optional_float_env_var_rejects_invalid(
    monkeypatch: pytest.MonkeyPatch, raw: str
) -> None:
    monkeypatch.setenv("SOME_TIMEOUT", raw)

    with pytest.raises(ConfigurationError):
        optional_float_env_var("SOME_TIMEOUT")


def test_backend_config_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv(BACKEND_URL_ENV, "http://localhost:8080/api")
    monkeypatch.delenv(BACKEND_TIMEOUT_ENV, raising=False)

    config = get_backend_config()

    assert config.base_url == "http://localhost:8080/api/"
    assert config.resilience.base_url == config.base_url
    assert config.resilience.timeout_seconds == BACKEND_TIMEOUT_SECONDS
    assert config.resilience.ratelimit is not None


def test_backend_config_timeout_and_resilience(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv(BACKEND_URL_ENV, "http://localhost:8080/")
    monkeypatch.setenv(BACKEND_TIMEOUT_ENV, "3")
    assert get_backend_config().resilience.timeout_seconds == 3.0

    custom = ResilienceConfig(name="custom")
    config = get_backend_config(resilience=custom)

    assert config == BackendConfig(base_url="http://localhost:8080/", resilience=custom)


def test_backend_config_requires_url(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv(BACKEND_URL_ENV, raising=False)

    with pytest.raises(MissingConfigurationError):
        get_backend_config()
