"""Tests for settings parsing and validation."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from ratewindow.core.config import AppSettings, LogSettings


def test_rate_limit_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "APP_RATE_LIMIT_ENABLED",
        "APP_RATE_LIMIT_MAX_REQUESTS",
        "APP_RATE_LIMIT_WINDOW_MS",
    ):
        monkeypatch.delenv(name, raising=False)

    cfg = AppSettings()

    assert cfg.rate_limit_enabled is True
    assert cfg.rate_limit_max_requests == 100
    assert cfg.rate_limit_window_ms == 15 * 60 * 1000
    assert cfg.trust_forwarded_for is False


def test_rate_limit_values_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("APP_RATE_LIMIT_MAX_REQUESTS", "5")
    monkeypatch.setenv("APP_RATE_LIMIT_WINDOW_MS", "2500")
    monkeypatch.setenv("APP_TRUST_FORWARDED_FOR", "true")

    cfg = AppSettings()

    assert cfg.rate_limit_max_requests == 5
    assert cfg.rate_limit_window_ms == 2500
    assert cfg.trust_forwarded_for is True


@pytest.mark.parametrize(
    ("name", "value"),
    [
        ("APP_RATE_LIMIT_MAX_REQUESTS", "0"),
        ("APP_RATE_LIMIT_WINDOW_MS", "0"),
        ("APP_RATE_LIMIT_WINDOW_MS", "soon"),
        ("APP_RATE_LIMIT_SWEEP_INTERVAL_MS", "-1"),
    ],
)
def test_invalid_rate_limit_values_fail_at_startup(
    monkeypatch: pytest.MonkeyPatch, name: str, value: str
) -> None:
    monkeypatch.setenv(name, value)

    with pytest.raises(ValidationError):
        AppSettings()


def test_log_settings_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LOG_FORMAT", "plain")
    monkeypatch.setenv("LOG_REQUEST_ID_HEADER", "X-Correlation-ID")
    monkeypatch.setenv("LOG_SLOW_REQUEST_MS", "250")

    cfg = LogSettings()

    assert cfg.format == "plain"
    assert cfg.request_id_header == "X-Correlation-ID"
    assert cfg.slow_request_ms == 250.0
