"""Tests for configuration data models."""

from __future__ import annotations

import dataclasses

import pytest

from pipewatch.kernel.config.models import (
    DEFAULT_API_BASE_URL,
    DEFAULT_REFRESH_INTERVAL_MS,
    DashboardConfig,
    LoggingConfig,
    PipewatchConfig,
)
from pipewatch.kernel.exceptions import ValidationError


class TestDashboardConfig:
    def test_defaults(self) -> None:
        config = DashboardConfig()
        assert config.api_base_url == DEFAULT_API_BASE_URL
        assert config.refresh_interval_ms == DEFAULT_REFRESH_INTERVAL_MS
        assert config.refresh_interval_seconds == 5.0
        assert config.auth_token is None
        assert config.extra_api_headers == {}

    def test_trailing_slash_added(self) -> None:
        config = DashboardConfig(api_base_url="https://ci.example.com/prunner")
        assert config.api_base_url == "https://ci.example.com/prunner/"

    def test_empty_url_rejected(self) -> None:
        with pytest.raises(ValidationError, match="api_base_url"):
            DashboardConfig(api_base_url="")

    @pytest.mark.parametrize("interval", [0, -100, True, 2.5])
    def test_invalid_interval_rejected(self, interval) -> None:
        with pytest.raises(ValidationError, match="refresh_interval_ms"):
            DashboardConfig(refresh_interval_ms=interval)

    def test_empty_token_is_none(self) -> None:
        assert DashboardConfig(auth_token="").auth_token is None

    def test_frozen(self) -> None:
        config = DashboardConfig()
        with pytest.raises(dataclasses.FrozenInstanceError):
            config.refresh_interval_ms = 1  # type: ignore[misc]

    def test_replace_revalidates(self) -> None:
        config = DashboardConfig()
        assert dataclasses.replace(config, api_base_url="http://x").api_base_url == "http://x/"
        with pytest.raises(ValidationError):
            dataclasses.replace(config, refresh_interval_ms=0)


def test_pipewatch_config_defaults() -> None:
    config = PipewatchConfig()
    assert config.dashboard == DashboardConfig()
    assert config.logging == LoggingConfig()
    assert config.logging.level == "WARNING"
