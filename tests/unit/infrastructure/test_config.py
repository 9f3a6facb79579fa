"""Unit tests for library configuration."""

from __future__ import annotations

import pytest

from stack_deployer.config import (
    DeployerSettings,
    ObservabilitySettings,
    Settings,
    get_settings,
)


class TestDeployerSettings:
    def test_defaults(self) -> None:
        settings = DeployerSettings()
        assert settings.poll_interval == 5.0
        assert settings.monitor_interval == 2.0
        assert settings.wait_timeout is None
        assert settings.large_template_size_kb == 50
        assert settings.change_set_prefix == "Deploy-"
        assert settings.template_key_prefix == "templates"

    def test_large_template_size_bytes(self) -> None:
        assert DeployerSettings(large_template_size_kb=50).large_template_size_bytes == 51200

    def test_from_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DEPLOYER_POLL_INTERVAL", "1.5")
        monkeypatch.setenv("DEPLOYER_WAIT_TIMEOUT", "600")
        monkeypatch.setenv("DEPLOYER_CHANGE_SET_PREFIX", "CDK-")
        settings = DeployerSettings()
        assert settings.poll_interval == 1.5
        assert settings.wait_timeout == 600.0
        assert settings.change_set_prefix == "CDK-"


class TestObservabilitySettings:
    def test_defaults(self) -> None:
        settings = ObservabilitySettings()
        assert settings.service_name == "stack-deployer"
        assert settings.log_level == "INFO"
        assert settings.metrics_enabled is True
        assert settings.tracing_enabled is False


class TestSettings:
    def test_nested_settings(self) -> None:
        settings = Settings()
        assert isinstance(settings.deployer, DeployerSettings)
        assert isinstance(settings.observability, ObservabilitySettings)

    def test_cached(self) -> None:
        assert get_settings() is get_settings()
