"""Library configuration using pydantic-settings."""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings


class DeployerSettings(BaseSettings):
    """Stack deployment tuning."""

    poll_interval: float = Field(default=5.0, alias="DEPLOYER_POLL_INTERVAL")
    change_set_poll_interval: float = Field(
        default=5.0, alias="DEPLOYER_CHANGE_SET_POLL_INTERVAL"
    )
    monitor_interval: float = Field(default=2.0, alias="DEPLOYER_MONITOR_INTERVAL")
    wait_timeout: float | None = Field(default=None, alias="DEPLOYER_WAIT_TIMEOUT")
    large_template_size_kb: int = Field(default=50, alias="DEPLOYER_LARGE_TEMPLATE_SIZE_KB")
    change_set_prefix: str = Field(default="Deploy-", alias="DEPLOYER_CHANGE_SET_PREFIX")
    template_key_prefix: str = Field(default="templates", alias="DEPLOYER_TEMPLATE_KEY_PREFIX")

    @property
    def large_template_size_bytes(self) -> int:
        return self.large_template_size_kb * 1024

    model_config = {"env_prefix": "DEPLOYER_", "extra": "ignore", "populate_by_name": True}


class ObservabilitySettings(BaseSettings):
    """Observability configuration."""

    service_name: str = Field(default="stack-deployer", alias="SERVICE_NAME")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    metrics_enabled: bool = Field(default=True, alias="METRICS_ENABLED")
    tracing_enabled: bool = Field(default=False, alias="TRACING_ENABLED")

    model_config = {"env_prefix": "OBS_", "extra": "ignore", "populate_by_name": True}


class Settings(BaseSettings):
    """Main library settings."""

    deployer: DeployerSettings = Field(default_factory=DeployerSettings)
    observability: ObservabilitySettings = Field(default_factory=ObservabilitySettings)

    model_config = {"env_prefix": "", "extra": "ignore", "populate_by_name": True}


@lru_cache
def get_settings() -> Settings:
    """Get cached library settings."""
    return Settings()
