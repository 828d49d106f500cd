"""Application settings loaded from environment and .env files."""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_DISCOVERY_PATTERNS = "ckb-sdk,nervos-sdk,ckb-js,ckb"


class Settings(BaseSettings):
    """Strongly-typed application configuration."""

    model_config = SettingsConfigDict(
        env_file=(".env", ".env.example"),
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    app_env: str = Field(default="local", alias="APP_ENV")
    app_host: str = Field(default="0.0.0.0", alias="APP_HOST")
    app_port: int = Field(default=8000, alias="APP_PORT")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    deployments_dir: str = Field(default="deployments", alias="DEPLOYMENTS_DIR")
    results_dir: str = Field(default="results", alias="RESULTS_DIR")
    strict_hash_type: bool = Field(default=False, alias="STRICT_HASH_TYPE")

    npm_registry_url: str = Field(default="https://registry.npmjs.org", alias="NPM_REGISTRY_URL")
    npm_bin: str = Field(default="npm", alias="NPM_BIN")
    node_bin: str = Field(default="node", alias="NODE_BIN")
    sdk_discovery_patterns: str = Field(
        default=DEFAULT_DISCOVERY_PATTERNS,
        alias="SDK_DISCOVERY_PATTERNS",
    )
    sdk_search_size: int = Field(default=250, alias="SDK_SEARCH_SIZE", ge=1, le=250)
    request_timeout_s: int = Field(default=30, alias="REQUEST_TIMEOUT_S", ge=1)
    npm_backoff_seconds: float = Field(default=1.0, alias="NPM_BACKOFF_SECONDS", ge=0.0)
    sdk_install_timeout_s: int = Field(default=300, alias="SDK_INSTALL_TIMEOUT_S", ge=1)
    node_timeout_s: int = Field(default=60, alias="NODE_TIMEOUT_S", ge=1)

    metrics_textfile: str | None = Field(default=None, alias="METRICS_TEXTFILE")

    @field_validator("metrics_textfile", mode="before")
    @classmethod
    def blank_textfile_is_none(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @property
    def discovery_patterns(self) -> list[str]:
        """Return the configured npm search keywords without blanks or duplicates."""

        patterns: list[str] = []
        for pattern in self.sdk_discovery_patterns.split(","):
            normalized = pattern.strip()
            if normalized and normalized not in patterns:
                patterns.append(normalized)
        return patterns

    @property
    def deployments_path(self) -> Path:
        return Path(self.deployments_dir)

    @property
    def results_path(self) -> Path:
        return Path(self.results_dir)


@lru_cache
def get_settings() -> Settings:
    """Return a cached settings instance."""

    return Settings()
