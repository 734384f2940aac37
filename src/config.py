"""Configuration management for doorlog."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_REPO_ROOT = Path(__file__).resolve().parents[1]
_DEFAULT_CONFIG_PATH = _REPO_ROOT / "config" / "doorlog.yml"
_USER_CONFIG_PATHS = [
    Path("~/.config/doorlog/doorlog.yml").expanduser(),
    Path("/config/doorlog.yml"),
]


def _load_yaml(path: Path) -> dict[str, Any]:
    """Load a YAML mapping from disk, returning an empty mapping if missing."""
    if not path.exists():
        return {}
    data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file must contain a mapping: {path}")
    return data


def _merge(target: dict[str, Any], source: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge ``source`` into ``target`` and return ``target``."""
    for key, value in source.items():
        current = target.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            _merge(current, value)
        else:
            target[key] = value
    return target


def _yaml_settings_source(paths: list[Path]):
    """Create a Pydantic settings source for a list of YAML paths."""

    def source() -> dict[str, Any]:
        merged: dict[str, Any] = {}
        for path in paths:
            _merge(merged, _load_yaml(path))
        return merged

    return source


def _set_nested_value(target: dict[str, Any], path: str, value: Any) -> None:
    """Set a dotted-path value on a nested mapping, creating containers."""
    parts = path.split(".")
    cursor = target
    for key in parts[:-1]:
        node = cursor.get(key)
        if not isinstance(node, dict):
            node = {}
            cursor[key] = node
        cursor = node
    cursor[parts[-1]] = value


def _parse_env_value(raw: str, kind: str) -> Any:
    """Parse an environment value into the requested primitive type."""
    if kind == "int":
        return int(raw)
    if kind == "bool":
        return raw.strip().lower() in {"1", "true", "yes", "on"}
    return raw


def _env_settings_source():
    """Create a settings source that maps environment variables to config keys."""
    mapping = {
        "DATABASE_URL": ("database.url", "str"),
        "DOORLOG_TIMEZONE": ("site.timezone", "str"),
        "DOORLOG_LOG_LEVEL": ("log_level", "str"),
        "DOORLOG_LOG_JSON": ("log_json", "bool"),
        "DOORLOG_REPORTS_DIR": ("reports.root_dir", "str"),
        "DOORLOG_REPORTS_FORMAT": ("reports.output_format", "str"),
        "DOORLOG_ACCESS_RETENTION_DAYS": ("retention.access_days", "int"),
        "DOORLOG_PRESENCE_RETENTION_DAYS": ("retention.presence_days", "int"),
    }

    def source() -> dict[str, Any]:
        data: dict[str, Any] = {}
        for env_key, (path, kind) in mapping.items():
            raw = os.environ.get(env_key)
            if raw is None:
                continue
            _set_nested_value(data, path, _parse_env_value(raw, kind))
        return data

    return source


class DatabaseConfig(BaseModel):
    """Database connection configuration."""

    url: str = "sqlite:///data/doorlog.db"


class SiteConfig(BaseModel):
    """Physical site settings used to stamp taps with local date and time."""

    name: str = "doorlog"
    timezone: str = "America/Sao_Paulo"

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        """Ensure the configured timezone is valid."""
        try:
            ZoneInfo(value)
        except ZoneInfoNotFoundError as exc:
            raise ValueError(f"Invalid timezone: {value}") from exc
        return value


class RetentionConfig(BaseModel):
    """Retention windows, in days, for each ledger."""

    access_days: int = 30
    presence_days: int = 30

    @field_validator("access_days", "presence_days")
    @classmethod
    def validate_days(cls, value: int) -> int:
        """Ensure retention windows are positive."""
        if value < 1:
            raise ValueError("retention windows must be >= 1 day.")
        return value


class ReportsConfig(BaseModel):
    """Archived report storage and presentation settings."""

    root_dir: str = "data/reports"
    route_prefix: str = "/reports/archive"
    display_date_format: str = "%d/%m/%Y"
    template_dir: str | None = None
    output_format: Literal["pdf", "html"] = "pdf"

    @field_validator("route_prefix")
    @classmethod
    def validate_route_prefix(cls, value: str) -> str:
        """Normalize the route prefix to a leading slash and no trailing slash."""
        normalized = "/" + value.strip().strip("/")
        if normalized == "/":
            raise ValueError("reports.route_prefix must not be empty.")
        return normalized


class Settings(BaseSettings):
    """Application settings loaded from environment variables and YAML files."""

    model_config = SettingsConfigDict(
        case_sensitive=False,
        env_nested_delimiter="__",
        extra="ignore",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        """Layer settings sources in descending order of precedence."""
        return (
            init_settings,
            _env_settings_source(),
            _yaml_settings_source(_USER_CONFIG_PATHS),
            _yaml_settings_source([_DEFAULT_CONFIG_PATH]),
        )

    # Logging
    log_level: str = "INFO"
    log_json: bool = False

    # Database Configuration
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)

    # Site Context
    site: SiteConfig = Field(default_factory=SiteConfig)

    # Ledger Retention
    retention: RetentionConfig = Field(default_factory=RetentionConfig)

    # Archived Reports
    reports: ReportsConfig = Field(default_factory=ReportsConfig)

    @property
    def database_url(self) -> str:
        """Return the configured database URL."""
        return self.database.url


# Global settings instance
settings = Settings()
