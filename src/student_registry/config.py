"""Configuration loading for Student Registry.

Settings come from an optional YAML file and are overridden by environment
variables, so a deployment can keep secrets out of the file entirely.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

CONFIG_ENV = "STUDENT_REGISTRY_CONFIG"

# Environment variable -> (section, key)
ENV_OVERRIDES = {
    "STUDENT_REGISTRY_BACKEND_URL": ("backend", "url"),
    "STUDENT_REGISTRY_BACKEND_KEY": ("backend", "api_key"),
    "STUDENT_REGISTRY_STUDENTS_TABLE": ("backend", "students_table"),
    "STUDENT_REGISTRY_SECURE_COOKIES": ("app", "secure_cookies"),
    "STUDENT_REGISTRY_LOG_DIR": ("logging", "dir"),
    "STUDENT_REGISTRY_LOG_LEVEL": ("logging", "level"),
}

_TRUE_VALUES = {"1", "true", "yes", "on"}


class ConfigError(Exception):
    """Raised when configuration is invalid or missing."""


@dataclass
class BackendConfig:
    """Connection settings for the hosted database and auth service."""

    url: str
    api_key: str
    students_table: str = "students"
    timeout: float = 30.0


@dataclass
class AppConfig:
    """Web application settings."""

    title: str = "Student Registry"
    session_cookie: str = "student_registry_session"
    secure_cookies: bool = False
    date_format: str = "%d/%m/%Y"
    session_idle_timeout: float = 8 * 60 * 60


@dataclass
class LoggingConfig:
    """Logging settings."""

    dir: str = "logs"
    level: str = "INFO"
    file: str = "student_registry.log"
    console: bool = True


@dataclass
class Settings:
    """Complete application settings."""

    backend: BackendConfig
    app: AppConfig = field(default_factory=AppConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Settings:
        """Create settings from a dictionary.

        Args:
            data: Settings mapping with 'backend', 'app' and 'logging' sections.

        Returns:
            Parsed settings object.

        Raises:
            ConfigError: If required backend fields are missing.
        """
        backend_data = data.get("backend") or {}
        missing = [f for f in ("url", "api_key") if not backend_data.get(f)]
        if missing:
            raise ConfigError(f"Missing required backend fields: {', '.join(missing)}")

        backend = BackendConfig(
            url=str(backend_data["url"]),
            api_key=str(backend_data["api_key"]),
            students_table=backend_data.get("students_table", "students"),
            timeout=float(backend_data.get("timeout", 30.0)),
        )

        app_data = data.get("app") or {}
        app = AppConfig(
            title=app_data.get("title", "Student Registry"),
            session_cookie=app_data.get("session_cookie", "student_registry_session"),
            secure_cookies=_as_bool(app_data.get("secure_cookies", False)),
            date_format=app_data.get("date_format", "%d/%m/%Y"),
            session_idle_timeout=float(app_data.get("session_idle_timeout", 8 * 60 * 60)),
        )

        logging_data = data.get("logging") or {}
        logging_config = LoggingConfig(
            dir=logging_data.get("dir", "logs"),
            level=logging_data.get("level", "INFO"),
            file=logging_data.get("file", "student_registry.log"),
            console=_as_bool(logging_data.get("console", True)),
        )

        return cls(backend=backend, app=app, logging=logging_config)


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in _TRUE_VALUES


def _read_yaml(config_path: Path) -> dict[str, Any]:
    if not config_path.exists():
        raise ConfigError(f"Configuration file not found: {config_path}")

    try:
        with open(config_path) as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Configuration must be a YAML mapping, got {type(data).__name__}")
    return data


def load_settings(
    config_path: Path | str | None = None,
    environ: Mapping[str, str] | None = None,
) -> Settings:
    """Load settings from YAML (optional) and environment overrides.

    Args:
        config_path: Path to a YAML file. Falls back to STUDENT_REGISTRY_CONFIG,
                     and to environment variables only when neither is set.
        environ: Environment mapping. Defaults to os.environ.

    Returns:
        Parsed settings object.

    Raises:
        ConfigError: If the file is missing or invalid, or required fields are absent.
    """
    env = os.environ if environ is None else environ

    if config_path is None and env.get(CONFIG_ENV):
        config_path = env[CONFIG_ENV]

    data: dict[str, Any] = _read_yaml(Path(config_path)) if config_path is not None else {}

    for var, (section, key) in ENV_OVERRIDES.items():
        value = env.get(var)
        if value:
            section_data = data.get(section)
            if not isinstance(section_data, dict):
                section_data = {}
                data[section] = section_data
            section_data[key] = value

    return Settings.from_dict(data)
