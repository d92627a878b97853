"""YAML + env var config loading with pydantic-settings."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import structlog
import yaml
from pydantic_settings import BaseSettings, SettingsConfigDict

from disinfect.config.options import DisinfectOptions, validate_options

logger = structlog.get_logger()

# Settings fields that map one-to-one onto DisinfectOptions toggles
_OPTION_FIELDS = (
    "remove_empty",
    "remove_whitespace",
    "disinfect_query",
    "disinfect_params",
    "disinfect_payload",
)


def _load_yaml_defaults(path: Path) -> dict[str, Any]:
    """Load YAML config file, returning empty dict if it does not exist."""
    if not path.exists():
        return {}
    with open(path) as f:
        return yaml.safe_load(f) or {}


class DisinfectSettings(BaseSettings):
    """Disinfection configuration, overridden by env vars."""

    model_config = SettingsConfigDict(
        env_prefix="DISINFECT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    remove_empty: bool = False
    remove_whitespace: bool = False
    disinfect_query: bool = False
    disinfect_params: bool = False
    disinfect_payload: bool = False

    log_level: str = "info"
    log_json: bool = True
    app_title: str = "Disinfect"

    # Optional YAML file of option toggles; lowest priority
    config_file: str = ""

    def server_options(self, **overrides: Any) -> DisinfectOptions:
        """Build validated server-wide options.

        Sanitizer callables can only come from code, through ``overrides``.
        """
        data = {name: getattr(self, name) for name in _OPTION_FIELDS}
        return validate_options(data, **overrides)


_settings: DisinfectSettings | None = None


def get_settings() -> DisinfectSettings:
    """Get or create the singleton settings instance."""
    global _settings
    if _settings is None:
        _settings = load_settings()
    return _settings


def load_settings() -> DisinfectSettings:
    """Load settings: YAML file values first, env vars override them."""
    global _settings
    settings = DisinfectSettings()
    if settings.config_file:
        file_values = _load_yaml_defaults(Path(settings.config_file))
        # Only fill what the environment did not set explicitly
        explicit = settings.model_dump(include=settings.model_fields_set)
        settings = DisinfectSettings(**{**file_values, **explicit})
    _settings = settings
    logger.info("config_loaded", config_file=settings.config_file or None)
    return _settings
