"""FastAPI application factory with request disinfection wired in."""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import FastAPI

from disinfect.config.loader import DisinfectSettings, load_settings
from disinfect.logging_config import setup_logging
from disinfect.plugin import register

logger = structlog.get_logger()


def create_app(settings: DisinfectSettings | None = None, **options: Any) -> FastAPI:
    """Build a FastAPI app whose routes are disinfected.

    Toggles come from ``settings`` (env vars / YAML when omitted); ``options``
    are merged over them and are the only way to supply sanitizer callables.
    Raises DisinfectConfigError on invalid options.
    """
    if settings is None:
        settings = load_settings()
    setup_logging(log_level=settings.log_level, json_format=settings.log_json)

    app = FastAPI(title=settings.app_title)
    register(app, settings.server_options(**options))

    logger.info("app_created", title=settings.app_title)
    return app
