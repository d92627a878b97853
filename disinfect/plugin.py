"""Registration of disinfection on a FastAPI application and per-route settings."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any, TypeVar

import structlog
from fastapi import FastAPI
from fastapi.routing import APIRoute

from disinfect.config.options import (
    DisinfectConfigError,
    DisinfectOptions,
    RouteSetting,
    validate_options,
    validate_route_setting,
)
from disinfect.middleware.route import ROUTE_SETTING_ATTR, STATE_ATTR, DisinfectRoute

logger = structlog.get_logger()

F = TypeVar("F", bound=Callable[..., Any])


def register(
    app: FastAPI,
    options: Mapping[str, Any] | DisinfectOptions | None = None,
    **kwargs: Any,
) -> DisinfectOptions:
    """Validate server-wide options and install disinfection on ``app``.

    Raises DisinfectConfigError (and installs nothing) on unknown or
    mistyped options. Routes declared after this call use DisinfectRoute;
    routes declared before keep their own route class and are reported.
    """
    try:
        server_options = validate_options(options, **kwargs)
    except DisinfectConfigError as exc:
        logger.error("disinfect_options_invalid", error=str(exc))
        raise

    setattr(app.state, STATE_ATTR, server_options)
    app.router.route_class = DisinfectRoute

    for route in app.router.routes:
        if isinstance(route, APIRoute) and not isinstance(route, DisinfectRoute):
            logger.warning("route_class_not_disinfected", path=route.path, name=route.name)

    logger.info("disinfect_registered", **server_options.toggles())
    return server_options


def route_disinfect(setting: RouteSetting = None, **overrides: Any) -> Callable[[F], F]:
    """Declare a route's disinfect setting.

    ``@route_disinfect(False)`` opts the route out entirely;
    ``@route_disinfect(remove_empty=True)`` or
    ``@route_disinfect({"removeEmpty": True})`` overrides individual options.
    The setting is read per request, so the decorator may sit above or
    below the FastAPI route decorator. It is validated here, so a bad
    override fails at import time.
    """
    validated = validate_route_setting(setting, **overrides)

    def decorator(endpoint: F) -> F:
        setattr(endpoint, ROUTE_SETTING_ATTR, validated)
        return endpoint

    return decorator
