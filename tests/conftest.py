"""Shared test fixtures."""

from __future__ import annotations

import logging
import os
from typing import Any

import pytest
import structlog
from fastapi import FastAPI, Request
from fastapi.testclient import TestClient

from disinfect.plugin import register, route_disinfect


@pytest.fixture(autouse=True)
def _mock_settings(monkeypatch):
    """Start every test from default settings."""
    for key in list(os.environ):
        if key.startswith("DISINFECT_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("DISINFECT_LOG_JSON", "false")
    monkeypatch.setenv("DISINFECT_LOG_LEVEL", "debug")

    # Reset cached settings
    import disinfect.config.loader as loader
    loader._settings = None
    yield
    loader._settings = None

    # Drop handlers bound to this test's captured stdout
    logging.getLogger().handlers.clear()
    structlog.reset_defaults()


def add_echo_routes(app: FastAPI, route_setting: Any = None, suffix: str = "") -> None:
    """Mount query/params/payload echo routes, optionally with a route setting.

    ``route_setting`` of None leaves the routes undecorated.
    """

    def _decorate(endpoint):
        if route_setting is None:
            return endpoint
        return route_disinfect(route_setting)(endpoint)

    @app.get(f"/queryTest{suffix}")
    @_decorate
    async def query_echo(request: Request):
        return dict(request.query_params)

    @app.get(f"/paramsTest{suffix}/{{a}}/{{b}}")
    @_decorate
    async def params_echo(request: Request):
        return request.path_params

    @app.get(f"/htmlParamsTest{suffix}/{{a:path}}")
    @_decorate
    async def html_params_echo(request: Request):
        return request.path_params

    @app.post(f"/payloadTest{suffix}")
    @_decorate
    async def payload_echo(request: Request):
        return await request.json()


@pytest.fixture
def make_client():
    """Build a TestClient for an app registered with the given options."""

    def _make(options: Any = None, route_setting: Any = None, **kwargs: Any) -> TestClient:
        app = FastAPI()
        register(app, options, **kwargs)
        add_echo_routes(app)
        add_echo_routes(app, route_setting=route_setting, suffix="PerRoute")
        return TestClient(app, raise_server_exceptions=False)

    return _make
