"""FastAPI route class that disinfects query, path params and payload before the endpoint runs."""

from __future__ import annotations

import json
from collections.abc import AsyncGenerator, Callable, Coroutine
from typing import Any
from urllib.parse import parse_qsl, urlencode

import structlog
from fastapi.routing import APIRoute
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import Receive, Scope

from disinfect.config.options import DisinfectOptions, RouteOptions, resolve_options
from disinfect.middleware.passes import disinfect
from disinfect.middleware.pipeline import PARAMS, PAYLOAD, QUERY

logger = structlog.get_logger()

# Attribute set on endpoint functions by route_disinfect()
ROUTE_SETTING_ATTR = "__disinfect__"

# app.state attribute holding the server-wide DisinfectOptions
STATE_ATTR = "disinfect"

_JSON_TYPE = "application/json"
_FORM_TYPE = "application/x-www-form-urlencoded"


class DisinfectedRequest(Request):
    """Request whose body has already been read (and possibly rewritten)."""

    def __init__(self, scope: Scope, receive: Receive, body: bytes) -> None:
        super().__init__(scope, receive)
        self._disinfected_body = body

    async def body(self) -> bytes:
        return self._disinfected_body

    async def stream(self) -> AsyncGenerator[bytes, None]:
        yield self._disinfected_body
        yield b""


def get_route_setting(endpoint: Callable[..., Any]) -> RouteOptions | bool | None:
    return getattr(endpoint, ROUTE_SETTING_ATTR, None)


def get_server_options(request: Request) -> DisinfectOptions | None:
    """Server-wide options installed by register(), or None if not registered."""
    app = request.scope.get("app")
    if app is None:
        return None
    return getattr(app.state, STATE_ATTR, None)


def _media_type(content_type: str) -> str:
    return content_type.split(";", 1)[0].strip().lower()


def _set_header(headers: list[tuple[bytes, bytes]], name: bytes, value: bytes) -> list[tuple[bytes, bytes]]:
    updated = [(k, v) for k, v in headers if k.lower() != name]
    updated.append((name, value))
    return updated


async def _disinfect_payload(request: Request, options: DisinfectOptions) -> bytes | None:
    """Read and rewrite a JSON-object or urlencoded-form body.

    Returns the body bytes to hand to the endpoint, or None when the body
    was not read (unsupported content type).
    """
    media_type = _media_type(request.headers.get("content-type", ""))
    if media_type not in (_JSON_TYPE, _FORM_TYPE):
        return None

    body = await request.body()
    if not body:
        return body

    if media_type == _JSON_TYPE:
        try:
            payload = json.loads(body)
        except (json.JSONDecodeError, UnicodeDecodeError):
            # FastAPI reports the malformed body itself
            logger.debug("payload_not_disinfected", reason="invalid_json")
            return body
        if not isinstance(payload, dict):
            logger.debug("payload_not_disinfected", reason="not_an_object")
            return body
        cleansed = disinfect(payload, options, PAYLOAD)
        return json.dumps(cleansed).encode("utf-8")

    form = dict(parse_qsl(body.decode("latin-1"), keep_blank_values=True))
    cleansed = disinfect(form, options, PAYLOAD)
    return urlencode(cleansed).encode("latin-1")


async def disinfect_request(request: Request, options: DisinfectOptions) -> Request:
    """Return a new request with disinfected query, path params and payload.

    The original request's scope is left untouched.
    """
    scope = dict(request.scope)

    query = dict(request.query_params)
    if query:
        cleansed_query = disinfect(query, options, QUERY)
        scope["query_string"] = urlencode(cleansed_query).encode("latin-1")

    params = dict(request.path_params)
    if params:
        scope["path_params"] = disinfect(params, options, PARAMS)

    body = await _disinfect_payload(request, options)
    if body is None:
        return Request(scope, request.receive)

    scope["headers"] = _set_header(
        list(scope.get("headers", [])),
        b"content-length",
        str(len(body)).encode("latin-1"),
    )
    return DisinfectedRequest(scope, request.receive, body)


class DisinfectRoute(APIRoute):
    """APIRoute that runs the disinfection pipeline before the endpoint.

    Usage::

        app = FastAPI()
        register(app, remove_empty=True)   # also sets DisinfectRoute as route class

        @app.get("/search")
        @route_disinfect(disinfect_query=True)
        async def search(request: Request): ...
    """

    def get_route_handler(self) -> Callable[[Request], Coroutine[Any, Any, Response]]:
        original_route_handler = super().get_route_handler()
        endpoint = self.endpoint
        path = self.path

        async def disinfect_route_handler(request: Request) -> Response:
            server_options = get_server_options(request)
            if server_options is None:
                return await original_route_handler(request)

            options = resolve_options(server_options, get_route_setting(endpoint))
            if options is None:
                logger.debug("disinfect_route_disabled", path=path)
                return await original_route_handler(request)

            request = await disinfect_request(request, options)
            return await original_route_handler(request)

        return disinfect_route_handler
