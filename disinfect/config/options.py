"""Disinfection options: validation, defaults and per-route merging."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any, Union

from pydantic import BaseModel, ConfigDict, StrictBool, ValidationError
from pydantic.alias_generators import to_camel

from disinfect.utils.sanitize import identity

Sanitizer = Callable[[dict[str, Any]], dict[str, Any]]

# Accepted shapes for a route's setting, before validation.
RouteSetting = Union[bool, Mapping[str, Any], "RouteOptions", None]

_MODEL_CONFIG = ConfigDict(
    alias_generator=to_camel,
    populate_by_name=True,
    extra="forbid",
    frozen=True,
)


class DisinfectConfigError(ValueError):
    """Raised when disinfection options fail validation."""


class DisinfectOptions(BaseModel):
    """Fully resolved disinfection options.

    Field names are snake_case; the camelCase spellings (``removeEmpty``,
    ``genericSanitizer`` ...) are accepted as aliases.
    """

    model_config = _MODEL_CONFIG

    remove_empty: StrictBool = False
    remove_whitespace: StrictBool = False
    disinfect_query: StrictBool = False
    disinfect_params: StrictBool = False
    disinfect_payload: StrictBool = False
    generic_sanitizer: Sanitizer = identity
    query_sanitizer: Sanitizer = identity
    params_sanitizer: Sanitizer = identity
    payload_sanitizer: Sanitizer = identity

    def toggles(self) -> dict[str, bool]:
        """Boolean fields only, for logging."""
        return {
            name: value
            for name, value in self.model_dump().items()
            if isinstance(value, bool)
        }


class RouteOptions(BaseModel):
    """Partial per-route override. Unset fields inherit the server value."""

    model_config = _MODEL_CONFIG

    remove_empty: StrictBool | None = None
    remove_whitespace: StrictBool | None = None
    disinfect_query: StrictBool | None = None
    disinfect_params: StrictBool | None = None
    disinfect_payload: StrictBool | None = None
    generic_sanitizer: Sanitizer | None = None
    query_sanitizer: Sanitizer | None = None
    params_sanitizer: Sanitizer | None = None
    payload_sanitizer: Sanitizer | None = None

    def overrides(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


def _field_names(model: type[BaseModel], data: Mapping[str, Any]) -> dict[str, Any]:
    """Rekey camelCase aliases to field names so two spellings of one field merge."""
    by_alias = {info.alias: name for name, info in model.model_fields.items() if info.alias}
    return {by_alias.get(key, key): value for key, value in data.items()}


def _format_errors(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err["loc"]) or "<root>"
        parts.append(f"{loc}: {err['msg']}")
    return "; ".join(parts)


def validate_options(raw: Mapping[str, Any] | DisinfectOptions | None = None, **kwargs: Any) -> DisinfectOptions:
    """Validate server-wide options and fill in defaults.

    Keyword arguments are merged over ``raw``. Unknown names, non-boolean
    toggles and non-callable sanitizers raise DisinfectConfigError.
    """
    if isinstance(raw, DisinfectOptions):
        if not kwargs:
            return raw
        data: dict[str, Any] = raw.model_dump()
    elif raw is None:
        data = {}
    elif isinstance(raw, Mapping):
        data = dict(raw)
    else:
        raise DisinfectConfigError(
            f"disinfect options must be a mapping, got {type(raw).__name__}"
        )
    data = {**_field_names(DisinfectOptions, data), **_field_names(DisinfectOptions, kwargs)}
    try:
        return DisinfectOptions.model_validate(data)
    except ValidationError as exc:
        raise DisinfectConfigError(f"invalid disinfect options: {_format_errors(exc)}") from exc


def validate_route_setting(raw: RouteSetting = None, **kwargs: Any) -> RouteOptions | bool | None:
    """Validate a per-route setting.

    Returns False (route opted out), None (use server options) or a
    RouteOptions override. ``True`` is treated like None.
    """
    if isinstance(raw, bool):
        if kwargs:
            raise DisinfectConfigError("a boolean route setting cannot be combined with overrides")
        return None if raw else False
    if isinstance(raw, RouteOptions):
        if not kwargs:
            return raw
        data: dict[str, Any] = raw.overrides()
    elif raw is None:
        if not kwargs:
            return None
        data = {}
    elif isinstance(raw, Mapping):
        data = dict(raw)
    else:
        raise DisinfectConfigError(
            f"route disinfect setting must be a bool or a mapping, got {type(raw).__name__}"
        )
    data = {**_field_names(RouteOptions, data), **_field_names(RouteOptions, kwargs)}
    try:
        return RouteOptions.model_validate(data)
    except ValidationError as exc:
        raise DisinfectConfigError(f"invalid route disinfect setting: {_format_errors(exc)}") from exc


def resolve_options(
    server_options: DisinfectOptions,
    route_setting: RouteOptions | bool | None,
) -> DisinfectOptions | None:
    """Effective options for one request, or None when the route opted out.

    Route values win field by field; callables are replaced, never merged.
    Neither input is modified.
    """
    if route_setting is False:
        return None
    if route_setting is None or route_setting is True:
        return server_options
    overrides = route_setting.overrides()
    if not overrides:
        return server_options
    return server_options.model_copy(update=overrides)
