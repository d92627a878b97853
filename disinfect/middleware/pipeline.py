"""Ordered disinfection pass framework."""

from __future__ import annotations

import abc
from dataclasses import dataclass
from typing import Any

import structlog

from disinfect.config.options import DisinfectOptions, Sanitizer

logger = structlog.get_logger()


@dataclass(frozen=True)
class Surface:
    """One source of request data and the option fields that govern it."""

    name: str
    enable_field: str
    sanitizer_field: str

    def html_enabled(self, options: DisinfectOptions) -> bool:
        return getattr(options, self.enable_field)

    def sanitizer(self, options: DisinfectOptions) -> Sanitizer:
        return getattr(options, self.sanitizer_field)


QUERY = Surface("query", "disinfect_query", "query_sanitizer")
PARAMS = Surface("params", "disinfect_params", "params_sanitizer")
PAYLOAD = Surface("payload", "disinfect_payload", "payload_sanitizer")

SURFACES: tuple[Surface, ...] = (QUERY, PARAMS, PAYLOAD)


class Pass(abc.ABC):
    """Base class for a single disinfection pass."""

    @property
    def name(self) -> str:
        return self.__class__.__name__

    def enabled(self, options: DisinfectOptions, surface: Surface) -> bool:
        """Whether the pass runs for this surface. Override for opt-in passes."""
        return True

    @abc.abstractmethod
    def apply(self, mapping: dict[str, Any], options: DisinfectOptions, surface: Surface) -> dict[str, Any]:
        """Transform the mapping and return the one the next pass should see."""
        ...


class DisinfectionPipeline:
    """Ordered list of passes applied to one surface's key/value mapping.

    Exceptions raised by a pass (usually a sanitizer callable) propagate to
    the caller; later passes do not run.
    """

    def __init__(self) -> None:
        self._passes: list[Pass] = []

    @property
    def passes(self) -> list[Pass]:
        return list(self._passes)

    def add(self, pass_: Pass) -> None:
        """Add a pass to the end of the pipeline."""
        self._passes.append(pass_)
        logger.info("pass_registered", name=pass_.name, position=len(self._passes) - 1)

    def run(
        self,
        mapping: dict[str, Any] | None,
        options: DisinfectOptions,
        surface: Surface,
    ) -> dict[str, Any] | None:
        """Run every enabled pass in order.

        An absent or empty mapping is returned as-is and no pass (so no
        sanitizer callable) is invoked.
        """
        if not mapping:
            return mapping

        keys_in = len(mapping)
        cleansed = mapping
        for pass_ in self._passes:
            if pass_.enabled(options, surface):
                cleansed = pass_.apply(cleansed, options, surface)

        logger.debug(
            "surface_disinfected",
            surface=surface.name,
            keys_in=keys_in,
            keys_out=len(cleansed) if cleansed is not None else 0,
        )
        return cleansed
