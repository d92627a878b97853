"""Logging for disinfection events.

Registration and per-surface events (pass_registered, disinfect_registered,
surface_disinfected ...) are structlog key/value events rendered through
stdlib logging, so host frameworks that configure stdlib handlers still see
them. Request values never reach the log; only surface names and key counts.
"""

from __future__ import annotations

import logging
import sys
from typing import IO

import structlog

# Loggers that are chatty at INFO and add nothing to disinfection logs
_QUIET_LOGGERS = ("uvicorn.access", "httpx")


def _rename_logger_to_module(
    logger: logging.Logger, method_name: str, event_dict: dict
) -> dict:
    """Report the emitting disinfect module (disinfect.plugin, ...) as 'module'."""
    if "logger" in event_dict:
        event_dict["module"] = event_dict.pop("logger")
    return event_dict


def _shared_processors() -> list[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        _rename_logger_to_module,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]


def setup_logging(
    log_level: str = "info",
    json_format: bool = True,
    stream: IO[str] | None = None,
) -> None:
    """Send disinfection events to ``stream`` (stdout by default) as JSON lines,
    or as plain console text when ``json_format`` is false.

    Per-request events are emitted at debug, so ``log_level="debug"`` is
    needed to see which surfaces were rewritten.
    Unknown level names fall back to INFO.
    """
    renderer: structlog.types.Processor
    if json_format:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=False)

    structlog.configure(
        processors=[
            *_shared_processors(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                renderer,
            ],
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
