"""
Disinfect - request query, path parameter and payload cleansing for FastAPI
"""

__version__ = "0.1.0"

from disinfect.config.options import (
    DisinfectConfigError,
    DisinfectOptions,
    RouteOptions,
    resolve_options,
)
from disinfect.middleware.passes import disinfect
from disinfect.middleware.pipeline import PARAMS, PAYLOAD, QUERY, Surface
from disinfect.middleware.route import DisinfectRoute
from disinfect.plugin import register, route_disinfect

__all__ = [
    'DisinfectConfigError',
    'DisinfectOptions',
    'DisinfectRoute',
    'PARAMS',
    'PAYLOAD',
    'QUERY',
    'RouteOptions',
    'Surface',
    'disinfect',
    'register',
    'resolve_options',
    'route_disinfect',
]
