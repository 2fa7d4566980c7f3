"""Application infrastructure for cheesepants-py: logging, errors, rate limits and docs."""

from cheesepants_py.core.error_handling import ErrorResponse, get_exception_handlers
from cheesepants_py.core.logging import configure_logging, get_middleware
from cheesepants_py.core.openapi import create_openapi_config
from cheesepants_py.core.rate_limit import RateLimitSettings, get_rate_limit_config

__all__ = [
    "ErrorResponse",
    "RateLimitSettings",
    "configure_logging",
    "create_openapi_config",
    "get_exception_handlers",
    "get_middleware",
    "get_rate_limit_config",
]
