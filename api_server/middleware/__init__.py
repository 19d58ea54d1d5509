"""Middleware: CORS, creation rate limit and request logging"""

from .cors import allowed_origins, setup_cors
from .rate_limit import get_rate_limit_string, limiter, setup_rate_limit
from .logging import LoggingMiddleware, setup_logging

__all__ = [
    "allowed_origins",
    "setup_cors",
    "get_rate_limit_string",
    "limiter",
    "setup_rate_limit",
    "setup_logging",
    "LoggingMiddleware",
]
