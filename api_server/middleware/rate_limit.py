"""Rate limiting configuration"""

import os
from fastapi import FastAPI, Request
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded


def get_client_ip(request: Request) -> str:
    """Get client IP address, handling proxies"""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return get_remote_address(request)


limiter = Limiter(key_func=get_client_ip)


def setup_rate_limit(app: FastAPI) -> None:
    """Attach the limiter to the app

    Only debate creation is limited: it is the call that spends LLM tokens.
    Status polling is not.
    """
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


def get_rate_limit_string() -> str:
    """Debate creations allowed per client (RATE_LIMIT_PER_MINUTE, default 10)"""
    per_minute = os.getenv("RATE_LIMIT_PER_MINUTE", "10")
    return f"{per_minute}/minute"
