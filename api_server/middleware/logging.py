"""Logging configuration"""

import logging
import os
import time
import uuid
from typing import Callable
from fastapi import FastAPI, Request, Response
from starlette.middleware.base import BaseHTTPMiddleware


def setup_logging() -> logging.Logger:
    """Configure JSON-style logging for the service and the debate core

    LOG_LEVEL sets the level (default INFO).
    """
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format='{"time": "%(asctime)s", "level": "%(levelname)s", "logger": "%(name)s", "message": "%(message)s"}',
        datefmt="%Y-%m-%dT%H:%M:%S",
    )
    return logging.getLogger("api_server")


class LoggingMiddleware(BaseHTTPMiddleware):
    """Logs one line per request and tags the response with a request id

    An incoming X-Request-ID (from a proxy or the frontend) is kept so a
    debate poll can be followed across services; otherwise a short one is
    generated.
    """

    def __init__(self, app: FastAPI):
        super().__init__(app)
        self.logger = logging.getLogger("api_server")

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("X-Request-ID", "")[:64] or str(uuid.uuid4())[:8]
        start_time = time.perf_counter()
        request.state.request_id = request_id

        try:
            response = await call_next(request)
        except Exception:
            self.logger.exception(f"Unhandled error for {request.method} {request.url.path} [{request_id}]")
            raise

        duration_ms = round((time.perf_counter() - start_time) * 1000, 2)

        log_data = {
            "request_id": request_id,
            "method": request.method,
            "path": request.url.path,
            "status": response.status_code,
            "duration_ms": duration_ms,
            "ip": request.client.host if request.client else "unknown",
        }
        debate_id = request.path_params.get("debate_id")
        if debate_id:
            log_data["debate_id"] = debate_id

        # Status polling is chatty
        if response.status_code >= 500:
            self.logger.error(str(log_data))
        elif response.status_code >= 400:
            self.logger.warning(str(log_data))
        elif request.method == "GET" and debate_id:
            self.logger.debug(str(log_data))
        else:
            self.logger.info(str(log_data))

        response.headers["X-Request-ID"] = request_id
        return response
