"""Request logging middleware."""

import logging
import time
from typing import Callable, Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from shorten.common.logging_config import get_logger


class LoggingMiddleware(BaseHTTPMiddleware):
    """Log one line per request with the acting user, status and latency."""

    def __init__(self, app, logger: Optional[logging.Logger] = None):
        super().__init__(app)
        self.logger = logger or get_logger("web")

    async def dispatch(self, request: Request, call_next: Callable):
        started = time.perf_counter()
        client = request.client.host if request.client else "unknown"
        user = request.headers.get("x-forwarded-user", "-")

        try:
            response = await call_next(request)
        except Exception:
            self.logger.exception(f"{request.method} {request.url.path} from {client} ({user}) failed")
            raise

        elapsed_ms = (time.perf_counter() - started) * 1000
        level = logging.WARNING if response.status_code >= 500 else logging.INFO
        self.logger.log(
            level,
            f"{request.method} {request.url.path} from {client} ({user}) "
            f"-> {response.status_code} in {elapsed_ms:.2f}ms",
        )
        return response
