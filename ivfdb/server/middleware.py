"""
Custom middleware for the ivfdb server.
"""

from __future__ import annotations

import time
from typing import Callable
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from ..utils.logging import get_logger

logger = get_logger("ivfdb.server")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Middleware to log request details and timing.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start_time = time.time()

        # Process request
        response = await call_next(request)

        # Calculate duration
        duration_ms = (time.time() - start_time) * 1000

        logger.info(
            "%s %s from %s -> %d (%.2fms)",
            request.method,
            request.url.path,
            request.client.host if request.client else "unknown",
            response.status_code,
            duration_ms,
        )

        # Add timing header
        response.headers["X-Response-Time"] = f"{duration_ms:.2f}ms"

        return response
