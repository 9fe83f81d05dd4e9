"""Request timing: access log line plus an ``X-Response-Time`` header."""
from __future__ import annotations

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger(__name__)

SLOW_REQUEST_MS = 1000.0
QUIET_PATHS = frozenset({"/healthz", "/readyz"})


class RequestTimingMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        start = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start) * 1000
        response.headers["X-Response-Time"] = f"{elapsed_ms:.1f}ms"

        path = request.url.path
        if elapsed_ms >= SLOW_REQUEST_MS:
            logger.warning("Slow request %s %s %s %.1fms", request.method, path, response.status_code, elapsed_ms)
        elif path not in QUIET_PATHS:
            logger.info("%s %s %s %.1fms", request.method, path, response.status_code, elapsed_ms)
        return response
