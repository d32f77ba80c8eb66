"""Request timing middleware."""

from __future__ import annotations

import time

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from recount_service.logging import logger


def elapsed_ms(request: Request) -> int | None:
    """Milliseconds since the middleware saw ``request``, if it did."""
    started = getattr(request.state, "started_at", None)
    if started is None:
        return None
    return round((time.perf_counter() - started) * 1000)


class RequestTimingMiddleware(BaseHTTPMiddleware):
    """Stamp each request with its start time and log how long it took."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request.state.started_at = time.perf_counter()
        response = await call_next(request)
        logger.debug(
            "Request completed",
            method=request.method,
            path=request.url.path,
            status=response.status_code,
            elapsed_ms=elapsed_ms(request),
        )
        return response
