"""HTTP middleware."""

from recount_service.middleware.timing import RequestTimingMiddleware, elapsed_ms

__all__ = ["RequestTimingMiddleware", "elapsed_ms"]
