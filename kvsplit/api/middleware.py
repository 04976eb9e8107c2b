"""
kvsplit/api/middleware.py

Custom ASGI middleware for kvsplit.

RequestLoggingMiddleware
    Binds a request id (taken from X-Request-ID or generated) into structlog
    context vars so every planner log line of the request carries it, echoes
    the id back on the response, and logs method, path, status code and
    latency.  Requests slower than the threshold log at warning level, since
    a slow planning call usually means a slow SCAN.  Excluded from logging:
      - GET /health  (high-frequency liveness probe)
      - GET /docs, /redoc, /openapi.json  (OpenAPI UI assets)
"""
from __future__ import annotations

import time
import uuid

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

logger = structlog.get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

_SILENT_PATHS: frozenset[str] = frozenset(
    {"/health", "/docs", "/redoc", "/openapi.json"}
)

_SLOW_REQUEST_MS = 2000.0


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Tag each request with an id and log its outcome and latency."""

    async def dispatch(self, request: Request, call_next: object) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        structlog.contextvars.bind_contextvars(request_id=request_id)

        start = time.perf_counter()
        try:
            response: Response = await call_next(request)  # type: ignore[operator]
        finally:
            structlog.contextvars.unbind_contextvars("request_id")
        duration_ms = (time.perf_counter() - start) * 1000
        response.headers[REQUEST_ID_HEADER] = request_id

        if request.url.path not in _SILENT_PATHS:
            log = logger.warning if duration_ms >= _SLOW_REQUEST_MS else logger.info
            log(
                "http_request",
                request_id=request_id,
                method=request.method,
                path=request.url.path,
                status_code=response.status_code,
                duration_ms=round(duration_ms, 2),
            )

        return response
