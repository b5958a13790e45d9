"""
Per-request access log.

Binds request_id, method and path into structlog's contextvars so every
line logged while serving the request carries them, then emits one
request_completed event and echoes X-Request-ID back to the client.
"""
import time
import uuid

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

logger = structlog.get_logger("covid.api")

SLOW_REQUEST_MS = 2000

# Polled by uptime checks and browsers; only logged at debug
QUIET_PREFIXES = ("/api/v1/health", "/docs", "/redoc", "/openapi.json")


def log_level_for(status: int, duration_ms: float, path: str) -> str:
    if status >= 500:
        return "error"
    if status >= 400 or duration_ms > SLOW_REQUEST_MS:
        return "warning"
    if path == "/" or path.startswith(QUIET_PREFIXES):
        return "debug"
    return "info"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:8]
        path = request.url.path
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id, method=request.method, path=path)

        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            logger.error("request_failed", status=500, duration_ms=round((time.perf_counter() - started) * 1000, 1))
            raise

        duration_ms = round((time.perf_counter() - started) * 1000, 1)
        response.headers["X-Request-ID"] = request_id

        fields = {"status": response.status_code, "duration_ms": duration_ms}
        if request.query_params:
            fields["query_params"] = dict(request.query_params)
        if duration_ms > SLOW_REQUEST_MS:
            fields["slow"] = True
        level = log_level_for(response.status_code, duration_ms, path)
        getattr(logger, level)("request_completed", **fields)
        return response
