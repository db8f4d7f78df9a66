"""Request logging middleware."""
import logging
import time
import uuid
from typing import Any, Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

logger = logging.getLogger("notifyq.server")
SENSITIVE_FIELDS = frozenset({"body", "api_key", "authorization", "x-admin-token", "reset_token"})
REQUEST_ID_HEADER = "X-Request-ID"
_QUIET_PATHS = frozenset({"/health"})


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs admin requests by id, without bodies or credentials.

    Health probes are logged at DEBUG; error responses at WARNING. The
    request id is echoed back in ``X-Request-ID``.
    """

    def __init__(self, app: ASGIApp) -> None:
        super().__init__(app)

    async def dispatch(self, request: Request, call_next: Callable[[Request], Response]) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex[:12]
        path = request.url.path
        level = logging.DEBUG if path in _QUIET_PATHS else logging.INFO
        start_time = time.perf_counter()
        logger.log(
            level, "[%s] %s %s admin_token=%s",
            request_id, request.method, path, "x-admin-token" in request.headers,
        )

        response = await call_next(request)

        duration_ms = (time.perf_counter() - start_time) * 1000
        if response.status_code >= 400:
            level = logging.WARNING
        logger.log(
            level, "[%s] -> %d in %.2fms", request_id, response.status_code, duration_ms,
        )
        response.headers[REQUEST_ID_HEADER] = request_id
        return response


def sanitize_dict(data: dict[str, Any]) -> dict[str, Any]:
    """Copy ``data`` with sensitive values replaced, recursing into dicts and lists."""
    return {
        key: "[REDACTED]" if key.lower() in SENSITIVE_FIELDS else _sanitize_value(value)
        for key, value in data.items()
    }


def _sanitize_value(value: Any) -> Any:
    if isinstance(value, dict):
        return sanitize_dict(value)
    if isinstance(value, list):
        return [_sanitize_value(v) for v in value]
    return value
