"""
Access logging with a per-request correlation id.
"""
import logging
import re
import time
import uuid
from typing import Any, Callable, Dict, Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from catexam.core.logging_config import request_id_context

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

# Liveness probes are logged at DEBUG only
QUIET_PATH_SUFFIXES = ("/health",)

_SESSION_PATH = re.compile(r"/sessions/(\d+)(?:/|$)")


def session_id_from_path(path: str) -> Optional[int]:
    """Return the CAT session id embedded in a /sessions/{id} path, if any."""
    match = _SESSION_PATH.search(path)
    return int(match.group(1)) if match else None


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Logs one line per request with method, path, caller, status and duration.

    The correlation id is taken from the X-Request-ID request header (or
    generated), exposed to log records through ``request_id_context`` and
    echoed on the response.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request_id_context.set(request_id)

        path = request.url.path
        started = time.perf_counter()
        response = await call_next(request)
        duration_ms = round((time.perf_counter() - started) * 1000, 2)

        response.headers[REQUEST_ID_HEADER] = request_id

        fields: Dict[str, Any] = {
            "method": request.method,
            "path": path,
            "status_code": response.status_code,
            "duration_ms": duration_ms,
            "user_id": request.headers.get("X-User-Id") or "anonymous",
        }
        session_id = session_id_from_path(path)
        if session_id is not None:
            fields["session_id"] = session_id

        if response.status_code >= 500:
            level = logging.ERROR
        elif response.status_code >= 400:
            level = logging.WARNING
        elif path.endswith(QUIET_PATH_SUFFIXES):
            level = logging.DEBUG
        else:
            level = logging.INFO

        logger.log(
            level,
            f"{request.method} {path} -> {response.status_code} ({duration_ms}ms)",
            extra=fields,
        )
        return response
