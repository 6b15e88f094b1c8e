import re
import time
import uuid
from contextvars import ContextVar
from typing import Optional
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from config import logger

REQUEST_ID_HEADER = "X-Request-ID"
SESSION_HEADER = "X-Session-ID"

_REQUEST_ID_PATTERN = re.compile(r"^[A-Za-z0-9._-]{1,128}$")

request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)

def resolve_request_id(supplied: Optional[str]) -> str:
    """Keep a caller's request id only when it is a short token; otherwise mint one."""
    if supplied and _REQUEST_ID_PATTERN.match(supplied):
        return supplied
    return uuid.uuid4().hex

class RequestContextMiddleware(BaseHTTPMiddleware):
    """Tags every request with an id, logs it with its session, and echoes both headers back."""

    async def dispatch(self, request: Request, call_next):
        request_id = resolve_request_id(request.headers.get(REQUEST_ID_HEADER))
        token = request_id_var.set(request_id)
        session_id = request.headers.get(SESSION_HEADER)
        start_time = time.monotonic()

        logger.info(
            "Request started",
            extra={
                "request_id": request_id,
                "session_id": session_id,
                "method": request.method,
                "path": request.url.path,
            }
        )

        try:
            response = await call_next(request)
        finally:
            request_id_var.reset(token)

        duration_ms = round((time.monotonic() - start_time) * 1000, 2)
        logger.info(
            "Request completed",
            extra={"request_id": request_id, "status_code": response.status_code, "duration_ms": duration_ms}
        )

        response.headers[REQUEST_ID_HEADER] = request_id
        response.headers["X-Response-Time-Ms"] = str(duration_ms)
        if session_id:
            response.headers[SESSION_HEADER] = session_id
        return response

def get_request_id() -> Optional[str]:
    return request_id_var.get()
