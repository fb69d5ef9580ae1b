"""
Request context middleware.

WHAT: Assigns every request an ID, exposes it through a ContextVar, and
logs method, path, status and duration when the request finishes.

WHY: A send touches the database, S3, the mail provider and Google
Drive. When one of those fails, the request ID ties the warning lines
from each service back to the single request that caused them.

HOW: An incoming X-Request-ID header is reused (so a proxy's ID carries
through), otherwise a UUID4 is generated. The ID is stored on
request.state and in a ContextVar, and echoed in the response header.
"""

import logging
import time
import uuid
from contextvars import ContextVar
from dataclasses import dataclass
from typing import Callable, Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


@dataclass(frozen=True)
class RequestContext:
    """Request-scoped data available to services without the Request."""

    request_id: str
    ip_address: str
    path: str
    method: str


_request_context: ContextVar[Optional[RequestContext]] = ContextVar(
    "request_context", default=None
)


def get_request_context() -> Optional[RequestContext]:
    """Context of the request being handled, or None outside a request."""
    return _request_context.get()


def get_request_id() -> Optional[str]:
    context = _request_context.get()
    return context.request_id if context else None


def get_client_ip(request: Request) -> str:
    """
    Client IP, preferring proxy headers.

    Order: X-Real-IP, first X-Forwarded-For entry, socket peer.
    """
    x_real_ip = request.headers.get("X-Real-IP")
    if x_real_ip:
        return x_real_ip.strip()

    x_forwarded_for = request.headers.get("X-Forwarded-For")
    if x_forwarded_for:
        return x_forwarded_for.split(",")[0].strip()

    if request.client and request.client.host:
        return request.client.host

    return "unknown"


class RequestIdLogFilter(logging.Filter):
    """
    Adds request_id to log records.

    Attach to a handler so formats can use %(request_id)s.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = get_request_id() or "-"
        return True


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Middleware that captures request context and logs request timing.

    Example:
        @router.post("/send-invoice")
        async def send(request: Request):
            request_id = request.state.context.request_id
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        context = RequestContext(
            request_id=request_id,
            ip_address=get_client_ip(request),
            path=request.url.path,
            method=request.method,
        )
        request.state.context = context
        token = _request_context.set(context)
        started = time.perf_counter()

        try:
            response = await call_next(request)
            response.headers[REQUEST_ID_HEADER] = request_id
            elapsed_ms = (time.perf_counter() - started) * 1000
            logger.info(
                f"{context.method} {context.path} -> {response.status_code} ({elapsed_ms:.1f}ms)",
                extra={"request_id": request_id, "client_ip": context.ip_address},
            )
            return response
        finally:
            _request_context.reset(token)
