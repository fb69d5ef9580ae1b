"""
Middleware package.

WHY: Middleware provides cross-cutting concerns, such as request IDs and
request timing, that apply to all requests.
"""

from app.middleware.request_context import (
    RequestContextMiddleware,
    RequestContext,
    RequestIdLogFilter,
    get_request_context,
    get_request_id,
    get_client_ip,
)

__all__ = [
    "RequestContextMiddleware",
    "RequestContext",
    "RequestIdLogFilter",
    "get_request_context",
    "get_request_id",
    "get_client_ip",
]
