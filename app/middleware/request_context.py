"""
RequestContext Middleware - Adds request tracking to all requests.

Every request gets:
- request_id: Unique ID for request tracing (echoed as X-Request-ID)
- ip_address: Client IP address

The request id is bound into the structlog context, so every log line
written while handling the request carries it as trace_id.

Usage:
    In endpoints:
        request.state.request_id
        request.state.ip_address
"""

import uuid

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from app.infrastructure.observability.logging import (
    bind_request_context,
    clear_request_context,
    get_logger,
)

logger = get_logger(__name__)


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Add request context to all incoming requests.

    Honours an incoming X-Request-ID so a widget or proxy can correlate
    its own logs with ours.
    """

    async def dispatch(self, request: Request, call_next):
        """Process request and add context."""

        request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
        request.state.request_id = request_id

        ip_address = request.client.host if request.client else None
        request.state.ip_address = ip_address

        clear_request_context()
        bind_request_context(request_id=request_id)

        logger.debug(
            "Request started",
            method=request.method,
            path=request.url.path,
            ip_address=ip_address,
        )

        try:
            response = await call_next(request)
        finally:
            clear_request_context()

        response.headers["X-Request-ID"] = request_id
        return response
