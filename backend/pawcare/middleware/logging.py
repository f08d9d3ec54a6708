"""
PawCare Backend — Request Logging Middleware
==============================================

What:  One access-log line per request, tagged with who made it.
How:   Runs outside the session middleware, so once the response is back the
       request's session (if any) is readable from request.state and the
       line can say admin, customer or anonymous. Level follows the status
       class: 5xx ERROR, 4xx WARNING, otherwise INFO.

Logged: method, path, status, duration, request id, client address, identity.
Never logged: request bodies (passwords, phone numbers) and cookies.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from pawcare.middleware.request_id import request_id_var

logger = logging.getLogger("pawcare.access")

# Polled every few seconds by container health checks
QUIET_PATHS = frozenset({"/api/health"})


def identity_label(request: Request) -> str:
    session = getattr(request.state, "session", None)
    if session is None:
        return "anonymous"
    if session.is_admin:
        return f"admin:{session.get('admin_username')}"
    if session.is_customer:
        return f"customer:{session.get('customer_id')}"
    return "anonymous"


def level_for(status: int) -> int:
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in QUIET_PATHS:
            return await call_next(request)

        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000

        client = request.client.host if request.client else "unknown"
        logger.log(
            level_for(response.status_code),
            "%s %s -> %d in %.1fms [%s] %s from %s",
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
            request_id_var.get(""),
            identity_label(request),
            client,
        )
        return response
