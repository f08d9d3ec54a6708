"""
PawCare Backend — Request ID Middleware
=========================================

Every failure envelope carries a `request_id`; a customer quoting it for a
failed booking lets the operator find the matching log lines. An upstream
X-Request-ID is reused when it looks like an id, otherwise a fresh 8-hex id
is minted.
"""

import re
import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

REQUEST_ID_HEADER = "X-Request-ID"

# Upstream ids end up in log lines; anything else is replaced
_SAFE_ID = re.compile(r"^[A-Za-z0-9._-]{1,64}$")

request_id_var: ContextVar[str] = ContextVar("request_id", default="")


def error_body(error: str, message: str) -> dict:
    """The failure envelope, tagged with the current request id."""
    return {
        "success": False,
        "error": error,
        "message": message,
        "request_id": request_id_var.get(""),
    }


def new_request_id() -> str:
    return uuid.uuid4().hex[:8]


class RequestIDMiddleware(BaseHTTPMiddleware):

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        incoming = request.headers.get(REQUEST_ID_HEADER, "")
        rid = incoming if _SAFE_ID.match(incoming) else new_request_id()
        # Left set after the call: the catch-all 500 handler runs outside us
        request_id_var.set(rid)
        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = rid
        return response
