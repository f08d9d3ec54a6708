"""
PawCare Backend — Session Middleware
======================================

What:  Loads the server-side session named by the session cookie and saves it
       back after the handler ran.
Why:   Route handlers and guard dependencies read identities from
       `request.state.session` without knowing where sessions are stored.
How:   The cookie carries the opaque session token signed with itsdangerous.
       A missing, tampered or expired cookie simply yields an empty session.

Cookie Attributes:
    HttpOnly  always
    SameSite  lax in development, strict in production
    Secure    production only
    Max-Age   SESSION_MAX_AGE (24h), or SESSION_REMEMBER_MAX_AGE (30 days)
              after a "remember me" login
"""

import logging
from typing import Optional

from itsdangerous import BadSignature, URLSafeTimedSerializer
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from pawcare.config import Settings
from pawcare.exceptions import UNEXPECTED_ERROR, StorageError
from pawcare.middleware.request_id import error_body
from pawcare.sessions import Session, SessionStore, new_session_token

logger = logging.getLogger(__name__)

SESSION_SALT = "pawcare-session"


class SessionMiddleware(BaseHTTPMiddleware):

    def __init__(self, app, store: SessionStore, settings: Settings):
        super().__init__(app)
        self.store = store
        self.settings = settings
        self.serializer = URLSafeTimedSerializer(settings.session_secret, salt=SESSION_SALT)

    def _unsign(self, cookie: Optional[str]) -> Optional[str]:
        if not cookie:
            return None
        try:
            return self.serializer.loads(cookie, max_age=self.settings.session_remember_max_age)
        except BadSignature:
            # Covers SignatureExpired too
            logger.debug("Ignoring invalid session cookie")
            return None

    def _cookie_options(self) -> dict:
        production = self.settings.is_production
        return {
            "httponly": True,
            "samesite": "strict" if production else "lax",
            "secure": production,
            "path": "/",
        }

    def _storage_failure(self, exc: StorageError, operation: str) -> JSONResponse:
        logger.error(
            "Session %s failed: %s | Context: %s", operation, exc.message, exc.context,
        )
        return JSONResponse(
            status_code=500,
            content=error_body("internal_server_error", UNEXPECTED_ERROR),
        )

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        token = self._unsign(request.cookies.get(self.settings.session_cookie_name))
        try:
            data = await self.store.get(token) if token else None
        except StorageError as e:
            return self._storage_failure(e, "load")

        session = Session(
            token=token if data is not None else None,
            data=data,
            max_age=self.settings.session_max_age,
        )
        request.state.session = session

        response = await call_next(request)

        try:
            if session.destroyed:
                if session.token:
                    await self.store.destroy(session.token)
                response.delete_cookie(self.settings.session_cookie_name, **self._cookie_options())
            elif session.modified:
                if session.rotated and session.token:
                    await self.store.destroy(session.token)
                    session.token = None
                session.token = session.token or new_session_token()
                await self.store.set(session.token, session.to_record(), session.max_age)
                response.set_cookie(
                    self.settings.session_cookie_name,
                    self.serializer.dumps(session.token),
                    max_age=session.max_age,
                    **self._cookie_options(),
                )
        except StorageError as e:
            return self._storage_failure(e, "save")

        return response
