"""
PawCare Backend — FastAPI Dependencies
========================================

What:  Injectables for routes: the active storage adapter, the request's
       session, the notification dispatcher, and the two identity guards.
Why:   Everything stateful lives on app.state (set by create_app), so tests
       build an app with their own adapter, store and sender and nothing
       leaks between app instances.
"""

from fastapi import Depends, Request

from pawcare.config import Settings
from pawcare.exceptions import AuthError
from pawcare.services.notification_service import NotificationDispatcher
from pawcare.sessions import Session
from pawcare.storage.base import StorageAdapter


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_storage(request: Request) -> StorageAdapter:
    return request.app.state.storage


def get_session(request: Request) -> Session:
    """The session loaded by SessionMiddleware for this request."""
    return request.state.session


def get_notifier(request: Request) -> NotificationDispatcher:
    return request.app.state.notifier


def require_admin(session: Session = Depends(get_session)) -> Session:
    if not session.is_admin:
        raise AuthError("Unauthorized. Please login.")
    return session


def require_customer(session: Session = Depends(get_session)) -> Session:
    if not session.is_customer:
        raise AuthError("Unauthorized")
    return session
