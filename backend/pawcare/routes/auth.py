"""
PawCare Backend — Admin Authentication Routes
===============================================

What:  Admin session lifecycle (login, logout, check) and the admin's
       self-service endpoints (profile, password, forgot-password).
How:   Credentials are checked by AuthService; this module only moves the
       resulting identity in and out of request.state.session. The session
       middleware persists the change and sets or clears the cookie.
"""

import logging

from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from pawcare.config import Settings
from pawcare.database import get_db_session
from pawcare.dependencies import (
    get_notifier,
    get_session,
    get_settings,
    get_storage,
    require_admin,
)
from pawcare.exceptions import NotFoundError
from pawcare.schemas.auth import (
    AdminCheck,
    AdminIdentity,
    AdminLoginRequest,
    AdminProfileUpdate,
    ForgotPasswordRequest,
    PasswordChangeRequest,
)
from pawcare.schemas.common import ApiResponse, ErrorResponse
from pawcare.services.auth_service import admin_identity, auth_service
from pawcare.services.notification_service import NotificationDispatcher
from pawcare.sessions import Session
from pawcare.storage.base import StorageAdapter

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Admin Auth"])

AUTH_ERRORS = {
    400: {"description": "Missing or malformed fields", "model": ErrorResponse},
    401: {"description": "Not logged in or bad credentials", "model": ErrorResponse},
}


@router.post(
    "/auth/login",
    response_model=ApiResponse[AdminIdentity],
    responses={**AUTH_ERRORS, 429: {"description": "Too many attempts", "model": ErrorResponse}},
    summary="Admin login",
)
async def admin_login(
    body: AdminLoginRequest,
    session: Session = Depends(get_session),
    settings: Settings = Depends(get_settings),
    storage: StorageAdapter = Depends(get_storage),
    db: AsyncSession = Depends(get_db_session),
):
    admin = await auth_service.authenticate_admin(db, storage, body.username, body.password)
    session.login_admin(
        admin["username"],
        max_age=settings.session_remember_max_age if body.remember else None,
    )
    return ApiResponse(data=admin_identity(admin), message="Login successful")


@router.post(
    "/auth/logout",
    response_model=ApiResponse[None],
    summary="Log out (both identities)",
)
async def admin_logout(session: Session = Depends(get_session)):
    session.destroy()
    return ApiResponse(message="Logged out successfully")


@router.get(
    "/auth/check",
    response_model=ApiResponse[AdminCheck],
    summary="Is this session an admin?",
)
async def admin_check(
    session: Session = Depends(get_session),
    storage: StorageAdapter = Depends(get_storage),
    db: AsyncSession = Depends(get_db_session),
):
    if not session.is_admin:
        return ApiResponse(data=AdminCheck(authenticated=False))

    admin = await storage.get_admin_by_username(db, session["admin_username"])
    user = admin_identity(admin) if admin else {"username": session["admin_username"]}
    return ApiResponse(data=AdminCheck(authenticated=True, user=user))


@router.put(
    "/admin/profile",
    response_model=ApiResponse[AdminIdentity],
    responses={**AUTH_ERRORS, 404: {"description": "Admin not found", "model": ErrorResponse}},
    summary="Update the logged-in admin's profile",
)
async def update_admin_profile(
    body: AdminProfileUpdate,
    session: Session = Depends(require_admin),
    storage: StorageAdapter = Depends(get_storage),
    db: AsyncSession = Depends(get_db_session),
):
    admin = await auth_service.update_admin_profile(
        db, storage, session["admin_username"], body.model_dump(exclude_unset=True),
    )
    if admin is None:
        raise NotFoundError("admin", session["admin_username"], message="Admin not found")
    if admin["username"] != session["admin_username"]:
        session["admin_username"] = admin["username"]
    return ApiResponse(data=admin_identity(admin), message="Profile updated successfully")


@router.put(
    "/admin/password",
    response_model=ApiResponse[None],
    responses=AUTH_ERRORS,
    summary="Change the logged-in admin's password",
)
async def change_admin_password(
    body: PasswordChangeRequest,
    session: Session = Depends(require_admin),
    storage: StorageAdapter = Depends(get_storage),
    db: AsyncSession = Depends(get_db_session),
):
    await auth_service.change_admin_password(
        db, storage, session["admin_username"], body.current_password, body.new_password,
    )
    return ApiResponse(message="Password updated successfully")


@router.post(
    "/admin/forgot-password",
    response_model=ApiResponse[None],
    responses={404: {"description": "No admin with this email", "model": ErrorResponse}},
    summary="Email the admin a temporary password",
)
async def admin_forgot_password(
    body: ForgotPasswordRequest,
    background_tasks: BackgroundTasks,
    storage: StorageAdapter = Depends(get_storage),
    notifier: NotificationDispatcher = Depends(get_notifier),
    db: AsyncSession = Depends(get_db_session),
):
    email, name, temporary = await auth_service.reset_admin_password(db, storage, body.email)
    notifier.password_reset(background_tasks, email, name, temporary)
    return ApiResponse(message="Temporary password sent to your email")
