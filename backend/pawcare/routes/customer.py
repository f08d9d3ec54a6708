"""
PawCare Backend — Customer Portal Routes
==========================================

What:  Customer session lifecycle (register, login, logout, check), the
       customer's self-service endpoints, and their booking history.
How:   Same split as the admin routes: AuthService owns the credential
       rules, this module moves identity in and out of the session.

A session can hold an admin and a customer identity at the same time;
logging out from either endpoint ends both.
"""

import logging
from typing import List

from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from pawcare.config import Settings
from pawcare.database import get_db_session
from pawcare.dependencies import (
    get_notifier,
    get_session,
    get_settings,
    get_storage,
    require_customer,
)
from pawcare.schemas.auth import (
    CustomerCheck,
    CustomerIdentity,
    CustomerLoginRequest,
    ForgotPasswordRequest,
    PasswordChangeRequest,
    RegisterRequest,
)
from pawcare.schemas.booking import BookingView
from pawcare.schemas.common import ApiResponse, ErrorResponse
from pawcare.schemas.customer import CustomerProfileUpdate
from pawcare.services.auth_service import auth_service, customer_identity
from pawcare.services.booking_service import booking_service
from pawcare.services.notification_service import NotificationDispatcher
from pawcare.sessions import Session
from pawcare.storage.base import StorageAdapter

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/customer", tags=["Customer Portal"])

AUTH_ERRORS = {
    400: {"description": "Missing or malformed fields", "model": ErrorResponse},
    401: {"description": "Not logged in or bad credentials", "model": ErrorResponse},
}


@router.post(
    "/register",
    response_model=ApiResponse[CustomerIdentity],
    responses={**AUTH_ERRORS, 429: {"description": "Too many attempts", "model": ErrorResponse}},
    summary="Create a portal login and sign in",
)
async def register(
    body: RegisterRequest,
    session: Session = Depends(get_session),
    storage: StorageAdapter = Depends(get_storage),
    db: AsyncSession = Depends(get_db_session),
):
    customer, email = await auth_service.register_customer(
        db, storage, body.name, body.email, body.phone, body.password,
    )
    session.login_customer(customer["id"], email)
    return ApiResponse(data=customer_identity(customer), message="Registration successful")


@router.post(
    "/login",
    response_model=ApiResponse[CustomerIdentity],
    responses={**AUTH_ERRORS, 429: {"description": "Too many attempts", "model": ErrorResponse}},
    summary="Customer login",
)
async def customer_login(
    body: CustomerLoginRequest,
    session: Session = Depends(get_session),
    settings: Settings = Depends(get_settings),
    storage: StorageAdapter = Depends(get_storage),
    db: AsyncSession = Depends(get_db_session),
):
    customer = await auth_service.authenticate_customer(db, storage, body.email, body.password)
    session.login_customer(
        customer["id"],
        customer["email"],
        max_age=settings.session_remember_max_age if body.remember else None,
    )
    logger.info("Customer %d logged in", customer["id"])
    return ApiResponse(data=customer_identity(customer), message="Login successful")


@router.post(
    "/logout",
    response_model=ApiResponse[None],
    summary="Log out (both identities)",
)
async def customer_logout(session: Session = Depends(get_session)):
    session.destroy()
    return ApiResponse(message="Logged out successfully")


@router.get(
    "/check",
    response_model=ApiResponse[CustomerCheck],
    summary="Is this session a customer?",
)
async def customer_check(
    session: Session = Depends(get_session),
    storage: StorageAdapter = Depends(get_storage),
    db: AsyncSession = Depends(get_db_session),
):
    if not session.is_customer:
        return ApiResponse(data=CustomerCheck(authenticated=False))

    customer = await auth_service.get_session_customer(db, storage, session["customer_id"])
    if customer is None:
        # Customer row was removed while the session was alive
        logger.info("Dropping session for missing customer %s", session["customer_id"])
        session.destroy()
        return ApiResponse(data=CustomerCheck(authenticated=False))
    return ApiResponse(data=CustomerCheck(authenticated=True, user=customer_identity(customer)))


@router.put(
    "/profile",
    response_model=ApiResponse[CustomerIdentity],
    responses={**AUTH_ERRORS, 404: {"description": "Customer not found", "model": ErrorResponse}},
    summary="Update the logged-in customer's profile",
)
async def update_customer_profile(
    body: CustomerProfileUpdate,
    session: Session = Depends(require_customer),
    storage: StorageAdapter = Depends(get_storage),
    db: AsyncSession = Depends(get_db_session),
):
    customer = await auth_service.update_customer_profile(
        db, storage, session["customer_id"], body.model_dump(exclude_unset=True),
    )
    if customer["email"] != session.get("customer_email"):
        session["customer_email"] = customer["email"]
    return ApiResponse(data=customer_identity(customer), message="Profile updated successfully")


@router.put(
    "/password",
    response_model=ApiResponse[None],
    responses=AUTH_ERRORS,
    summary="Change the logged-in customer's password",
)
async def change_customer_password(
    body: PasswordChangeRequest,
    session: Session = Depends(require_customer),
    storage: StorageAdapter = Depends(get_storage),
    db: AsyncSession = Depends(get_db_session),
):
    await auth_service.change_customer_password(
        db, storage, session["customer_id"], body.current_password, body.new_password,
    )
    return ApiResponse(message="Password updated successfully")


@router.post(
    "/forgot-password",
    response_model=ApiResponse[None],
    responses={404: {"description": "No account with this email", "model": ErrorResponse}},
    summary="Email the customer a temporary password",
)
async def customer_forgot_password(
    body: ForgotPasswordRequest,
    background_tasks: BackgroundTasks,
    storage: StorageAdapter = Depends(get_storage),
    notifier: NotificationDispatcher = Depends(get_notifier),
    db: AsyncSession = Depends(get_db_session),
):
    email, name, temporary = await auth_service.reset_customer_password(db, storage, body.email)
    notifier.password_reset(background_tasks, email, name, temporary)
    return ApiResponse(message="Temporary password sent to your email")


@router.get(
    "/bookings",
    response_model=ApiResponse[List[BookingView]],
    responses={401: {"description": "Not logged in", "model": ErrorResponse}},
    summary="The logged-in customer's bookings, newest first",
)
async def customer_bookings(
    session: Session = Depends(require_customer),
    storage: StorageAdapter = Depends(get_storage),
    db: AsyncSession = Depends(get_db_session),
):
    bookings = await booking_service.list_customer_bookings(db, storage, session["customer_id"])
    return ApiResponse(data=bookings)
