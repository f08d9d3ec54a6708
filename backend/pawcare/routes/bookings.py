"""
PawCare Backend — Booking Routes
==================================

What:  POST /api/bookings is the public booking form (rate limited);
       listing, status changes and deletion are admin-only; a single
       booking is visible to admins and to the customer who owns it.
How:   BookingService does the work and commits; notifications are queued
       on BackgroundTasks afterwards and delivered once the response is sent.
"""

import logging
from typing import List

from fastapi import APIRouter, BackgroundTasks, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from pawcare.database import get_db_session
from pawcare.dependencies import get_notifier, get_session, get_storage, require_admin
from pawcare.schemas.booking import BookingCreateRequest, BookingStatusUpdate, BookingView
from pawcare.schemas.common import ApiResponse, ErrorResponse
from pawcare.services.booking_service import booking_service
from pawcare.services.notification_service import NotificationDispatcher
from pawcare.sessions import Session
from pawcare.storage.base import StorageAdapter

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/bookings", tags=["Bookings"])


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=ApiResponse[BookingView],
    responses={
        400: {"description": "Missing or malformed fields", "model": ErrorResponse},
        429: {"description": "Too many booking requests", "model": ErrorResponse},
    },
    summary="Submit the public booking form",
)
async def create_booking(
    body: BookingCreateRequest,
    background_tasks: BackgroundTasks,
    storage: StorageAdapter = Depends(get_storage),
    notifier: NotificationDispatcher = Depends(get_notifier),
    db: AsyncSession = Depends(get_db_session),
):
    booking = await booking_service.create_booking(db, storage, body)
    notifier.booking_received(background_tasks, booking)
    return ApiResponse(data=booking, message="Booking created successfully")


@router.get(
    "",
    response_model=ApiResponse[List[BookingView]],
    responses={401: {"description": "Admin login required", "model": ErrorResponse}},
    summary="List all bookings, newest first",
)
async def list_bookings(
    _admin: Session = Depends(require_admin),
    storage: StorageAdapter = Depends(get_storage),
    db: AsyncSession = Depends(get_db_session),
):
    return ApiResponse(data=await booking_service.list_bookings(db, storage))


@router.get(
    "/{booking_id}",
    response_model=ApiResponse[BookingView],
    responses={
        401: {"description": "Login required", "model": ErrorResponse},
        404: {"description": "Booking not found", "model": ErrorResponse},
    },
    summary="Get one booking (admin, or the owning customer)",
)
async def get_booking(
    booking_id: int,
    session: Session = Depends(get_session),
    storage: StorageAdapter = Depends(get_storage),
    db: AsyncSession = Depends(get_db_session),
):
    booking = await booking_service.get_booking(db, storage, booking_id, session)
    return ApiResponse(data=booking)


@router.put(
    "/{booking_id}",
    response_model=ApiResponse[BookingView],
    responses={
        400: {"description": "Missing or invalid status", "model": ErrorResponse},
        401: {"description": "Admin login required", "model": ErrorResponse},
        404: {"description": "Booking not found", "model": ErrorResponse},
    },
    summary="Change a booking's status",
)
async def update_booking_status(
    booking_id: int,
    body: BookingStatusUpdate,
    background_tasks: BackgroundTasks,
    _admin: Session = Depends(require_admin),
    storage: StorageAdapter = Depends(get_storage),
    notifier: NotificationDispatcher = Depends(get_notifier),
    db: AsyncSession = Depends(get_db_session),
):
    booking = await booking_service.update_status(db, storage, booking_id, body.status)
    notifier.status_changed(background_tasks, booking)
    return ApiResponse(data=booking, message="Booking updated successfully")


@router.delete(
    "/{booking_id}",
    response_model=ApiResponse[None],
    responses={
        401: {"description": "Admin login required", "model": ErrorResponse},
        404: {"description": "Booking not found", "model": ErrorResponse},
    },
    summary="Delete a booking permanently",
)
async def delete_booking(
    booking_id: int,
    _admin: Session = Depends(require_admin),
    storage: StorageAdapter = Depends(get_storage),
    db: AsyncSession = Depends(get_db_session),
):
    await booking_service.delete_booking(db, storage, booking_id)
    return ApiResponse(message="Booking deleted successfully")
