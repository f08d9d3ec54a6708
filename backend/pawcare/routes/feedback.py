"""
PawCare Backend — Feedback Routes
===================================

POST /api/feedback is public and notifies the operator. The admin list shows
everything; the public feed shows only submissions marked public, without
the submitter's email address.
"""

from typing import List

from fastapi import APIRouter, BackgroundTasks, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from pawcare.database import get_db_session
from pawcare.dependencies import get_notifier, get_storage, require_admin
from pawcare.schemas.common import ApiResponse, ErrorResponse
from pawcare.schemas.feedback import (
    FeedbackCreated,
    FeedbackCreateRequest,
    FeedbackOut,
    PublicFeedbackOut,
)
from pawcare.services.feedback_service import feedback_service
from pawcare.services.notification_service import NotificationDispatcher
from pawcare.sessions import Session
from pawcare.storage.base import StorageAdapter

router = APIRouter(prefix="/api/feedback", tags=["Feedback"])


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=ApiResponse[FeedbackCreated],
    responses={400: {"description": "Missing fields or rating out of range", "model": ErrorResponse}},
    summary="Submit feedback",
)
async def submit_feedback(
    body: FeedbackCreateRequest,
    background_tasks: BackgroundTasks,
    storage: StorageAdapter = Depends(get_storage),
    notifier: NotificationDispatcher = Depends(get_notifier),
    db: AsyncSession = Depends(get_db_session),
):
    feedback = await feedback_service.submit(db, storage, body)
    notifier.new_feedback(background_tasks, feedback)
    return ApiResponse(
        data=FeedbackCreated(id=feedback["id"]),
        message="Feedback submitted successfully",
    )


@router.get(
    "",
    response_model=ApiResponse[List[FeedbackOut]],
    responses={401: {"description": "Admin login required", "model": ErrorResponse}},
    summary="List all feedback (admin)",
)
async def list_feedback(
    _admin: Session = Depends(require_admin),
    storage: StorageAdapter = Depends(get_storage),
    db: AsyncSession = Depends(get_db_session),
):
    return ApiResponse(data=await feedback_service.list_all(db, storage))


@router.get(
    "/public",
    response_model=ApiResponse[List[PublicFeedbackOut]],
    summary="Public testimonials",
)
async def list_public_feedback(
    storage: StorageAdapter = Depends(get_storage),
    db: AsyncSession = Depends(get_db_session),
):
    return ApiResponse(data=await feedback_service.list_public(db, storage))
