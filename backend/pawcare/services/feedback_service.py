"""Feedback submission and listing."""

import logging
from typing import List

from sqlalchemy.ext.asyncio import AsyncSession

from pawcare.exceptions import ValidationError
from pawcare.schemas.feedback import FeedbackCreateRequest
from pawcare.services.auth_service import is_valid_email, normalize_email
from pawcare.storage.base import Row, StorageAdapter

logger = logging.getLogger(__name__)

MIN_RATING = 1
MAX_RATING = 5


class FeedbackService:
    async def submit(
        self, db: AsyncSession, storage: StorageAdapter, request: FeedbackCreateRequest
    ) -> Row:
        """Validate and store one submission; returns the stored row (committed)."""
        if not (
            request.name
            and request.email
            and request.rating is not None
            and request.category
            and request.message
        ):
            raise ValidationError("All fields are required")
        if not MIN_RATING <= request.rating <= MAX_RATING:
            raise ValidationError("Rating must be between 1 and 5", field="rating")

        email = normalize_email(request.email)
        if not is_valid_email(email):
            raise ValidationError("Invalid email address", field="email")

        feedback_id = await storage.create_feedback(
            db,
            request.name,
            email,
            request.rating,
            request.category,
            request.message,
            public=request.public,
        )
        feedback = await storage.get_feedback_by_id(db, feedback_id)
        await db.commit()

        logger.info(
            "Feedback %d received (rating=%d, category=%s, public=%s)",
            feedback_id, request.rating, request.category, request.public,
        )
        return feedback

    async def list_all(self, db: AsyncSession, storage: StorageAdapter) -> List[Row]:
        return await storage.get_all_feedback(db)

    async def list_public(self, db: AsyncSession, storage: StorageAdapter) -> List[Row]:
        return await storage.get_public_feedback(db)


feedback_service = FeedbackService()
