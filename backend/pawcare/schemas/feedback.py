"""Feedback submission and the admin/public feedback listings."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class FeedbackCreateRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: Optional[str] = None
    email: Optional[str] = None
    rating: Optional[int] = Field(default=None, description="1 to 5")
    category: Optional[str] = None
    message: Optional[str] = None
    public: bool = Field(default=False, description="Allow showing this as a testimonial")


class FeedbackCreated(BaseModel):
    id: int


class PublicFeedbackOut(BaseModel):
    """What the public testimonial feed exposes; the email address stays private."""

    id: int
    name: str
    rating: int
    category: str
    message: str
    created_at: Optional[datetime] = None


class FeedbackOut(PublicFeedbackOut):
    email: str
    public: bool
