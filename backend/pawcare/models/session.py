"""
PawCare Backend — Session Record Model
========================================

What:  Backing table for the database session store.
How:   One row per browser session. `data` holds the JSON-encoded identity
       fields; `expires_at` is checked on every read so stale rows are
       treated as absent and removed lazily.
"""

from datetime import datetime

from sqlalchemy import DateTime, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from pawcare.database import Base


class SessionRecord(Base):
    __tablename__ = "sessions"

    token: Mapped[str] = mapped_column(String(64), primary_key=True)

    data: Mapped[str] = mapped_column(Text, nullable=False, default="{}")

    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        Index("idx_sessions_expires_at", "expires_at"),
    )
