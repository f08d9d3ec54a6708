"""
PawCare Backend — Service Catalog and Booking Models
======================================================

What:  ORM models for the `services` catalog and the `bookings` table.
Who:   Services are seeded once at startup and read by the public site;
       bookings are created by the public form and managed by admins.

Booking Lifecycle:
    pending → confirmed → completed
        └───────┴──────→ cancelled
    The API accepts any of the four values on update; there is no
    transition graph to enforce. A CHECK constraint keeps the column
    inside the enum even for writes that bypass the API.

Foreign Keys:
    customer_id → customers.id  ON DELETE CASCADE
    service_id  → services.id   ON DELETE CASCADE
    pet_id      → pets.id       ON DELETE SET NULL (pet is optional)
"""

from datetime import date, datetime, time

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Time,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from pawcare.database import Base, utcnow

BOOKING_STATUSES = ("pending", "confirmed", "completed", "cancelled")


class Service(Base):
    """An offered service with its list price and nominal duration."""

    __tablename__ = "services"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Float maps to REAL / DOUBLE on every backend and comes back as a Python float
    price: Mapped[float] = mapped_column(Float, nullable=False)

    duration_minutes: Mapped[int] = mapped_column(Integer, nullable=False)

    def __repr__(self) -> str:
        return f"<Service(id={self.id}, name='{self.name}')>"


class Booking(Base):
    """One appointment for one service, made by one customer."""

    __tablename__ = "bookings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    customer_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("customers.id", ondelete="CASCADE"),
        nullable=False,
    )

    pet_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("pets.id", ondelete="SET NULL"),
        nullable=True,
    )

    service_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("services.id", ondelete="CASCADE"),
        nullable=False,
    )

    booking_date: Mapped[date] = mapped_column(Date, nullable=False)

    booking_time: Mapped[time] = mapped_column(Time, nullable=False)

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="pending",
        server_default=text("'pending'"),
    )

    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'confirmed', 'completed', 'cancelled')",
            name="ck_bookings_status",
        ),
        # Dashboard and portal lists are newest first
        Index("idx_bookings_created_at", "created_at"),
        Index("idx_bookings_customer_id", "customer_id"),
    )

    def __repr__(self) -> str:
        return f"<Booking(id={self.id}, status='{self.status}')>"
