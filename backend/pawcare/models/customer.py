"""
PawCare Backend — Customer and Pet Models
===========================================

What:  ORM models for the `customers` and `pets` tables.
Who:   Written by the booking flow and registration, read by the admin
       dashboard and the customer portal.

Table Design Rationale:
    - customers.email is UNIQUE: the booking form reuses an existing customer
      when the same email books again instead of creating a duplicate.
    - pets.customer_id cascades on delete: pets have no meaning without
      their owner.
    - profile_picture is TEXT because the frontend may send a data URL.
"""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from pawcare.database import Base, utcnow


class Customer(Base):
    """A person who booked at least once or registered for the portal."""

    __tablename__ = "customers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)

    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)

    profile_picture: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    def __repr__(self) -> str:
        return f"<Customer(id={self.id}, email='{self.email}')>"


class Pet(Base):
    """
    A pet belonging to one customer.

    Created by the booking form when a pet name is supplied. `age` is
    nullable because the form field is free text and non-numeric input is
    stored as NULL rather than rejected.
    """

    __tablename__ = "pets"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    customer_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("customers.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    # Species, e.g. "dog" or "cat"; the booking form defaults it to "Not specified"
    type: Mapped[str | None] = mapped_column(String(100), nullable=True)

    breed: Mapped[str | None] = mapped_column(String(100), nullable=True)

    age: Mapped[int | None] = mapped_column(Integer, nullable=True)

    special_needs: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    def __repr__(self) -> str:
        return f"<Pet(id={self.id}, name='{self.name}', customer_id={self.customer_id})>"
