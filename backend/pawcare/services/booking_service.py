"""
PawCare Backend — Booking Service
===================================

What:  Business logic for the public booking form and the admin booking
       dashboard: customer reuse, optional pet capture, service resolution,
       date/time defaults, status transitions and deletion.
Why:   The routes stay thin; the booking rules live here and are testable
       against a real adapter without HTTP.
How:   Stateless methods taking the request's AsyncSession and the active
       StorageAdapter. Writes that trigger a notification commit explicitly
       before returning, so notifications are only queued for committed data.

Service Resolution:
    The form posts a short key ('dog-walking'); SERVICE_KEYS maps it to the
    catalog name. Anything else is matched against service names ignoring
    case. When nothing matches, the first catalog entry is used and a warning
    is logged with the unmatched value.
"""

import logging
import math
import re
from datetime import date, time, timedelta
from typing import List, Optional, Union

from sqlalchemy.ext.asyncio import AsyncSession

from pawcare.exceptions import AuthError, NotFoundError, StorageError, ValidationError
from pawcare.models import BOOKING_STATUSES
from pawcare.schemas.booking import BookingCreateRequest
from pawcare.services.auth_service import normalize_email
from pawcare.sessions import Session
from pawcare.storage.base import Row, StorageAdapter

logger = logging.getLogger(__name__)

SERVICE_KEYS = {
    "pet-sitting": "Pet Sitting",
    "dog-walking": "Dog Walking",
    "pet-boarding": "Pet Boarding",
    "grooming": "Grooming",
    "vet-visits": "Vet Visits",
    "training": "Training Support",
}

DEFAULT_BOOKING_TIME = time(10, 0, 0)
DEFAULT_PET_TYPE = "Not specified"
MAX_PET_AGE = 100

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def parse_pet_age(value: Optional[Union[int, float, str]]) -> Optional[int]:
    """Leading integer of the form value, or None. '3 years' → 3, 'puppy' → None.

    Fractions are truncated (2.5 → 2). Ages outside 0..MAX_PET_AGE become None.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, float):
        if not math.isfinite(value):
            return None
        age = int(value)
    elif isinstance(value, int):
        age = value
    else:
        match = _LEADING_INT.match(value)
        if not match:
            return None
        age = int(match.group(1))
    return age if 0 <= age <= MAX_PET_AGE else None


def parse_booking_date(value: Optional[str]) -> date:
    if not value:
        return date.today() + timedelta(days=1)
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise ValidationError("Invalid booking date, expected YYYY-MM-DD", field="bookingDate")


def parse_booking_time(value: Optional[str]) -> time:
    if not value:
        return DEFAULT_BOOKING_TIME
    if value.count(":") == 1:
        value = f"{value}:00"
    try:
        return time.fromisoformat(value)
    except ValueError:
        raise ValidationError("Invalid booking time, expected HH:MM", field="bookingTime")


class BookingService:
    """Booking lifecycle from public submission to admin status changes."""

    async def resolve_service(self, db: AsyncSession, storage: StorageAdapter, selector: str) -> Row:
        name = SERVICE_KEYS.get(selector.strip().lower(), selector)
        service = await storage.get_service_by_name(db, name)
        if service is not None:
            return service

        services = await storage.get_all_services(db)
        if not services:
            raise StorageError(
                "No services are configured",
                context={"selector": selector},
            )
        logger.warning(
            "No service matches '%s'; falling back to '%s'", selector, services[0]["name"],
        )
        return services[0]

    async def create_booking(
        self,
        db: AsyncSession,
        storage: StorageAdapter,
        request: BookingCreateRequest,
    ) -> Row:
        """
        Record a booking from the public form and return its joined view.

        The customer is found by email (created on first booking, reused
        after). A pet is recorded only when the form names one. The whole
        sequence commits together.
        """
        if not (request.name and request.email and request.phone and request.service):
            raise ValidationError("Missing required fields: name, email, phone, service")

        booking_date = parse_booking_date(request.booking_date)
        booking_time = parse_booking_time(request.booking_time)
        email = normalize_email(request.email)

        customer = await storage.get_customer_by_email(db, email)
        if customer is None:
            customer_id = await storage.create_customer(db, request.name, email, request.phone)
            logger.info("Created customer %d from booking form", customer_id)
        else:
            customer_id = customer["id"]

        pet_id = None
        if request.pet_name:
            pet_id = await storage.create_pet(
                db,
                customer_id,
                request.pet_name,
                type=request.pet_type or DEFAULT_PET_TYPE,
                breed=None,
                age=parse_pet_age(request.pet_age),
                special_needs=request.message,
            )

        service = await self.resolve_service(db, storage, request.service)

        booking_id = await storage.create_booking(
            db,
            customer_id,
            pet_id,
            service["id"],
            booking_date,
            booking_time,
            notes=request.message,
        )
        booking = await storage.get_booking_by_id(db, booking_id)
        await db.commit()

        logger.info(
            "Booking %d created: customer=%d service='%s' date=%s",
            booking_id, customer_id, service["name"], booking_date.isoformat(),
        )
        return booking

    async def list_bookings(self, db: AsyncSession, storage: StorageAdapter) -> List[Row]:
        return await storage.get_all_bookings(db)

    async def list_customer_bookings(
        self, db: AsyncSession, storage: StorageAdapter, customer_id: int
    ) -> List[Row]:
        return await storage.get_bookings_by_customer(db, customer_id)

    async def get_booking(
        self,
        db: AsyncSession,
        storage: StorageAdapter,
        booking_id: int,
        session: Session,
    ) -> Row:
        """Admins see any booking; a customer sees only their own."""
        if not (session.is_admin or session.is_customer):
            raise AuthError()

        booking = await storage.get_booking_by_id(db, booking_id)
        if booking is None:
            raise NotFoundError("booking", booking_id)
        if not session.is_admin and booking["customer_id"] != session.get("customer_id"):
            # Other customers' bookings read as missing
            raise NotFoundError("booking", booking_id)
        return booking

    async def update_status(
        self,
        db: AsyncSession,
        storage: StorageAdapter,
        booking_id: int,
        status: Optional[str],
    ) -> Row:
        if not status:
            raise ValidationError("Status is required", field="status")
        if status not in BOOKING_STATUSES:
            raise ValidationError(
                "Invalid status. Must be: pending, confirmed, completed, or cancelled",
                field="status",
            )

        updated = await storage.update_booking_status(db, booking_id, status)
        if not updated:
            raise NotFoundError("booking", booking_id)

        booking = await storage.get_booking_by_id(db, booking_id)
        await db.commit()
        logger.info("Booking %d status set to %s", booking_id, status)
        return booking

    async def delete_booking(self, db: AsyncSession, storage: StorageAdapter, booking_id: int) -> None:
        deleted = await storage.delete_booking(db, booking_id)
        if not deleted:
            raise NotFoundError("booking", booking_id)
        logger.info("Booking %d deleted", booking_id)


booking_service = BookingService()
