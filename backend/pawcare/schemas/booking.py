"""
PawCare Backend — Booking, Service and Pet Schemas
====================================================

What:  Request bodies for the public booking form and status updates, and
       the response shapes for the catalog and the joined booking view.

Request field names follow the booking form (camelCase: petName,
bookingDate, ...). Every field is optional at the schema level so the
service layer can answer with the form's own messages
("Missing required fields: name, email, phone, service").
"""

from datetime import date, datetime, time
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class BookingCreateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    name: Optional[str] = Field(default=None, description="Customer full name")
    email: Optional[str] = Field(default=None, description="Customer email; reused customer if known")
    phone: Optional[str] = Field(default=None, description="Customer phone number")
    service: Optional[str] = Field(
        default=None,
        description="Service key (e.g. 'dog-walking') or service name",
    )
    pet_name: Optional[str] = Field(default=None, alias="petName")
    pet_type: Optional[str] = Field(default=None, alias="petType")
    # Free text on the form; non-numeric input is stored as NULL
    pet_age: Optional[Union[int, float, str]] = Field(default=None, alias="petAge")
    message: Optional[str] = Field(
        default=None,
        description="Stored as booking notes and as the pet's special needs",
    )
    booking_date: Optional[str] = Field(default=None, alias="bookingDate", description="YYYY-MM-DD")
    booking_time: Optional[str] = Field(default=None, alias="bookingTime", description="HH:MM")


class BookingStatusUpdate(BaseModel):
    status: Optional[str] = Field(
        default=None,
        description="One of: pending, confirmed, completed, cancelled",
    )


class ServiceOut(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    price: float
    duration_minutes: int


class PetOut(BaseModel):
    id: int
    customer_id: int
    name: str
    type: Optional[str] = None
    breed: Optional[str] = None
    age: Optional[int] = None
    special_needs: Optional[str] = None
    created_at: Optional[datetime] = None


class BookingView(BaseModel):
    """
    A booking joined with the display fields of its customer, pet and service.

    Returned by every booking read so the dashboard never issues follow-up
    lookups. Pet fields are null for bookings made without a pet.
    """

    id: int
    customer_id: int
    pet_id: Optional[int] = None
    service_id: int
    booking_date: date
    booking_time: time
    status: str
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    customer_name: Optional[str] = None
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    pet_name: Optional[str] = None
    pet_type: Optional[str] = None
    service_name: Optional[str] = None
    service_price: Optional[float] = None
