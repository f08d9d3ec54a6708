# Models package init
"""
PawCare Backend — ORM Models
==============================

Importing this package registers every table on `Base.metadata`, which is
what `StorageAdapter.initialize()` and Alembic create the schema from.
"""

from pawcare.models.account import Admin, User
from pawcare.models.booking import BOOKING_STATUSES, Booking, Service
from pawcare.models.customer import Customer, Pet
from pawcare.models.feedback import Feedback
from pawcare.models.session import SessionRecord

__all__ = [
    "Admin",
    "BOOKING_STATUSES",
    "Booking",
    "Customer",
    "Feedback",
    "Pet",
    "Service",
    "SessionRecord",
    "User",
]
