"""
PawCare Backend — Abstract Storage Adapter Interface
======================================================

What:  The data-access contract every storage backend implements.
Why:   Business logic calls one interface and never branches on whether the
       deployment runs SQLite, MySQL or PostgreSQL.
How:   Concrete adapters (pawcare.storage.backends) subclass StorageAdapter.
       The backend is chosen once at startup by `create_storage_adapter`.

Contract:
    - Every data operation takes the request's AsyncSession first, so all
      calls made while serving one request share one transaction.
    - Rows come back as plain dicts (None when absent) and lists of dicts.
    - create_* returns the new primary key.
    - update_* applies only present, updatable fields and returns False when
      nothing was applied (empty payload or no matching row).
    - Booking reads return the joined view: booking columns plus
      customer_name, customer_email, customer_phone, pet_name, pet_type,
      service_name, service_price. Lists are newest first.
    - Unique-key violations raise ConstraintError; any other backend failure
      raises StorageError. Nothing is retried.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Mapping, Optional

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from pawcare.config import Settings

logger = logging.getLogger(__name__)

Row = Dict[str, Any]


class StorageAdapter(ABC):
    """
    Abstract storage contract plus the shared initialization lifecycle.

    Lifecycle:
        ensure_initialized() runs initialize() exactly once per adapter,
        guarded by an asyncio.Lock so concurrent first requests do not race
        on table creation or seeding. The lifespan handler calls it at
        startup; get_db_session calls it again as a no-op safety net for
        test clients that skip lifespan events.
    """

    backend_name: str = "abstract"

    def __init__(self, settings: Settings):
        self.settings = settings
        self._initialized = False
        self._init_lock = asyncio.Lock()

    # ── Lifecycle ─────────────────────────────────────────────────────────

    @property
    @abstractmethod
    def engine(self) -> AsyncEngine:
        ...

    @property
    @abstractmethod
    def session_factory(self) -> async_sessionmaker[AsyncSession]:
        ...

    async def ensure_initialized(self) -> None:
        if self._initialized:
            return
        async with self._init_lock:
            if self._initialized:
                return
            await self.initialize()
            self._initialized = True
            logger.info("Storage initialized (backend=%s)", self.backend_name)

    @abstractmethod
    async def initialize(self) -> None:
        """Create missing tables, then seed default services and the bootstrap admin."""
        ...

    @abstractmethod
    async def ping(self) -> bool:
        """Lightweight connectivity check for the health endpoint."""
        ...

    @abstractmethod
    async def dispose(self) -> None:
        ...

    # ── Customers ─────────────────────────────────────────────────────────

    @abstractmethod
    async def create_customer(
        self, db: AsyncSession, name: str, email: str, phone: Optional[str] = None
    ) -> int:
        ...

    @abstractmethod
    async def get_customer_by_email(self, db: AsyncSession, email: str) -> Optional[Row]:
        ...

    @abstractmethod
    async def get_customer_by_id(self, db: AsyncSession, customer_id: int) -> Optional[Row]:
        ...

    @abstractmethod
    async def update_customer(
        self, db: AsyncSession, customer_id: int, fields: Mapping[str, Any]
    ) -> bool:
        """Updatable: name, email, phone, profile_picture. None is skipped,
        except for profile_picture where it clears the column."""
        ...

    @abstractmethod
    async def get_all_customers(self, db: AsyncSession) -> List[Row]:
        """Customers newest first, each with `registered` and `user_email`."""
        ...

    # ── Pets ──────────────────────────────────────────────────────────────

    @abstractmethod
    async def create_pet(
        self,
        db: AsyncSession,
        customer_id: int,
        name: str,
        type: Optional[str] = None,
        breed: Optional[str] = None,
        age: Optional[int] = None,
        special_needs: Optional[str] = None,
    ) -> int:
        ...

    @abstractmethod
    async def get_pets_by_customer(self, db: AsyncSession, customer_id: int) -> List[Row]:
        ...

    @abstractmethod
    async def get_all_pets(self, db: AsyncSession) -> List[Row]:
        ...

    # ── Services ──────────────────────────────────────────────────────────

    @abstractmethod
    async def create_service(
        self,
        db: AsyncSession,
        name: str,
        description: Optional[str],
        price: float,
        duration_minutes: int,
    ) -> int:
        ...

    @abstractmethod
    async def get_all_services(self, db: AsyncSession) -> List[Row]:
        ...

    @abstractmethod
    async def get_service_by_id(self, db: AsyncSession, service_id: int) -> Optional[Row]:
        ...

    @abstractmethod
    async def get_service_by_name(self, db: AsyncSession, name: str) -> Optional[Row]:
        """Case-insensitive exact match on the service name."""
        ...

    # ── Bookings ──────────────────────────────────────────────────────────

    @abstractmethod
    async def create_booking(
        self,
        db: AsyncSession,
        customer_id: int,
        pet_id: Optional[int],
        service_id: int,
        booking_date: Any,
        booking_time: Any,
        notes: Optional[str] = None,
    ) -> int:
        ...

    @abstractmethod
    async def get_all_bookings(self, db: AsyncSession) -> List[Row]:
        ...

    @abstractmethod
    async def get_booking_by_id(self, db: AsyncSession, booking_id: int) -> Optional[Row]:
        ...

    @abstractmethod
    async def get_bookings_by_customer(self, db: AsyncSession, customer_id: int) -> List[Row]:
        ...

    @abstractmethod
    async def update_booking_status(self, db: AsyncSession, booking_id: int, status: str) -> int:
        """Number of rows changed (0 when the booking does not exist)."""
        ...

    @abstractmethod
    async def delete_booking(self, db: AsyncSession, booking_id: int) -> int:
        ...

    # ── Users ─────────────────────────────────────────────────────────────

    @abstractmethod
    async def create_user(
        self, db: AsyncSession, customer_id: int, email: str, password_hash: str
    ) -> int:
        ...

    @abstractmethod
    async def get_user_by_email(self, db: AsyncSession, email: str) -> Optional[Row]:
        ...

    @abstractmethod
    async def get_user_by_id(self, db: AsyncSession, user_id: int) -> Optional[Row]:
        ...

    @abstractmethod
    async def get_user_by_customer_id(self, db: AsyncSession, customer_id: int) -> Optional[Row]:
        ...

    @abstractmethod
    async def update_user_password(self, db: AsyncSession, user_id: int, password_hash: str) -> bool:
        ...

    @abstractmethod
    async def update_user_email(self, db: AsyncSession, customer_id: int, email: str) -> bool:
        ...

    # ── Admins ────────────────────────────────────────────────────────────

    @abstractmethod
    async def create_admin(
        self, db: AsyncSession, username: str, email: str, password_hash: str
    ) -> int:
        ...

    @abstractmethod
    async def get_admin_by_username(self, db: AsyncSession, username: str) -> Optional[Row]:
        ...

    @abstractmethod
    async def get_admin_by_email(self, db: AsyncSession, email: str) -> Optional[Row]:
        ...

    @abstractmethod
    async def get_admin_by_id(self, db: AsyncSession, admin_id: int) -> Optional[Row]:
        ...

    @abstractmethod
    async def update_admin(
        self, db: AsyncSession, username: str, fields: Mapping[str, Any]
    ) -> bool:
        """Updatable: username, email, profile_picture."""
        ...

    @abstractmethod
    async def update_admin_password(
        self, db: AsyncSession, username: str, password_hash: str
    ) -> bool:
        ...

    @abstractmethod
    async def count_admins(self, db: AsyncSession) -> int:
        ...

    # ── Feedback ──────────────────────────────────────────────────────────

    @abstractmethod
    async def create_feedback(
        self,
        db: AsyncSession,
        name: str,
        email: str,
        rating: int,
        category: str,
        message: str,
        public: bool = False,
    ) -> int:
        ...

    @abstractmethod
    async def get_all_feedback(self, db: AsyncSession) -> List[Row]:
        ...

    @abstractmethod
    async def get_public_feedback(self, db: AsyncSession) -> List[Row]:
        ...

    @abstractmethod
    async def get_feedback_by_id(self, db: AsyncSession, feedback_id: int) -> Optional[Row]:
        ...
