"""
PawCare Backend — SQLAlchemy Storage Adapter
==============================================

What:  The StorageAdapter contract implemented once with SQLAlchemy Core/ORM.
Why:   The three supported engines differ only in driver, URL and connection
       setup; the queries themselves are portable. Subclasses in
       backends.py supply `_engine_options()` and optional connect hooks.
How:   Writes go through the ORM and flush immediately so constraint
       violations surface inside the calling request (not at commit time).
       Reads use explicit selects and return plain dicts.

Error Translation:
    IntegrityError      → ConstraintError (duplicate email/username, bad FK)
    other SQLAlchemyError → StorageError   (generic message for the client)
    OverflowError         → StorageError   (value too wide for the column)
"""

import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Mapping, Optional

from sqlalchemy import Select, delete, func, select, text, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from pawcare.config import Settings
from pawcare.database import Base, build_engine, build_session_factory
from pawcare.exceptions import ConstraintError, StorageError
from pawcare.models import Admin, Booking, Customer, Feedback, Pet, Service, User
from pawcare.security import hash_password
from pawcare.storage.base import Row, StorageAdapter
from pawcare.storage.seed import DEFAULT_SERVICES

logger = logging.getLogger(__name__)

CUSTOMER_UPDATABLE = ("name", "email", "phone", "profile_picture")
ADMIN_UPDATABLE = ("username", "email", "profile_picture")
# Columns an update may set back to NULL
NULLABLE_UPDATES = frozenset({"profile_picture"})


def _present(fields: Mapping[str, Any], allowed) -> Dict[str, Any]:
    """The subset of `fields` that is updatable and actually supplied."""
    return {
        key: fields[key]
        for key in allowed
        if key in fields and (fields[key] is not None or key in NULLABLE_UPDATES)
    }


class SQLAlchemyStorageAdapter(StorageAdapter):
    """
    Shared implementation for every relational backend.

    Subclasses set `backend_name` and may override `_engine_options()`
    and `_configure_engine()`.
    """

    def __init__(self, settings: Settings):
        super().__init__(settings)
        self.url = settings.resolved_database_url
        self._engine = build_engine(self.url, **self._engine_options())
        self._configure_engine(self._engine)
        self._session_factory = build_session_factory(self._engine)

    def _engine_options(self) -> Dict[str, Any]:
        return {"echo": self.settings.log_level == "DEBUG"}

    def _configure_engine(self, engine: AsyncEngine) -> None:
        """Hook for per-connection setup (PRAGMAs, session variables)."""

    @property
    def engine(self) -> AsyncEngine:
        return self._engine

    @property
    def session_factory(self) -> async_sessionmaker[AsyncSession]:
        return self._session_factory

    # ── Error Translation ─────────────────────────────────────────────────

    @contextmanager
    def _errors(self, operation: str) -> Iterator[None]:
        try:
            yield
        except IntegrityError as e:
            logger.warning("Constraint violation in %s: %s", operation, e.orig)
            raise ConstraintError(
                context={"operation": operation, "backend": self.backend_name, "error": str(e.orig)},
            ) from e
        # sqlite3 raises OverflowError for integers wider than 64 bits
        except (SQLAlchemyError, OverflowError) as e:
            logger.error("Storage failure in %s: %s", operation, e, exc_info=True)
            raise StorageError(
                context={"operation": operation, "backend": self.backend_name, "error": str(e)},
            ) from e

    async def _insert(self, db: AsyncSession, obj: Base, operation: str) -> int:
        with self._errors(operation):
            db.add(obj)
            await db.flush()
        return obj.id

    async def _first(self, db: AsyncSession, statement, operation: str) -> Optional[Row]:
        with self._errors(operation):
            result = await db.execute(statement)
            obj = result.scalars().first()
        return obj.to_dict() if obj is not None else None

    async def _all(self, db: AsyncSession, statement, operation: str) -> List[Row]:
        with self._errors(operation):
            result = await db.execute(statement)
            return [obj.to_dict() for obj in result.scalars().all()]

    async def _rowcount(self, db: AsyncSession, statement, operation: str) -> int:
        with self._errors(operation):
            result = await db.execute(statement)
            return result.rowcount or 0

    # ── Lifecycle ─────────────────────────────────────────────────────────

    async def initialize(self) -> None:
        with self._errors("initialize"):
            async with self._engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)

            async with self._session_factory() as db:
                service_count = await db.scalar(select(func.count()).select_from(Service))
                if not service_count:
                    for service in DEFAULT_SERVICES:
                        db.add(Service(**service))
                    logger.info("Seeded %d default services", len(DEFAULT_SERVICES))

                admin_count = await db.scalar(select(func.count()).select_from(Admin))
                if not admin_count:
                    db.add(
                        Admin(
                            username=self.settings.default_admin_username,
                            email=self.settings.default_admin_email,
                            password_hash=hash_password(self.settings.default_admin_password),
                        )
                    )
                    logger.info(
                        "Created default admin '%s'; change its password after first login",
                        self.settings.default_admin_username,
                    )
                await db.commit()

    async def ping(self) -> bool:
        try:
            async with self._engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except (SQLAlchemyError, OSError) as e:
            logger.warning("Storage ping failed (backend=%s): %s", self.backend_name, e)
            return False

    async def dispose(self) -> None:
        await self._engine.dispose()

    # ── Customers ─────────────────────────────────────────────────────────

    async def create_customer(
        self, db: AsyncSession, name: str, email: str, phone: Optional[str] = None
    ) -> int:
        return await self._insert(db, Customer(name=name, email=email, phone=phone), "create_customer")

    async def get_customer_by_email(self, db: AsyncSession, email: str) -> Optional[Row]:
        return await self._first(db, select(Customer).where(Customer.email == email), "get_customer_by_email")

    async def get_customer_by_id(self, db: AsyncSession, customer_id: int) -> Optional[Row]:
        return await self._first(db, select(Customer).where(Customer.id == customer_id), "get_customer_by_id")

    async def update_customer(
        self, db: AsyncSession, customer_id: int, fields: Mapping[str, Any]
    ) -> bool:
        values = _present(fields, CUSTOMER_UPDATABLE)
        if not values:
            return False
        statement = update(Customer).where(Customer.id == customer_id).values(**values)
        return await self._rowcount(db, statement, "update_customer") > 0

    async def get_all_customers(self, db: AsyncSession) -> List[Row]:
        statement = (
            select(Customer, User.email)
            .outerjoin(User, User.customer_id == Customer.id)
            .order_by(Customer.created_at.desc(), Customer.id.desc())
        )
        with self._errors("get_all_customers"):
            result = await db.execute(statement)
            rows = []
            for customer, user_email in result.all():
                row = customer.to_dict()
                row["registered"] = user_email is not None
                row["user_email"] = user_email
                rows.append(row)
        return rows

    # ── Pets ──────────────────────────────────────────────────────────────

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
        pet = Pet(
            customer_id=customer_id,
            name=name,
            type=type,
            breed=breed,
            age=age,
            special_needs=special_needs,
        )
        return await self._insert(db, pet, "create_pet")

    async def get_pets_by_customer(self, db: AsyncSession, customer_id: int) -> List[Row]:
        statement = select(Pet).where(Pet.customer_id == customer_id).order_by(Pet.id)
        return await self._all(db, statement, "get_pets_by_customer")

    async def get_all_pets(self, db: AsyncSession) -> List[Row]:
        return await self._all(db, select(Pet).order_by(Pet.id), "get_all_pets")

    # ── Services ──────────────────────────────────────────────────────────

    async def create_service(
        self,
        db: AsyncSession,
        name: str,
        description: Optional[str],
        price: float,
        duration_minutes: int,
    ) -> int:
        service = Service(
            name=name,
            description=description,
            price=price,
            duration_minutes=duration_minutes,
        )
        return await self._insert(db, service, "create_service")

    async def get_all_services(self, db: AsyncSession) -> List[Row]:
        return await self._all(db, select(Service).order_by(Service.id), "get_all_services")

    async def get_service_by_id(self, db: AsyncSession, service_id: int) -> Optional[Row]:
        return await self._first(db, select(Service).where(Service.id == service_id), "get_service_by_id")

    async def get_service_by_name(self, db: AsyncSession, name: str) -> Optional[Row]:
        statement = (
            select(Service)
            .where(func.lower(Service.name) == name.strip().lower())
            .order_by(Service.id)
        )
        return await self._first(db, statement, "get_service_by_name")

    # ── Bookings ──────────────────────────────────────────────────────────

    def _booking_view(self) -> Select:
        """Booking columns plus the display fields of its customer, pet and service."""
        return (
            select(
                *Booking.__table__.columns,
                Customer.name.label("customer_name"),
                Customer.email.label("customer_email"),
                Customer.phone.label("customer_phone"),
                Pet.name.label("pet_name"),
                Pet.type.label("pet_type"),
                Service.name.label("service_name"),
                Service.price.label("service_price"),
            )
            .select_from(Booking)
            .outerjoin(Customer, Customer.id == Booking.customer_id)
            .outerjoin(Pet, Pet.id == Booking.pet_id)
            .outerjoin(Service, Service.id == Booking.service_id)
        )

    async def _booking_rows(self, db: AsyncSession, statement: Select, operation: str) -> List[Row]:
        with self._errors(operation):
            result = await db.execute(statement)
            return [dict(row) for row in result.mappings().all()]

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
        booking = Booking(
            customer_id=customer_id,
            pet_id=pet_id,
            service_id=service_id,
            booking_date=booking_date,
            booking_time=booking_time,
            status="pending",
            notes=notes,
        )
        return await self._insert(db, booking, "create_booking")

    async def get_all_bookings(self, db: AsyncSession) -> List[Row]:
        statement = self._booking_view().order_by(Booking.created_at.desc(), Booking.id.desc())
        return await self._booking_rows(db, statement, "get_all_bookings")

    async def get_booking_by_id(self, db: AsyncSession, booking_id: int) -> Optional[Row]:
        rows = await self._booking_rows(
            db, self._booking_view().where(Booking.id == booking_id), "get_booking_by_id"
        )
        return rows[0] if rows else None

    async def get_bookings_by_customer(self, db: AsyncSession, customer_id: int) -> List[Row]:
        statement = (
            self._booking_view()
            .where(Booking.customer_id == customer_id)
            .order_by(Booking.created_at.desc(), Booking.id.desc())
        )
        return await self._booking_rows(db, statement, "get_bookings_by_customer")

    async def update_booking_status(self, db: AsyncSession, booking_id: int, status: str) -> int:
        statement = update(Booking).where(Booking.id == booking_id).values(status=status)
        return await self._rowcount(db, statement, "update_booking_status")

    async def delete_booking(self, db: AsyncSession, booking_id: int) -> int:
        return await self._rowcount(db, delete(Booking).where(Booking.id == booking_id), "delete_booking")

    # ── Users ─────────────────────────────────────────────────────────────

    async def create_user(
        self, db: AsyncSession, customer_id: int, email: str, password_hash: str
    ) -> int:
        user = User(customer_id=customer_id, email=email, password_hash=password_hash)
        return await self._insert(db, user, "create_user")

    async def get_user_by_email(self, db: AsyncSession, email: str) -> Optional[Row]:
        return await self._first(db, select(User).where(User.email == email), "get_user_by_email")

    async def get_user_by_id(self, db: AsyncSession, user_id: int) -> Optional[Row]:
        return await self._first(db, select(User).where(User.id == user_id), "get_user_by_id")

    async def get_user_by_customer_id(self, db: AsyncSession, customer_id: int) -> Optional[Row]:
        return await self._first(db, select(User).where(User.customer_id == customer_id), "get_user_by_customer_id")

    async def update_user_password(self, db: AsyncSession, user_id: int, password_hash: str) -> bool:
        statement = update(User).where(User.id == user_id).values(password_hash=password_hash)
        return await self._rowcount(db, statement, "update_user_password") > 0

    async def update_user_email(self, db: AsyncSession, customer_id: int, email: str) -> bool:
        statement = update(User).where(User.customer_id == customer_id).values(email=email)
        return await self._rowcount(db, statement, "update_user_email") > 0

    # ── Admins ────────────────────────────────────────────────────────────

    async def create_admin(
        self, db: AsyncSession, username: str, email: str, password_hash: str
    ) -> int:
        admin = Admin(username=username, email=email, password_hash=password_hash)
        return await self._insert(db, admin, "create_admin")

    async def get_admin_by_username(self, db: AsyncSession, username: str) -> Optional[Row]:
        return await self._first(db, select(Admin).where(Admin.username == username), "get_admin_by_username")

    async def get_admin_by_email(self, db: AsyncSession, email: str) -> Optional[Row]:
        return await self._first(db, select(Admin).where(Admin.email == email), "get_admin_by_email")

    async def get_admin_by_id(self, db: AsyncSession, admin_id: int) -> Optional[Row]:
        return await self._first(db, select(Admin).where(Admin.id == admin_id), "get_admin_by_id")

    async def update_admin(
        self, db: AsyncSession, username: str, fields: Mapping[str, Any]
    ) -> bool:
        values = _present(fields, ADMIN_UPDATABLE)
        if not values:
            return False
        statement = update(Admin).where(Admin.username == username).values(**values)
        return await self._rowcount(db, statement, "update_admin") > 0

    async def update_admin_password(
        self, db: AsyncSession, username: str, password_hash: str
    ) -> bool:
        statement = update(Admin).where(Admin.username == username).values(password_hash=password_hash)
        return await self._rowcount(db, statement, "update_admin_password") > 0

    async def count_admins(self, db: AsyncSession) -> int:
        with self._errors("count_admins"):
            return await db.scalar(select(func.count()).select_from(Admin)) or 0

    # ── Feedback ──────────────────────────────────────────────────────────

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
        feedback = Feedback(
            name=name,
            email=email,
            rating=rating,
            category=category,
            message=message,
            public=bool(public),
        )
        return await self._insert(db, feedback, "create_feedback")

    async def get_all_feedback(self, db: AsyncSession) -> List[Row]:
        statement = select(Feedback).order_by(Feedback.created_at.desc(), Feedback.id.desc())
        return await self._all(db, statement, "get_all_feedback")

    async def get_public_feedback(self, db: AsyncSession) -> List[Row]:
        statement = (
            select(Feedback)
            .where(Feedback.public.is_(True))
            .order_by(Feedback.created_at.desc(), Feedback.id.desc())
        )
        return await self._all(db, statement, "get_public_feedback")

    async def get_feedback_by_id(self, db: AsyncSession, feedback_id: int) -> Optional[Row]:
        return await self._first(db, select(Feedback).where(Feedback.id == feedback_id), "get_feedback_by_id")
