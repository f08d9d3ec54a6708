"""
PawCare Backend — Storage Adapter Tests
=========================================

What:  Exercises the SQLAlchemy adapter against a real SQLite file.
Why:   MySQL and PostgreSQL share every query with SQLite; only engine setup
       differs, which is covered by the factory tests at the bottom.

What we test:
    ✅ First start seeds six services and one hashed bootstrap admin
    ✅ The bootstrap admin email is stored lowercased
    ✅ Unique emails/usernames surface as ConstraintError
    ✅ Partial updates only touch supplied fields
    ✅ Joined booking view, with and without a pet
    ✅ Status update / delete report affected rows
    ✅ Deleting a customer removes its pets, bookings and login; deleting a
       pet keeps its bookings with no pet attached
    ✅ Public feedback filter and customer registration flag
"""

from datetime import date, time

import pytest
from sqlalchemy import delete

from pawcare.config import Settings
from pawcare.exceptions import ConstraintError
from pawcare.models import Customer, Pet
from pawcare.security import verify_password
from pawcare.storage import (
    MySQLStorageAdapter,
    PostgresStorageAdapter,
    SQLiteStorageAdapter,
    create_storage_adapter,
)

from conftest import ADMIN_PASSWORD, ADMIN_USERNAME


class TestSeeding:

    @pytest.mark.asyncio
    async def test_default_services_seeded(self, storage, db):
        services = await storage.get_all_services(db)
        assert [s["name"] for s in services] == [
            "Pet Sitting",
            "Dog Walking",
            "Pet Boarding",
            "Grooming",
            "Vet Visits",
            "Training Support",
        ]
        assert all(s["price"] > 0 and s["duration_minutes"] > 0 for s in services)

    @pytest.mark.asyncio
    async def test_bootstrap_admin_is_hashed(self, storage, db):
        assert await storage.count_admins(db) == 1
        admin = await storage.get_admin_by_username(db, ADMIN_USERNAME)
        assert admin["password_hash"] != ADMIN_PASSWORD
        assert verify_password(ADMIN_PASSWORD, admin["password_hash"])

    @pytest.mark.asyncio
    async def test_initialize_is_idempotent(self, storage, db):
        await storage.initialize()
        assert len(await storage.get_all_services(db)) == 6
        assert await storage.count_admins(db) == 1

    @pytest.mark.asyncio
    async def test_bootstrap_admin_email_is_lowercased(self, tmp_path):
        adapter = create_storage_adapter(
            Settings(
                _env_file=None,
                database_backend="sqlite",
                sqlite_path=str(tmp_path / "mixed.db"),
                default_admin_email="  Admin@PawCare.Test ",
            )
        )
        await adapter.initialize()
        try:
            async with adapter.session_factory() as db:
                admin = await adapter.get_admin_by_email(db, "admin@pawcare.test")
            assert admin is not None
            assert admin["email"] == "admin@pawcare.test"
        finally:
            await adapter.dispose()


class TestCustomersAndPets:

    @pytest.mark.asyncio
    async def test_create_and_lookup(self, storage, db):
        customer_id = await storage.create_customer(db, "Ana", "ana@x.com", "9999999999")
        by_email = await storage.get_customer_by_email(db, "ana@x.com")
        by_id = await storage.get_customer_by_id(db, customer_id)
        assert by_email == by_id
        assert by_id["name"] == "Ana"
        assert await storage.get_customer_by_email(db, "nobody@x.com") is None

    @pytest.mark.asyncio
    async def test_duplicate_email_is_constraint_error(self, storage, db):
        await storage.create_customer(db, "Ana", "ana@x.com")
        with pytest.raises(ConstraintError):
            await storage.create_customer(db, "Other Ana", "ana@x.com")

    @pytest.mark.asyncio
    async def test_partial_update(self, storage, db):
        customer_id = await storage.create_customer(db, "Ana", "ana@x.com", "9999999999")
        assert await storage.update_customer(db, customer_id, {"phone": "8888888888", "name": None})
        customer = await storage.get_customer_by_id(db, customer_id)
        assert customer["name"] == "Ana"
        assert customer["phone"] == "8888888888"

    @pytest.mark.asyncio
    async def test_profile_picture_cleared_by_none(self, storage, db):
        customer_id = await storage.create_customer(db, "Ana", "ana@x.com")
        await storage.update_customer(db, customer_id, {"profile_picture": "ana.png"})
        assert await storage.update_customer(db, customer_id, {"profile_picture": None})
        customer = await storage.get_customer_by_id(db, customer_id)
        assert customer["profile_picture"] is None
        assert customer["name"] == "Ana"

    @pytest.mark.asyncio
    async def test_update_with_nothing_supplied(self, storage, db):
        customer_id = await storage.create_customer(db, "Ana", "ana@x.com")
        assert await storage.update_customer(db, customer_id, {}) is False

    @pytest.mark.asyncio
    async def test_pets_by_customer(self, storage, db):
        ana = await storage.create_customer(db, "Ana", "ana@x.com")
        bo = await storage.create_customer(db, "Bo", "bo@x.com")
        await storage.create_pet(db, ana, "Rex", type="dog", age=3)
        await storage.create_pet(db, bo, "Tom", type="cat")

        pets = await storage.get_pets_by_customer(db, ana)
        assert [p["name"] for p in pets] == ["Rex"]
        assert pets[0]["age"] == 3
        assert len(await storage.get_all_pets(db)) == 2

    @pytest.mark.asyncio
    async def test_customer_list_shows_registration(self, storage, db):
        ana = await storage.create_customer(db, "Ana", "ana@x.com")
        await storage.create_customer(db, "Bo", "bo@x.com")
        await storage.create_user(db, ana, "ana@x.com", "hash")

        customers = {c["email"]: c for c in await storage.get_all_customers(db)}
        assert customers["ana@x.com"]["registered"] is True
        assert customers["ana@x.com"]["user_email"] == "ana@x.com"
        assert customers["bo@x.com"]["registered"] is False
        assert customers["bo@x.com"]["user_email"] is None


class TestBookings:

    async def _booking(self, storage, db, with_pet=True):
        customer_id = await storage.create_customer(db, "Ana", "ana@x.com", "9999999999")
        pet_id = await storage.create_pet(db, customer_id, "Rex", type="dog") if with_pet else None
        service = await storage.get_service_by_name(db, "Grooming")
        booking_id = await storage.create_booking(
            db, customer_id, pet_id, service["id"], date(2030, 5, 1), time(10, 0), notes="gentle",
        )
        return booking_id

    @pytest.mark.asyncio
    async def test_joined_view(self, storage, db):
        booking_id = await self._booking(storage, db)
        booking = await storage.get_booking_by_id(db, booking_id)

        assert booking["status"] == "pending"
        assert booking["booking_date"] == date(2030, 5, 1)
        assert booking["booking_time"] == time(10, 0)
        assert booking["customer_name"] == "Ana"
        assert booking["customer_email"] == "ana@x.com"
        assert booking["customer_phone"] == "9999999999"
        assert booking["pet_name"] == "Rex"
        assert booking["pet_type"] == "dog"
        assert booking["service_name"] == "Grooming"
        assert booking["service_price"] > 0
        assert booking["notes"] == "gentle"

    @pytest.mark.asyncio
    async def test_joined_view_without_pet(self, storage, db):
        booking_id = await self._booking(storage, db, with_pet=False)
        booking = await storage.get_booking_by_id(db, booking_id)
        assert booking["pet_id"] is None
        assert booking["pet_name"] is None
        assert booking["service_name"] == "Grooming"

    @pytest.mark.asyncio
    async def test_newest_first(self, storage, db):
        first = await self._booking(storage, db)
        service = await storage.get_service_by_name(db, "Vet Visits")
        customer = await storage.get_customer_by_email(db, "ana@x.com")
        second = await storage.create_booking(
            db, customer["id"], None, service["id"], date(2030, 5, 2), time(9, 30),
        )

        assert [b["id"] for b in await storage.get_all_bookings(db)] == [second, first]
        assert [b["id"] for b in await storage.get_bookings_by_customer(db, customer["id"])] == [
            second,
            first,
        ]

    @pytest.mark.asyncio
    async def test_status_update_reports_rows(self, storage, db):
        booking_id = await self._booking(storage, db)
        assert await storage.update_booking_status(db, booking_id, "confirmed") == 1
        assert (await storage.get_booking_by_id(db, booking_id))["status"] == "confirmed"
        assert await storage.update_booking_status(db, 9999, "confirmed") == 0

    @pytest.mark.asyncio
    async def test_delete_reports_rows(self, storage, db):
        booking_id = await self._booking(storage, db)
        assert await storage.delete_booking(db, booking_id) == 1
        assert await storage.get_booking_by_id(db, booking_id) is None
        assert await storage.delete_booking(db, booking_id) == 0


class TestDeleteRules:

    async def _customer_with_history(self, storage, db):
        customer_id = await storage.create_customer(db, "Ana", "ana@x.com", "9999999999")
        await storage.create_user(db, customer_id, "ana@x.com", "hash")
        pet_id = await storage.create_pet(db, customer_id, "Rex", type="dog")
        service = await storage.get_service_by_name(db, "Grooming")
        booking_id = await storage.create_booking(
            db, customer_id, pet_id, service["id"], date(2030, 5, 1), time(10, 0),
        )
        return customer_id, pet_id, booking_id

    @pytest.mark.asyncio
    async def test_deleting_customer_removes_dependents(self, storage, db):
        customer_id, _, booking_id = await self._customer_with_history(storage, db)

        await db.execute(delete(Customer).where(Customer.id == customer_id))

        assert await storage.get_customer_by_id(db, customer_id) is None
        assert await storage.get_pets_by_customer(db, customer_id) == []
        assert await storage.get_booking_by_id(db, booking_id) is None
        assert await storage.get_user_by_customer_id(db, customer_id) is None

    @pytest.mark.asyncio
    async def test_deleting_pet_keeps_booking(self, storage, db):
        _, pet_id, booking_id = await self._customer_with_history(storage, db)

        await db.execute(delete(Pet).where(Pet.id == pet_id))

        booking = await storage.get_booking_by_id(db, booking_id)
        assert booking["pet_id"] is None
        assert booking["pet_name"] is None
        assert booking["service_name"] == "Grooming"


class TestAccounts:

    @pytest.mark.asyncio
    async def test_user_email_unique(self, storage, db):
        ana = await storage.create_customer(db, "Ana", "ana@x.com")
        bo = await storage.create_customer(db, "Bo", "bo@x.com")
        await storage.create_user(db, ana, "ana@x.com", "hash")
        with pytest.raises(ConstraintError):
            await storage.create_user(db, bo, "ana@x.com", "hash")

    @pytest.mark.asyncio
    async def test_user_email_follows_customer(self, storage, db):
        ana = await storage.create_customer(db, "Ana", "ana@x.com")
        user_id = await storage.create_user(db, ana, "ana@x.com", "hash")
        await storage.update_user_email(db, ana, "ana@new.com")
        assert (await storage.get_user_by_id(db, user_id))["email"] == "ana@new.com"
        assert (await storage.get_user_by_customer_id(db, ana))["id"] == user_id

    @pytest.mark.asyncio
    async def test_admin_rename_and_password(self, storage, db):
        assert await storage.update_admin(db, ADMIN_USERNAME, {"username": "boss"})
        assert await storage.get_admin_by_username(db, ADMIN_USERNAME) is None
        assert await storage.update_admin_password(db, "boss", "new-hash")
        assert (await storage.get_admin_by_username(db, "boss"))["password_hash"] == "new-hash"

    @pytest.mark.asyncio
    async def test_duplicate_admin_username(self, storage, db):
        with pytest.raises(ConstraintError):
            await storage.create_admin(db, ADMIN_USERNAME, "second@pawcare.test", "hash")


class TestFeedback:

    @pytest.mark.asyncio
    async def test_public_filter(self, storage, db):
        shown = await storage.create_feedback(db, "Ana", "ana@x.com", 5, "service", "Lovely", public=True)
        await storage.create_feedback(db, "Bo", "bo@x.com", 3, "website", "Okay")

        assert [f["id"] for f in await storage.get_public_feedback(db)] == [shown]
        assert len(await storage.get_all_feedback(db)) == 2
        assert (await storage.get_feedback_by_id(db, shown))["public"] is True


class TestAdapterFactory:

    def test_backend_selection(self, tmp_path):
        sqlite = create_storage_adapter(
            Settings(_env_file=None, database_backend="sqlite", sqlite_path=str(tmp_path / "a.db"))
        )
        assert isinstance(sqlite, SQLiteStorageAdapter)
        assert sqlite.backend_name == "sqlite"

        mysql = create_storage_adapter(Settings(_env_file=None, database_backend="mysql"))
        assert isinstance(mysql, MySQLStorageAdapter)
        assert mysql.url.startswith("mysql+aiomysql://")

        postgres = create_storage_adapter(Settings(_env_file=None, database_backend="postgresql"))
        assert isinstance(postgres, PostgresStorageAdapter)
        assert postgres.url.startswith("postgresql+asyncpg://")
