"""
PawCare Backend — Authentication Service
==========================================

What:  Credential checks, customer registration, password changes, password
       resets and self-service profile updates for both identities.
Why:   Keeps credential rules (hash on write, constant-time verify, strength
       policy) in one place; routes only move the resulting identity in and
       out of the session.
How:   Stateless methods that take the request's AsyncSession and the active
       StorageAdapter. Module-level singleton `auth_service`.

Input Rules (registration):
    name      at least 2 characters
    email     something@domain.tld
    phone     optional leading +, then 10 to 13 digits
    password  see pawcare.security.password_policy_errors
"""

import logging
import re
from typing import Any, Dict, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from pawcare.exceptions import AuthError, ConstraintError, NotFoundError, ValidationError
from pawcare.security import (
    generate_temporary_password,
    hash_password,
    password_policy_errors,
    verify_password,
)
from pawcare.storage.base import Row, StorageAdapter

logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
PHONE_RE = re.compile(r"^\+?[0-9]{10,13}$")

# Sending null or "" for these removes the stored value
CLEARABLE_FIELDS = ("profile_picture",)


def normalize_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


def is_valid_email(email: str) -> bool:
    return bool(EMAIL_RE.match(email))


def profile_updates(fields: Dict[str, Any]) -> Dict[str, Any]:
    """Supplied non-empty values, plus explicit clears of clearable fields."""
    updates = {}
    for key, value in fields.items():
        if value:
            updates[key] = value
        elif key in CLEARABLE_FIELDS:
            updates[key] = None
    return updates


def ensure_password_policy(password: Optional[str], field: str = "password") -> None:
    """Raise ValidationError with the first broken rule."""
    errors = password_policy_errors(password or "")
    if errors:
        raise ValidationError(errors[0], field=field, context={"rules_failed": len(errors)})


def admin_identity(admin: Row) -> Dict[str, Any]:
    return {
        "id": admin["id"],
        "username": admin["username"],
        "email": admin.get("email"),
        "profile_picture": admin.get("profile_picture"),
    }


def customer_identity(customer: Row) -> Dict[str, Any]:
    return {
        "id": customer["id"],
        "name": customer["name"],
        "email": customer["email"],
        "phone": customer.get("phone"),
        "profile_picture": customer.get("profile_picture"),
    }


class AuthService:
    """Both identities' credential flows."""

    # ── Admin ─────────────────────────────────────────────────────────────

    async def authenticate_admin(
        self,
        db: AsyncSession,
        storage: StorageAdapter,
        username: Optional[str],
        password: Optional[str],
    ) -> Row:
        if not username or not password:
            raise ValidationError("Username and password are required")

        admin = await storage.get_admin_by_username(db, username.strip())
        # Unknown user and wrong password share one message
        if admin is None or not verify_password(password, admin["password_hash"]):
            logger.warning("Failed admin login for username '%s'", username)
            raise AuthError("Invalid username or password")

        logger.info("Admin '%s' logged in", admin["username"])
        return admin

    async def change_admin_password(
        self,
        db: AsyncSession,
        storage: StorageAdapter,
        username: str,
        current_password: Optional[str],
        new_password: Optional[str],
    ) -> None:
        if not current_password or not new_password:
            raise ValidationError("Current password and new password are required")

        admin = await storage.get_admin_by_username(db, username)
        if admin is None:
            raise NotFoundError("admin", username, message="Admin not found")
        if not verify_password(current_password, admin["password_hash"]):
            raise AuthError("Incorrect current password")
        ensure_password_policy(new_password, field="newPassword")

        await storage.update_admin_password(db, username, hash_password(new_password))
        logger.info("Admin '%s' changed their password", username)

    async def update_admin_profile(
        self,
        db: AsyncSession,
        storage: StorageAdapter,
        username: str,
        fields: Dict[str, Any],
    ) -> Row:
        """Apply the supplied profile fields; returns the updated admin row."""
        current = await storage.get_admin_by_username(db, username)
        if current is None:
            raise NotFoundError("admin", username, message="Admin not found")

        updates = profile_updates(fields)
        if "email" in updates:
            updates["email"] = normalize_email(updates["email"])
            if not is_valid_email(updates["email"]):
                raise ValidationError("Invalid email address", field="email")
            other = await storage.get_admin_by_email(db, updates["email"])
            if other is not None and other["id"] != current["id"]:
                raise ConstraintError("Email already in use by another admin")
        if "username" in updates and updates["username"] != username:
            other = await storage.get_admin_by_username(db, updates["username"])
            if other is not None:
                raise ConstraintError("Username already taken")

        if updates:
            await storage.update_admin(db, username, updates)

        updated = await storage.get_admin_by_username(db, updates.get("username", username))
        return updated

    # ── Customer ──────────────────────────────────────────────────────────

    async def authenticate_customer(
        self,
        db: AsyncSession,
        storage: StorageAdapter,
        email: Optional[str],
        password: Optional[str],
    ) -> Row:
        """Returns the owning customer row on success."""
        if not email or not password:
            raise ValidationError("Email and password are required")

        user = await storage.get_user_by_email(db, normalize_email(email))
        if user is None or not verify_password(password, user["password_hash"]):
            logger.warning("Failed customer login for %s", normalize_email(email))
            raise AuthError("Invalid email or password")

        customer = await storage.get_customer_by_id(db, user["customer_id"])
        if customer is None:
            raise AuthError("Invalid email or password")
        return customer

    async def register_customer(
        self,
        db: AsyncSession,
        storage: StorageAdapter,
        name: Optional[str],
        email: Optional[str],
        phone: Optional[str],
        password: Optional[str],
    ) -> Tuple[Row, str]:
        """
        Create the portal login, reusing a customer created by an earlier booking.

        Returns (customer row, login email).
        """
        name = (name or "").strip()
        email = normalize_email(email)
        phone = (phone or "").strip()

        if len(name) < 2:
            raise ValidationError("Name must be at least 2 characters", field="name")
        if not is_valid_email(email):
            raise ValidationError("Invalid email address", field="email")
        if not PHONE_RE.match(phone):
            raise ValidationError("Invalid phone number", field="phone")
        ensure_password_policy(password)

        if await storage.get_user_by_email(db, email) is not None:
            raise ConstraintError("Email already registered")

        customer = await storage.get_customer_by_email(db, email)
        if customer is None:
            customer_id = await storage.create_customer(db, name, email, phone)
            customer = await storage.get_customer_by_id(db, customer_id)
            logger.info("Created customer %d during registration", customer_id)
        elif await storage.get_user_by_customer_id(db, customer["id"]) is not None:
            # Customer changed their login email away from this address earlier
            raise ConstraintError("Email already registered")

        await storage.create_user(db, customer["id"], email, hash_password(password))
        logger.info("Registered portal login for customer %d", customer["id"])
        return customer, email

    async def get_session_customer(
        self, db: AsyncSession, storage: StorageAdapter, customer_id: int
    ) -> Optional[Row]:
        return await storage.get_customer_by_id(db, customer_id)

    async def change_customer_password(
        self,
        db: AsyncSession,
        storage: StorageAdapter,
        customer_id: int,
        current_password: Optional[str],
        new_password: Optional[str],
    ) -> None:
        if not current_password or not new_password:
            raise ValidationError("Current password and new password are required")

        user = await storage.get_user_by_customer_id(db, customer_id)
        if user is None:
            raise NotFoundError("user", customer_id, message="User not found")
        if not verify_password(current_password, user["password_hash"]):
            raise AuthError("Incorrect current password")
        ensure_password_policy(new_password, field="newPassword")

        await storage.update_user_password(db, user["id"], hash_password(new_password))
        logger.info("Customer %d changed their password", customer_id)

    async def update_customer_profile(
        self,
        db: AsyncSession,
        storage: StorageAdapter,
        customer_id: int,
        fields: Dict[str, Any],
    ) -> Row:
        """
        Apply supplied profile fields. An email change moves the portal login
        too, and is refused when another customer or login already holds it.
        """
        current = await storage.get_customer_by_id(db, customer_id)
        if current is None:
            raise NotFoundError("customer", customer_id, message="Customer not found")

        updates = profile_updates(fields)
        new_email = None
        if "email" in updates:
            updates["email"] = normalize_email(updates["email"])
            if not is_valid_email(updates["email"]):
                raise ValidationError("Invalid email address", field="email")
            if updates["email"] != current["email"]:
                new_email = updates["email"]
                holder = await storage.get_customer_by_email(db, new_email)
                login = await storage.get_user_by_email(db, new_email)
                if (holder is not None and holder["id"] != customer_id) or (
                    login is not None and login["customer_id"] != customer_id
                ):
                    raise ConstraintError("Email already in use")
        if "name" in updates and len(updates["name"]) < 2:
            raise ValidationError("Name must be at least 2 characters", field="name")
        if "phone" in updates and not PHONE_RE.match(updates["phone"]):
            raise ValidationError("Invalid phone number", field="phone")

        if updates:
            await storage.update_customer(db, customer_id, updates)
        if new_email:
            await storage.update_user_email(db, customer_id, new_email)

        return await storage.get_customer_by_id(db, customer_id)

    # ── Password Reset ────────────────────────────────────────────────────

    async def reset_customer_password(
        self, db: AsyncSession, storage: StorageAdapter, email: Optional[str]
    ) -> Tuple[str, Optional[str], str]:
        """
        Replace the login's password with a random temporary one.

        Returns (email, display name, temporary password) for the notification.
        """
        email = normalize_email(email)
        if not email:
            raise ValidationError("Email is required", field="email")
        user = await storage.get_user_by_email(db, email)
        if user is None:
            raise NotFoundError("user", message="No account found with this email")

        temporary = generate_temporary_password()
        await storage.update_user_password(db, user["id"], hash_password(temporary))
        customer = await storage.get_customer_by_id(db, user["customer_id"])
        await db.commit()
        logger.info("Issued temporary password for customer login %d", user["id"])
        return email, customer["name"] if customer else None, temporary

    async def reset_admin_password(
        self, db: AsyncSession, storage: StorageAdapter, email: Optional[str]
    ) -> Tuple[str, Optional[str], str]:
        email = normalize_email(email)
        if not email:
            raise ValidationError("Email is required", field="email")
        admin = await storage.get_admin_by_email(db, email)
        if admin is None:
            raise NotFoundError("admin", message="No admin account found with this email")

        temporary = generate_temporary_password()
        await storage.update_admin_password(db, admin["username"], hash_password(temporary))
        await db.commit()
        logger.info("Issued temporary password for admin '%s'", admin["username"])
        return email, admin["username"], temporary


auth_service = AuthService()
