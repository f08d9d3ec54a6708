"""
PawCare Backend — Password Hashing and Policy
===============================================

What:  Hash/verify helpers, the password strength policy, and temporary
       password generation for the reset flow.
How:   passlib CryptContext. New hashes use pbkdf2_sha256; bcrypt stays in
       the context so hashes written by earlier deployments still verify.
       passlib's verify is constant-time.
"""

import re
import secrets
import string
from typing import List

from passlib.context import CryptContext

_pwd_context = CryptContext(
    schemes=["pbkdf2_sha256", "bcrypt"],
    default="pbkdf2_sha256",
    deprecated="auto",
)

MIN_PASSWORD_LENGTH = 8
SPECIAL_CHARACTERS = '!@#$%^&*(),.?":{}|<>'
TEMPORARY_PASSWORD_LENGTH = 8

_SPECIAL_RE = re.compile("[" + re.escape(SPECIAL_CHARACTERS) + "]")


def hash_password(password: str) -> str:
    return _pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """False for empty or unrecognised hashes instead of raising."""
    if not password or not password_hash:
        return False
    try:
        return _pwd_context.verify(password, password_hash)
    except ValueError:
        # Unknown hash format in the column
        return False


def password_policy_errors(password: str) -> List[str]:
    """
    Every rule the password breaks, in a fixed order.

    Rules: at least 8 characters, one uppercase letter, one lowercase
    letter, one digit and one character from SPECIAL_CHARACTERS.
    """
    errors = []
    if len(password) < MIN_PASSWORD_LENGTH:
        errors.append(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")
    if not re.search(r"[A-Z]", password):
        errors.append("Password must contain at least one uppercase letter")
    if not re.search(r"[a-z]", password):
        errors.append("Password must contain at least one lowercase letter")
    if not re.search(r"[0-9]", password):
        errors.append("Password must contain at least one number")
    if not _SPECIAL_RE.search(password):
        errors.append("Password must contain at least one special character")
    return errors


def generate_temporary_password(length: int = TEMPORARY_PASSWORD_LENGTH) -> str:
    alphabet = string.ascii_letters + string.digits
    return "".join(secrets.choice(alphabet) for _ in range(length))
