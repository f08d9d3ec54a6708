"""
PawCare Backend — Password Handling Tests
===========================================

What we test:
    ✅ Strength policy accepts a strong password and names every broken rule
    ✅ Hashes verify, never equal the plaintext, and are salted
    ✅ Verification fails closed on empty or unknown hashes
    ✅ Temporary passwords are random and of the requested length
"""

from pawcare.security import (
    generate_temporary_password,
    hash_password,
    password_policy_errors,
    verify_password,
)


class TestPasswordPolicy:

    def test_strong_password_passes(self):
        assert password_policy_errors("Str0ng!Pass") == []

    def test_short_password_is_rejected(self):
        errors = password_policy_errors("short1")
        assert errors[0] == "Password must be at least 8 characters long"
        assert "Password must contain at least one uppercase letter" in errors
        assert "Password must contain at least one special character" in errors

    def test_each_missing_class_is_reported(self):
        assert password_policy_errors("STR0NG!PASS") == [
            "Password must contain at least one lowercase letter"
        ]
        assert password_policy_errors("Strong!Pass") == [
            "Password must contain at least one number"
        ]
        assert password_policy_errors("Str0ngPass") == [
            "Password must contain at least one special character"
        ]

    def test_special_characters_come_from_the_allowed_set(self):
        # '-' and '_' are not in the allowed set
        assert password_policy_errors("Str0ng-Pass_") == [
            "Password must contain at least one special character"
        ]
        assert password_policy_errors('Str0ng"Pass') == []


class TestHashing:

    def test_hash_verifies(self):
        hashed = hash_password("Str0ng!Pass")
        assert hashed != "Str0ng!Pass"
        assert verify_password("Str0ng!Pass", hashed)
        assert not verify_password("Wr0ng!Pass", hashed)

    def test_hashes_are_salted(self):
        assert hash_password("Str0ng!Pass") != hash_password("Str0ng!Pass")

    def test_empty_inputs_fail(self):
        assert not verify_password("", hash_password("x"))
        assert not verify_password("Str0ng!Pass", "")

    def test_unknown_hash_format_fails_closed(self):
        # A plaintext value left in the column must never authenticate
        assert not verify_password("Str0ng!Pass", "Str0ng!Pass")


class TestTemporaryPassword:

    def test_length_and_alphabet(self):
        password = generate_temporary_password()
        assert len(password) == 8
        assert password.isalnum()

    def test_custom_length(self):
        assert len(generate_temporary_password(12)) == 12

    def test_values_differ(self):
        assert len({generate_temporary_password() for _ in range(20)}) > 1
