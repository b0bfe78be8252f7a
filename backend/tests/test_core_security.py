"""
Tests for app/core/security.py - Password hashing and JWT token management.
"""
from datetime import timedelta
from jose import jwt


class TestPasswordHashing:
    """Test password hashing and verification."""

    def test_hash_password_produces_bcrypt_hash(self):
        """Hash should be in bcrypt format ($2b$...)."""
        from app.core.security import get_password_hash

        result = get_password_hash("testpassword")

        assert result.startswith("$2b$")

    def test_hash_password_is_unique(self):
        """Same password should produce different hashes (due to salt)."""
        from app.core.security import get_password_hash

        assert get_password_hash("testpassword") != get_password_hash("testpassword")

    def test_verify_password_correct(self):
        from app.core.security import get_password_hash, verify_password

        hashed = get_password_hash("correct_password")

        assert verify_password("correct_password", hashed) is True

    def test_verify_password_incorrect(self):
        from app.core.security import get_password_hash, verify_password

        hashed = get_password_hash("correct_password")

        assert verify_password("wrong_password", hashed) is False

    def test_verify_password_without_stored_hash(self):
        """Employees without portal access have no hash."""
        from app.core.security import verify_password

        assert verify_password("anything", None) is False
        assert verify_password("anything", "") is False

    def test_verify_password_with_malformed_hash(self):
        from app.core.security import verify_password

        assert verify_password("anything", "plaintext-not-bcrypt") is False

    def test_long_password_is_truncated_consistently(self):
        """bcrypt only uses the first 72 bytes."""
        from app.core.security import get_password_hash, verify_password

        password = "a" * 100
        hashed = get_password_hash(password)

        assert verify_password("a" * 72, hashed) is True


class TestUserTokens:
    """Test back-office user tokens."""

    def test_round_trip(self):
        from app.core.security import create_access_token, decode_user_token

        token = create_access_token(subject=42, expires_delta=timedelta(minutes=5))

        assert decode_user_token(token) == 42

    def test_token_carries_user_type(self):
        from app.core.config import settings
        from app.core.security import create_access_token

        token = create_access_token(subject=1)
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])

        assert payload["type"] == "user"
        assert payload["sub"] == "1"

    def test_expired_token_is_rejected(self):
        from app.core.security import create_access_token, decode_user_token

        token = create_access_token(subject=1, expires_delta=timedelta(seconds=-1))

        assert decode_user_token(token) is None

    def test_wrong_secret_is_rejected(self):
        from app.core.config import settings
        from app.core.security import decode_user_token

        token = jwt.encode({"sub": "1", "type": "user"}, "another-secret", algorithm=settings.ALGORITHM)

        assert decode_user_token(token) is None

    def test_employee_token_is_not_a_user_token(self):
        from app.core.security import create_employee_token, decode_user_token

        token = create_employee_token(employee_id=3, company_id=1)

        assert decode_user_token(token) is None

    def test_garbage_is_rejected(self):
        from app.core.security import decode_user_token

        assert decode_user_token("not.a.jwt") is None


class TestEmployeeTokens:
    """Test self-service employee tokens."""

    def test_claims(self):
        from app.core.security import create_employee_token, decode_employee_token

        token = create_employee_token(employee_id=3, company_id=9)
        claims = decode_employee_token(token)

        assert claims["employee_id"] == 3
        assert claims["company_id"] == 9
        assert claims["role"] == "employee"

    def test_user_token_is_not_an_employee_token(self):
        from app.core.security import create_access_token, decode_employee_token

        assert decode_employee_token(create_access_token(subject=1)) is None

    def test_missing_company_is_rejected(self):
        from app.core.config import settings
        from app.core.security import decode_employee_token

        token = jwt.encode({"employee_id": 3, "role": "employee"}, settings.SECRET_KEY, algorithm=settings.ALGORITHM)

        assert decode_employee_token(token) is None
