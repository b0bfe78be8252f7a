import hashlib
import secrets
from datetime import datetime, timedelta
from typing import Any, Optional, Tuple
import bcrypt
from jose import jwt, JWTError
from app.core.config import settings
from app.core.errors import validation_error

EMPLOYEE_ROLE = "employee"
USER_TOKEN_TYPE = "user"
EMPLOYEE_TOKEN_TYPE = "employee"


def create_access_token(subject: str | Any, expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a JWT access token for a back-office user.

    Args:
        subject: The subject of the token (the user ID)
        expires_delta: Optional expiration time delta

    Returns:
        Encoded JWT token
    """
    if expires_delta:
        expire = datetime.utcnow() + expires_delta
    else:
        expire = datetime.utcnow() + timedelta(
            minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES
        )

    to_encode = {"exp": expire, "sub": str(subject), "type": USER_TOKEN_TYPE}
    encoded_jwt = jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)
    return encoded_jwt


def create_employee_token(
    employee_id: int,
    company_id: int,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """
    Create a JWT for the employee self-service portal.

    The token carries the employee and company ids and the fixed
    ``employee`` role; it is never accepted as a user token.
    """
    expire = datetime.utcnow() + (
        expires_delta or timedelta(minutes=settings.EMPLOYEE_TOKEN_EXPIRE_MINUTES)
    )
    to_encode = {
        "exp": expire,
        "employee_id": employee_id,
        "company_id": company_id,
        "role": EMPLOYEE_ROLE,
        "type": EMPLOYEE_TOKEN_TYPE,
    }
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_token(token: str) -> dict:
    """
    Decode and verify a JWT.

    Raises:
        JWTError: If the signature is invalid or the token has expired
    """
    return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])


def decode_user_token(token: str) -> Optional[int]:
    """Return the user id carried by a user token, or None if it is not one."""
    try:
        payload = decode_token(token)
    except JWTError:
        return None
    if payload.get("type", USER_TOKEN_TYPE) != USER_TOKEN_TYPE:
        return None
    subject = payload.get("sub")
    if subject is None:
        return None
    try:
        return int(subject)
    except (TypeError, ValueError):
        return None


def decode_employee_token(token: str) -> Optional[dict]:
    """Return the employee claims of an employee token, or None if it is not one."""
    try:
        payload = decode_token(token)
    except JWTError:
        return None
    if payload.get("role") != EMPLOYEE_ROLE:
        return None
    if payload.get("employee_id") is None or payload.get("company_id") is None:
        return None
    return payload


def create_refresh_token() -> Tuple[str, str]:
    """
    Create an opaque refresh token.

    Returns:
        Tuple of (raw_token, token_hash); only the hash is stored
    """
    raw_token = secrets.token_urlsafe(32)
    return raw_token, hash_refresh_token(raw_token)


def hash_refresh_token(raw_token: str) -> str:
    return hashlib.sha256(raw_token.encode()).hexdigest()


def get_refresh_token_expire_time() -> datetime:
    return datetime.utcnow() + timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)


def _prepare_password(password: str) -> bytes:
    """
    Prepare password for bcrypt by encoding and truncating to 72 bytes.

    Args:
        password: Plain text password

    Returns:
        Password bytes truncated to 72 bytes (bcrypt limit)
    """
    return password.encode('utf-8')[:72]


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    """
    Verify a plain password against a hashed password.

    Returns False when no hash is stored or the stored value is not a bcrypt hash.
    """
    if not hashed_password:
        return False
    try:
        return bcrypt.checkpw(
            _prepare_password(plain_password),
            hashed_password.encode('utf-8')
        )
    except ValueError:
        return False


def get_password_hash(password: str) -> str:
    """
    Hash a password using bcrypt.

    Args:
        password: Plain text password

    Returns:
        Hashed password
    """
    salt = bcrypt.gensalt()
    hashed = bcrypt.hashpw(_prepare_password(password), salt)
    return hashed.decode('utf-8')


def validate_password_policy(password: str) -> None:
    """
    Raises:
        AppError: VALIDATION_ERROR with code WEAK_PASSWORD when the password is too short
    """
    if len(password) < settings.MIN_PASSWORD_LENGTH:
        raise validation_error(
            f"Password must be at least {settings.MIN_PASSWORD_LENGTH} characters long",
            code="WEAK_PASSWORD",
        )
