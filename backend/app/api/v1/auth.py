import logging
from datetime import datetime, timedelta, timezone
from typing import Any

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from app.api.deps import Principal, get_current_principal, get_current_user, get_db
from app.api.responses import success_response
from app.core.config import settings
from app.core.errors import authentication_error, authorization_error, conflict_error
from app.core.rate_limiter import get_real_client_ip, limiter, RateLimits
from app.core.rbac import permissions_for
from app.core.security import (
    create_access_token,
    create_employee_token,
    create_refresh_token,
    get_password_hash,
    get_refresh_token_expire_time,
    hash_refresh_token,
    validate_password_policy,
    verify_password,
)
from app.models.company import Company
from app.models.employee import Employee
from app.models.refresh_token import RefreshToken
from app.models.user import User
from app.schemas.auth import EmployeeLoginRequest, LoginRequest, RegisterRequest, Token, TokenRefreshRequest

logger = logging.getLogger("bizabode.auth")

router = APIRouter()

INVALID_CREDENTIALS = "Invalid email or password"
INVALID_REFRESH_TOKEN = "Invalid refresh token"


def _issue_refresh_token(db: AsyncSession, user_id: int, request: Request) -> tuple[str, int]:
    """Stage a new refresh token row; the caller commits. Returns (raw_token, seconds_to_expiry)."""
    raw_token, token_hash = create_refresh_token()
    expires_at = get_refresh_token_expire_time()
    db.add(
        RefreshToken(
            token_hash=token_hash,
            user_id=user_id,
            expires_at=expires_at,
            device_info=(request.headers.get("User-Agent") or "")[:255] or None,
            ip_address=get_real_client_ip(request),
        )
    )
    return raw_token, int((expires_at - datetime.utcnow()).total_seconds())


async def _revoke_user_tokens(db: AsyncSession, user_id: int) -> int:
    result = await db.execute(
        select(RefreshToken).where(
            RefreshToken.user_id == user_id,
            RefreshToken.revoked_at.is_(None),
        )
    )
    tokens = result.scalars().all()
    for token in tokens:
        token.revoke()
    return len(tokens)


@router.post("/register", status_code=status.HTTP_201_CREATED)
@limiter.limit(RateLimits.AUTH_REGISTER)
async def register(
    request: Request,
    payload: RegisterRequest,
    db: AsyncSession = Depends(get_db),
) -> Any:
    """
    Create a company and its first admin user.
    """
    validate_password_policy(payload.password)
    existing = await db.execute(select(User.id).where(User.email == payload.email))
    if existing.scalar_one_or_none() is not None:
        raise conflict_error("A user with this email already exists")

    company = Company(
        name=payload.company_name,
        email=payload.email,
        phone=payload.phone,
        address=payload.address,
        settings={"currency": "USD", "tax_rate": settings.DEFAULT_TAX_RATE, "timezone": "UTC"},
    )
    db.add(company)
    await db.flush()

    user = User(
        company_id=company.id,
        email=payload.email,
        name=payload.name,
        hashed_password=get_password_hash(payload.password),
        role="admin",
        is_active=True,
        permissions={},
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)

    logger.info(f"Registered company {company.id} with admin user {user.id}")
    principal = Principal.from_user(user)
    return success_response(
        {"company": {"id": company.id, "name": company.name}, "user": principal.to_dict()},
        message="Registration successful",
    )


@router.post("/login", response_model=Token, response_model_by_alias=False)
@limiter.limit(RateLimits.AUTH_LOGIN)
async def login(
    request: Request,
    payload: LoginRequest,
    db: AsyncSession = Depends(get_db),
) -> Any:
    """
    Exchange email and password for a user access token.
    """
    result = await db.execute(select(User).where(User.email == payload.email))
    user = result.scalar_one_or_none()
    if user is None or not verify_password(payload.password, user.hashed_password):
        raise authentication_error(INVALID_CREDENTIALS)
    if not user.is_active:
        raise authorization_error("Inactive user")

    user.last_login = datetime.now(timezone.utc)
    refresh_token, refresh_expires_in = _issue_refresh_token(db, user.id, request)
    await db.commit()

    access_token = create_access_token(
        subject=user.id,
        expires_delta=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
    )
    return Token(
        access_token=access_token,
        token_type="bearer",
        expires_in=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        principal=Principal.from_user(user).to_dict(),
        refresh_token=refresh_token,
        refresh_expires_in=refresh_expires_in,
    )


@router.post("/refresh", response_model=Token, response_model_by_alias=False)
@limiter.limit(RateLimits.AUTH_REFRESH)
async def refresh_access_token(
    request: Request,
    payload: TokenRefreshRequest,
    db: AsyncSession = Depends(get_db),
) -> Any:
    """
    Exchange a refresh token for a new access token.

    The presented refresh token is revoked and a new one returned. Presenting
    an already revoked token revokes every token of that user.
    """
    result = await db.execute(
        select(RefreshToken).where(RefreshToken.token_hash == hash_refresh_token(payload.refresh_token))
    )
    record = result.scalar_one_or_none()
    if record is None:
        raise authentication_error(INVALID_REFRESH_TOKEN)
    if record.revoked_at is not None:
        revoked = await _revoke_user_tokens(db, record.user_id)
        await db.commit()
        logger.warning(f"Revoked refresh token reused for user {record.user_id}; revoked {revoked} more")
        raise authentication_error("Refresh token has been revoked")
    if not record.is_valid():
        raise authentication_error("Refresh token has expired")

    user_result = await db.execute(select(User).where(User.id == record.user_id))
    user = user_result.scalar_one_or_none()
    record.revoke()
    if user is None or not user.is_active:
        await db.commit()
        raise authentication_error("User not found or inactive")

    refresh_token, refresh_expires_in = _issue_refresh_token(db, user.id, request)
    await db.commit()

    return Token(
        access_token=create_access_token(
            subject=user.id,
            expires_delta=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
        ),
        token_type="bearer",
        expires_in=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        principal=Principal.from_user(user).to_dict(),
        refresh_token=refresh_token,
        refresh_expires_in=refresh_expires_in,
    )


@router.post("/logout")
async def logout(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
) -> Any:
    """Revoke every refresh token of the current user."""
    revoked = await _revoke_user_tokens(db, user.id)
    await db.commit()
    return success_response({"revoked_tokens": revoked}, message="Logged out successfully")


@router.post("/employee-login", response_model=Token, response_model_by_alias=False)
@limiter.limit(RateLimits.AUTH_LOGIN)
async def employee_login(
    request: Request,
    payload: EmployeeLoginRequest,
    db: AsyncSession = Depends(get_db),
) -> Any:
    """
    Self-service sign-in with the company employee code.
    """
    result = await db.execute(
        select(Employee).where(
            Employee.employee_code == payload.employee_id,
            Employee.status == "active",
        )
    )
    candidates = result.scalars().all()
    # Codes are only unique per company; the password picks the account
    employee = next(
        (e for e in candidates if e.hashed_password and verify_password(payload.password, e.hashed_password)),
        None,
    )
    if employee is None:
        raise authentication_error("Invalid employee ID or password")

    token = create_employee_token(
        employee.id,
        employee.company_id,
        expires_delta=timedelta(minutes=settings.EMPLOYEE_TOKEN_EXPIRE_MINUTES),
    )
    return Token(
        access_token=token,
        token_type="bearer",
        expires_in=settings.EMPLOYEE_TOKEN_EXPIRE_MINUTES * 60,
        principal=Principal.from_employee(employee).to_dict(),
    )


@router.get("/me")
async def read_me(principal: Principal = Depends(get_current_principal)) -> Any:
    """
    The authenticated user or employee with their effective permissions.
    """
    return success_response(
        {**principal.to_dict(), "permissions": permissions_for(principal.role, principal.grants)}
    )
