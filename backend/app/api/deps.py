import logging
from dataclasses import dataclass
from typing import AsyncGenerator, Optional, Callable

from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from app.db.session import AsyncSessionLocal
from app.core.config import settings
from app.core.errors import authentication_error, authorization_error
from app.core.rbac import EMPLOYEE_ROLE, has_permission
from app.core.security import decode_employee_token, decode_user_token
from app.models.employee import Employee
from app.models.user import User

logger = logging.getLogger("bizabode.deps")

NO_TOKEN = "No token provided"

# auto_error=False so a missing header surfaces as our own authentication error
oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_V1_STR}/auth/login", auto_error=False)


async def get_db() -> AsyncGenerator:
    async with AsyncSessionLocal() as session:
        yield session


@dataclass
class Principal:
    """The authenticated caller: a back-office user or a self-service employee."""

    kind: str
    id: int
    company_id: int
    role: str
    user: Optional[User] = None
    employee: Optional[Employee] = None

    @property
    def is_employee(self) -> bool:
        return self.kind == "employee"

    @property
    def user_id(self) -> Optional[int]:
        return self.user.id if self.user is not None else None

    @property
    def grants(self) -> dict:
        """Extra per-user permissions; employees never carry any."""
        if self.user is None:
            return {}
        return self.user.permissions or {}

    @classmethod
    def from_user(cls, user: User) -> "Principal":
        return cls(kind="user", id=user.id, company_id=user.company_id, role=user.role, user=user)

    @classmethod
    def from_employee(cls, employee: Employee) -> "Principal":
        return cls(
            kind="employee",
            id=employee.id,
            company_id=employee.company_id,
            role=EMPLOYEE_ROLE,
            employee=employee,
        )

    def to_dict(self) -> dict:
        if self.is_employee:
            employee = self.employee
            return {
                "type": "employee",
                "id": self.id,
                "company_id": self.company_id,
                "role": self.role,
                "employee_id": employee.employee_code if employee else None,
                "name": employee.full_name if employee else None,
                "email": employee.email if employee else None,
            }
        return {
            "type": "user",
            "id": self.id,
            "company_id": self.company_id,
            "role": self.role,
            "name": self.user.name if self.user else None,
            "email": self.user.email if self.user else None,
        }


async def _authenticate_user(db: AsyncSession, token: str) -> tuple[Optional[Principal], str]:
    user_id = decode_user_token(token)
    if user_id is None:
        return None, "Invalid token"
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if user is None or not user.is_active:
        return None, "User not found or inactive"
    return Principal.from_user(user), ""


async def _authenticate_employee(db: AsyncSession, token: str) -> tuple[Optional[Principal], str]:
    claims = decode_employee_token(token)
    if claims is None:
        return None, "Invalid token"
    result = await db.execute(
        select(Employee).where(
            Employee.id == claims["employee_id"],
            Employee.company_id == claims["company_id"],
        )
    )
    employee = result.scalar_one_or_none()
    if employee is None or employee.status != "active":
        return None, "Employee not found or inactive"
    return Principal.from_employee(employee), ""


async def get_current_principal(
    request: Request,
    db: AsyncSession = Depends(get_db),
    token: Optional[str] = Depends(oauth2_scheme),
) -> Principal:
    """
    Authenticate the bearer token.

    User tokens are tried first, then employee tokens. When both fail the
    employee error wins if it is more specific than "No token provided".
    """
    if not token:
        raise authentication_error(NO_TOKEN)

    principal, user_error = await _authenticate_user(db, token)
    if principal is None:
        principal, employee_error = await _authenticate_employee(db, token)
        if principal is None:
            if employee_error and employee_error != NO_TOKEN:
                raise authentication_error(employee_error)
            raise authentication_error(user_error)

    request.state.principal = principal
    return principal


async def get_current_user(
    principal: Principal = Depends(get_current_principal),
) -> User:
    """Require a back-office user (employee tokens are rejected)."""
    if principal.is_employee or principal.user is None:
        raise authorization_error("This action requires a user account")
    return principal.user


def require_permission(resource: str, action: str) -> Callable:
    """
    Dependency factory that checks the caller's role against the permission matrix.

    Usage:
        @router.get("/leads")
        async def list_leads(principal: Principal = Depends(require_permission("leads", "read"))):
            ...
    """
    async def permission_checker(
        principal: Principal = Depends(get_current_principal),
    ) -> Principal:
        if not has_permission(principal.role, resource, action, principal.grants):
            logger.info(
                f"Permission denied: role={principal.role} resource={resource} action={action}"
            )
            raise authorization_error(f"Permission denied. Required: {resource}:{action}")
        return principal

    return permission_checker
