from typing import Dict, List, Optional

from pydantic import EmailStr, Field

from app.schemas.common import APIModel


class Token(APIModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    principal: dict
    # Only back-office users get refresh tokens
    refresh_token: Optional[str] = None
    refresh_expires_in: Optional[int] = None


class TokenRefreshRequest(APIModel):
    refresh_token: str = Field(..., min_length=1)


class LoginRequest(APIModel):
    email: EmailStr
    password: str


class EmployeeLoginRequest(APIModel):
    employee_id: str = Field(..., description="Company employee code, e.g. EMP001")
    password: str


class RegisterRequest(APIModel):
    company_name: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    email: EmailStr
    password: str
    phone: Optional[str] = None
    address: Optional[str] = None


_ROLE_PATTERN = "^(admin|manager|sales|warehouse|viewer|hr)$"


class UserCreate(APIModel):
    email: EmailStr
    name: str = Field(..., min_length=1)
    password: str
    role: str = Field("viewer", pattern=_ROLE_PATTERN)
    employee_id: Optional[int] = None
    permissions: Dict[str, List[str]] = {}
    is_active: bool = True


class UserUpdate(APIModel):
    name: Optional[str] = Field(None, min_length=1)
    role: Optional[str] = Field(None, pattern=_ROLE_PATTERN)
    employee_id: Optional[int] = None
    is_active: Optional[bool] = None
    avatar: Optional[str] = None
    password: Optional[str] = None


class UserPermissionsUpdate(APIModel):
    permissions: Dict[str, List[str]]
