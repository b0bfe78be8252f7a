import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from app.api.deps import Principal, get_db, require_permission
from app.api.queries import get_owned, paginate, search_filter
from app.api.responses import pagination_meta, serialize, success_response
from app.core.errors import conflict_error, validation_error
from app.core.rbac import normalize_grants, permissions_for
from app.core.security import get_password_hash, validate_password_policy
from app.models.employee import Employee
from app.models.user import User
from app.schemas.auth import UserCreate, UserPermissionsUpdate, UserUpdate

logger = logging.getLogger("bizabode.users")

router = APIRouter()


def _user_dict(user: User) -> dict:
    return serialize(user, effective_permissions=permissions_for(user.role, user.permissions))


def _stored_grants(grants: dict) -> dict:
    return {resource: sorted(actions) for resource, actions in normalize_grants(grants).items()}


async def _check_employee_link(db: AsyncSession, company_id: int, employee_id: int, user_id: Optional[int] = None):
    await get_owned(db, Employee, employee_id, company_id, "Employee")
    result = await db.execute(select(User.id).where(User.employee_id == employee_id))
    linked_to = result.scalar_one_or_none()
    if linked_to is not None and linked_to != user_id:
        raise conflict_error("This employee already has a user account")


@router.get("")
async def list_users(
    search: Optional[str] = None,
    role: Optional[str] = None,
    is_active: Optional[bool] = None,
    page: int = 1,
    limit: int = 20,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_permission("users", "read")),
) -> Any:
    query = select(User).where(User.company_id == principal.company_id)
    if role:
        query = query.where(User.role == role)
    if is_active is not None:
        query = query.where(User.is_active == is_active)
    matches = search_filter(search, (User.name, User.email))
    if matches is not None:
        query = query.where(matches)
    query = query.order_by(User.created_at.desc())

    users, total = await paginate(db, query, page, limit)
    return success_response(
        [_user_dict(user) for user in users],
        pagination=pagination_meta(page, limit, total),
    )


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_user(
    payload: UserCreate,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_permission("users", "create")),
) -> Any:
    """
    Add a back-office user to the caller's company, optionally linked to an employee record.
    """
    validate_password_policy(payload.password)
    existing = await db.execute(select(User.id).where(User.email == payload.email))
    if existing.scalar_one_or_none() is not None:
        raise conflict_error("A user with this email already exists")
    if payload.employee_id is not None:
        await _check_employee_link(db, principal.company_id, payload.employee_id)

    user = User(
        company_id=principal.company_id,
        email=payload.email,
        name=payload.name,
        hashed_password=get_password_hash(payload.password),
        role=payload.role,
        employee_id=payload.employee_id,
        permissions=_stored_grants(payload.permissions),
        is_active=payload.is_active,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)

    logger.info(f"User {user.id} ({user.role}) created by {principal.id}")
    return success_response(_user_dict(user), message="User created successfully")


@router.get("/{user_id}")
async def read_user(
    user_id: int,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_permission("users", "read")),
) -> Any:
    user = await get_owned(db, User, user_id, principal.company_id, "User")
    return success_response(_user_dict(user))


@router.put("/{user_id}")
async def update_user(
    user_id: int,
    payload: UserUpdate,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_permission("users", "update")),
) -> Any:
    user = await get_owned(db, User, user_id, principal.company_id, "User")
    changes = payload.model_dump(exclude_unset=True)

    if user.id == principal.user_id:
        if changes.get("is_active") is False:
            raise validation_error("You cannot deactivate your own account")
        if "role" in changes and changes["role"] != user.role:
            raise validation_error("You cannot change your own role")
    if changes.get("employee_id") is not None:
        await _check_employee_link(db, principal.company_id, changes["employee_id"], user.id)

    password = changes.pop("password", None)
    if password is not None:
        validate_password_policy(password)
        user.hashed_password = get_password_hash(password)
    for key, value in changes.items():
        setattr(user, key, value)

    await db.commit()
    await db.refresh(user)
    return success_response(_user_dict(user), message="User updated successfully")


@router.put("/{user_id}/permissions")
async def update_user_permissions(
    user_id: int,
    payload: UserPermissionsUpdate,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_permission("users", "update")),
) -> Any:
    """
    Replace a user's extra grants. They add to the role and never reach user management.
    """
    user = await get_owned(db, User, user_id, principal.company_id, "User")
    user.permissions = _stored_grants(payload.permissions)
    await db.commit()
    await db.refresh(user)
    return success_response(_user_dict(user), message="Permissions updated successfully")


@router.delete("/{user_id}")
async def delete_user(
    user_id: int,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_permission("users", "delete")),
) -> Any:
    if user_id == principal.user_id:
        raise validation_error("Cannot delete your own account")
    user = await get_owned(db, User, user_id, principal.company_id, "User")
    await db.delete(user)
    await db.commit()
    return success_response(message="User deleted successfully")
