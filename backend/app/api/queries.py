"""
Tenant-scoped query helpers used by the v1 routers.
"""

from typing import Any, Iterable, Optional, Type

from pydantic import BaseModel
from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import not_found_error

MAX_PAGE_SIZE = 100


async def get_owned(db: AsyncSession, model: Type, object_id: int, company_id: int, resource: str) -> Any:
    """Load a row by id within a tenant, or raise NOT_FOUND."""
    result = await db.execute(
        select(model).where(model.id == object_id, model.company_id == company_id)
    )
    obj = result.scalar_one_or_none()
    if obj is None:
        raise not_found_error(resource)
    return obj


async def paginate(db: AsyncSession, query, page: int = 1, limit: int = 20) -> tuple[list, int]:
    """Run ``query`` for one page and return (rows, total)."""
    page = max(page, 1)
    limit = min(max(limit, 1), MAX_PAGE_SIZE)
    total = (await db.execute(select(func.count()).select_from(query.order_by(None).subquery()))).scalar() or 0
    result = await db.execute(query.offset((page - 1) * limit).limit(limit))
    return list(result.scalars().all()), total


def search_filter(term: Optional[str], columns: Iterable):
    """Case-insensitive substring match across ``columns``; None when there is no term."""
    if not term:
        return None
    pattern = f"%{term}%"
    return or_(*(column.ilike(pattern) for column in columns))


def apply_updates(obj: Any, payload: BaseModel, exclude: Iterable[str] = ()) -> dict:
    """Copy the fields the client actually sent onto ``obj``; returns them."""
    changes = payload.model_dump(exclude_unset=True, exclude=set(exclude))
    for key, value in changes.items():
        setattr(obj, key, value)
    return changes
