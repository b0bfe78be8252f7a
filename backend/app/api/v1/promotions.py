from typing import Any, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from app.api.deps import Principal, get_db, require_permission
from app.api.queries import apply_updates, get_owned, paginate, search_filter
from app.api.responses import pagination_meta, serialize, success_response
from app.core.errors import validation_error
from app.models.promotion import Promotion
from app.schemas.crm import PromotionCreate, PromotionUpdate

router = APIRouter()


def _check_period(promotion: Promotion) -> None:
    if promotion.end_date < promotion.start_date:
        raise validation_error("End date must be on or after start date")


@router.get("")
async def list_promotions(
    status: Optional[str] = None,
    type: Optional[str] = None,
    is_active: Optional[bool] = None,
    search: Optional[str] = None,
    page: int = 1,
    limit: int = 20,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_permission("promotions", "read")),
) -> Any:
    query = select(Promotion).where(Promotion.company_id == principal.company_id)
    if status:
        query = query.where(Promotion.status == status)
    if type:
        query = query.where(Promotion.type == type)
    if is_active is not None:
        query = query.where(Promotion.is_active.is_(is_active))
    matches = search_filter(search, (Promotion.name, Promotion.description))
    if matches is not None:
        query = query.where(matches)
    query = query.order_by(Promotion.start_date.desc())

    promotions, total = await paginate(db, query, page, limit)
    return success_response(
        [serialize(p) for p in promotions],
        pagination=pagination_meta(page, limit, total),
    )


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_promotion(
    payload: PromotionCreate,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_permission("promotions", "create")),
) -> Any:
    promotion = Promotion(
        **payload.model_dump(),
        company_id=principal.company_id,
        created_by=principal.user_id,
        is_active=True,
        usage_count=0,
    )
    _check_period(promotion)
    db.add(promotion)
    await db.commit()
    await db.refresh(promotion)
    return success_response(serialize(promotion), message="Promotion created successfully")


@router.put("/{promotion_id}")
async def update_promotion(
    promotion_id: int,
    payload: PromotionUpdate,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_permission("promotions", "update")),
) -> Any:
    promotion = await get_owned(db, Promotion, promotion_id, principal.company_id, "Promotion")
    apply_updates(promotion, payload)
    _check_period(promotion)
    await db.commit()
    await db.refresh(promotion)
    return success_response(serialize(promotion), message="Promotion updated successfully")
