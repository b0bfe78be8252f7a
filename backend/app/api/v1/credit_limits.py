from datetime import datetime
from typing import Any, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from app.api.deps import Principal, get_db, require_permission
from app.api.queries import apply_updates, get_owned, paginate
from app.api.responses import pagination_meta, serialize, success_response
from app.core.errors import conflict_error
from app.models.credit_limit import CreditLimit
from app.models.customer import Customer
from app.schemas.crm import CreditLimitCreate, CreditLimitUpdate

router = APIRouter()


@router.get("")
async def list_credit_limits(
    customer_id: Optional[int] = None,
    risk_level: Optional[str] = None,
    credit_hold: Optional[bool] = None,
    page: int = 1,
    limit: int = 20,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_permission("credit_limits", "read")),
) -> Any:
    query = select(CreditLimit).where(CreditLimit.company_id == principal.company_id)
    if customer_id is not None:
        query = query.where(CreditLimit.customer_id == customer_id)
    if risk_level:
        query = query.where(CreditLimit.risk_level == risk_level)
    if credit_hold is not None:
        query = query.where(CreditLimit.credit_hold.is_(credit_hold))
    query = query.order_by(CreditLimit.created_at.desc())

    limits, total = await paginate(db, query, page, limit)
    return success_response(
        [serialize(c) for c in limits],
        pagination=pagination_meta(page, limit, total),
    )


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_credit_limit(
    payload: CreditLimitCreate,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_permission("credit_limits", "create")),
) -> Any:
    await get_owned(db, Customer, payload.customer_id, principal.company_id, "Customer")
    existing = await db.execute(
        select(CreditLimit.id).where(
            CreditLimit.company_id == principal.company_id,
            CreditLimit.customer_id == payload.customer_id,
        )
    )
    if existing.scalar_one_or_none() is not None:
        raise conflict_error("Customer already has a credit limit", {"customer_id": payload.customer_id})

    credit = CreditLimit(
        **payload.model_dump(),
        company_id=principal.company_id,
        current_balance=0,
        credit_hold=False,
        approved_by=principal.user_id,
    )
    credit.recompute_available()
    db.add(credit)
    await db.commit()
    await db.refresh(credit)
    return success_response(serialize(credit), message="Credit limit created successfully")


@router.put("/{credit_id}")
async def update_credit_limit(
    credit_id: int,
    payload: CreditLimitUpdate,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_permission("credit_limits", "update")),
) -> Any:
    """
    Adjust a customer's limit or place/release a credit hold.
    """
    credit = await get_owned(db, CreditLimit, credit_id, principal.company_id, "Credit limit")
    was_on_hold = credit.credit_hold
    changes = apply_updates(credit, payload)
    if "credit_hold" in changes:
        if credit.credit_hold and not was_on_hold:
            credit.credit_hold_date = datetime.utcnow()
        elif not credit.credit_hold:
            credit.credit_hold_date = None
            credit.credit_hold_reason = None
    credit.recompute_available()
    await db.commit()
    await db.refresh(credit)
    return success_response(serialize(credit), message="Credit limit updated successfully")
