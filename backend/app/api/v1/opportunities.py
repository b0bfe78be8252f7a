from datetime import datetime
from typing import Any, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from app.api.deps import Principal, get_db, require_permission
from app.api.queries import apply_updates, get_owned, paginate, search_filter
from app.api.responses import pagination_meta, serialize, success_response
from app.models.opportunity import CLOSED_STAGES, Opportunity
from app.schemas.crm import OpportunityCreate, OpportunityUpdate

router = APIRouter()


@router.get("")
async def list_opportunities(
    stage: Optional[str] = None,
    assigned_to: Optional[int] = None,
    search: Optional[str] = None,
    page: int = 1,
    limit: int = 50,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_permission("opportunities", "read")),
) -> Any:
    query = select(Opportunity).where(Opportunity.company_id == principal.company_id)
    if stage:
        query = query.where(Opportunity.stage == stage)
    if assigned_to is not None:
        query = query.where(Opportunity.assigned_to == assigned_to)
    matches = search_filter(search, (Opportunity.title, Opportunity.customer_name, Opportunity.customer_email))
    if matches is not None:
        query = query.where(matches)
    query = query.order_by(Opportunity.created_at.desc())

    opportunities, total = await paginate(db, query, page, limit)
    return success_response(
        [serialize(o) for o in opportunities],
        pagination=pagination_meta(page, limit, total),
    )


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_opportunity(
    payload: OpportunityCreate,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_permission("opportunities", "create")),
) -> Any:
    opportunity = Opportunity(**payload.model_dump(), company_id=principal.company_id)
    if opportunity.assigned_to is None:
        opportunity.assigned_to = principal.user_id
    if opportunity.stage in CLOSED_STAGES:
        opportunity.actual_close_date = datetime.utcnow().date()
    db.add(opportunity)
    await db.commit()
    await db.refresh(opportunity)
    return success_response(serialize(opportunity), message="Opportunity created successfully")


@router.get("/{opportunity_id}")
async def read_opportunity(
    opportunity_id: int,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_permission("opportunities", "read")),
) -> Any:
    opportunity = await get_owned(db, Opportunity, opportunity_id, principal.company_id, "Opportunity")
    return success_response(serialize(opportunity))


@router.put("/{opportunity_id}")
async def update_opportunity(
    opportunity_id: int,
    payload: OpportunityUpdate,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_permission("opportunities", "update")),
) -> Any:
    """
    Update an opportunity. Moving into a closed stage stamps actual_close_date.
    """
    opportunity = await get_owned(db, Opportunity, opportunity_id, principal.company_id, "Opportunity")
    was_closed = opportunity.stage in CLOSED_STAGES
    apply_updates(opportunity, payload)
    if opportunity.stage in CLOSED_STAGES and not was_closed:
        opportunity.actual_close_date = datetime.utcnow().date()
        if opportunity.stage == "closed-won":
            opportunity.probability = 100
        else:
            opportunity.probability = 0
    elif opportunity.stage not in CLOSED_STAGES:
        opportunity.actual_close_date = None
    await db.commit()
    await db.refresh(opportunity)
    return success_response(serialize(opportunity), message="Opportunity updated successfully")


@router.delete("/{opportunity_id}")
async def delete_opportunity(
    opportunity_id: int,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_permission("opportunities", "delete")),
) -> Any:
    opportunity = await get_owned(db, Opportunity, opportunity_id, principal.company_id, "Opportunity")
    await db.delete(opportunity)
    await db.commit()
    return success_response(message="Opportunity deleted successfully")
