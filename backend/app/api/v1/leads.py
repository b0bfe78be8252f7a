from typing import Any, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from app.api.deps import Principal, get_db, require_permission
from app.api.queries import apply_updates, get_owned, paginate, search_filter
from app.api.responses import pagination_meta, serialize, success_response
from app.models.lead import Lead
from app.schemas.crm import LeadConvert, LeadCreate, LeadUpdate
from app.services.crm.conversion_service import convert_lead

router = APIRouter()


@router.get("")
async def list_leads(
    search: Optional[str] = None,
    status: Optional[str] = None,
    category: Optional[str] = None,
    assigned_to: Optional[int] = None,
    page: int = 1,
    limit: int = 20,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_permission("leads", "read")),
) -> Any:
    query = select(Lead).where(Lead.company_id == principal.company_id)
    if status:
        query = query.where(Lead.status == status)
    if category:
        query = query.where(Lead.category == category)
    if assigned_to is not None:
        query = query.where(Lead.assigned_to == assigned_to)
    matches = search_filter(search, (Lead.name, Lead.email, Lead.company))
    if matches is not None:
        query = query.where(matches)
    query = query.order_by(Lead.created_at.desc())

    leads, total = await paginate(db, query, page, limit)
    return success_response(
        [serialize(lead) for lead in leads],
        pagination=pagination_meta(page, limit, total),
    )


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_lead(
    payload: LeadCreate,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_permission("leads", "create")),
) -> Any:
    lead = Lead(**payload.model_dump(), company_id=principal.company_id, custom_fields={})
    if lead.assigned_to is None:
        lead.assigned_to = principal.user_id
    db.add(lead)
    await db.commit()
    await db.refresh(lead)
    return success_response(serialize(lead), message="Lead created successfully")


@router.get("/{lead_id}")
async def read_lead(
    lead_id: int,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_permission("leads", "read")),
) -> Any:
    lead = await get_owned(db, Lead, lead_id, principal.company_id, "Lead")
    return success_response(serialize(lead))


@router.put("/{lead_id}")
async def update_lead(
    lead_id: int,
    payload: LeadUpdate,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_permission("leads", "update")),
) -> Any:
    lead = await get_owned(db, Lead, lead_id, principal.company_id, "Lead")
    apply_updates(lead, payload)
    await db.commit()
    await db.refresh(lead)
    return success_response(serialize(lead), message="Lead updated successfully")


@router.delete("/{lead_id}")
async def delete_lead(
    lead_id: int,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_permission("leads", "delete")),
) -> Any:
    lead = await get_owned(db, Lead, lead_id, principal.company_id, "Lead")
    await db.delete(lead)
    await db.commit()
    return success_response(message="Lead deleted successfully")


@router.post("/{lead_id}/convert", status_code=status.HTTP_201_CREATED)
async def convert_lead_to_opportunity(
    lead_id: int,
    payload: Optional[LeadConvert] = None,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_permission("opportunities", "create")),
) -> Any:
    """
    Turn a lead into an opportunity; the lead is marked qualified.
    """
    lead = await get_owned(db, Lead, lead_id, principal.company_id, "Lead")
    opportunity = await convert_lead(db, lead, payload or LeadConvert())
    return success_response(
        {"opportunity": serialize(opportunity), "lead": serialize(lead)},
        message="Lead converted to opportunity successfully",
    )
