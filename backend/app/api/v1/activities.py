from datetime import datetime
from typing import Any, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from app.api.deps import Principal, get_db, require_permission
from app.api.queries import apply_updates, get_owned, paginate, search_filter
from app.api.responses import pagination_meta, serialize, success_response
from app.models.activity import Activity
from app.models.customer import Customer
from app.models.invoice import Invoice
from app.models.lead import Lead
from app.models.opportunity import Opportunity
from app.models.quote import Quote
from app.models.sales_order import SalesOrder
from app.schemas.crm import ActivityCreate, ActivityUpdate
from app.services.crm.task_service import check_assignee

router = APIRouter()

# Activity field -> (model, name used in errors)
LINKED_RECORDS = {
    "lead_id": (Lead, "Lead"),
    "opportunity_id": (Opportunity, "Opportunity"),
    "customer_id": (Customer, "Customer"),
    "related_quote_id": (Quote, "Quote"),
    "related_order_id": (SalesOrder, "Order"),
    "related_invoice_id": (Invoice, "Invoice"),
}


async def _check_links(db: AsyncSession, company_id: int, fields: dict) -> Optional[Lead]:
    """Every linked record must belong to the tenant. Returns the linked lead, if any."""
    lead = None
    for field, (model, name) in LINKED_RECORDS.items():
        if fields.get(field) is None:
            continue
        record = await get_owned(db, model, fields[field], company_id, name)
        if field == "lead_id":
            lead = record
    return lead


def _on_completed(activity: Activity, lead: Optional[Lead]) -> None:
    if activity.status != "Completed":
        return
    if activity.completed_date is None:
        activity.completed_date = datetime.utcnow()
    # First completed touchpoint moves a fresh lead forward
    if lead is not None and lead.status == "new":
        lead.status = "contacted"


@router.get("")
async def list_activities(
    search: Optional[str] = None,
    lead_id: Optional[int] = None,
    opportunity_id: Optional[int] = None,
    customer_id: Optional[int] = None,
    type: Optional[str] = None,
    status: Optional[str] = None,
    assigned_to: Optional[int] = None,
    page: int = 1,
    limit: int = 50,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_permission("activities", "read")),
) -> Any:
    query = select(Activity).where(Activity.company_id == principal.company_id)
    if lead_id is not None:
        query = query.where(Activity.lead_id == lead_id)
    if opportunity_id is not None:
        query = query.where(Activity.opportunity_id == opportunity_id)
    if customer_id is not None:
        query = query.where(Activity.customer_id == customer_id)
    if type:
        query = query.where(Activity.type == type)
    if status:
        query = query.where(Activity.status == status)
    if assigned_to is not None:
        query = query.where(Activity.assigned_to == assigned_to)
    matches = search_filter(search, (Activity.subject, Activity.description))
    if matches is not None:
        query = query.where(matches)
    query = query.order_by(Activity.created_at.desc())

    activities, total = await paginate(db, query, page, limit)
    return success_response(
        [serialize(activity) for activity in activities],
        pagination=pagination_meta(page, limit, total),
    )


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_activity(
    payload: ActivityCreate,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_permission("activities", "create")),
) -> Any:
    """
    Log a call, visit, meeting or message against a lead, opportunity or customer.
    """
    fields = payload.model_dump()
    lead = await _check_links(db, principal.company_id, fields)
    assigned_to = fields.pop("assigned_to") or principal.user_id
    if assigned_to != principal.user_id:
        await check_assignee(db, principal.company_id, assigned_to)

    activity = Activity(**fields, company_id=principal.company_id, assigned_to=assigned_to)
    _on_completed(activity, lead)
    db.add(activity)
    await db.commit()
    await db.refresh(activity)
    return success_response(serialize(activity), message="Activity created successfully")


@router.get("/{activity_id}")
async def read_activity(
    activity_id: int,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_permission("activities", "read")),
) -> Any:
    activity = await get_owned(db, Activity, activity_id, principal.company_id, "Activity")
    return success_response(serialize(activity))


@router.put("/{activity_id}")
async def update_activity(
    activity_id: int,
    payload: ActivityUpdate,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_permission("activities", "update")),
) -> Any:
    activity = await get_owned(db, Activity, activity_id, principal.company_id, "Activity")
    if payload.assigned_to not in (None, activity.assigned_to):
        await check_assignee(db, principal.company_id, payload.assigned_to)
        activity.assigned_to = payload.assigned_to
    apply_updates(activity, payload, exclude=("assigned_to",))

    lead = None
    if activity.status == "Completed" and activity.lead_id is not None:
        lead = await get_owned(db, Lead, activity.lead_id, principal.company_id, "Lead")
    _on_completed(activity, lead)

    await db.commit()
    await db.refresh(activity)
    return success_response(serialize(activity), message="Activity updated successfully")


@router.delete("/{activity_id}")
async def delete_activity(
    activity_id: int,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_permission("activities", "delete")),
) -> Any:
    activity = await get_owned(db, Activity, activity_id, principal.company_id, "Activity")
    await db.delete(activity)
    await db.commit()
    return success_response(message="Activity deleted successfully")
