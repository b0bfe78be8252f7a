from datetime import datetime, time
from typing import Any, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from app.api.deps import Principal, get_db, require_permission
from app.api.queries import get_owned, paginate
from app.api.responses import pagination_meta, serialize, success_response
from app.models.approval import Approval
from app.schemas.crm import ApprovalCreate, ApprovalDecision
from app.services.crm.approval_service import build_approvers, decide, refresh_overdue

router = APIRouter()


@router.get("")
async def list_approvals(
    type: Optional[str] = None,
    status: Optional[str] = None,
    priority: Optional[str] = None,
    requested_by: Optional[int] = None,
    overdue: Optional[bool] = None,
    page: int = 1,
    limit: int = 50,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_permission("approvals", "read")),
) -> Any:
    now = datetime.utcnow()
    query = select(Approval).where(Approval.company_id == principal.company_id)
    if type:
        query = query.where(Approval.type == type)
    if status:
        query = query.where(Approval.status == status)
    if priority:
        query = query.where(Approval.priority == priority)
    if requested_by is not None:
        query = query.where(Approval.requested_by == requested_by)
    if overdue:
        query = query.where(Approval.status == "Pending", Approval.due_date < now)
    query = query.order_by(Approval.requested_date.desc())

    approvals, total = await paginate(db, query, page, limit)
    for approval in approvals:
        refresh_overdue(approval, now)
    return success_response(
        [serialize(a) for a in approvals],
        pagination=pagination_meta(page, limit, total),
    )


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_approval(
    payload: ApprovalCreate,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_permission("approvals", "create")),
) -> Any:
    """
    Open an approval request. Approvers are worked through level by level.
    """
    approvers, total_levels = build_approvers(payload.approvers)
    approval = Approval(
        **payload.model_dump(exclude={"approvers", "due_date"}),
        company_id=principal.company_id,
        requested_by=principal.user_id,
        requested_date=datetime.utcnow(),
        status="Pending",
        approvers=approvers,
        current_level=1,
        total_levels=total_levels,
        due_date=datetime.combine(payload.due_date, time.max) if payload.due_date else None,
        is_overdue=False,
    )
    db.add(approval)
    await db.commit()
    await db.refresh(approval)
    return success_response(serialize(approval), message="Approval request created successfully")


@router.get("/{approval_id}")
async def read_approval(
    approval_id: int,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_permission("approvals", "read")),
) -> Any:
    approval = await get_owned(db, Approval, approval_id, principal.company_id, "Approval")
    refresh_overdue(approval)
    return success_response(serialize(approval))


@router.post("/{approval_id}/decision")
async def decide_approval(
    approval_id: int,
    payload: ApprovalDecision,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_permission("approvals", "update")),
) -> Any:
    approval = await get_owned(db, Approval, approval_id, principal.company_id, "Approval")
    decide(
        approval,
        principal.user_id,
        payload.decision,
        payload.comments,
        is_admin=principal.role == "admin",
    )
    refresh_overdue(approval)
    await db.commit()
    await db.refresh(approval)
    return success_response(serialize(approval), message=f"Approval {approval.status.lower()}")
