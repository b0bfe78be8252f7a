from typing import Any, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from app.api.deps import Principal, get_db, require_permission
from app.api.queries import get_owned, paginate, search_filter
from app.api.responses import employee_summary, pagination_meta, serialize, success_response
from app.core.errors import not_found_error, validation_error
from app.models.employee import Employee
from app.models.leave_request import LeaveRequest
from app.schemas.hr import LeaveDecision, LeaveRequestCreate
from app.services.hr.leave_service import approve_leave, cancel_leave, count_leave_days, reject_leave

router = APIRouter()


def _leave_dict(leave: LeaveRequest, employee: Optional[Employee] = None) -> dict:
    return serialize(leave, employee=employee_summary(employee or leave.employee))


async def _get_leave(db: AsyncSession, principal: Principal, leave_id: int) -> LeaveRequest:
    leave = await get_owned(db, LeaveRequest, leave_id, principal.company_id, "Leave request")
    if principal.is_employee and leave.employee_id != principal.id:
        raise not_found_error("Leave request")
    return leave


@router.get("")
async def list_leave_requests(
    status: Optional[str] = None,
    leave_type: Optional[str] = None,
    employee_id: Optional[int] = None,
    search: Optional[str] = None,
    page: int = 1,
    limit: int = 20,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_permission("leave_requests", "read")),
) -> Any:
    query = select(LeaveRequest).where(LeaveRequest.company_id == principal.company_id)
    if principal.is_employee:
        query = query.where(LeaveRequest.employee_id == principal.id)
    elif employee_id is not None:
        query = query.where(LeaveRequest.employee_id == employee_id)
    if status:
        query = query.where(LeaveRequest.status == status)
    if leave_type:
        query = query.where(LeaveRequest.leave_type == leave_type)
    matches = search_filter(search, (LeaveRequest.reason,))
    if matches is not None:
        query = query.where(matches)
    query = query.order_by(LeaveRequest.created_at.desc())

    leaves, total = await paginate(db, query, page, limit)
    return success_response(
        [_leave_dict(leave) for leave in leaves],
        pagination=pagination_meta(page, limit, total),
    )


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_leave_request(
    payload: LeaveRequestCreate,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_permission("leave_requests", "create")),
) -> Any:
    """
    Request leave. total_days counts both the first and last day.
    """
    if principal.is_employee:
        employee = principal.employee
    else:
        if payload.employee_id is None:
            raise validation_error("employee_id is required")
        employee = await get_owned(db, Employee, payload.employee_id, principal.company_id, "Employee")

    leave = LeaveRequest(
        company_id=principal.company_id,
        employee_id=employee.id,
        leave_type=payload.leave_type,
        start_date=payload.start_date,
        end_date=payload.end_date,
        total_days=count_leave_days(payload.start_date, payload.end_date),
        reason=payload.reason,
        status="pending",
        requested_by_user_id=principal.user_id,
        requested_by_employee_id=principal.id if principal.is_employee else None,
        attachments=payload.attachments,
        notes=payload.notes,
    )
    db.add(leave)
    await db.commit()
    await db.refresh(leave)
    return success_response(_leave_dict(leave, employee), message="Leave request created successfully")


@router.post("/{leave_id}/approve")
async def approve_leave_request(
    leave_id: int,
    payload: Optional[LeaveDecision] = None,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_permission("leave_requests", "update")),
) -> Any:
    leave = await _get_leave(db, principal, leave_id)
    approve_leave(leave, principal.user_id, payload.notes if payload else None)
    await db.commit()
    await db.refresh(leave)
    return success_response(_leave_dict(leave), message="Leave request approved successfully")


@router.post("/{leave_id}/reject")
async def reject_leave_request(
    leave_id: int,
    payload: Optional[LeaveDecision] = None,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_permission("leave_requests", "update")),
) -> Any:
    leave = await _get_leave(db, principal, leave_id)
    reject_leave(leave, principal.user_id, payload.rejection_reason if payload else None)
    await db.commit()
    await db.refresh(leave)
    return success_response(_leave_dict(leave), message="Leave request rejected successfully")


@router.post("/{leave_id}/cancel")
async def cancel_leave_request(
    leave_id: int,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_permission("leave_requests", "create")),
) -> Any:
    """
    Withdraw a pending request. Employees may only cancel their own.
    """
    leave = await _get_leave(db, principal, leave_id)
    cancel_leave(leave)
    await db.commit()
    await db.refresh(leave)
    return success_response(_leave_dict(leave), message="Leave request cancelled successfully")
