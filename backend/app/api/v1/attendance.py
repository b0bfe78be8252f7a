from datetime import date
from typing import Any, Optional, Union

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import Principal, get_db, require_permission
from app.api.responses import employee_summary, serialize, success_response
from app.models.employee import Employee
from app.schemas.hr import AttendanceRecord, AttendanceUpdate
from app.services.hr import attendance_service

router = APIRouter()


def _attendance_dict(record, employee: Optional[Employee] = None) -> dict:
    return serialize(record, employee=employee_summary(employee or record.employee))


async def _target_employee(
    db: AsyncSession,
    principal: Principal,
    identifier: Optional[Union[int, str]],
) -> Employee:
    """Employees always act on themselves; users name the employee by id or code."""
    if principal.is_employee:
        return principal.employee
    return await attendance_service.get_employee_or_404(db, principal.company_id, identifier)


@router.get("")
async def list_attendance(
    employee_id: Optional[str] = None,
    today: bool = False,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    status: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_permission("attendance", "read")),
) -> Any:
    """
    Attendance records, newest date first.
    """
    employee_pk = None
    if principal.is_employee:
        employee_pk = principal.id
    elif employee_id:
        employee = await attendance_service.find_employee(db, principal.company_id, employee_id)
        if employee is None:
            return success_response([])
        employee_pk = employee.id

    records = await attendance_service.list_attendance(
        db,
        principal.company_id,
        employee_id=employee_pk,
        today=today,
        start_date=start_date,
        end_date=end_date,
        status=status,
    )
    return success_response([_attendance_dict(r) for r in records])


@router.post("", status_code=status.HTTP_201_CREATED)
async def record_attendance(
    payload: AttendanceRecord,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_permission("attendance", "create")),
) -> Any:
    """
    Clock in, or store a full manual entry for one employee and date.
    """
    employee = await _target_employee(db, principal, payload.employee_id)
    record, created = await attendance_service.record_attendance(
        db, principal.company_id, employee, payload
    )
    body = success_response(
        _attendance_dict(record, employee),
        message="Attendance recorded successfully" if created else "Attendance updated successfully",
    )
    if created:
        return body
    return JSONResponse(status_code=status.HTTP_200_OK, content=body)


@router.put("")
async def update_attendance(
    payload: AttendanceUpdate,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_permission("attendance", "update")),
) -> Any:
    """
    Clock out, record a break or add notes; totals are recomputed.
    """
    employee = await _target_employee(db, principal, payload.employee_id)
    record = await attendance_service.update_attendance(db, principal.company_id, employee.id, payload)
    return success_response(_attendance_dict(record, employee), message="Attendance updated successfully")


@router.get("/summary")
async def attendance_summary(
    start_date: date,
    end_date: date,
    employee_id: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_permission("attendance", "read")),
) -> Any:
    """
    Regular and overtime hours plus day counts per employee for a date range.
    """
    employee_pk = None
    if principal.is_employee:
        employee_pk = principal.id
    elif employee_id:
        employee_pk = (await attendance_service.get_employee_or_404(db, principal.company_id, employee_id)).id

    summary = await attendance_service.attendance_summary(
        db, principal.company_id, start_date, end_date, employee_id=employee_pk
    )
    return success_response(summary)
