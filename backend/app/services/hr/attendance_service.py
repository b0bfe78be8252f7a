"""
Attendance recording: clock-in, clock-out and the per-employee summary.

The "already clocked in" check is a read followed by a write; the unique
(company, employee, date) constraint catches the concurrent case.
"""

import logging
from datetime import date, datetime, timedelta
from typing import Optional, Union

from sqlalchemy import select, func, case
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import not_found_error, validation_error
from app.models.attendance import Attendance
from app.models.employee import Employee
from app.schemas.hr import AttendanceRecord, AttendanceUpdate
from app.services.hr.attendance_calculator import (
    AttendanceState,
    attendance_state,
    calculate_worked_hours,
    as_naive_utc,
)

logger = logging.getLogger("bizabode.hr.attendance")

ALREADY_CLOCKED_IN = "Employee is already clocked in for today"


def _naive(value: Optional[datetime]) -> Optional[datetime]:
    return as_naive_utc(value) if value is not None else None


def is_employee_code(identifier: Union[int, str]) -> bool:
    return isinstance(identifier, str) and identifier.startswith("EMP")


async def find_employee(
    db: AsyncSession,
    company_id: int,
    identifier: Union[int, str],
) -> Optional[Employee]:
    """Look an employee up by company code (``EMP…``) or numeric id within a tenant."""
    query = select(Employee).where(Employee.company_id == company_id)
    if is_employee_code(identifier):
        query = query.where(Employee.employee_code == identifier)
    else:
        try:
            employee_pk = int(identifier)
        except (TypeError, ValueError):
            return None
        query = query.where(Employee.id == employee_pk)
    result = await db.execute(query)
    return result.scalar_one_or_none()


async def get_employee_or_404(
    db: AsyncSession,
    company_id: int,
    identifier: Union[int, str],
) -> Employee:
    employee = await find_employee(db, company_id, identifier)
    if employee is None:
        raise not_found_error("Employee")
    return employee


def recompute_totals(record: Attendance) -> None:
    """Rewrite both hour fields from the record's four timestamps."""
    hours = calculate_worked_hours(
        record.check_in, record.check_out, record.break_start, record.break_end
    )
    record.total_hours = hours.total_hours
    record.overtime_hours = hours.overtime_hours


async def get_attendance_for_day(
    db: AsyncSession,
    company_id: int,
    employee_id: int,
    day: date,
) -> Optional[Attendance]:
    result = await db.execute(
        select(Attendance).where(
            Attendance.company_id == company_id,
            Attendance.employee_id == employee_id,
            Attendance.date == day,
        )
    )
    return result.scalar_one_or_none()


async def list_attendance(
    db: AsyncSession,
    company_id: int,
    employee_id: Optional[int] = None,
    today: bool = False,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    status: Optional[str] = None,
) -> list[Attendance]:
    query = select(Attendance).where(Attendance.company_id == company_id)
    if employee_id is not None:
        query = query.where(Attendance.employee_id == employee_id)
    if today:
        query = query.where(Attendance.date == datetime.utcnow().date())
    if start_date and end_date:
        query = query.where(Attendance.date >= start_date, Attendance.date <= end_date)
    if status:
        query = query.where(Attendance.status == status)
    query = query.order_by(Attendance.date.desc())

    result = await db.execute(query)
    return list(result.scalars().all())


async def record_attendance(
    db: AsyncSession,
    company_id: int,
    employee: Employee,
    payload: AttendanceRecord,
) -> tuple[Attendance, bool]:
    """
    Clock an employee in, or store a full manual entry.

    A checked-out record for the same day is re-opened as a new session: the
    new check-in replaces the old one and clears check-out and break times
    unless the payload supplies them.

    Returns:
        (record, created) where created is False when an existing row was reused

    Raises:
        AppError: VALIDATION_ERROR if the employee is already clocked in
    """
    existing = await get_attendance_for_day(db, company_id, employee.id, payload.date)

    if existing is not None:
        if attendance_state(existing.check_in, existing.check_out) == AttendanceState.CHECKED_IN:
            raise validation_error(ALREADY_CLOCKED_IN, code="ALREADY_CLOCKED_IN")

        if payload.check_in is not None:
            existing.check_in = _naive(payload.check_in)
            existing.check_out = _naive(payload.check_out)
            existing.break_start = _naive(payload.break_start)
            existing.break_end = _naive(payload.break_end)
        else:
            if payload.check_out is not None:
                existing.check_out = _naive(payload.check_out)
            if payload.break_start is not None:
                existing.break_start = _naive(payload.break_start)
            if payload.break_end is not None:
                existing.break_end = _naive(payload.break_end)
        if payload.status:
            existing.status = payload.status
        if payload.notes:
            existing.notes = payload.notes
        recompute_totals(existing)
        record, created = existing, False
    else:
        record = Attendance(
            company_id=company_id,
            employee_id=employee.id,
            date=payload.date,
            check_in=_naive(payload.check_in),
            check_out=_naive(payload.check_out),
            break_start=_naive(payload.break_start),
            break_end=_naive(payload.break_end),
            status=payload.status or "present",
            notes=payload.notes,
        )
        recompute_totals(record)
        db.add(record)
        created = True

    await db.commit()
    await db.refresh(record)
    logger.info(
        f"Attendance {'recorded' if created else 'updated'} for employee {employee.id} on {payload.date}"
    )
    return record, created


async def update_attendance(
    db: AsyncSession,
    company_id: int,
    employee_id: int,
    payload: AttendanceUpdate,
) -> Attendance:
    """Apply a clock-out, break or notes update and recompute the totals."""
    record = await get_attendance_for_day(db, company_id, employee_id, payload.date)
    if record is None:
        raise not_found_error("Attendance record")

    if payload.check_out is not None:
        record.check_out = _naive(payload.check_out)
    if payload.break_start is not None:
        record.break_start = _naive(payload.break_start)
    if payload.break_end is not None:
        record.break_end = _naive(payload.break_end)
    if payload.notes is not None:
        record.notes = payload.notes

    recompute_totals(record)
    await db.commit()
    await db.refresh(record)
    return record


async def attendance_summary(
    db: AsyncSession,
    company_id: int,
    start_date: date,
    end_date: date,
    employee_id: Optional[int] = None,
) -> list[dict]:
    """Per-employee regular/overtime totals and day counts for a date range."""
    if end_date < start_date:
        raise validation_error("end_date must not be before start_date")

    query = (
        select(
            Employee.id,
            Employee.employee_code,
            Employee.first_name,
            Employee.last_name,
            Employee.department,
            func.coalesce(func.sum(Attendance.total_hours), 0).label("regular_hours"),
            func.coalesce(func.sum(Attendance.overtime_hours), 0).label("overtime_hours"),
            func.sum(case((Attendance.status == "present", 1), else_=0)).label("days_present"),
            func.sum(case((Attendance.status == "absent", 1), else_=0)).label("days_absent"),
            func.sum(case((Attendance.status == "late", 1), else_=0)).label("days_late"),
            func.count(Attendance.id).label("days_recorded"),
        )
        .select_from(Attendance)
        .join(Employee, Employee.id == Attendance.employee_id)
        .where(
            Attendance.company_id == company_id,
            Attendance.date >= start_date,
            Attendance.date < end_date + timedelta(days=1),
        )
        .group_by(Employee.id, Employee.employee_code, Employee.first_name, Employee.last_name, Employee.department)
        .order_by(Employee.last_name, Employee.first_name)
    )
    if employee_id is not None:
        query = query.where(Attendance.employee_id == employee_id)

    result = await db.execute(query)
    summary = []
    for row in result.all():
        regular = float(row.regular_hours or 0)
        overtime = float(row.overtime_hours or 0)
        summary.append({
            "employee": {
                "id": row.id,
                "employee_id": row.employee_code,
                "first_name": row.first_name,
                "last_name": row.last_name,
                "department": row.department,
            },
            "regular_hours": round(regular, 2),
            "overtime_hours": round(overtime, 2),
            "total_hours": round(regular + overtime, 2),
            "days_present": int(row.days_present or 0),
            "days_absent": int(row.days_absent or 0),
            "days_late": int(row.days_late or 0),
            "days_recorded": int(row.days_recorded or 0),
        })
    return summary
