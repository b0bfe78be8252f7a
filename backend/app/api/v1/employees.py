from typing import Any, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from app.api.deps import Principal, get_db, require_permission
from app.api.queries import apply_updates, get_owned, paginate, search_filter
from app.api.responses import pagination_meta, serialize, success_response
from app.core.errors import conflict_error
from app.core.security import get_password_hash
from app.models.employee import Employee
from app.schemas.hr import EmployeeCreate, EmployeeUpdate

router = APIRouter()


def _employee_dict(employee: Employee) -> dict:
    data = serialize(employee, exclude=("hashed_password", "employee_code"))
    data["employee_id"] = employee.employee_code
    data["has_login"] = bool(employee.hashed_password)
    return data


@router.get("")
async def list_employees(
    search: Optional[str] = None,
    department: Optional[str] = None,
    status: Optional[str] = None,
    page: int = 1,
    limit: int = 20,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_permission("employees", "read")),
) -> Any:
    """
    Retrieve employees.
    """
    query = select(Employee).where(Employee.company_id == principal.company_id)
    matches = search_filter(
        search, (Employee.first_name, Employee.last_name, Employee.email, Employee.employee_code)
    )
    if matches is not None:
        query = query.where(matches)
    if department:
        query = query.where(Employee.department == department)
    if status:
        query = query.where(Employee.status == status)
    query = query.order_by(Employee.last_name, Employee.first_name)

    employees, total = await paginate(db, query, page, limit)
    return success_response(
        [_employee_dict(e) for e in employees],
        pagination=pagination_meta(page, limit, total),
    )


@router.get("/{employee_id}")
async def read_employee(
    employee_id: int,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_permission("employees", "read")),
) -> Any:
    employee = await get_owned(db, Employee, employee_id, principal.company_id, "Employee")
    return success_response(_employee_dict(employee))


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_employee(
    payload: EmployeeCreate,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_permission("employees", "create")),
) -> Any:
    """
    Create an employee. The employee code must be unique within the company.
    """
    existing = await db.execute(
        select(Employee.id).where(
            Employee.company_id == principal.company_id,
            Employee.employee_code == payload.employee_id,
        )
    )
    if existing.scalar_one_or_none() is not None:
        raise conflict_error("Employee ID already exists")

    data = payload.model_dump(exclude={"employee_id", "password"})
    employee = Employee(
        **data,
        company_id=principal.company_id,
        employee_code=payload.employee_id,
        hashed_password=get_password_hash(payload.password) if payload.password else None,
        documents=[],
        created_by=principal.user_id,
    )
    db.add(employee)
    await db.commit()
    await db.refresh(employee)
    return success_response(_employee_dict(employee), message="Employee created successfully")


@router.put("/{employee_id}")
async def update_employee(
    employee_id: int,
    payload: EmployeeUpdate,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_permission("employees", "update")),
) -> Any:
    employee = await get_owned(db, Employee, employee_id, principal.company_id, "Employee")
    apply_updates(employee, payload, exclude=("password",))
    if payload.password:
        employee.hashed_password = get_password_hash(payload.password)
    await db.commit()
    await db.refresh(employee)
    return success_response(_employee_dict(employee), message="Employee updated successfully")


@router.delete("/{employee_id}")
async def delete_employee(
    employee_id: int,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_permission("employees", "delete")),
) -> Any:
    """
    Terminate an employee. Records are kept for payroll and attendance history.
    """
    employee = await get_owned(db, Employee, employee_id, principal.company_id, "Employee")
    employee.status = "terminated"
    await db.commit()
    return success_response(message="Employee terminated successfully")
