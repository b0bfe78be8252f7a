from datetime import date
from typing import Any, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from app.api.deps import Principal, get_db, require_permission
from app.api.queries import get_owned, paginate
from app.api.responses import employee_summary, pagination_meta, serialize, success_response
from app.models.employee import Employee
from app.models.payroll import Payroll
from app.schemas.hr import PayrollCreate, PayrollUpdate
from app.services.hr.payroll_service import DEDUCTION_TYPES, derive_pay

router = APIRouter()


def _payroll_dict(payroll: Payroll, employee: Optional[Employee] = None) -> dict:
    return serialize(payroll, employee=employee_summary(employee or payroll.employee))


@router.get("")
async def list_payroll(
    employee_id: Optional[int] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    page: int = 1,
    limit: int = 20,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_permission("payroll", "read")),
) -> Any:
    query = select(Payroll).where(Payroll.company_id == principal.company_id)
    if employee_id is not None:
        query = query.where(Payroll.employee_id == employee_id)
    if start_date:
        query = query.where(Payroll.pay_period_start >= start_date)
    if end_date:
        query = query.where(Payroll.pay_period_end <= end_date)
    query = query.order_by(Payroll.payment_date.desc())

    rows, total = await paginate(db, query, page, limit)
    return success_response(
        [_payroll_dict(p) for p in rows],
        pagination=pagination_meta(page, limit, total),
    )


@router.get("/{payroll_id}")
async def read_payroll(
    payroll_id: int,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_permission("payroll", "read")),
) -> Any:
    payroll = await get_owned(db, Payroll, payroll_id, principal.company_id, "Payroll record")
    return success_response(_payroll_dict(payroll))


@router.get("/{payroll_id}/payslip")
async def read_payslip(
    payroll_id: int,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_permission("payroll", "read")),
) -> Any:
    """
    Payslip view: earnings and deductions split out of the payroll items.
    """
    payroll = await get_owned(db, Payroll, payroll_id, principal.company_id, "Payroll record")
    items = payroll.items or []
    return success_response({
        "payroll_id": payroll.id,
        "employee": employee_summary(payroll.employee),
        "pay_period": {
            "start": payroll.pay_period_start.isoformat(),
            "end": payroll.pay_period_end.isoformat(),
        },
        "payment_date": payroll.payment_date.isoformat(),
        "earnings": [i for i in items if str(i.get("type", "")).lower() not in DEDUCTION_TYPES],
        "deductions": [i for i in items if str(i.get("type", "")).lower() in DEDUCTION_TYPES],
        "gross_pay": payroll.gross_pay,
        "total_deductions": payroll.deductions,
        "net_pay": payroll.net_pay,
    })


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_payroll(
    payload: PayrollCreate,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_permission("payroll", "create")),
) -> Any:
    """
    Create a payroll record. Missing gross/deductions/net are derived from the items.
    """
    employee = await get_owned(db, Employee, payload.employee_id, principal.company_id, "Employee")
    items = [item.model_dump() for item in payload.items]
    gross, deductions, net = derive_pay(items, payload.gross_pay, payload.deductions, payload.net_pay)

    payroll = Payroll(
        company_id=principal.company_id,
        employee_id=employee.id,
        pay_period_start=payload.pay_period_start,
        pay_period_end=payload.pay_period_end,
        items=items,
        gross_pay=gross,
        deductions=deductions,
        net_pay=net,
        payment_date=payload.payment_date,
    )
    db.add(payroll)
    await db.commit()
    await db.refresh(payroll)
    return success_response(_payroll_dict(payroll, employee), message="Payroll record created successfully")


@router.put("/{payroll_id}")
async def update_payroll(
    payroll_id: int,
    payload: PayrollUpdate,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_permission("payroll", "update")),
) -> Any:
    payroll = await get_owned(db, Payroll, payroll_id, principal.company_id, "Payroll record")
    changes = payload.model_dump(exclude_unset=True)

    if "items" in changes:
        payroll.items = changes["items"] or []
    if "payment_date" in changes:
        payroll.payment_date = changes["payment_date"]

    # New items re-derive any figure not sent; otherwise only net follows gross and deductions
    if "items" in changes:
        gross, deductions = changes.get("gross_pay"), changes.get("deductions")
    else:
        gross = changes.get("gross_pay", payroll.gross_pay)
        deductions = changes.get("deductions", payroll.deductions)
    if "items" in changes or {"gross_pay", "deductions", "net_pay"} & changes.keys():
        payroll.gross_pay, payroll.deductions, payroll.net_pay = derive_pay(
            payroll.items, gross, deductions, changes.get("net_pay")
        )

    await db.commit()
    await db.refresh(payroll)
    return success_response(_payroll_dict(payroll), message="Payroll record updated successfully")
