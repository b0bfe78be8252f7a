from typing import Any, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from app.api.deps import Principal, get_db, require_permission
from app.api.queries import get_owned, paginate
from app.api.responses import pagination_meta, serialize, success_response
from app.core.errors import validation_error
from app.models.invoice import Invoice
from app.models.payment import Payment
from app.schemas.crm import PaymentCreate
from app.services.crm.payment_service import record_payment

router = APIRouter()


@router.get("")
async def list_payments(
    invoice_id: Optional[int] = None,
    method: Optional[str] = None,
    page: int = 1,
    limit: int = 20,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_permission("payments", "read")),
) -> Any:
    query = select(Payment).where(Payment.company_id == principal.company_id)
    if invoice_id is not None:
        query = query.where(Payment.invoice_id == invoice_id)
    if method:
        query = query.where(Payment.method == method)
    query = query.order_by(Payment.created_at.desc())

    payments, total = await paginate(db, query, page, limit)
    return success_response(
        [serialize(p) for p in payments],
        pagination=pagination_meta(page, limit, total),
    )


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_payment(
    payload: PaymentCreate,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_permission("payments", "create")),
) -> Any:
    if payload.invoice_id is None:
        raise validation_error("invoice_id is required")
    invoice = await get_owned(db, Invoice, payload.invoice_id, principal.company_id, "Invoice")
    payment = await record_payment(db, invoice, payload, principal.user_id)
    return success_response(
        {"payment": serialize(payment), "invoice": serialize(invoice, balance=invoice.balance)},
        message="Payment recorded successfully",
    )
