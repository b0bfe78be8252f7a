from typing import Any, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from app.api.deps import Principal, get_db, require_permission
from app.api.queries import apply_updates, get_owned, paginate, search_filter
from app.api.responses import pagination_meta, serialize, success_response
from app.core.errors import validation_error
from app.models.invoice import Invoice
from app.models.payment import Payment
from app.schemas.crm import InvoiceCreate, InvoiceUpdate, PaymentCreate
from app.services.crm.documents import INVOICE_PREFIX, apply_totals, compute_totals, next_document_number
from app.services.crm.payment_service import record_payment

router = APIRouter()

PRICING_FIELDS = ("items", "tax_rate", "discount")


def invoice_dict(invoice: Invoice) -> dict:
    return serialize(invoice, balance=invoice.balance)


@router.get("")
async def list_invoices(
    status: Optional[str] = None,
    customer_id: Optional[int] = None,
    search: Optional[str] = None,
    page: int = 1,
    limit: int = 20,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_permission("invoices", "read")),
) -> Any:
    query = select(Invoice).where(Invoice.company_id == principal.company_id)
    if status:
        query = query.where(Invoice.status == status)
    if customer_id is not None:
        query = query.where(Invoice.customer_id == customer_id)
    matches = search_filter(search, (Invoice.invoice_number, Invoice.customer_name, Invoice.customer_email))
    if matches is not None:
        query = query.where(matches)
    query = query.order_by(Invoice.created_at.desc())

    invoices, total = await paginate(db, query, page, limit)
    return success_response(
        [invoice_dict(i) for i in invoices],
        pagination=pagination_meta(page, limit, total),
    )


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_invoice(
    payload: InvoiceCreate,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_permission("invoices", "create")),
) -> Any:
    totals = compute_totals(payload.items, payload.tax_rate, payload.discount)
    invoice = Invoice(
        **payload.model_dump(exclude={"items", "tax_rate", "discount"}),
        company_id=principal.company_id,
        invoice_number=await next_document_number(
            db, Invoice, Invoice.invoice_number, INVOICE_PREFIX, principal.company_id
        ),
        paid_amount=0,
        created_by=principal.user_id,
    )
    apply_totals(invoice, totals)
    db.add(invoice)
    await db.commit()
    await db.refresh(invoice)
    return success_response(invoice_dict(invoice), message="Invoice created successfully")


@router.get("/{invoice_id}")
async def read_invoice(
    invoice_id: int,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_permission("invoices", "read")),
) -> Any:
    invoice = await get_owned(db, Invoice, invoice_id, principal.company_id, "Invoice")
    return success_response(invoice_dict(invoice))


@router.put("/{invoice_id}")
async def update_invoice(
    invoice_id: int,
    payload: InvoiceUpdate,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_permission("invoices", "update")),
) -> Any:
    invoice = await get_owned(db, Invoice, invoice_id, principal.company_id, "Invoice")
    touches_pricing = any(field in payload.model_fields_set for field in PRICING_FIELDS)
    if touches_pricing and (invoice.paid_amount or 0) > 0:
        raise validation_error("Cannot change line items on an invoice with recorded payments")

    apply_updates(invoice, payload, exclude=PRICING_FIELDS)
    if touches_pricing:
        items = payload.items if payload.items is not None else invoice.items
        tax_rate = payload.tax_rate if payload.tax_rate is not None else invoice.tax_rate
        discount = payload.discount if payload.discount is not None else invoice.discount
        apply_totals(invoice, compute_totals(items, tax_rate, discount))
    await db.commit()
    await db.refresh(invoice)
    return success_response(invoice_dict(invoice), message="Invoice updated successfully")


@router.post("/{invoice_id}/payments", status_code=status.HTTP_201_CREATED)
async def add_invoice_payment(
    invoice_id: int,
    payload: PaymentCreate,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_permission("payments", "create")),
) -> Any:
    """
    Record a payment. The amount defaults to the remaining balance.
    """
    invoice = await get_owned(db, Invoice, invoice_id, principal.company_id, "Invoice")
    payment = await record_payment(db, invoice, payload, principal.user_id)
    return success_response(
        {"payment": serialize(payment), "invoice": invoice_dict(invoice)},
        message="Payment recorded successfully",
    )


@router.get("/{invoice_id}/payments")
async def list_invoice_payments(
    invoice_id: int,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_permission("payments", "read")),
) -> Any:
    invoice = await get_owned(db, Invoice, invoice_id, principal.company_id, "Invoice")
    result = await db.execute(
        select(Payment)
        .where(Payment.company_id == principal.company_id, Payment.invoice_id == invoice.id)
        .order_by(Payment.created_at.desc())
    )
    return success_response([serialize(p) for p in result.scalars().all()])
