import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import conflict_error, validation_error
from app.models.invoice import Invoice
from app.models.payment import Payment
from app.schemas.crm import PaymentCreate

logger = logging.getLogger("bizabode.crm.payments")

# Money comparisons tolerate float rounding at the cent level
CENT = 0.005


def apply_payment(invoice: Invoice, amount: Optional[float] = None, now: Optional[datetime] = None) -> float:
    """
    Apply a payment to an invoice in memory and return the amount applied.

    The amount defaults to the remaining balance and may not exceed it.
    The invoice becomes ``paid`` once fully covered, otherwise ``partial``.
    """
    if invoice.status == "cancelled":
        raise validation_error("Cannot record a payment against a cancelled invoice")
    if invoice.status == "paid":
        raise conflict_error("Invoice is already fully paid")

    remaining = invoice.balance
    if remaining <= CENT:
        raise conflict_error("Invoice has no remaining balance")

    applied = remaining if amount is None else round(float(amount), 2)
    if applied <= 0:
        raise validation_error("Payment amount must be greater than zero")
    if applied - remaining > CENT:
        raise validation_error(
            "Payment amount exceeds remaining balance",
            details={"remaining_balance": remaining, "amount": applied},
        )

    invoice.paid_amount = round((invoice.paid_amount or 0) + applied, 2)
    if invoice.paid_amount + CENT >= invoice.total:
        invoice.status = "paid"
        invoice.paid_date = now or datetime.utcnow()
    elif invoice.paid_amount > 0:
        invoice.status = "partial"
    return applied


async def record_payment(
    db: AsyncSession,
    invoice: Invoice,
    payload: PaymentCreate,
    processed_by: Optional[int],
) -> Payment:
    applied = apply_payment(invoice, payload.amount)
    payment = Payment(
        company_id=invoice.company_id,
        invoice_id=invoice.id,
        amount=applied,
        method=payload.method,
        reference=payload.reference,
        notes=payload.notes,
        receipt_url=payload.receipt_url,
        processed_by=processed_by,
    )
    db.add(payment)
    await db.commit()
    await db.refresh(payment)
    logger.info(
        f"Payment of {applied:.2f} recorded on invoice {invoice.invoice_number} (status={invoice.status})"
    )
    return payment
