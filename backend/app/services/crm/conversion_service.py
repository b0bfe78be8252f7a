"""
Conversion chain: lead -> opportunity, quote -> sales order -> invoice.
"""

import logging
import re
from datetime import date, datetime, timedelta
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.errors import conflict_error, validation_error
from app.models.invoice import Invoice
from app.models.lead import Lead
from app.models.opportunity import Opportunity
from app.models.quote import Quote
from app.models.sales_order import SalesOrder
from app.schemas.crm import LeadConvert, SalesOrderConvert
from app.services.crm.documents import (
    INVOICE_PREFIX,
    ORDER_PREFIX,
    next_document_number,
)

logger = logging.getLogger("bizabode.crm.conversion")

DEFAULT_CLOSE_DAYS = 30
CONVERTED_PROBABILITY = 25
_NET_TERMS = re.compile(r"^Net (\d+)$")


def payment_due_date(payment_terms: Optional[str], issued: date) -> date:
    """Due date implied by payment terms: Net N adds N days, COD/Prepaid are due on issue."""
    terms = payment_terms or settings.DEFAULT_PAYMENT_TERMS
    match = _NET_TERMS.match(terms)
    if match:
        return issued + timedelta(days=int(match.group(1)))
    if terms in ("COD", "Prepaid"):
        return issued
    return issued + timedelta(days=DEFAULT_CLOSE_DAYS)


def build_opportunity_from_lead(lead: Lead, payload: LeadConvert, today: Optional[date] = None) -> Opportunity:
    today = today or datetime.utcnow().date()
    return Opportunity(
        company_id=lead.company_id,
        lead_id=lead.id,
        title=payload.title or f"{lead.company} - {lead.name}",
        customer_name=lead.name,
        customer_email=lead.email,
        customer_phone=lead.phone,
        value=payload.value or 0,
        stage="prospecting",
        probability=CONVERTED_PROBABILITY,
        expected_close_date=payload.expected_close_date or today + timedelta(days=DEFAULT_CLOSE_DAYS),
        assigned_to=lead.assigned_to,
        notes=payload.notes or lead.notes or "",
        tags=[],
    )


async def convert_lead(db: AsyncSession, lead: Lead, payload: LeadConvert) -> Opportunity:
    """Create an opportunity from a lead and mark the lead qualified."""
    opportunity = build_opportunity_from_lead(lead, payload)
    db.add(opportunity)
    lead.status = "qualified"
    await db.commit()
    await db.refresh(opportunity)
    logger.info(f"Lead {lead.id} converted to opportunity {opportunity.id}")
    return opportunity


async def convert_quote_to_order(db: AsyncSession, quote: Quote, created_by: Optional[int]) -> SalesOrder:
    """Turn a quote into a pending sales order; the quote becomes accepted."""
    if quote.status == "accepted":
        raise conflict_error("Quote has already been converted to a sales order")
    if quote.status in ("rejected", "expired"):
        raise validation_error(f"Cannot convert a {quote.status} quote")

    order_number = await next_document_number(
        db, SalesOrder, SalesOrder.order_number, ORDER_PREFIX, quote.company_id
    )
    now = datetime.utcnow()
    order = SalesOrder(
        company_id=quote.company_id,
        order_number=order_number,
        quote_id=quote.id,
        customer_id=quote.customer_id,
        customer_name=quote.customer_name,
        customer_email=quote.customer_email,
        customer_phone=quote.customer_phone,
        customer_address=quote.customer_address,
        items=list(quote.items or []),
        subtotal=quote.subtotal,
        tax=quote.tax,
        tax_rate=quote.tax_rate,
        discount=quote.discount,
        total=quote.total,
        order_date=now.date(),
        payment_terms=settings.DEFAULT_PAYMENT_TERMS,
        status="Pending",
        notes=quote.notes,
        created_by=created_by,
        delivery_receipts=[],
    )
    db.add(order)
    quote.status = "accepted"
    quote.accepted_at = now
    await db.commit()
    await db.refresh(order)
    logger.info(f"Quote {quote.quote_number} converted to order {order.order_number}")
    return order


async def convert_order_to_invoice(
    db: AsyncSession,
    order: SalesOrder,
    payload: SalesOrderConvert,
    created_by: Optional[int],
) -> Invoice:
    """Invoice a sales order; the order moves to Processing and links the invoice."""
    if order.invoice_id is not None:
        raise conflict_error("Sales order has already been invoiced")
    if order.status == "Cancelled":
        raise validation_error("Cannot invoice a cancelled sales order")

    invoice_number = await next_document_number(
        db, Invoice, Invoice.invoice_number, INVOICE_PREFIX, order.company_id
    )
    now = datetime.utcnow()
    invoice = Invoice(
        company_id=order.company_id,
        quote_id=order.quote_id,
        sales_order_id=order.id,
        customer_id=order.customer_id,
        invoice_number=invoice_number,
        customer_name=order.customer_name,
        customer_email=order.customer_email,
        customer_phone=order.customer_phone,
        customer_address=order.customer_address,
        items=list(order.items or []),
        subtotal=order.subtotal,
        tax=order.tax,
        tax_rate=order.tax_rate,
        discount=order.discount,
        total=order.total,
        paid_amount=0,
        due_date=payload.due_date or payment_due_date(order.payment_terms, now.date()),
        status="sent",
        sent_at=now,
        notes=order.notes or "",
        terms=payload.terms or order.payment_terms,
        created_by=created_by,
    )
    db.add(invoice)
    await db.flush()

    order.invoice_id = invoice.id
    order.status = "Processing"
    order.processed_at = now
    await db.commit()
    await db.refresh(invoice)
    logger.info(f"Order {order.order_number} invoiced as {invoice.invoice_number}")
    return invoice
