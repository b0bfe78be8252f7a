"""
Line-item totals and document numbering shared by quotes, sales orders and invoices.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Iterable, Optional

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings

QUOTE_PREFIX = "QT"
ORDER_PREFIX = "SO"
INVOICE_PREFIX = "INV"


@dataclass
class DocumentTotals:
    items: list = field(default_factory=list)
    subtotal: float = 0.0
    tax: float = 0.0
    tax_rate: float = 0.0
    discount: float = 0.0
    total: float = 0.0


def _item_dict(item) -> dict:
    if isinstance(item, dict):
        return dict(item)
    return item.model_dump()


def compute_totals(items: Iterable, tax_rate: Optional[float] = None, discount: float = 0) -> DocumentTotals:
    """
    Price a list of line items.

    Each line total is ``quantity * unit_price - discount``. Tax applies to the
    subtotal after the document-level discount; the total never goes negative.
    """
    rate = settings.DEFAULT_TAX_RATE if tax_rate is None else tax_rate
    priced = []
    subtotal = 0.0
    for raw in items:
        item = _item_dict(raw)
        quantity = float(item.get("quantity") or 0)
        unit_price = float(item.get("unit_price") or 0)
        line_discount = float(item.get("discount") or 0)
        line_total = round(max(0.0, quantity * unit_price - line_discount), 2)
        item["total"] = line_total
        priced.append(item)
        subtotal += line_total

    subtotal = round(subtotal, 2)
    taxable = max(0.0, subtotal - (discount or 0))
    tax = round(taxable * rate / 100, 2)
    return DocumentTotals(
        items=priced,
        subtotal=subtotal,
        tax=tax,
        tax_rate=rate,
        discount=round(discount or 0, 2),
        total=round(taxable + tax, 2),
    )


def format_document_number(prefix: str, year: int, sequence: int) -> str:
    return f"{prefix}-{year}-{sequence:04d}"


async def next_document_number(
    db: AsyncSession,
    model,
    number_column,
    prefix: str,
    company_id: int,
    today: Optional[date] = None,
) -> str:
    """Next ``PREFIX-YYYY-NNNN`` number for a tenant, counting that year's documents."""
    year = (today or datetime.utcnow().date()).year
    result = await db.execute(
        select(func.count(model.id)).where(
            model.company_id == company_id,
            number_column.like(f"{prefix}-{year}-%"),
        )
    )
    count = result.scalar() or 0
    return format_document_number(prefix, year, count + 1)


def apply_totals(document, totals: DocumentTotals) -> None:
    document.items = totals.items
    document.subtotal = totals.subtotal
    document.tax = totals.tax
    document.tax_rate = totals.tax_rate
    document.discount = totals.discount
    document.total = totals.total
