from datetime import datetime, timedelta
from typing import Any, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from app.api.deps import Principal, get_db, require_permission
from app.api.queries import apply_updates, get_owned, paginate, search_filter
from app.api.responses import pagination_meta, serialize, success_response
from app.models.quote import Quote
from app.schemas.crm import QuoteCreate, QuoteUpdate
from app.services.crm.conversion_service import convert_quote_to_order
from app.services.crm.documents import QUOTE_PREFIX, apply_totals, compute_totals, next_document_number

router = APIRouter()

QUOTE_VALIDITY_DAYS = 30
PRICING_FIELDS = ("items", "tax_rate", "discount")


def _stamp_status(quote: Quote) -> None:
    now = datetime.utcnow()
    if quote.status == "sent" and quote.sent_at is None:
        quote.sent_at = now
    elif quote.status == "accepted" and quote.accepted_at is None:
        quote.accepted_at = now
    elif quote.status == "rejected" and quote.rejected_at is None:
        quote.rejected_at = now


@router.get("")
async def list_quotes(
    status: Optional[str] = None,
    customer_id: Optional[int] = None,
    search: Optional[str] = None,
    page: int = 1,
    limit: int = 20,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_permission("quotes", "read")),
) -> Any:
    query = select(Quote).where(Quote.company_id == principal.company_id)
    if status:
        query = query.where(Quote.status == status)
    if customer_id is not None:
        query = query.where(Quote.customer_id == customer_id)
    matches = search_filter(search, (Quote.quote_number, Quote.customer_name, Quote.customer_email))
    if matches is not None:
        query = query.where(matches)
    query = query.order_by(Quote.created_at.desc())

    quotes, total = await paginate(db, query, page, limit)
    return success_response(
        [serialize(q) for q in quotes],
        pagination=pagination_meta(page, limit, total),
    )


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_quote(
    payload: QuoteCreate,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_permission("quotes", "create")),
) -> Any:
    """
    Create a quote. Totals come from the line items and the number is QT-YYYY-NNNN.
    """
    totals = compute_totals(payload.items, payload.tax_rate, payload.discount)
    quote = Quote(
        **payload.model_dump(exclude={"items", "tax_rate", "discount", "valid_until"}),
        company_id=principal.company_id,
        quote_number=await next_document_number(
            db, Quote, Quote.quote_number, QUOTE_PREFIX, principal.company_id
        ),
        valid_until=payload.valid_until or datetime.utcnow().date() + timedelta(days=QUOTE_VALIDITY_DAYS),
        created_by=principal.user_id,
    )
    apply_totals(quote, totals)
    _stamp_status(quote)
    db.add(quote)
    await db.commit()
    await db.refresh(quote)
    return success_response(serialize(quote), message="Quote created successfully")


@router.get("/{quote_id}")
async def read_quote(
    quote_id: int,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_permission("quotes", "read")),
) -> Any:
    quote = await get_owned(db, Quote, quote_id, principal.company_id, "Quote")
    return success_response(serialize(quote))


@router.put("/{quote_id}")
async def update_quote(
    quote_id: int,
    payload: QuoteUpdate,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_permission("quotes", "update")),
) -> Any:
    quote = await get_owned(db, Quote, quote_id, principal.company_id, "Quote")
    changes = apply_updates(quote, payload, exclude=PRICING_FIELDS)
    if any(field in payload.model_fields_set for field in PRICING_FIELDS):
        items = payload.items if payload.items is not None else quote.items
        tax_rate = payload.tax_rate if payload.tax_rate is not None else quote.tax_rate
        discount = payload.discount if payload.discount is not None else quote.discount
        apply_totals(quote, compute_totals(items, tax_rate, discount))
    if "status" in changes:
        _stamp_status(quote)
    await db.commit()
    await db.refresh(quote)
    return success_response(serialize(quote), message="Quote updated successfully")


@router.post("/{quote_id}/convert", status_code=status.HTTP_201_CREATED)
async def convert_quote(
    quote_id: int,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_permission("sales_orders", "create")),
) -> Any:
    """
    Convert a quote into a pending sales order; the quote is marked accepted.
    """
    quote = await get_owned(db, Quote, quote_id, principal.company_id, "Quote")
    order = await convert_quote_to_order(db, quote, principal.user_id)
    return success_response(
        {"sales_order": serialize(order), "quote": serialize(quote)},
        message="Quote converted to sales order successfully",
    )
