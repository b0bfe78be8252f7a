from datetime import datetime
from typing import Any, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from app.api.deps import Principal, get_db, require_permission
from app.api.queries import apply_updates, get_owned, paginate, search_filter
from app.api.responses import pagination_meta, serialize, success_response
from app.core.config import settings
from app.models.sales_order import SalesOrder
from app.schemas.crm import SalesOrderConvert, SalesOrderCreate, SalesOrderUpdate
from app.services.crm.conversion_service import convert_order_to_invoice
from app.services.crm.documents import ORDER_PREFIX, apply_totals, compute_totals, next_document_number

router = APIRouter()

# status -> timestamp column stamped on first entry
STATUS_TIMESTAMPS = {
    "Processing": "processed_at",
    "Dispatched": "dispatched_at",
    "Delivered": "delivered_at",
    "Cancelled": "cancelled_at",
}


def _stamp_status(order: SalesOrder) -> None:
    column = STATUS_TIMESTAMPS.get(order.status)
    if column and getattr(order, column) is None:
        setattr(order, column, datetime.utcnow())


@router.get("")
async def list_sales_orders(
    status: Optional[str] = None,
    customer_id: Optional[int] = None,
    search: Optional[str] = None,
    page: int = 1,
    limit: int = 20,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_permission("sales_orders", "read")),
) -> Any:
    query = select(SalesOrder).where(SalesOrder.company_id == principal.company_id)
    if status:
        query = query.where(SalesOrder.status == status)
    if customer_id is not None:
        query = query.where(SalesOrder.customer_id == customer_id)
    matches = search_filter(search, (SalesOrder.order_number, SalesOrder.customer_name, SalesOrder.customer_email))
    if matches is not None:
        query = query.where(matches)
    query = query.order_by(SalesOrder.created_at.desc())

    orders, total = await paginate(db, query, page, limit)
    return success_response(
        [serialize(o) for o in orders],
        pagination=pagination_meta(page, limit, total),
    )


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_sales_order(
    payload: SalesOrderCreate,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_permission("sales_orders", "create")),
) -> Any:
    """
    Create a sales order numbered SO-YYYY-NNNN.
    """
    totals = compute_totals(payload.items, payload.tax_rate, payload.discount)
    order = SalesOrder(
        **payload.model_dump(exclude={"items", "tax_rate", "discount", "order_date", "payment_terms"}),
        company_id=principal.company_id,
        order_number=await next_document_number(
            db, SalesOrder, SalesOrder.order_number, ORDER_PREFIX, principal.company_id
        ),
        order_date=payload.order_date or datetime.utcnow().date(),
        payment_terms=payload.payment_terms or settings.DEFAULT_PAYMENT_TERMS,
        status="Pending",
        created_by=principal.user_id,
        delivery_receipts=[],
    )
    apply_totals(order, totals)
    db.add(order)
    await db.commit()
    await db.refresh(order)
    return success_response(serialize(order), message="Sales order created successfully")


@router.get("/{order_id}")
async def read_sales_order(
    order_id: int,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_permission("sales_orders", "read")),
) -> Any:
    order = await get_owned(db, SalesOrder, order_id, principal.company_id, "Sales order")
    return success_response(serialize(order))


@router.put("/{order_id}")
async def update_sales_order(
    order_id: int,
    payload: SalesOrderUpdate,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_permission("sales_orders", "update")),
) -> Any:
    """
    Update delivery details or move the order through its statuses.
    """
    order = await get_owned(db, SalesOrder, order_id, principal.company_id, "Sales order")
    changes = apply_updates(order, payload)
    if "status" in changes:
        _stamp_status(order)
    await db.commit()
    await db.refresh(order)
    return success_response(serialize(order), message="Sales order updated successfully")


@router.post("/{order_id}/convert", status_code=status.HTTP_201_CREATED)
async def convert_sales_order(
    order_id: int,
    payload: Optional[SalesOrderConvert] = None,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_permission("invoices", "create")),
) -> Any:
    """
    Invoice a sales order (INV-YYYY-NNNN); the order moves to Processing.
    """
    order = await get_owned(db, SalesOrder, order_id, principal.company_id, "Sales order")
    invoice = await convert_order_to_invoice(db, order, payload or SalesOrderConvert(), principal.user_id)
    return success_response(
        {"invoice": serialize(invoice, balance=invoice.balance), "sales_order": serialize(order)},
        message="Sales order converted to invoice successfully",
    )
