from typing import Any

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile, status
from fastapi.responses import FileResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import Principal, get_db, require_permission
from app.api.queries import get_owned
from app.api.responses import success_response
from app.core.rate_limiter import limiter, RateLimits
from app.models.sales_order import SalesOrder
from app.services.crm.delivery_receipts import (
    receipt_media_type,
    resolve_receipt_path,
    store_delivery_receipt,
)

router = APIRouter()


@router.post("/upload", status_code=status.HTTP_201_CREATED)
@limiter.limit(RateLimits.FILE_UPLOAD)
async def upload_delivery_receipt(
    request: Request,
    file: UploadFile = File(...),
    order_id: int = Form(...),
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_permission("deliveries", "create")),
) -> Any:
    """
    Attach a signed delivery receipt (JPEG, PNG, GIF or PDF) to a sales order.

    The order is marked Delivered.
    """
    order = await get_owned(db, SalesOrder, order_id, principal.company_id, "Order")
    content = await file.read()
    receipt = await store_delivery_receipt(
        db,
        order,
        content,
        original_name=file.filename,
        content_type=file.content_type,
        uploaded_by=principal.user_id,
    )
    return success_response(
        {**receipt, "order_id": order.id, "order_status": order.status},
        message="Delivery receipt uploaded successfully",
    )


@router.get("/files/{file_name}")
async def download_delivery_receipt(
    file_name: str,
    principal: Principal = Depends(require_permission("deliveries", "read")),
) -> FileResponse:
    """Stream a stored receipt from the caller's own company folder."""
    path = resolve_receipt_path(principal.company_id, file_name)
    return FileResponse(path, media_type=receipt_media_type(file_name), filename=file_name)
