"""
Delivery receipt storage.

Files land under ``UPLOAD_DIR/<company_id>/delivery-receipts`` with a
generated name; only the metadata is kept on the sales order. Files are
read back through the authenticated receipt route, never served statically.
"""

import logging
import re
import uuid
from datetime import datetime
from pathlib import Path
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.errors import file_upload_error, not_found_error
from app.models.sales_order import SalesOrder

logger = logging.getLogger("bizabode.crm.delivery_receipts")

ALLOWED_CONTENT_TYPES = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/gif": "gif",
    "application/pdf": "pdf",
}
RECEIPTS_FOLDER = "delivery-receipts"
RECEIPT_FILES_PATH = "/api/v1/crm/delivery-receipts/files"
_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]")


def validate_receipt(content_type: Optional[str], size: int) -> None:
    """
    Raises:
        AppError: FILE_UPLOAD_ERROR for a disallowed type, an empty file or one over the size cap
    """
    if content_type not in ALLOWED_CONTENT_TYPES:
        raise file_upload_error(
            "Invalid file type. Only JPEG, PNG, GIF, and PDF files are allowed.",
            details={"content_type": content_type, "allowed": sorted(ALLOWED_CONTENT_TYPES)},
        )
    if size <= 0:
        raise file_upload_error("Uploaded file is empty")
    if size > settings.MAX_UPLOAD_SIZE_BYTES:
        raise file_upload_error(
            f"File too large. Maximum size is {settings.MAX_UPLOAD_SIZE_MB}MB.",
            details={"size": size, "max_size": settings.MAX_UPLOAD_SIZE_BYTES},
        )


def receipt_extension(content_type: str) -> str:
    """The stored extension always follows the validated content type, never the client file name."""
    return ALLOWED_CONTENT_TYPES[content_type]


def receipt_file_name(order_number: str, extension: str) -> str:
    return f"{_UNSAFE_CHARS.sub('_', order_number)}-{uuid.uuid4()}.{extension}"


def receipt_directory(company_id: int) -> Path:
    return Path(settings.UPLOAD_DIR) / str(company_id) / RECEIPTS_FOLDER


def receipt_url(file_name: str) -> str:
    """Download path served by the authenticated receipt route; the tenant comes from the caller."""
    return f"{RECEIPT_FILES_PATH}/{file_name}"


def resolve_receipt_path(company_id: int, file_name: str) -> Path:
    """
    Locate a stored receipt inside the caller's tenant folder.

    Raises:
        AppError: NOT_FOUND_ERROR when the name is not a plain stored file name or the file is missing
    """
    if not file_name or _UNSAFE_CHARS.search(file_name) or file_name.startswith("."):
        raise not_found_error("Receipt")
    path = receipt_directory(company_id) / file_name
    if not path.is_file():
        raise not_found_error("Receipt")
    return path


def receipt_media_type(file_name: str) -> str:
    extension = Path(file_name).suffix.lstrip(".")
    for content_type, known in ALLOWED_CONTENT_TYPES.items():
        if known == extension:
            return content_type
    return "application/octet-stream"


async def store_delivery_receipt(
    db: AsyncSession,
    order: SalesOrder,
    content: bytes,
    original_name: Optional[str],
    content_type: Optional[str],
    uploaded_by: Optional[int],
) -> dict:
    """Save the file, append its metadata to the order and mark the order delivered."""
    validate_receipt(content_type, len(content))

    file_name = receipt_file_name(order.order_number, receipt_extension(content_type))
    directory = receipt_directory(order.company_id)
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / file_name
    path.write_bytes(content)

    now = datetime.utcnow()
    receipt = {
        "file_name": file_name,
        "original_name": original_name,
        "url": receipt_url(file_name),
        "size": len(content),
        "mime_type": content_type,
        "uploaded_by": uploaded_by,
        "uploaded_at": now.isoformat(),
    }
    # JSON columns only notice reassignment
    order.delivery_receipts = [*(order.delivery_receipts or []), receipt]
    order.status = "Delivered"
    order.delivered_at = now

    try:
        await db.commit()
    except Exception:
        path.unlink(missing_ok=True)
        raise
    await db.refresh(order)

    logger.info(f"Delivery receipt {file_name} stored for order {order.order_number}")
    return receipt
