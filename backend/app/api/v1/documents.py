from typing import Any, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from app.api.deps import Principal, get_db, require_permission
from app.api.queries import get_owned, paginate, search_filter
from app.api.responses import pagination_meta, serialize, success_response
from app.models.document import Document
from app.schemas.crm import DocumentCreate

router = APIRouter()


@router.get("")
async def list_documents(
    category: Optional[str] = None,
    related_to: Optional[str] = None,
    related_id: Optional[int] = None,
    search: Optional[str] = None,
    page: int = 1,
    limit: int = 20,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_permission("documents", "read")),
) -> Any:
    query = select(Document).where(
        Document.company_id == principal.company_id,
        Document.is_active.is_(True),
    )
    if category:
        query = query.where(Document.category == category)
    if related_to:
        query = query.where(Document.related_to == related_to)
    if related_id is not None:
        query = query.where(Document.related_id == related_id)
    matches = search_filter(search, (Document.original_name, Document.description))
    if matches is not None:
        query = query.where(matches)
    query = query.order_by(Document.created_at.desc())

    documents, total = await paginate(db, query, page, limit)
    return success_response(
        [serialize(d) for d in documents],
        pagination=pagination_meta(page, limit, total),
    )


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_document(
    payload: DocumentCreate,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_permission("documents", "create")),
) -> Any:
    """Register metadata for a file already written to storage."""
    document = Document(
        **payload.model_dump(),
        company_id=principal.company_id,
        uploaded_by=principal.user_id,
        version=1,
        is_active=True,
        download_count=0,
    )
    db.add(document)
    await db.commit()
    await db.refresh(document)
    return success_response(serialize(document), message="Document created successfully")


@router.get("/{document_id}")
async def read_document(
    document_id: int,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_permission("documents", "read")),
) -> Any:
    document = await get_owned(db, Document, document_id, principal.company_id, "Document")
    return success_response(serialize(document))


@router.delete("/{document_id}")
async def delete_document(
    document_id: int,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_permission("documents", "delete")),
) -> Any:
    # Soft delete; the file stays on disk
    document = await get_owned(db, Document, document_id, principal.company_id, "Document")
    document.is_active = False
    await db.commit()
    return success_response({"id": document.id}, message="Document deleted successfully")
