from typing import Any, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from app.api.deps import Principal, get_db, require_permission
from app.api.responses import pagination_meta, serialize, success_response
from app.api.queries import MAX_PAGE_SIZE
from app.core.errors import authorization_error, not_found_error
from app.models.user import User
from app.schemas.notification import MaintenanceRequest, NotificationBulkAction, NotificationCreate
from app.services import notification_service

router = APIRouter()


@router.get("")
async def list_notifications(
    unread_only: bool = False,
    type: Optional[str] = None,
    priority: Optional[str] = None,
    page: int = 1,
    limit: int = 20,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_permission("notifications", "read")),
) -> Any:
    page = max(page, 1)
    limit = min(max(limit, 1), MAX_PAGE_SIZE)
    items, total, unread = await notification_service.list_notifications(
        db,
        principal.company_id,
        principal.user_id,
        unread_only=unread_only,
        notification_type=type,
        priority=priority,
        page=page,
        limit=limit,
    )
    return success_response(
        [serialize(n) for n in items],
        pagination=pagination_meta(page, limit, total),
        unread_count=unread,
    )


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_notification(
    payload: NotificationCreate,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_permission("notifications", "create")),
) -> Any:
    recipient_id = payload.user_id or principal.user_id
    if recipient_id != principal.user_id:
        result = await db.execute(
            select(User.id).where(User.id == recipient_id, User.company_id == principal.company_id)
        )
        if result.scalar_one_or_none() is None:
            raise not_found_error("User")

    notification = notification_service.build_notification(
        principal.company_id,
        recipient_id,
        payload.title,
        payload.message,
        **payload.model_dump(exclude={"user_id", "title", "message"}),
    )
    db.add(notification)
    await db.commit()
    await db.refresh(notification)
    return success_response(serialize(notification), message="Notification created successfully")


@router.put("")
async def bulk_update_notifications(
    payload: NotificationBulkAction,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_permission("notifications", "update")),
) -> Any:
    """Apply markAsRead, markAsUnread or delete to several of the caller's notifications."""
    affected = await notification_service.apply_bulk_action(
        db,
        principal.company_id,
        principal.user_id,
        payload.notification_ids,
        payload.action,
    )
    return success_response({"affected": affected}, message="Notifications updated successfully")


@router.post("/maintenance")
async def run_maintenance(
    payload: MaintenanceRequest,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_permission("notifications", "read")),
) -> Any:
    if principal.role != "admin":
        raise authorization_error("Admin role required")
    result = await notification_service.run_maintenance(db, principal.company_id, payload.task)
    return success_response(result, message="Maintenance task completed")
