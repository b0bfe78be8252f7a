"""
In-app notifications and the maintenance jobs that produce them.
"""

import logging
from datetime import date, datetime
from typing import Iterable, Optional, Sequence

from sqlalchemy import select, update, delete, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import validation_error
from app.models.invoice import Invoice
from app.models.notification import Notification
from app.models.task import Task
from app.models.user import User

logger = logging.getLogger("bizabode.notifications")

BULK_ACTIONS = ("markAsRead", "markAsUnread", "delete")
OVERDUE_CANDIDATE_STATUSES = ("sent", "partial")
OVERDUE_RECIPIENT_ROLES = ("admin", "manager")


def build_notification(company_id: int, user_id: int, title: str, message: str, **fields) -> Notification:
    return Notification(
        company_id=company_id,
        user_id=user_id,
        title=title,
        message=message,
        type=fields.pop("type", "general"),
        priority=fields.pop("priority", "Medium"),
        data=fields.pop("data", None) or {},
        is_read=False,
        **fields,
    )


async def users_with_roles(db: AsyncSession, company_id: int, roles: Sequence[str]) -> list[User]:
    result = await db.execute(
        select(User).where(
            User.company_id == company_id,
            User.role.in_(roles),
            User.is_active.is_(True),
        )
    )
    return list(result.scalars().all())


async def notify_roles(
    db: AsyncSession,
    company_id: int,
    roles: Sequence[str],
    title: str,
    message: str,
    **fields,
) -> list[Notification]:
    """Queue one notification per active user holding any of ``roles``. The caller commits."""
    recipients = await users_with_roles(db, company_id, roles)
    notifications = [
        build_notification(company_id, user.id, title, message, **dict(fields))
        for user in recipients
    ]
    db.add_all(notifications)
    return notifications


async def list_notifications(
    db: AsyncSession,
    company_id: int,
    user_id: int,
    unread_only: bool = False,
    notification_type: Optional[str] = None,
    priority: Optional[str] = None,
    page: int = 1,
    limit: int = 20,
) -> tuple[list[Notification], int, int]:
    """One page of a user's notifications plus the filtered total and overall unread count."""
    owned = [Notification.company_id == company_id, Notification.user_id == user_id]
    filters = list(owned)
    if unread_only:
        filters.append(Notification.is_read.is_(False))
    if notification_type:
        filters.append(Notification.type == notification_type)
    if priority:
        filters.append(Notification.priority == priority)

    total = (await db.execute(select(func.count(Notification.id)).where(*filters))).scalar() or 0
    unread = (
        await db.execute(
            select(func.count(Notification.id)).where(*owned, Notification.is_read.is_(False))
        )
    ).scalar() or 0
    result = await db.execute(
        select(Notification)
        .where(*filters)
        .order_by(Notification.created_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    return list(result.scalars().all()), total, unread


async def apply_bulk_action(
    db: AsyncSession,
    company_id: int,
    user_id: int,
    notification_ids: Iterable[int],
    action: str,
) -> int:
    """Mark read/unread or delete the caller's own notifications. Returns rows affected."""
    if action not in BULK_ACTIONS:
        raise validation_error("Invalid action", details={"allowed": list(BULK_ACTIONS)})

    owned = (
        Notification.company_id == company_id,
        Notification.user_id == user_id,
        Notification.id.in_(list(notification_ids)),
    )
    if action == "delete":
        statement = delete(Notification).where(*owned)
    elif action == "markAsRead":
        statement = update(Notification).where(*owned).values(is_read=True, read_at=datetime.utcnow())
    else:
        statement = update(Notification).where(*owned).values(is_read=False, read_at=None)

    result = await db.execute(statement.execution_options(synchronize_session=False))
    await db.commit()
    return result.rowcount or 0


async def mark_overdue_invoices(db: AsyncSession, company_id: int, today: Optional[date] = None) -> dict:
    """Flip past-due sent/partial invoices to overdue and tell admins and managers."""
    today = today or datetime.utcnow().date()
    result = await db.execute(
        select(Invoice).where(
            Invoice.company_id == company_id,
            Invoice.status.in_(OVERDUE_CANDIDATE_STATUSES),
            Invoice.due_date < today,
        )
    )
    invoices = list(result.scalars().all())
    for invoice in invoices:
        invoice.status = "overdue"

    notified = []
    if invoices:
        total_due = round(sum(invoice.balance for invoice in invoices), 2)
        notified = await notify_roles(
            db,
            company_id,
            OVERDUE_RECIPIENT_ROLES,
            title="Overdue invoices",
            message=f"{len(invoices)} invoice(s) are now overdue, totalling {total_due:.2f}",
            type="overdue_invoices",
            priority="High",
            data={
                "invoice_ids": [invoice.id for invoice in invoices],
                "invoice_numbers": [invoice.invoice_number for invoice in invoices],
                "total_due": total_due,
            },
        )
    await db.commit()

    logger.info(f"Marked {len(invoices)} invoices overdue for company {company_id}")
    return {"invoices_marked_overdue": len(invoices), "notifications_created": len(notified)}


async def mark_overdue_tasks(db: AsyncSession, company_id: int, now: Optional[datetime] = None) -> dict:
    """Flip pending tasks past their due date to Overdue and notify each assignee once per task."""
    now = now or datetime.utcnow()
    result = await db.execute(
        select(Task).where(
            Task.company_id == company_id,
            Task.status == "Pending",
            Task.due_date < now,
        )
    )
    tasks = list(result.scalars().all())
    notifications = []
    for task in tasks:
        task.refresh_overdue(now)
        notifications.append(
            build_notification(
                company_id,
                task.assigned_to,
                "Task overdue",
                f"{task.title} was due {task.due_date:%Y-%m-%d %H:%M}",
                type="task_overdue",
                priority="High" if task.priority in ("High", "Urgent") else "Medium",
                related_task_id=task.id,
                data={"task_id": task.id},
            )
        )
    if notifications:
        db.add_all(notifications)
    await db.commit()

    logger.info(f"Marked {len(tasks)} tasks overdue for company {company_id}")
    return {"tasks_marked_overdue": len(tasks), "notifications_created": len(notifications)}


async def cleanup_expired_notifications(db: AsyncSession, company_id: int, now: Optional[datetime] = None) -> dict:
    now = now or datetime.utcnow()
    result = await db.execute(
        delete(Notification)
        .where(
            Notification.company_id == company_id,
            Notification.expires_at.is_not(None),
            Notification.expires_at < now,
        )
        .execution_options(synchronize_session=False)
    )
    await db.commit()
    deleted = result.rowcount or 0
    logger.info(f"Removed {deleted} expired notifications for company {company_id}")
    return {"notifications_deleted": deleted}


MAINTENANCE_TASKS = {
    "overdue-invoices": mark_overdue_invoices,
    "overdue-tasks": mark_overdue_tasks,
    "notification-cleanup": cleanup_expired_notifications,
}


async def run_maintenance(db: AsyncSession, company_id: int, task: str) -> dict:
    job = MAINTENANCE_TASKS.get(task)
    if job is None:
        raise validation_error("Invalid maintenance task", details={"allowed": list(MAINTENANCE_TASKS)})
    return await job(db, company_id)
