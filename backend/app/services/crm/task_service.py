"""
Follow-up tasks: creation, completion and recurrence.

A pending task whose due date has passed reads as Overdue. Completing a
recurring task schedules the next occurrence as a fresh Pending task.
"""

import calendar
import logging
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import conflict_error, not_found_error, validation_error
from app.models.customer import Customer
from app.models.invoice import Invoice
from app.models.lead import Lead
from app.models.opportunity import Opportunity
from app.models.quote import Quote
from app.models.sales_order import SalesOrder
from app.models.task import OPEN_TASK_STATUSES, Task
from app.models.user import User
from app.schemas.crm import TaskCreate
from app.services.notification_service import build_notification

logger = logging.getLogger("bizabode.crm.tasks")

RELATED_MODELS = {
    "Lead": Lead,
    "Opportunity": Opportunity,
    "Customer": Customer,
    "Quote": Quote,
    "Order": SalesOrder,
    "Invoice": Invoice,
}


def add_months(value: datetime, months: int) -> datetime:
    """Calendar month arithmetic; the day is clamped to the target month's length."""
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def next_occurrence(due_date: datetime, pattern: str, interval: Optional[int] = None) -> datetime:
    interval = interval or 1
    if pattern == "Daily":
        return due_date + timedelta(days=interval)
    if pattern == "Weekly":
        return due_date + timedelta(weeks=interval)
    if pattern == "Monthly":
        return add_months(due_date, interval)
    if pattern == "Quarterly":
        return add_months(due_date, 3 * interval)
    raise validation_error("Invalid recurring pattern", details={"recurring_pattern": pattern})


def check_recurrence(is_recurring: bool, pattern: Optional[str]) -> None:
    if is_recurring and not pattern:
        raise validation_error("recurring_pattern is required for recurring tasks")


async def check_related(db: AsyncSession, company_id: int, related_to: str, related_id: Optional[int]) -> None:
    """The record a task points at must exist in the same company."""
    model = RELATED_MODELS.get(related_to)
    if model is None or related_id is None:
        return
    result = await db.execute(
        select(model.id).where(model.id == related_id, model.company_id == company_id)
    )
    if result.scalar_one_or_none() is None:
        raise not_found_error(related_to)


async def check_assignee(db: AsyncSession, company_id: int, user_id: int) -> None:
    result = await db.execute(
        select(User.id).where(User.id == user_id, User.company_id == company_id, User.is_active.is_(True))
    )
    if result.scalar_one_or_none() is None:
        raise validation_error("Assignee must be an active user of this company", details={"assigned_to": user_id})


async def create_task(
    db: AsyncSession,
    company_id: int,
    payload: TaskCreate,
    created_by: Optional[int],
    now: Optional[datetime] = None,
) -> Task:
    """Persist a task and notify the assignee when someone else assigned it."""
    check_recurrence(payload.is_recurring, payload.recurring_pattern)
    await check_related(db, company_id, payload.related_to, payload.related_id)
    assigned_to = payload.assigned_to or created_by
    if assigned_to is None:
        raise validation_error("assigned_to is required")
    if assigned_to != created_by:
        await check_assignee(db, company_id, assigned_to)

    task = Task(
        **payload.model_dump(exclude={"assigned_to"}),
        company_id=company_id,
        assigned_to=assigned_to,
        created_by=created_by,
        status="Pending",
        reminder_sent=False,
    )
    task.refresh_overdue(now or datetime.utcnow())
    db.add(task)
    await db.flush()

    if assigned_to != created_by:
        db.add(
            build_notification(
                company_id,
                assigned_to,
                "New task assigned",
                f"{task.title} (due {task.due_date:%Y-%m-%d})",
                type="task_created",
                priority=task.priority,
                related_task_id=task.id,
                data={"task_id": task.id, "related_to": task.related_to, "related_id": task.related_id},
            )
        )
    await db.commit()
    await db.refresh(task)
    logger.info(f"Task {task.id} created for user {assigned_to}")
    return task


def complete_task(task: Task, user_id: Optional[int], now: Optional[datetime] = None) -> Optional[Task]:
    """
    Mark a task completed.

    Returns:
        The next occurrence of a recurring task (not yet added to the session), else None

    Raises:
        AppError: CONFLICT when the task is already completed or cancelled
    """
    if task.status not in OPEN_TASK_STATUSES:
        raise conflict_error(f"Task is already {task.status.lower()}")
    now = now or datetime.utcnow()
    task.status = "Completed"
    task.completed_date = now
    task.completed_by = user_id

    if not task.is_recurring or not task.recurring_pattern:
        return None

    due = next_occurrence(task.due_date, task.recurring_pattern, task.recurring_interval)
    task.next_due_date = due
    reminder = None
    if task.reminder_date is not None:
        reminder = due - (task.due_date - task.reminder_date)
    return Task(
        company_id=task.company_id,
        title=task.title,
        description=task.description,
        type=task.type,
        related_to=task.related_to,
        related_id=task.related_id,
        assigned_to=task.assigned_to,
        created_by=task.created_by,
        due_date=due,
        priority=task.priority,
        status="Pending",
        notes=task.notes,
        is_recurring=True,
        recurring_pattern=task.recurring_pattern,
        recurring_interval=task.recurring_interval,
        reminder_date=reminder,
        reminder_sent=False,
        depends_on=list(task.depends_on or []),
        blocks=list(task.blocks or []),
    )
