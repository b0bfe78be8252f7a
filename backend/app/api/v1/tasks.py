from datetime import datetime
from typing import Any, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from app.api.deps import Principal, get_db, require_permission
from app.api.queries import get_owned, paginate, search_filter
from app.api.responses import pagination_meta, serialize, success_response
from app.models.task import Task
from app.schemas.crm import TaskCreate, TaskUpdate
from app.services.crm.task_service import (
    check_assignee,
    check_recurrence,
    complete_task,
    create_task as create_task_record,
)

router = APIRouter()

ACTIVE_STATUSES = ("Pending", "In Progress")


@router.get("")
async def list_tasks(
    search: Optional[str] = None,
    assigned_to: Optional[int] = None,
    mine: bool = False,
    status: Optional[str] = None,
    priority: Optional[str] = None,
    type: Optional[str] = None,
    related_to: Optional[str] = None,
    related_id: Optional[int] = None,
    overdue: bool = False,
    page: int = 1,
    limit: int = 50,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_permission("tasks", "read")),
) -> Any:
    """
    Tasks ordered by due date. ``overdue=true`` returns open tasks past their due date.
    """
    now = datetime.utcnow()
    query = select(Task).where(Task.company_id == principal.company_id)
    if mine:
        assigned_to = principal.user_id
    if assigned_to is not None:
        query = query.where(Task.assigned_to == assigned_to)
    if overdue:
        query = query.where(Task.due_date < now, Task.status.in_(ACTIVE_STATUSES + ("Overdue",)))
    elif status:
        query = query.where(Task.status == status)
    if priority:
        query = query.where(Task.priority == priority)
    if type:
        query = query.where(Task.type == type)
    if related_to:
        query = query.where(Task.related_to == related_to)
    if related_id is not None:
        query = query.where(Task.related_id == related_id)
    matches = search_filter(search, (Task.title, Task.description))
    if matches is not None:
        query = query.where(matches)
    query = query.order_by(Task.due_date.asc())

    tasks, total = await paginate(db, query, page, limit)
    for task in tasks:
        task.refresh_overdue(now)
    return success_response(
        [serialize(task) for task in tasks],
        pagination=pagination_meta(page, limit, total),
    )


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_task(
    payload: TaskCreate,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_permission("tasks", "create")),
) -> Any:
    task = await create_task_record(db, principal.company_id, payload, principal.user_id)
    return success_response(serialize(task), message="Task created successfully")


@router.get("/{task_id}")
async def read_task(
    task_id: int,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_permission("tasks", "read")),
) -> Any:
    task = await get_owned(db, Task, task_id, principal.company_id, "Task")
    task.refresh_overdue(datetime.utcnow())
    return success_response(serialize(task))


@router.put("/{task_id}")
async def update_task(
    task_id: int,
    payload: TaskUpdate,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_permission("tasks", "update")),
) -> Any:
    """
    Edit a task. Setting status to Completed goes through completion, which
    schedules the next occurrence of a recurring task.
    """
    task = await get_owned(db, Task, task_id, principal.company_id, "Task")
    changes = payload.model_dump(exclude_unset=True)
    new_status = changes.pop("status", None)
    if "assigned_to" in changes and changes["assigned_to"] is None:
        del changes["assigned_to"]

    if changes.get("assigned_to") not in (None, task.assigned_to):
        await check_assignee(db, principal.company_id, changes["assigned_to"])
    check_recurrence(
        changes.get("is_recurring", task.is_recurring),
        changes.get("recurring_pattern", task.recurring_pattern),
    )
    for key, value in changes.items():
        setattr(task, key, value)

    follow_up = None
    if new_status == "Completed" and task.status != "Completed":
        follow_up = complete_task(task, principal.user_id)
    elif new_status is not None:
        task.status = new_status
        if new_status == "Pending":
            task.refresh_overdue(datetime.utcnow())
    if follow_up is not None:
        db.add(follow_up)

    await db.commit()
    await db.refresh(task)
    return success_response(
        serialize(task),
        message="Task updated successfully",
        next_task=serialize(follow_up),
    )


@router.post("/{task_id}/complete")
async def complete_task_now(
    task_id: int,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_permission("tasks", "update")),
) -> Any:
    task = await get_owned(db, Task, task_id, principal.company_id, "Task")
    follow_up = complete_task(task, principal.user_id)
    if follow_up is not None:
        db.add(follow_up)
    await db.commit()
    await db.refresh(task)
    return success_response(
        serialize(task),
        message="Task completed successfully",
        next_task=serialize(follow_up),
    )


@router.delete("/{task_id}")
async def delete_task(
    task_id: int,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_permission("tasks", "delete")),
) -> Any:
    task = await get_owned(db, Task, task_id, principal.company_id, "Task")
    await db.delete(task)
    await db.commit()
    return success_response(message="Task deleted successfully")
