"""
Tests for follow-up tasks: recurrence arithmetic, completion and the /crm/tasks router.
"""
from datetime import datetime
from unittest.mock import AsyncMock

import pytest

from app.core.errors import AppError
from app.models.task import Task
from conftest import make_result


def _task(**fields) -> Task:
    values = dict(
        id=5, company_id=1, title="Call Acme", description="Chase the quote", type="Call",
        related_to="General", assigned_to=7, created_by=1, due_date=datetime(2024, 3, 20, 9, 0),
        priority="Medium", status="Pending", is_recurring=False, depends_on=[], blocks=[],
    )
    values.update(fields)
    return Task(**values)


class TestNextOccurrence:

    @pytest.mark.parametrize(
        "pattern, interval, expected",
        [
            ("Daily", None, datetime(2024, 2, 1, 9, 0)),
            ("Weekly", 2, datetime(2024, 2, 14, 9, 0)),
            ("Monthly", 1, datetime(2024, 2, 29, 9, 0)),
            ("Quarterly", 1, datetime(2024, 4, 30, 9, 0)),
            ("Monthly", 12, datetime(2025, 1, 31, 9, 0)),
        ],
    )
    def test_patterns(self, pattern, interval, expected):
        from app.services.crm.task_service import next_occurrence

        assert next_occurrence(datetime(2024, 1, 31, 9, 0), pattern, interval) == expected

    def test_month_end_clamps_to_shorter_month(self):
        from app.services.crm.task_service import add_months

        assert add_months(datetime(2023, 1, 31), 1) == datetime(2023, 2, 28)
        assert add_months(datetime(2024, 11, 30), 3) == datetime(2025, 2, 28)

    def test_unknown_pattern(self):
        from app.services.crm.task_service import next_occurrence

        with pytest.raises(AppError) as exc_info:
            next_occurrence(datetime(2024, 1, 1), "Yearly")

        assert exc_info.value.message == "Invalid recurring pattern"


class TestCompleteTask:

    def test_one_off_task(self, fixed_now):
        from app.services.crm.task_service import complete_task

        task = _task()

        assert complete_task(task, 7, now=fixed_now) is None
        assert task.status == "Completed"
        assert task.completed_date == fixed_now
        assert task.completed_by == 7

    def test_overdue_task_can_be_completed(self, fixed_now):
        from app.services.crm.task_service import complete_task

        task = _task(status="Overdue")
        complete_task(task, 7, now=fixed_now)

        assert task.status == "Completed"

    @pytest.mark.parametrize("status", ["Completed", "Cancelled"])
    def test_closed_task_conflicts(self, status):
        from app.services.crm.task_service import complete_task

        with pytest.raises(AppError) as exc_info:
            complete_task(_task(status=status), 7)

        assert exc_info.value.status_code == 409
        assert exc_info.value.message == f"Task is already {status.lower()}"

    def test_recurring_task_schedules_the_next_one(self, fixed_now):
        from app.services.crm.task_service import complete_task

        task = _task(
            is_recurring=True, recurring_pattern="Weekly", recurring_interval=1,
            reminder_date=datetime(2024, 3, 19, 9, 0),
        )

        follow_up = complete_task(task, 7, now=fixed_now)

        assert task.next_due_date == datetime(2024, 3, 27, 9, 0)
        assert follow_up.status == "Pending"
        assert follow_up.due_date == datetime(2024, 3, 27, 9, 0)
        assert follow_up.reminder_date == datetime(2024, 3, 26, 9, 0)
        assert follow_up.assigned_to == 7
        assert follow_up.id is None


class TestCreateTask:

    @pytest.mark.asyncio
    async def test_assigning_someone_else_notifies_them(self, mock_db_session, fixed_now):
        from app.models.notification import Notification
        from app.schemas.crm import TaskCreate
        from app.services.crm.task_service import create_task

        async def assign_id():
            mock_db_session.add.call_args.args[0].id = 42

        mock_db_session.flush = AsyncMock(side_effect=assign_id)
        mock_db_session.execute.return_value = make_result(scalar=8)
        payload = TaskCreate(title="Visit", description="Site visit", type="Visit", assigned_to=8,
                             due_date=datetime(2024, 3, 18, 10, 0), priority="High")

        task = await create_task(mock_db_session, 1, payload, created_by=1, now=fixed_now)

        assert task.assigned_to == 8
        assert task.status == "Pending"
        notification = mock_db_session.add.call_args.args[0]
        assert isinstance(notification, Notification)
        assert notification.user_id == 8
        assert notification.type == "task_created"
        assert notification.related_task_id == 42
        assert notification.priority == "High"

    @pytest.mark.asyncio
    async def test_own_task_is_not_notified(self, mock_db_session, fixed_now):
        from app.schemas.crm import TaskCreate
        from app.services.crm.task_service import create_task

        payload = TaskCreate(title="Call", description="Call back", type="Call",
                             due_date=datetime(2024, 3, 18, 10, 0))

        task = await create_task(mock_db_session, 1, payload, created_by=7, now=fixed_now)

        assert task.assigned_to == 7
        assert mock_db_session.add.call_count == 1
        mock_db_session.execute.assert_not_called()

    @pytest.mark.asyncio
    async def test_past_due_date_starts_overdue(self, mock_db_session, fixed_now):
        from app.schemas.crm import TaskCreate
        from app.services.crm.task_service import create_task

        payload = TaskCreate(title="Call", description="Call back", type="Call",
                             due_date=datetime(2024, 3, 1, 10, 0))

        task = await create_task(mock_db_session, 1, payload, created_by=7, now=fixed_now)

        assert task.status == "Overdue"

    @pytest.mark.asyncio
    async def test_recurring_needs_a_pattern(self, mock_db_session):
        from app.schemas.crm import TaskCreate
        from app.services.crm.task_service import create_task

        payload = TaskCreate(title="Call", description="Weekly call", type="Call",
                             due_date=datetime(2024, 3, 18, 10, 0), is_recurring=True)

        with pytest.raises(AppError) as exc_info:
            await create_task(mock_db_session, 1, payload, created_by=7)

        assert exc_info.value.message == "recurring_pattern is required for recurring tasks"
        mock_db_session.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_related_record_must_belong_to_the_company(self, mock_db_session):
        from app.schemas.crm import TaskCreate
        from app.services.crm.task_service import create_task

        payload = TaskCreate(title="Chase", description="Chase payment", type="Follow-up",
                             related_to="Invoice", related_id=99, due_date=datetime(2024, 3, 18, 10, 0))

        with pytest.raises(AppError) as exc_info:
            await create_task(mock_db_session, 1, payload, created_by=7)

        assert exc_info.value.message == "Invoice not found"

    @pytest.mark.asyncio
    async def test_inactive_assignee_is_rejected(self, mock_db_session):
        from app.schemas.crm import TaskCreate
        from app.services.crm.task_service import create_task

        payload = TaskCreate(title="Call", description="Call back", type="Call", assigned_to=99,
                             due_date=datetime(2024, 3, 18, 10, 0))

        with pytest.raises(AppError) as exc_info:
            await create_task(mock_db_session, 1, payload, created_by=7)

        assert exc_info.value.details == {"assigned_to": 99}


class TestTasksAPI:

    @pytest.mark.asyncio
    async def test_list_marks_past_due_tasks_overdue(self, mock_db_session, sales_principal):
        from app.api.v1.tasks import list_tasks

        late = _task(due_date=datetime(2000, 1, 1))
        upcoming = _task(id=6, due_date=datetime(2999, 1, 1))
        mock_db_session.execute = AsyncMock(side_effect=[
            make_result(scalar=2),
            make_result(scalars=[late, upcoming]),
        ])

        response = await list_tasks(mine=True, db=mock_db_session, principal=sales_principal)

        assert [t["status"] for t in response["data"]] == ["Overdue", "Pending"]
        assert response["pagination"]["total"] == 2

    @pytest.mark.asyncio
    async def test_completing_through_update_returns_next_task(self, mock_db_session, sales_principal):
        from app.api.v1.tasks import update_task
        from app.schemas.crm import TaskUpdate

        task = _task(is_recurring=True, recurring_pattern="Daily")
        mock_db_session.execute.return_value = make_result(scalar=task)

        response = await update_task(5, TaskUpdate(status="Completed"), mock_db_session, sales_principal)

        assert response["data"]["status"] == "Completed"
        assert response["data"]["completed_by"] == 7
        assert response["next_task"]["due_date"] == "2024-03-21T09:00:00"
        follow_up = mock_db_session.add.call_args.args[0]
        assert follow_up.status == "Pending"

    @pytest.mark.asyncio
    async def test_clearing_the_assignee_is_ignored(self, mock_db_session, sales_principal):
        from app.api.v1.tasks import update_task
        from app.schemas.crm import TaskUpdate

        task = _task()
        mock_db_session.execute.return_value = make_result(scalar=task)

        response = await update_task(5, TaskUpdate(assigned_to=None, notes="Left a voicemail"),
                                     mock_db_session, sales_principal)

        assert response["data"]["assigned_to"] == 7
        assert response["data"]["notes"] == "Left a voicemail"
        assert response["next_task"] is None

    @pytest.mark.asyncio
    async def test_complete_twice_conflicts(self, mock_db_session, sales_principal):
        from app.api.v1.tasks import complete_task_now

        mock_db_session.execute.return_value = make_result(scalar=_task(status="Completed"))

        with pytest.raises(AppError) as exc_info:
            await complete_task_now(5, mock_db_session, sales_principal)

        assert exc_info.value.status_code == 409
        mock_db_session.commit.assert_not_called()

    @pytest.mark.asyncio
    async def test_other_company_task_is_not_found(self, mock_db_session, sales_principal):
        from app.api.v1.tasks import read_task

        with pytest.raises(AppError) as exc_info:
            await read_task(5, mock_db_session, sales_principal)

        assert exc_info.value.message == "Task not found"
