"""
Tests for app/services/notification_service.py - in-app notifications and maintenance jobs.
"""
from datetime import date
from unittest.mock import AsyncMock

import pytest

from app.core.errors import AppError
from app.models.invoice import Invoice
from app.models.user import User
from conftest import make_result


def test_build_notification_defaults():
    from app.services.notification_service import build_notification

    notification = build_notification(1, 7, "Title", "Body", related_lead_id=3)

    assert notification.type == "general"
    assert notification.priority == "Medium"
    assert notification.data == {}
    assert notification.is_read is False
    assert notification.related_lead_id == 3


class TestBulkAction:

    @pytest.mark.asyncio
    async def test_invalid_action(self, mock_db_session):
        from app.services.notification_service import apply_bulk_action

        with pytest.raises(AppError) as exc_info:
            await apply_bulk_action(mock_db_session, 1, 7, [1, 2], "archive")

        assert exc_info.value.message == "Invalid action"
        mock_db_session.execute.assert_not_called()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("action", ["markAsRead", "markAsUnread", "delete"])
    async def test_valid_actions_return_rowcount(self, mock_db_session, action):
        from app.services.notification_service import apply_bulk_action

        mock_db_session.execute.return_value = make_result(scalar=2)

        affected = await apply_bulk_action(mock_db_session, 1, 7, [1, 2], action)

        assert affected == 2
        mock_db_session.commit.assert_awaited_once()


class TestListNotifications:

    @pytest.mark.asyncio
    async def test_returns_page_total_and_unread(self, mock_db_session):
        from app.services.notification_service import build_notification, list_notifications

        items = [build_notification(1, 7, "A", "a"), build_notification(1, 7, "B", "b")]
        mock_db_session.execute = AsyncMock(side_effect=[
            make_result(scalar=12),
            make_result(scalar=3),
            make_result(scalars=items),
        ])

        notifications, total, unread = await list_notifications(
            mock_db_session, 1, 7, unread_only=True, page=2, limit=2
        )

        assert notifications == items
        assert total == 12
        assert unread == 3


class TestMaintenance:

    @pytest.mark.asyncio
    async def test_invalid_task(self, mock_db_session):
        from app.services.notification_service import run_maintenance

        with pytest.raises(AppError) as exc_info:
            await run_maintenance(mock_db_session, 1, "reindex")

        assert exc_info.value.status_code == 400

    @pytest.mark.asyncio
    async def test_mark_overdue_invoices_notifies_managers(self, mock_db_session):
        from app.services.notification_service import mark_overdue_invoices

        invoices = [
            Invoice(id=1, invoice_number="INV-1", total=100, paid_amount=40, status="partial",
                    due_date=date(2024, 3, 1)),
            Invoice(id=2, invoice_number="INV-2", total=50, paid_amount=0, status="sent",
                    due_date=date(2024, 3, 2)),
        ]
        managers = [User(id=1, role="admin"), User(id=2, role="manager")]
        mock_db_session.execute = AsyncMock(side_effect=[
            make_result(scalars=invoices),
            make_result(scalars=managers),
        ])

        summary = await mark_overdue_invoices(mock_db_session, 1, today=date(2024, 3, 15))

        assert summary == {"invoices_marked_overdue": 2, "notifications_created": 2}
        assert {invoice.status for invoice in invoices} == {"overdue"}
        notifications = mock_db_session.add_all.call_args.args[0]
        assert [n.user_id for n in notifications] == [1, 2]
        assert notifications[0].data["total_due"] == 110.0
        assert notifications[0].priority == "High"

    @pytest.mark.asyncio
    async def test_mark_overdue_with_nothing_due(self, mock_db_session):
        from app.services.notification_service import run_maintenance

        summary = await run_maintenance(mock_db_session, 1, "overdue-invoices")

        assert summary == {"invoices_marked_overdue": 0, "notifications_created": 0}
        mock_db_session.add_all.assert_not_called()

    @pytest.mark.asyncio
    async def test_cleanup_expired(self, mock_db_session):
        from app.services.notification_service import run_maintenance

        mock_db_session.execute.return_value = make_result(scalar=4)

        summary = await run_maintenance(mock_db_session, 1, "notification-cleanup")

        assert summary == {"notifications_deleted": 4}

    @pytest.mark.asyncio
    async def test_mark_overdue_tasks_notifies_assignees(self, mock_db_session):
        from datetime import datetime

        from app.models.task import Task
        from app.services.notification_service import mark_overdue_tasks

        tasks = [
            Task(id=4, title="Call Acme", assigned_to=7, priority="Urgent", status="Pending",
                 due_date=datetime(2024, 3, 14, 9, 0)),
            Task(id=5, title="Send brochure", assigned_to=8, priority="Low", status="Pending",
                 due_date=datetime(2024, 3, 15, 8, 0)),
        ]
        mock_db_session.execute.return_value = make_result(scalars=tasks)

        summary = await mark_overdue_tasks(mock_db_session, 1, now=datetime(2024, 3, 15, 12, 0))

        assert summary == {"tasks_marked_overdue": 2, "notifications_created": 2}
        assert {task.status for task in tasks} == {"Overdue"}
        notifications = mock_db_session.add_all.call_args.args[0]
        assert [(n.user_id, n.related_task_id, n.type) for n in notifications] == [
            (7, 4, "task_overdue"),
            (8, 5, "task_overdue"),
        ]
        assert [n.priority for n in notifications] == ["High", "Medium"]

    @pytest.mark.asyncio
    async def test_overdue_tasks_is_a_maintenance_job(self, mock_db_session):
        from app.services.notification_service import run_maintenance

        summary = await run_maintenance(mock_db_session, 1, "overdue-tasks")

        assert summary == {"tasks_marked_overdue": 0, "notifications_created": 0}
        mock_db_session.commit.assert_awaited_once()


class TestNotificationsAPI:

    @pytest.mark.asyncio
    async def test_bulk_action_is_scoped_to_the_caller(self, mock_db_session, sales_principal):
        from app.api.v1.notifications import bulk_update_notifications
        from app.schemas.notification import NotificationBulkAction

        mock_db_session.execute.return_value = make_result(scalar=2)
        payload = NotificationBulkAction(notification_ids=[3, 4], action="markAsRead")

        response = await bulk_update_notifications(payload, mock_db_session, sales_principal)

        assert response["data"] == {"affected": 2}
        assert response["message"] == "Notifications updated successfully"
        params = mock_db_session.execute.call_args.args[0].compile().params
        assert 7 in params.values()

    @pytest.mark.asyncio
    async def test_bulk_action_rejects_unknown_action(self, mock_db_session, sales_principal):
        from app.api.v1.notifications import bulk_update_notifications
        from app.schemas.notification import NotificationBulkAction

        payload = NotificationBulkAction(notification_ids=[3], action="archive")

        with pytest.raises(AppError) as exc_info:
            await bulk_update_notifications(payload, mock_db_session, sales_principal)

        assert exc_info.value.status_code == 400
        mock_db_session.commit.assert_not_called()

    @pytest.mark.asyncio
    async def test_maintenance_requires_admin(self, mock_db_session, sales_principal):
        from app.api.v1.notifications import run_maintenance
        from app.schemas.notification import MaintenanceRequest

        with pytest.raises(AppError) as exc_info:
            await run_maintenance(MaintenanceRequest(task="overdue-tasks"), mock_db_session, sales_principal)

        assert exc_info.value.status_code == 403
