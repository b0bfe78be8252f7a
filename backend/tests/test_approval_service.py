"""
Tests for app/services/crm/approval_service.py - multi-level approvals.
"""
from datetime import datetime
from types import SimpleNamespace

import pytest

from app.core.errors import AppError
from app.models.approval import Approval


def _approval(**overrides):
    from app.services.crm.approval_service import build_approvers

    approvers, levels = build_approvers([
        SimpleNamespace(user_id=3, level=2),
        SimpleNamespace(user_id=2, level=1),
    ])
    fields = dict(
        id=1,
        company_id=1,
        type="Discount",
        related_id=4,
        related_type="Quote",
        title="20% off",
        status="Pending",
        approvers=approvers,
        current_level=1,
        total_levels=levels,
    )
    fields.update(overrides)
    return Approval(**fields)


class TestBuildApprovers:

    def test_sorted_by_level(self):
        approval = _approval()

        assert [a["user_id"] for a in approval.approvers] == [2, 3]
        assert approval.total_levels == 2
        assert all(a["status"] == "Pending" for a in approval.approvers)

    def test_requires_an_approver(self):
        from app.services.crm.approval_service import build_approvers

        with pytest.raises(AppError) as exc_info:
            build_approvers([])

        assert exc_info.value.message == "At least one approver is required"


class TestDecide:

    def test_first_level_approval_advances(self, fixed_now):
        from app.services.crm.approval_service import decide

        approval = decide(_approval(), user_id=2, decision="approve", comments="ok", now=fixed_now)

        assert approval.status == "Pending"
        assert approval.current_level == 2
        assert approval.approvers[0]["status"] == "Approved"
        assert approval.approvers[0]["approved_date"] == fixed_now.isoformat()

    def test_final_level_approves(self, fixed_now):
        from app.services.crm.approval_service import decide

        approval = decide(_approval(), 2, "approve", now=fixed_now)
        decide(approval, 3, "approve", now=fixed_now)

        assert approval.status == "Approved"
        assert approval.approved_by == 3
        assert approval.approved_date == fixed_now

    def test_rejection_ends_request(self, fixed_now):
        from app.services.crm.approval_service import decide

        approval = decide(_approval(), 2, "reject", comments="Too steep", now=fixed_now)

        assert approval.status == "Rejected"
        assert approval.rejected_by == 2
        assert approval.rejection_reason == "Too steep"
        assert approval.current_level == 1

    def test_wrong_level_approver(self):
        from app.services.crm.approval_service import decide

        with pytest.raises(AppError) as exc_info:
            decide(_approval(), 3, "approve")

        assert exc_info.value.status_code == 403

    def test_admin_may_act_for_current_level(self):
        from app.services.crm.approval_service import decide

        approval = decide(_approval(), 1, "approve", is_admin=True)

        assert approval.current_level == 2
        assert approval.approvers[0]["status"] == "Approved"

    def test_closed_request_conflicts(self):
        from app.services.crm.approval_service import decide

        with pytest.raises(AppError) as exc_info:
            decide(_approval(status="Approved"), 2, "approve")

        assert exc_info.value.status_code == 409

    def test_unknown_decision(self):
        from app.services.crm.approval_service import decide

        with pytest.raises(AppError) as exc_info:
            decide(_approval(), 2, "maybe")

        assert exc_info.value.status_code == 400


class TestRefreshOverdue:

    def test_past_due_pending(self, fixed_now):
        from app.services.crm.approval_service import refresh_overdue

        approval = _approval(due_date=datetime(2024, 3, 1))
        refresh_overdue(approval, now=fixed_now)

        assert approval.is_overdue is True

    def test_decided_requests_are_never_overdue(self, fixed_now):
        from app.services.crm.approval_service import refresh_overdue

        approval = _approval(status="Approved", due_date=datetime(2024, 3, 1))
        refresh_overdue(approval, now=fixed_now)

        assert approval.is_overdue is False

    def test_no_due_date(self, fixed_now):
        from app.services.crm.approval_service import refresh_overdue

        approval = _approval()
        refresh_overdue(approval, now=fixed_now)

        assert approval.is_overdue is False
