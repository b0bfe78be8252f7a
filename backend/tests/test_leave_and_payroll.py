"""
Tests for the HR leave workflow and payslip arithmetic.
"""
from datetime import date

import pytest

from app.core.errors import AppError


class TestCountLeaveDays:

    def test_inclusive(self):
        from app.services.hr.leave_service import count_leave_days

        assert count_leave_days(date(2024, 3, 1), date(2024, 3, 1)) == 1
        assert count_leave_days(date(2024, 3, 1), date(2024, 3, 5)) == 5

    def test_inverted_range(self):
        from app.services.hr.leave_service import count_leave_days

        with pytest.raises(AppError) as exc_info:
            count_leave_days(date(2024, 3, 5), date(2024, 3, 1))

        assert exc_info.value.status_code == 400


class TestLeaveDecisions:

    @pytest.fixture
    def leave(self):
        from app.models.leave_request import LeaveRequest

        return LeaveRequest(
            id=1,
            company_id=1,
            employee_id=10,
            leave_type="annual",
            start_date=date(2024, 3, 1),
            end_date=date(2024, 3, 3),
            total_days=3,
            reason="Holiday",
            status="pending",
        )

    def test_approve(self, leave):
        from app.services.hr.leave_service import approve_leave

        approve_leave(leave, approver_id=1, notes="Enjoy")

        assert leave.status == "approved"
        assert leave.approved_by == 1
        assert leave.approved_at is not None
        assert leave.notes == "Enjoy"

    def test_reject(self, leave):
        from app.services.hr.leave_service import reject_leave

        reject_leave(leave, approver_id=1, reason="Busy season")

        assert leave.status == "rejected"
        assert leave.rejection_reason == "Busy season"

    def test_cancel(self, leave):
        from app.services.hr.leave_service import cancel_leave

        cancel_leave(leave)

        assert leave.status == "cancelled"

    @pytest.mark.parametrize("status", ["approved", "rejected", "cancelled"])
    def test_only_pending_can_change(self, leave, status):
        from app.services.hr.leave_service import approve_leave, cancel_leave, reject_leave

        leave.status = status
        for action in (lambda: approve_leave(leave, 1), lambda: reject_leave(leave, 1), lambda: cancel_leave(leave)):
            with pytest.raises(AppError) as exc_info:
                action()
            assert exc_info.value.code == "LEAVE_ALREADY_PROCESSED"

        assert leave.status == status


class TestDerivePay:

    ITEMS = [
        {"type": "salary", "description": "Base", "amount": 3000},
        {"type": "bonus", "description": "Q1", "amount": 500},
        {"type": "tax", "description": "PAYE", "amount": 600},
        {"type": "Loan", "description": "Advance", "amount": -200},
    ]

    def test_from_items(self):
        from app.services.hr.payroll_service import derive_pay

        assert derive_pay(self.ITEMS) == (3500.0, 800.0, 2700.0)

    def test_explicit_figures_win(self):
        from app.services.hr.payroll_service import derive_pay

        assert derive_pay(self.ITEMS, gross_pay=4000, deductions=1000) == (4000, 1000, 3000)
        assert derive_pay(self.ITEMS, net_pay=2500) == (3500.0, 800.0, 2500)

    def test_object_items(self):
        from app.schemas.hr import PayrollItem
        from app.services.hr.payroll_service import derive_pay

        items = [PayrollItem(type="salary", description="Base", amount=100)]

        assert derive_pay(items) == (100.0, 0.0, 100.0)

    def test_no_items(self):
        from app.services.hr.payroll_service import derive_pay

        assert derive_pay([]) == (0, 0, 0)

    def test_negative_gross(self):
        from app.services.hr.payroll_service import derive_pay

        with pytest.raises(AppError):
            derive_pay([], gross_pay=-1)
