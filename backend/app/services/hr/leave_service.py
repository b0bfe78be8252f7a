from datetime import date, datetime
from typing import Optional

from app.core.errors import validation_error
from app.models.leave_request import LeaveRequest

ALREADY_PROCESSED = "Leave request has already been processed"


def count_leave_days(start_date: date, end_date: date) -> int:
    """Inclusive calendar-day count; a single-day leave is 1."""
    if end_date < start_date:
        raise validation_error("End date must be on or after start date")
    return (end_date - start_date).days + 1


def _ensure_pending(leave: LeaveRequest) -> None:
    if leave.status != "pending":
        raise validation_error(ALREADY_PROCESSED, code="LEAVE_ALREADY_PROCESSED")


def approve_leave(leave: LeaveRequest, approver_id: Optional[int], notes: Optional[str] = None) -> None:
    _ensure_pending(leave)
    leave.status = "approved"
    leave.approved_by = approver_id
    leave.approved_at = datetime.utcnow()
    if notes:
        leave.notes = notes


def reject_leave(leave: LeaveRequest, approver_id: Optional[int], reason: Optional[str] = None) -> None:
    _ensure_pending(leave)
    leave.status = "rejected"
    leave.approved_by = approver_id
    leave.approved_at = datetime.utcnow()
    leave.rejection_reason = reason


def cancel_leave(leave: LeaveRequest) -> None:
    _ensure_pending(leave)
    leave.status = "cancelled"
