"""
Multi-level approval workflow.

Approvers are grouped by level. Every approval at the current level moves the
request up one level; approval at the last level marks it Approved. A single
rejection at any level marks it Rejected.
"""

from datetime import datetime
from typing import Iterable, Optional

from app.core.errors import authorization_error, conflict_error, validation_error
from app.models.approval import Approval


def build_approvers(entries: Iterable) -> tuple[list[dict], int]:
    """Approver JSON rows ordered by level, plus the number of levels."""
    approvers = sorted(
        (
            {
                "user_id": entry.user_id,
                "level": entry.level,
                "status": "Pending",
                "approved_date": None,
                "comments": None,
            }
            for entry in entries
        ),
        key=lambda a: a["level"],
    )
    if not approvers:
        raise validation_error("At least one approver is required")
    return approvers, max(a["level"] for a in approvers)


def _current_entry(approval: Approval, user_id: int, is_admin: bool) -> dict:
    level_entries = [a for a in approval.approvers if a["level"] == approval.current_level]
    for entry in level_entries:
        if entry["user_id"] == user_id and entry["status"] == "Pending":
            return entry
    if is_admin and level_entries:
        return next((e for e in level_entries if e["status"] == "Pending"), level_entries[0])
    raise authorization_error("You are not an approver for the current level")


def decide(
    approval: Approval,
    user_id: int,
    decision: str,
    comments: Optional[str] = None,
    is_admin: bool = False,
    now: Optional[datetime] = None,
) -> Approval:
    """Apply an approve/reject decision from ``user_id`` in memory."""
    if approval.status != "Pending":
        raise conflict_error(f"Approval request is already {approval.status.lower()}")
    if decision not in ("approve", "reject"):
        raise validation_error("Decision must be approve or reject")

    now = now or datetime.utcnow()
    approvers = [dict(a) for a in approval.approvers or []]
    approval.approvers = approvers
    entry = _current_entry(approval, user_id, is_admin)
    entry["approved_date"] = now.isoformat()
    entry["comments"] = comments

    if decision == "reject":
        entry["status"] = "Rejected"
        approval.status = "Rejected"
        approval.rejected_by = user_id
        approval.rejected_date = now
        approval.rejection_reason = comments
    else:
        entry["status"] = "Approved"
        if approval.current_level >= approval.total_levels:
            approval.status = "Approved"
            approval.approved_by = user_id
            approval.approved_date = now
        else:
            approval.current_level += 1

    # Reassign so the JSON column registers the change
    approval.approvers = list(approvers)
    return approval


def refresh_overdue(approval: Approval, now: Optional[datetime] = None) -> None:
    now = now or datetime.utcnow()
    approval.is_overdue = bool(
        approval.status == "Pending" and approval.due_date is not None and approval.due_date < now
    )
