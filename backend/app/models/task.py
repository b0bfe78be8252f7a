from datetime import datetime

from sqlalchemy import Column, Integer, String, Boolean, DateTime, Text, ForeignKey, JSON, Index

from app.db.base_class import TenantMixin, Base

TASK_TYPES = ("Follow-up", "Call", "Visit", "Email", "WhatsApp", "Meeting", "Review", "Other")
TASK_RELATED_TO = ("Lead", "Opportunity", "Customer", "Quote", "Order", "Invoice", "General")
TASK_PRIORITIES = ("Low", "Medium", "High", "Urgent")
TASK_STATUSES = ("Pending", "In Progress", "Completed", "Cancelled", "Overdue")
RECURRING_PATTERNS = ("Daily", "Weekly", "Monthly", "Quarterly")
OPEN_TASK_STATUSES = ("Pending", "In Progress", "Overdue")


class Task(TenantMixin, Base):
    __tablename__ = "tasks"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    type = Column(String, nullable=False, index=True)
    related_to = Column(String, nullable=False, default="General", index=True)
    related_id = Column(Integer, nullable=True)
    assigned_to = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    due_date = Column(DateTime, nullable=False, index=True)
    priority = Column(String, nullable=False, default="Medium", index=True)
    status = Column(String, nullable=False, default="Pending", index=True)
    completed_date = Column(DateTime, nullable=True)
    completed_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    notes = Column(Text, nullable=True)
    is_recurring = Column(Boolean, nullable=False, default=False)
    recurring_pattern = Column(String, nullable=True)
    recurring_interval = Column(Integer, nullable=True)
    next_due_date = Column(DateTime, nullable=True)
    reminder_date = Column(DateTime, nullable=True)
    reminder_sent = Column(Boolean, nullable=False, default=False)
    depends_on = Column(JSON, nullable=False, default=list)
    blocks = Column(JSON, nullable=False, default=list)

    __table_args__ = (
        Index("ix_tasks_assignee_status", "company_id", "assigned_to", "status"),
        Index("ix_tasks_related", "company_id", "related_to", "related_id"),
    )

    def refresh_overdue(self, now: datetime) -> bool:
        """A pending task past its due date becomes Overdue. Returns True when it changed."""
        if self.status == "Pending" and self.due_date is not None and self.due_date < now:
            self.status = "Overdue"
            return True
        return False
