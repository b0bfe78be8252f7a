from sqlalchemy import Column, Integer, String, Float, Boolean, DateTime, Text, ForeignKey, JSON

from app.db.base_class import TenantMixin, Base

APPROVAL_TYPES = ("Quote", "Discount", "Credit", "Return", "Refund", "Price", "Order")
APPROVAL_STATUSES = ("Pending", "Approved", "Rejected", "Cancelled")


class Approval(TenantMixin, Base):
    __tablename__ = "approvals"

    id = Column(Integer, primary_key=True, index=True)
    type = Column(String, nullable=False)
    related_id = Column(Integer, nullable=False)
    related_type = Column(String, nullable=False)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=False, default="")
    requested_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    requested_date = Column(DateTime, nullable=False)
    amount = Column(Float, nullable=True)
    currency = Column(String, nullable=False, default="USD")
    priority = Column(String, nullable=False, default="Medium")
    status = Column(String, nullable=False, default="Pending", index=True)
    # [{"user_id", "level", "status", "approved_date", "comments"}]
    approvers = Column(JSON, nullable=False, default=list)
    current_level = Column(Integer, nullable=False, default=1)
    total_levels = Column(Integer, nullable=False, default=1)
    approved_by = Column(Integer, nullable=True)
    approved_date = Column(DateTime, nullable=True)
    rejected_by = Column(Integer, nullable=True)
    rejected_date = Column(DateTime, nullable=True)
    rejection_reason = Column(Text, nullable=True)
    comments = Column(Text, nullable=True)
    due_date = Column(DateTime, nullable=True)
    is_overdue = Column(Boolean, nullable=False, default=False)
