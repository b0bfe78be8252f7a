from sqlalchemy import Column, Integer, String, Boolean, DateTime, Text, ForeignKey, JSON, Index

from app.db.base_class import TenantMixin, Base

NOTIFICATION_TYPES = (
    "task_reminder",
    "task_created",
    "task_overdue",
    "customer_reengagement",
    "customer_contact",
    "customer_high_risk",
    "overdue_invoices",
    "new_lead",
    "quote_converted",
    "order_delivered",
    "daily_digest",
    "weekly_digest",
    "general",
)
NOTIFICATION_PRIORITIES = ("Low", "Medium", "High", "Urgent")


class Notification(TenantMixin, Base):
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String, nullable=False)
    message = Column(Text, nullable=False)
    type = Column(String, nullable=False, default="general", index=True)
    is_read = Column(Boolean, nullable=False, default=False)
    read_at = Column(DateTime, nullable=True)
    data = Column(JSON, nullable=False, default=dict)
    related_lead_id = Column(Integer, nullable=True)
    related_opportunity_id = Column(Integer, nullable=True)
    related_customer_id = Column(Integer, nullable=True)
    related_order_id = Column(Integer, nullable=True)
    related_invoice_id = Column(Integer, nullable=True)
    related_quote_id = Column(Integer, nullable=True)
    related_task_id = Column(Integer, ForeignKey("tasks.id", ondelete="SET NULL"), nullable=True)
    priority = Column(String, nullable=False, default="Medium")
    expires_at = Column(DateTime, nullable=True, index=True)

    __table_args__ = (
        Index("ix_notifications_user_read", "user_id", "is_read"),
    )
