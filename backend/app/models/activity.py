from sqlalchemy import Column, Integer, String, DateTime, Text, ForeignKey, JSON, Index

from app.db.base_class import TenantMixin, Base

ACTIVITY_TYPES = ("Call", "Visit", "Meeting", "Email", "WhatsApp", "Task", "Note")
ACTIVITY_OUTCOMES = ("Positive", "Neutral", "Negative", "No Response", "Follow-up Required")
ACTIVITY_STATUSES = ("Scheduled", "In Progress", "Completed", "Cancelled")


class Activity(TenantMixin, Base):
    """A logged or scheduled customer touchpoint (call, visit, meeting, message, note)."""

    __tablename__ = "activities"

    id = Column(Integer, primary_key=True, index=True)
    lead_id = Column(Integer, ForeignKey("leads.id", ondelete="SET NULL"), nullable=True, index=True)
    opportunity_id = Column(Integer, ForeignKey("opportunities.id", ondelete="SET NULL"), nullable=True, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id", ondelete="SET NULL"), nullable=True, index=True)
    type = Column(String, nullable=False, index=True)
    subject = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    # minutes
    duration = Column(Integer, nullable=True)
    outcome = Column(String, nullable=True)
    scheduled_date = Column(DateTime, nullable=True, index=True)
    completed_date = Column(DateTime, nullable=True)
    assigned_to = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(String, nullable=False, default="Scheduled", index=True)
    priority = Column(String, nullable=False, default="Medium")
    location = Column(String, nullable=True)
    attachments = Column(JSON, nullable=False, default=list)
    related_quote_id = Column(Integer, ForeignKey("quotes.id", ondelete="SET NULL"), nullable=True)
    related_order_id = Column(Integer, ForeignKey("sales_orders.id", ondelete="SET NULL"), nullable=True)
    related_invoice_id = Column(Integer, ForeignKey("invoices.id", ondelete="SET NULL"), nullable=True)
    next_follow_up_date = Column(DateTime, nullable=True, index=True)

    __table_args__ = (
        Index("ix_activities_assignee_status", "company_id", "assigned_to", "status"),
    )
