from sqlalchemy import Column, Integer, String, Float, Date, Text, ForeignKey, JSON

from app.db.base_class import TenantMixin, Base

OPPORTUNITY_STAGES = ("prospecting", "qualification", "proposal", "negotiation", "closed-won", "closed-lost")
CLOSED_STAGES = ("closed-won", "closed-lost")


class Opportunity(TenantMixin, Base):
    __tablename__ = "opportunities"

    id = Column(Integer, primary_key=True, index=True)
    lead_id = Column(Integer, ForeignKey("leads.id", ondelete="SET NULL"), nullable=True, index=True)
    title = Column(String, nullable=False)
    customer_name = Column(String, nullable=False)
    customer_email = Column(String, nullable=False)
    customer_phone = Column(String, nullable=True)
    value = Column(Float, nullable=False, default=0)
    stage = Column(String, nullable=False, default="prospecting", index=True)
    probability = Column(Integer, nullable=False, default=25)
    expected_close_date = Column(Date, nullable=False)
    actual_close_date = Column(Date, nullable=True)
    assigned_to = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    notes = Column(Text, nullable=False, default="")
    lost_reason = Column(String, nullable=True)
    tags = Column(JSON, nullable=False, default=list)
