from sqlalchemy import Column, Integer, String, Float, Text, ForeignKey, JSON

from app.db.base_class import TenantMixin, Base

LEAD_STATUSES = ("new", "contacted", "qualified", "unqualified")
LEAD_CATEGORIES = ("Hotel", "Supermarket", "Restaurant", "Contractor", "Other")


class Lead(TenantMixin, Base):
    __tablename__ = "leads"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    email = Column(String, nullable=False, index=True)
    phone = Column(String, nullable=False, default="")
    company = Column(String, nullable=False)
    source = Column(String, nullable=False)
    status = Column(String, nullable=False, default="new", index=True)
    notes = Column(Text, nullable=False, default="")
    assigned_to = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    tags = Column(JSON, nullable=False, default=list)
    custom_fields = Column(JSON, nullable=False, default=dict)
    category = Column(String, nullable=True, index=True)
    product_interest = Column(JSON, nullable=False, default=list)
    monthly_volume = Column(Float, nullable=True)
    territory = Column(String, nullable=True, index=True)
    lead_score = Column(Integer, nullable=False, default=0)
    customer_type = Column(String, nullable=True)
