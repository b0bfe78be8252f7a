from sqlalchemy import Column, Integer, String, Float, Text, ForeignKey, JSON

from app.db.base_class import TenantMixin, Base

CUSTOMER_TYPES = ("Volume Buyer", "Commercial", "Retail", "Wholesale", "Other")
PAYMENT_TERMS = ("COD", "Net 15", "Net 30", "Net 60", "Prepaid", "Credit")


class Customer(TenantMixin, Base):
    __tablename__ = "customers"

    id = Column(Integer, primary_key=True, index=True)
    company_name = Column(String, nullable=False, index=True)
    contact_person = Column(String, nullable=False)
    email = Column(String, nullable=False, index=True)
    phone = Column(String, nullable=False)
    address = Column(String, nullable=True)
    city = Column(String, nullable=True)
    state = Column(String, nullable=True)
    postal_code = Column(String, nullable=True)
    country = Column(String, nullable=False, default="Jamaica")
    category = Column(String, nullable=False, index=True)
    customer_type = Column(String, nullable=False, index=True)
    territory = Column(String, nullable=True, index=True)
    assigned_to = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    payment_terms = Column(String, nullable=False, default="Net 30")
    credit_limit = Column(Float, nullable=True)
    current_balance = Column(Float, nullable=False, default=0)
    # Active, Inactive, Suspended, Prospect
    status = Column(String, nullable=False, default="Prospect", index=True)
    rating = Column(Integer, nullable=True)
    tags = Column(JSON, nullable=False, default=list)
    notes = Column(Text, nullable=True)
