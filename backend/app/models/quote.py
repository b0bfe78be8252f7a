from sqlalchemy import Column, Integer, String, Float, Date, DateTime, Text, ForeignKey, JSON, UniqueConstraint

from app.db.base_class import TenantMixin, Base

QUOTE_STATUSES = ("draft", "sent", "accepted", "rejected", "expired")


class Quote(TenantMixin, Base):
    __tablename__ = "quotes"

    id = Column(Integer, primary_key=True, index=True)
    opportunity_id = Column(Integer, ForeignKey("opportunities.id", ondelete="SET NULL"), nullable=True)
    quote_number = Column(String, nullable=False, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id", ondelete="SET NULL"), nullable=True)
    customer_name = Column(String, nullable=False)
    customer_email = Column(String, nullable=False)
    customer_phone = Column(String, nullable=True)
    customer_address = Column(String, nullable=True)
    # [{"item_id", "name", "description", "quantity", "unit_price", "discount", "total"}]
    items = Column(JSON, nullable=False, default=list)
    subtotal = Column(Float, nullable=False, default=0)
    tax = Column(Float, nullable=False, default=0)
    tax_rate = Column(Float, nullable=False, default=10)
    discount = Column(Float, nullable=False, default=0)
    total = Column(Float, nullable=False, default=0)
    valid_until = Column(Date, nullable=False)
    status = Column(String, nullable=False, default="draft", index=True)
    notes = Column(Text, nullable=False, default="")
    terms = Column(Text, nullable=True)
    sent_at = Column(DateTime, nullable=True)
    accepted_at = Column(DateTime, nullable=True)
    rejected_at = Column(DateTime, nullable=True)
    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    __table_args__ = (
        UniqueConstraint("company_id", "quote_number", name="uq_quotes_company_number"),
    )
