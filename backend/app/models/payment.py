from sqlalchemy import Column, Integer, String, Float, Text, ForeignKey

from app.db.base_class import TenantMixin, Base

PAYMENT_METHODS = ("cash", "card", "bank-transfer", "check", "other")


class Payment(TenantMixin, Base):
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, index=True)
    invoice_id = Column(Integer, ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False, index=True)
    amount = Column(Float, nullable=False)
    method = Column(String, nullable=False)
    reference = Column(String, nullable=False, default="")
    notes = Column(Text, nullable=False, default="")
    receipt_url = Column(String, nullable=True)
    processed_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
