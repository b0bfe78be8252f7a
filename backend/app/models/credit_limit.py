from sqlalchemy import Column, Integer, String, Float, Boolean, DateTime, Text, ForeignKey

from app.db.base_class import TenantMixin, Base

RISK_LEVELS = ("Low", "Medium", "High", "Critical")


class CreditLimit(TenantMixin, Base):
    __tablename__ = "credit_limits"

    id = Column(Integer, primary_key=True, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id", ondelete="CASCADE"), nullable=False, index=True)
    credit_limit = Column(Float, nullable=False, default=0)
    current_balance = Column(Float, nullable=False, default=0)
    credit_used = Column(Float, nullable=False, default=0)
    # Always credit_limit - credit_used
    credit_available = Column(Float, nullable=False, default=0)
    payment_terms = Column(String, nullable=False, default="Net 30")
    credit_hold = Column(Boolean, nullable=False, default=False)
    credit_hold_reason = Column(Text, nullable=True)
    credit_hold_date = Column(DateTime, nullable=True)
    last_payment_date = Column(DateTime, nullable=True)
    last_payment_amount = Column(Float, nullable=True)
    credit_score = Column(Integer, nullable=True)
    risk_level = Column(String, nullable=False, default="Low")
    approved_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    notes = Column(Text, nullable=True)

    def recompute_available(self) -> None:
        self.credit_available = round((self.credit_limit or 0) - (self.credit_used or 0), 2)
