from sqlalchemy import Column, Integer, String, Float, Date, DateTime, Text, ForeignKey, JSON, UniqueConstraint

from app.db.base_class import TenantMixin, Base

INVOICE_STATUSES = ("draft", "sent", "paid", "partial", "overdue", "cancelled")
# Invoices with money still expected
OUTSTANDING_STATUSES = ("sent", "partial", "overdue")


class Invoice(TenantMixin, Base):
    __tablename__ = "invoices"

    id = Column(Integer, primary_key=True, index=True)
    quote_id = Column(Integer, ForeignKey("quotes.id", ondelete="SET NULL"), nullable=True)
    sales_order_id = Column(Integer, ForeignKey("sales_orders.id", ondelete="SET NULL"), nullable=True)
    customer_id = Column(Integer, ForeignKey("customers.id", ondelete="SET NULL"), nullable=True, index=True)
    invoice_number = Column(String, nullable=False, index=True)
    customer_name = Column(String, nullable=False)
    customer_email = Column(String, nullable=False)
    customer_phone = Column(String, nullable=True)
    customer_address = Column(String, nullable=True)
    items = Column(JSON, nullable=False, default=list)
    subtotal = Column(Float, nullable=False, default=0)
    tax = Column(Float, nullable=False, default=0)
    tax_rate = Column(Float, nullable=False, default=10)
    discount = Column(Float, nullable=False, default=0)
    total = Column(Float, nullable=False, default=0)
    paid_amount = Column(Float, nullable=False, default=0)
    due_date = Column(Date, nullable=False, index=True)
    status = Column(String, nullable=False, default="draft", index=True)
    notes = Column(Text, nullable=False, default="")
    terms = Column(Text, nullable=True)
    sent_at = Column(DateTime, nullable=True)
    paid_date = Column(DateTime, nullable=True)
    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    __table_args__ = (
        UniqueConstraint("company_id", "invoice_number", name="uq_invoices_company_number"),
    )

    @property
    def balance(self) -> float:
        return round((self.total or 0) - (self.paid_amount or 0), 2)
