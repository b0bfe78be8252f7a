from sqlalchemy import Column, Integer, String, Float, Date, DateTime, Text, ForeignKey, JSON, UniqueConstraint

from app.db.base_class import TenantMixin, Base

ORDER_STATUSES = ("Pending", "Processing", "Dispatched", "Delivered", "Cancelled")
# Orders that count towards recognised revenue
REVENUE_ORDER_STATUSES = ("Processing", "Dispatched", "Delivered")


class SalesOrder(TenantMixin, Base):
    __tablename__ = "sales_orders"

    id = Column(Integer, primary_key=True, index=True)
    order_number = Column(String, nullable=False, index=True)
    quote_id = Column(Integer, ForeignKey("quotes.id", ondelete="SET NULL"), nullable=True)
    customer_id = Column(Integer, ForeignKey("customers.id", ondelete="SET NULL"), nullable=True, index=True)
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
    order_date = Column(Date, nullable=False)
    delivery_date = Column(Date, nullable=True)
    delivery_address = Column(String, nullable=True)
    payment_terms = Column(String, nullable=False, default="Net 30")
    status = Column(String, nullable=False, default="Pending", index=True)
    notes = Column(Text, nullable=True)
    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    assigned_to = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    driver_name = Column(String, nullable=True)
    driver_phone = Column(String, nullable=True)
    tracking_number = Column(String, nullable=True)
    delivery_notes = Column(Text, nullable=True)
    # [{"file_name", "original_name", "url", "size", "mime_type", "uploaded_by", "uploaded_at"}]
    delivery_receipts = Column(JSON, nullable=False, default=list)
    invoice_id = Column(Integer, ForeignKey("invoices.id", ondelete="SET NULL", use_alter=True, name="fk_sales_orders_invoice_id"), nullable=True)
    processed_at = Column(DateTime, nullable=True)
    dispatched_at = Column(DateTime, nullable=True)
    delivered_at = Column(DateTime, nullable=True)
    cancelled_at = Column(DateTime, nullable=True)

    __table_args__ = (
        UniqueConstraint("company_id", "order_number", name="uq_sales_orders_company_number"),
    )
