from sqlalchemy import Column, Integer, String, Float, Boolean, Date, Text, ForeignKey, JSON

from app.db.base_class import TenantMixin, Base

PROMOTION_TYPES = ("Percentage", "Fixed Amount", "Buy X Get Y", "Volume Discount", "Free Shipping")
PROMOTION_STATUSES = ("Draft", "Pending Approval", "Active", "Expired", "Cancelled")


class Promotion(TenantMixin, Base):
    __tablename__ = "promotions"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=False, default="")
    type = Column(String, nullable=False)
    value = Column(Float, nullable=False)
    min_order_value = Column(Float, nullable=True)
    max_discount = Column(Float, nullable=True)
    applicable_to = Column(String, nullable=False, default="All Products")
    product_ids = Column(JSON, nullable=False, default=list)
    customer_ids = Column(JSON, nullable=False, default=list)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    usage_limit = Column(Integer, nullable=True)
    usage_count = Column(Integer, nullable=False, default=0)
    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    status = Column(String, nullable=False, default="Draft", index=True)
    conditions = Column(JSON, nullable=False, default=dict)
    notes = Column(Text, nullable=True)
