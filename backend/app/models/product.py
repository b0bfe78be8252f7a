from sqlalchemy import Column, Integer, String, Float, Text, JSON, UniqueConstraint

from app.db.base_class import TenantMixin, Base

PRODUCT_STATUSES = ("Active", "Inactive", "Discontinued")


class Product(TenantMixin, Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False, index=True)
    description = Column(Text, nullable=False, default="")
    sku = Column(String, nullable=False)
    category = Column(String, nullable=False, index=True)
    subcategory = Column(String, nullable=True)
    brand = Column(String, nullable=True)
    unit = Column(String, nullable=False, default="each")
    price = Column(Float, nullable=False, default=0)
    cost = Column(Float, nullable=False, default=0)
    margin = Column(Float, nullable=False, default=0)
    images = Column(JSON, nullable=False, default=list)
    specifications = Column(JSON, nullable=False, default=dict)
    # {"base_price", "volume_discounts": [{"min_quantity", "discount_percentage"}]}
    pricing = Column(JSON, nullable=False, default=dict)
    status = Column(String, nullable=False, default="Active", index=True)
    tags = Column(JSON, nullable=False, default=list)
    tax_category = Column(String, nullable=False, default="standard")
    supplier = Column(JSON, nullable=True)

    __table_args__ = (
        UniqueConstraint("company_id", "sku", name="uq_products_company_sku"),
    )

    def recompute_margin(self) -> None:
        price = self.price or 0
        self.margin = round(((price - (self.cost or 0)) / price) * 100, 2) if price else 0
