from sqlalchemy import Column, Integer, String, JSON

from app.db.base_class import Base, TimestampMixin


class Company(TimestampMixin, Base):
    """A tenant. Every business record carries its company_id."""
    __tablename__ = "companies"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    logo = Column(String, nullable=True)
    address = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    email = Column(String, nullable=True)
    website = Column(String, nullable=True)
    # currency, tax_rate, timezone
    settings = Column(JSON, nullable=False, default=dict)
