from typing import Any

from sqlalchemy import Column, DateTime, ForeignKey, Integer
from sqlalchemy.orm import as_declarative, declared_attr
from sqlalchemy.sql import func


@as_declarative()
class Base:
    id: Any
    __name__: str
    __tablename__: str

    # Generate __tablename__ automatically
    @declared_attr  # type: ignore[misc]
    def __tablename__(cls) -> str:
        return cls.__name__.lower()


class TimestampMixin:
    # Server-side timestamps come back via RETURNING on flush
    __mapper_args__ = {"eager_defaults": True}

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=True)


class TenantMixin(TimestampMixin):
    """Rows owned by a single company (tenant)."""

    @declared_attr  # type: ignore[misc]
    def company_id(cls):
        return Column(
            Integer,
            ForeignKey("companies.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        )
