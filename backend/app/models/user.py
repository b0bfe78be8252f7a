from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, JSON

from app.db.base_class import TenantMixin, Base


class User(TenantMixin, Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    name = Column(String, nullable=False)
    # admin, manager, sales, warehouse, viewer, hr
    role = Column(String, nullable=False, default="viewer", index=True)
    employee_id = Column(Integer, ForeignKey("employees.id", ondelete="SET NULL"), nullable=True)
    avatar = Column(String, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    permissions = Column(JSON, nullable=False, default=dict)
    last_login = Column(DateTime(timezone=True), nullable=True)
