from sqlalchemy import Column, Integer, Float, Date, ForeignKey, JSON
from sqlalchemy.orm import relationship

from app.db.base_class import TenantMixin, Base
from app.models.employee import Employee


class Payroll(TenantMixin, Base):
    __tablename__ = "payrolls"

    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id", ondelete="CASCADE"), nullable=False, index=True)
    pay_period_start = Column(Date, nullable=False)
    pay_period_end = Column(Date, nullable=False)
    # [{"type": "salary" | "overtime" | "bonus" | "deduction" | ..., "description": str, "amount": float}]
    items = Column(JSON, nullable=False, default=list)
    gross_pay = Column(Float, nullable=False, default=0)
    deductions = Column(Float, nullable=False, default=0)
    net_pay = Column(Float, nullable=False, default=0)
    payment_date = Column(Date, nullable=False, index=True)

    employee = relationship(Employee, lazy="selectin")
