from sqlalchemy import Column, Integer, String, Date, DateTime, Text, ForeignKey, JSON
from sqlalchemy.orm import relationship

from app.db.base_class import TenantMixin, Base
from app.models.employee import Employee

LEAVE_TYPES = ("vacation", "sick", "personal", "maternity", "paternity", "bereavement", "other")


class LeaveRequest(TenantMixin, Base):
    __tablename__ = "leave_requests"

    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id", ondelete="CASCADE"), nullable=False, index=True)
    leave_type = Column(String, nullable=False, index=True)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    total_days = Column(Integer, nullable=False)
    reason = Column(Text, nullable=False)
    # pending -> approved | rejected | cancelled
    status = Column(String, nullable=False, default="pending", index=True)
    # Exactly one is set: a back-office user filing for the employee, or the employee themself
    requested_by_user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    requested_by_employee_id = Column(Integer, ForeignKey("employees.id", ondelete="SET NULL"), nullable=True)
    approved_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    approved_at = Column(DateTime, nullable=True)
    rejection_reason = Column(Text, nullable=True)
    attachments = Column(JSON, nullable=False, default=list)
    notes = Column(Text, nullable=True)

    employee = relationship(Employee, foreign_keys=[employee_id], lazy="selectin")
