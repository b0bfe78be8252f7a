from sqlalchemy import Column, Integer, String, Float, Date, DateTime, Text, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship

from app.db.base_class import TenantMixin, Base
from app.models.employee import Employee

ATTENDANCE_STATUSES = ("present", "absent", "late", "half-day", "sick", "vacation", "holiday")


class Attendance(TenantMixin, Base):
    """One employee's attendance for one calendar date."""
    __tablename__ = "attendance"

    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id", ondelete="CASCADE"), nullable=False, index=True)
    date = Column(Date, nullable=False, index=True)
    check_in = Column(DateTime, nullable=True)
    check_out = Column(DateTime, nullable=True)
    break_start = Column(DateTime, nullable=True)
    break_end = Column(DateTime, nullable=True)
    # Regular hours are capped at the standard workday; the excess lands in overtime_hours
    total_hours = Column(Float, nullable=False, default=0)
    overtime_hours = Column(Float, nullable=False, default=0)
    status = Column(String, nullable=False, default="present", index=True)
    notes = Column(Text, nullable=True)
    approved_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    approved_at = Column(DateTime, nullable=True)

    employee = relationship(Employee, lazy="selectin")

    __table_args__ = (
        UniqueConstraint("company_id", "employee_id", "date", name="uq_attendance_company_employee_date"),
    )
