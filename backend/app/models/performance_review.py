from sqlalchemy import Column, Integer, String, Float, Boolean, Date, DateTime, Text, ForeignKey, JSON
from sqlalchemy.orm import relationship

from app.db.base_class import TenantMixin, Base
from app.models.employee import Employee

REVIEW_TYPES = ("annual", "quarterly", "probation", "project", "custom")


class PerformanceReview(TenantMixin, Base):
    __tablename__ = "performance_reviews"

    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id", ondelete="CASCADE"), nullable=False, index=True)
    review_period_start = Column(Date, nullable=False)
    review_period_end = Column(Date, nullable=False)
    review_type = Column(String, nullable=False, default="annual")
    # [{"category": str, "score": 1-5, "comments": str}]
    scores = Column(JSON, nullable=False, default=list)
    overall_score = Column(Float, nullable=False)
    strengths = Column(JSON, nullable=False, default=list)
    areas_for_improvement = Column(JSON, nullable=False, default=list)
    goals = Column(JSON, nullable=False, default=list)
    manager_comments = Column(Text, nullable=False, default="")
    employee_comments = Column(Text, nullable=True)
    status = Column(String, nullable=False, default="draft", index=True)
    reviewed_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    employee_acknowledged = Column(Boolean, nullable=False, default=False)
    employee_acknowledged_at = Column(DateTime, nullable=True)
    completed_at = Column(DateTime, nullable=True)
    next_review_date = Column(Date, nullable=True)

    employee = relationship(Employee, lazy="selectin")
