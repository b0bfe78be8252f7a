from sqlalchemy import Column, Integer, String, Float, Date, Text, ForeignKey, JSON, UniqueConstraint

from app.db.base_class import TenantMixin, Base

EMPLOYMENT_TYPES = ("full-time", "part-time", "contract", "intern")
EMPLOYEE_STATUSES = ("active", "inactive", "terminated", "on-leave")


class Employee(TenantMixin, Base):
    __tablename__ = "employees"  # type: ignore[assignment]

    id = Column(Integer, primary_key=True, index=True)
    # Company-specific identifier such as EMP001
    employee_code = Column(String, nullable=False, index=True)
    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=False)
    email = Column(String, nullable=False, index=True)
    phone = Column(String, nullable=True)
    address = Column(JSON, nullable=True)
    position = Column(String, nullable=False)
    department = Column(String, nullable=False, index=True)
    manager_id = Column(Integer, ForeignKey("employees.id", ondelete="SET NULL"), nullable=True)
    hire_date = Column(Date, nullable=False)
    salary = Column(Float, nullable=False, default=0)
    hourly_rate = Column(Float, nullable=True)
    employment_type = Column(String, nullable=False, default="full-time")
    status = Column(String, nullable=False, default="active", index=True)
    emergency_contact = Column(JSON, nullable=True)
    documents = Column(JSON, nullable=False, default=list)
    notes = Column(Text, nullable=True)
    # Only set when the employee may sign in to the self-service portal
    hashed_password = Column(String, nullable=True)
    created_by = Column(Integer, nullable=True)

    __table_args__ = (
        UniqueConstraint("company_id", "employee_code", name="uq_employees_company_code"),
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"
