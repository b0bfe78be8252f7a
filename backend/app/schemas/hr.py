from datetime import date, datetime
from typing import Optional, List, Union

from pydantic import EmailStr, Field, model_validator

from app.schemas.common import APIModel


class EmployeeCreate(APIModel):
    employee_id: str = Field(..., description="Company employee code, e.g. EMP001")
    first_name: str
    last_name: str
    email: EmailStr
    phone: Optional[str] = None
    address: Optional[dict] = None
    position: str
    department: str
    manager_id: Optional[int] = None
    hire_date: date
    salary: float = Field(0, ge=0)
    hourly_rate: Optional[float] = Field(None, ge=0)
    employment_type: str = Field("full-time", pattern="^(full-time|part-time|contract|intern)$")
    status: str = Field("active", pattern="^(active|inactive|terminated|on-leave)$")
    emergency_contact: Optional[dict] = None
    notes: Optional[str] = None
    password: Optional[str] = None


class EmployeeUpdate(APIModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    address: Optional[dict] = None
    position: Optional[str] = None
    department: Optional[str] = None
    manager_id: Optional[int] = None
    salary: Optional[float] = Field(None, ge=0)
    hourly_rate: Optional[float] = Field(None, ge=0)
    employment_type: Optional[str] = Field(None, pattern="^(full-time|part-time|contract|intern)$")
    status: Optional[str] = Field(None, pattern="^(active|inactive|terminated|on-leave)$")
    emergency_contact: Optional[dict] = None
    notes: Optional[str] = None
    password: Optional[str] = None


class AttendanceRecord(APIModel):
    """Clock-in or full manual attendance entry."""
    employee_id: Union[int, str]
    date: date
    check_in: Optional[datetime] = None
    check_out: Optional[datetime] = None
    break_start: Optional[datetime] = None
    break_end: Optional[datetime] = None
    status: Optional[str] = Field(None, pattern="^(present|absent|late|half-day|sick|vacation|holiday)$")
    notes: Optional[str] = None


class AttendanceUpdate(APIModel):
    """Clock-out, break or notes update for an existing record."""
    employee_id: Union[int, str]
    date: date
    check_out: Optional[datetime] = None
    break_start: Optional[datetime] = None
    break_end: Optional[datetime] = None
    notes: Optional[str] = None


class PayrollItem(APIModel):
    type: str
    description: str = ""
    amount: float


class PayrollCreate(APIModel):
    employee_id: int
    pay_period_start: date
    pay_period_end: date
    items: List[PayrollItem] = []
    gross_pay: Optional[float] = None
    deductions: Optional[float] = None
    net_pay: Optional[float] = None
    payment_date: date

    @model_validator(mode="after")
    def _period_order(self):
        if self.pay_period_end < self.pay_period_start:
            raise ValueError("Pay period end must not be before its start")
        return self


class PayrollUpdate(APIModel):
    items: Optional[List[PayrollItem]] = None
    gross_pay: Optional[float] = None
    deductions: Optional[float] = None
    net_pay: Optional[float] = None
    payment_date: Optional[date] = None


class LeaveRequestCreate(APIModel):
    employee_id: Optional[int] = None
    leave_type: str = Field(..., pattern="^(vacation|sick|personal|maternity|paternity|bereavement|other)$")
    start_date: date
    end_date: date
    reason: str = Field(..., min_length=1)
    notes: Optional[str] = None
    attachments: List[dict] = []


class LeaveDecision(APIModel):
    rejection_reason: Optional[str] = None
    notes: Optional[str] = None


class PerformanceScore(APIModel):
    category: str
    score: float = Field(..., ge=1, le=5)
    comments: Optional[str] = None


class PerformanceReviewCreate(APIModel):
    employee_id: int
    review_period_start: date
    review_period_end: date
    review_type: str = Field("annual", pattern="^(annual|quarterly|probation|project|custom)$")
    scores: List[PerformanceScore] = []
    overall_score: float = Field(..., ge=1, le=5)
    strengths: List[str] = []
    areas_for_improvement: List[str] = []
    goals: List[str] = []
    manager_comments: str = ""
    status: str = Field("draft", pattern="^(draft|submitted|under_review|completed|cancelled)$")
    next_review_date: Optional[date] = None


class PerformanceReviewUpdate(APIModel):
    scores: Optional[List[PerformanceScore]] = None
    overall_score: Optional[float] = Field(None, ge=1, le=5)
    strengths: Optional[List[str]] = None
    areas_for_improvement: Optional[List[str]] = None
    goals: Optional[List[str]] = None
    manager_comments: Optional[str] = None
    employee_comments: Optional[str] = None
    status: Optional[str] = Field(None, pattern="^(draft|submitted|under_review|completed|cancelled)$")
    next_review_date: Optional[date] = None
