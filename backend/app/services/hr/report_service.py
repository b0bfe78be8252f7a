"""
HR report builders.

Each report composes a handful of aggregate queries over one tenant's HR
tables and shapes the result into summary JSON. The department filter applies
through the employee row for every report.
"""

from collections import Counter
from datetime import date, timedelta
from typing import Any, Optional, Iterable

from sqlalchemy import select, func, case
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import validation_error
from app.models.attendance import Attendance
from app.models.employee import Employee
from app.models.leave_request import LeaveRequest
from app.models.payroll import Payroll
from app.models.performance_review import PerformanceReview

REPORT_TYPES = ("overview", "attendance", "payroll", "performance", "leaves", "departments")

# Half-open [lower, upper) score buckets; 5 lands in the last one
SCORE_BUCKETS = ((1, 2), (2, 3), (3, 4), (4, 5), (5, 6))
TOP_N = 5


def percentage(part: float, whole: float) -> float:
    return round((part / whole) * 100, 2) if whole else 0.0


def score_distribution(scores: Iterable[float]) -> list[dict]:
    counts = Counter()
    other = 0
    for score in scores:
        for lower, upper in SCORE_BUCKETS:
            if lower <= score < upper:
                counts[lower] += 1
                break
        else:
            other += 1
    distribution = [
        {"range": f"{lower}-{upper}", "min": lower, "count": counts[lower]}
        for lower, upper in SCORE_BUCKETS
    ]
    if other:
        distribution.append({"range": "Other", "min": None, "count": other})
    return distribution


def top_improvement_areas(area_lists: Iterable[Optional[list]], limit: int = TOP_N) -> list[dict]:
    counter = Counter(area for areas in area_lists for area in (areas or []) if area)
    return [{"area": area, "frequency": count} for area, count in counter.most_common(limit)]


class HRReportService:
    """Builds the HR dashboard reports for one company."""

    def __init__(
        self,
        db: AsyncSession,
        company_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        department: Optional[str] = None,
    ):
        self.db = db
        self.company_id = company_id
        self.start_date = start_date
        self.end_date = end_date
        self.department = department

    async def build(self, report_type: str) -> dict:
        if report_type not in REPORT_TYPES:
            raise validation_error(
                "Invalid report type",
                details={"allowed": list(REPORT_TYPES)},
            )
        builder = getattr(self, f"_{report_type}_report")
        return await builder()

    @property
    def _has_range(self) -> bool:
        return self.start_date is not None and self.end_date is not None

    def _date_filter(self, column) -> list:
        if not self._has_range:
            return []
        return [column >= self.start_date, column < self.end_date + timedelta(days=1)]

    def _employee_filter(self) -> list:
        conditions = [Employee.company_id == self.company_id]
        if self.department:
            conditions.append(Employee.department == self.department)
        return conditions

    async def _scalar(self, query) -> Any:
        result = await self.db.execute(query)
        return result.scalar()

    async def _overview_report(self) -> dict:
        filters = self._employee_filter()
        total = await self._scalar(select(func.count(Employee.id)).where(*filters))
        active = await self._scalar(
            select(func.count(Employee.id)).where(*filters, Employee.status == "active")
        )
        departments = (
            await self.db.execute(select(Employee.department).where(*filters).distinct())
        ).scalars().all()
        recent_hires = (
            await self.db.execute(
                select(Employee)
                .where(*filters, Employee.status == "active")
                .order_by(Employee.hire_date.desc())
                .limit(TOP_N)
            )
        ).scalars().all()
        pending_reviews = (
            await self.db.execute(
                select(PerformanceReview)
                .select_from(PerformanceReview)
                .join(Employee, Employee.id == PerformanceReview.employee_id)
                .where(*filters, PerformanceReview.status.in_(("submitted", "under_review")))
                .limit(TOP_N)
            )
        ).scalars().all()
        pending_leaves = (
            await self.db.execute(
                select(LeaveRequest)
                .select_from(LeaveRequest)
                .join(Employee, Employee.id == LeaveRequest.employee_id)
                .where(*filters, LeaveRequest.status == "pending")
                .limit(TOP_N)
            )
        ).scalars().all()

        return {
            "summary": {
                "total_employees": total or 0,
                "active_employees": active or 0,
                "departments": len(departments),
                "recent_hires": [
                    {
                        "id": e.id,
                        "first_name": e.first_name,
                        "last_name": e.last_name,
                        "hire_date": e.hire_date.isoformat() if e.hire_date else None,
                        "position": e.position,
                    }
                    for e in recent_hires
                ],
                "upcoming_reviews": [
                    {"id": r.id, "employee_id": r.employee_id, "status": r.status} for r in pending_reviews
                ],
                "pending_leaves": [
                    {
                        "id": lr.id,
                        "employee_id": lr.employee_id,
                        "leave_type": lr.leave_type,
                        "start_date": lr.start_date.isoformat() if lr.start_date else None,
                        "total_days": lr.total_days,
                    }
                    for lr in pending_leaves
                ],
            },
            "departments": [{"name": name} for name in departments],
        }

    async def _attendance_report(self) -> dict:
        conditions = [
            Attendance.company_id == self.company_id,
            *self._date_filter(Attendance.date),
        ]
        if self.department:
            conditions.append(Employee.department == self.department)

        counts = (
            await self.db.execute(
                select(
                    func.count(Attendance.id).label("total"),
                    func.sum(case((Attendance.status == "present", 1), else_=0)).label("present"),
                    func.sum(case((Attendance.status == "absent", 1), else_=0)).label("absent"),
                    func.sum(case((Attendance.status == "late", 1), else_=0)).label("late"),
                    func.avg(Attendance.total_hours).label("average_hours"),
                )
                .select_from(Attendance)
                .join(Employee, Employee.id == Attendance.employee_id)
                .where(*conditions)
            )
        ).one()

        top_rows = (
            await self.db.execute(
                select(
                    Employee.id,
                    Employee.employee_code,
                    Employee.first_name,
                    Employee.last_name,
                    func.sum(Attendance.total_hours).label("total_hours"),
                )
                .select_from(Attendance)
                .join(Employee, Employee.id == Attendance.employee_id)
                .where(*conditions)
                .group_by(Employee.id, Employee.employee_code, Employee.first_name, Employee.last_name)
                .order_by(func.sum(Attendance.total_hours).desc())
                .limit(TOP_N)
            )
        ).all()

        total = counts.total or 0
        present = int(counts.present or 0)
        return {
            "summary": {
                "total_records": total,
                "present_count": present,
                "absent_count": int(counts.absent or 0),
                "late_count": int(counts.late or 0),
                "attendance_rate": percentage(present, total),
                "average_hours": round(float(counts.average_hours or 0), 2),
            },
            "top_performers": [
                {
                    "employee": {
                        "id": row.id,
                        "employee_id": row.employee_code,
                        "first_name": row.first_name,
                        "last_name": row.last_name,
                    },
                    "total_hours": round(float(row.total_hours or 0), 2),
                }
                for row in top_rows
            ],
        }

    async def _payroll_report(self) -> dict:
        conditions = [
            Payroll.company_id == self.company_id,
            *self._date_filter(Payroll.pay_period_start),
        ]
        if self.department:
            conditions.append(Employee.department == self.department)

        totals = (
            await self.db.execute(
                select(
                    func.count(Payroll.id).label("count"),
                    func.coalesce(func.sum(Payroll.gross_pay), 0).label("gross"),
                    func.coalesce(func.sum(Payroll.deductions), 0).label("deductions"),
                    func.coalesce(func.sum(Payroll.net_pay), 0).label("net"),
                )
                .select_from(Payroll)
                .join(Employee, Employee.id == Payroll.employee_id)
                .where(*conditions)
            )
        ).one()

        employee_filters = self._employee_filter()
        average_salary = await self._scalar(select(func.avg(Employee.salary)).where(*employee_filters))
        departments = (
            await self.db.execute(
                select(
                    Employee.department,
                    func.avg(Employee.salary).label("average_salary"),
                    func.count(Employee.id).label("count"),
                )
                .where(*employee_filters)
                .group_by(Employee.department)
            )
        ).all()

        return {
            "summary": {
                "total_payrolls": totals.count or 0,
                "total_gross_pay": round(float(totals.gross or 0), 2),
                "total_deductions": round(float(totals.deductions or 0), 2),
                "total_net_pay": round(float(totals.net or 0), 2),
                "average_salary": round(float(average_salary or 0), 2),
            },
            "department_breakdown": [
                {
                    "department": row.department,
                    "average_salary": round(float(row.average_salary or 0), 2),
                    "employee_count": row.count,
                }
                for row in departments
            ],
        }

    async def _performance_report(self) -> dict:
        conditions = [
            PerformanceReview.company_id == self.company_id,
            *self._date_filter(PerformanceReview.review_period_start),
        ]
        if self.department:
            conditions.append(Employee.department == self.department)

        reviews = (
            await self.db.execute(
                select(PerformanceReview)
                .select_from(PerformanceReview)
                .join(Employee, Employee.id == PerformanceReview.employee_id)
                .where(*conditions)
                .order_by(PerformanceReview.overall_score.desc())
            )
        ).scalars().all()

        scores = [float(r.overall_score) for r in reviews if r.overall_score is not None]
        return {
            "summary": {
                "total_reviews": len(reviews),
                "average_score": round(sum(scores) / len(scores), 2) if scores else 0,
                "score_distribution": score_distribution(scores),
            },
            "top_performers": [
                {
                    "employee": {
                        "id": r.employee_id,
                        "first_name": r.employee.first_name if r.employee else None,
                        "last_name": r.employee.last_name if r.employee else None,
                        "position": r.employee.position if r.employee else None,
                    },
                    "score": r.overall_score,
                    "comments": r.manager_comments,
                }
                for r in reviews[:TOP_N]
            ],
            "improvement_areas": top_improvement_areas(r.areas_for_improvement for r in reviews),
        }

    async def _leaves_report(self) -> dict:
        conditions = [
            LeaveRequest.company_id == self.company_id,
            *self._date_filter(LeaveRequest.start_date),
        ]
        if self.department:
            conditions.append(Employee.department == self.department)

        counts = (
            await self.db.execute(
                select(
                    func.count(LeaveRequest.id).label("total"),
                    func.sum(case((LeaveRequest.status == "approved", 1), else_=0)).label("approved"),
                    func.sum(case((LeaveRequest.status == "pending", 1), else_=0)).label("pending"),
                    func.sum(case((LeaveRequest.status == "rejected", 1), else_=0)).label("rejected"),
                )
                .select_from(LeaveRequest)
                .join(Employee, Employee.id == LeaveRequest.employee_id)
                .where(*conditions)
            )
        ).one()

        by_type = (
            await self.db.execute(
                select(
                    LeaveRequest.leave_type,
                    func.count(LeaveRequest.id).label("count"),
                    func.coalesce(func.sum(LeaveRequest.total_days), 0).label("total_days"),
                )
                .select_from(LeaveRequest)
                .join(Employee, Employee.id == LeaveRequest.employee_id)
                .where(*conditions)
                .group_by(LeaveRequest.leave_type)
            )
        ).all()

        by_department = (
            await self.db.execute(
                select(
                    Employee.department,
                    func.count(LeaveRequest.id).label("count"),
                    func.coalesce(func.sum(LeaveRequest.total_days), 0).label("total_days"),
                )
                .select_from(LeaveRequest)
                .join(Employee, Employee.id == LeaveRequest.employee_id)
                .where(*conditions)
                .group_by(Employee.department)
            )
        ).all()

        total = counts.total or 0
        approved = int(counts.approved or 0)
        return {
            "summary": {
                "total_leaves": total,
                "approved_leaves": approved,
                "pending_leaves": int(counts.pending or 0),
                "rejected_leaves": int(counts.rejected or 0),
                "approval_rate": percentage(approved, total),
            },
            "leave_types": [
                {"type": row.leave_type, "count": row.count, "total_days": int(row.total_days or 0)}
                for row in by_type
            ],
            "department_leaves": [
                {"department": row.department, "count": row.count, "total_days": int(row.total_days or 0)}
                for row in by_department
            ],
        }

    async def _departments_report(self) -> dict:
        rows = (
            await self.db.execute(
                select(
                    Employee.department,
                    func.count(Employee.id).label("total"),
                    func.sum(case((Employee.status == "active", 1), else_=0)).label("active"),
                    func.avg(Employee.salary).label("average_salary"),
                    func.array_agg(func.distinct(Employee.employment_type)).label("employment_types"),
                )
                .where(*self._employee_filter())
                .group_by(Employee.department)
                .order_by(func.count(Employee.id).desc())
            )
        ).all()

        return {
            "departments": [
                {
                    "name": row.department,
                    "total_employees": row.total,
                    "active_employees": int(row.active or 0),
                    "average_salary": round(float(row.average_salary or 0), 2),
                    "employment_types": sorted(t for t in (row.employment_types or []) if t),
                }
                for row in rows
            ]
        }
