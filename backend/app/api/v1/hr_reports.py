from datetime import date
from typing import Any, Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import Principal, get_db, require_permission
from app.api.responses import success_response
from app.core.rate_limiter import limiter, RateLimits
from app.services.hr.report_service import HRReportService

router = APIRouter()


@router.get("")
@limiter.limit(RateLimits.REPORTS)
async def hr_report(
    request: Request,
    report_type: str = Query("overview", alias="type"),
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    department: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_permission("hr_reports", "read")),
) -> Any:
    """
    HR dashboards: overview, attendance, payroll, performance, leaves, departments.
    """
    service = HRReportService(db, principal.company_id, start_date, end_date, department)
    report = await service.build(report_type)
    return success_response(report, report_type=report_type)
