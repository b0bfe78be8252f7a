from typing import Any

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import Principal, get_db, require_permission
from app.api.responses import success_response
from app.core.rate_limiter import limiter, RateLimits
from app.services.crm.report_service import SalesReportService

router = APIRouter()


@router.get("/sales-funnel")
@limiter.limit(RateLimits.REPORTS)
async def sales_funnel(
    request: Request,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_permission("reports", "read")),
) -> Any:
    return success_response(await SalesReportService(db, principal.company_id).sales_funnel())


@router.get("/pipeline-value")
@limiter.limit(RateLimits.REPORTS)
async def pipeline_value(
    request: Request,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_permission("reports", "read")),
) -> Any:
    return success_response(await SalesReportService(db, principal.company_id).pipeline_value())


@router.get("/sales-performance")
@limiter.limit(RateLimits.REPORTS)
async def sales_performance(
    request: Request,
    time_range: str = "30d",
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_permission("reports", "read")),
) -> Any:
    report = await SalesReportService(db, principal.company_id).sales_performance(time_range)
    return success_response(report, time_range=time_range)


@router.get("/financial")
@limiter.limit(RateLimits.REPORTS)
async def financial_report(
    request: Request,
    time_range: str = "30d",
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_permission("reports", "read")),
) -> Any:
    """
    Payment summary, overdue accounts, revenue by customer category and
    monthly payment trends for ``time_range`` (7d, 30d, 90d or 1y).
    """
    report = await SalesReportService(db, principal.company_id).financial(time_range)
    return success_response(report, time_range=time_range)
