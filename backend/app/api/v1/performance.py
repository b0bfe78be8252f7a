from datetime import datetime
from typing import Any, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from app.api.deps import Principal, get_db, require_permission
from app.api.queries import apply_updates, get_owned, paginate
from app.api.responses import employee_summary, pagination_meta, serialize, success_response
from app.core.errors import conflict_error, validation_error
from app.models.employee import Employee
from app.models.performance_review import PerformanceReview
from app.schemas.hr import PerformanceReviewCreate, PerformanceReviewUpdate

router = APIRouter()


def _review_dict(review: PerformanceReview, employee: Optional[Employee] = None) -> dict:
    return serialize(review, employee=employee_summary(employee or review.employee))


@router.get("")
async def list_reviews(
    employee_id: Optional[int] = None,
    status: Optional[str] = None,
    review_type: Optional[str] = None,
    page: int = 1,
    limit: int = 20,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_permission("performance", "read")),
) -> Any:
    query = select(PerformanceReview).where(PerformanceReview.company_id == principal.company_id)
    if employee_id is not None:
        query = query.where(PerformanceReview.employee_id == employee_id)
    if status:
        query = query.where(PerformanceReview.status == status)
    if review_type:
        query = query.where(PerformanceReview.review_type == review_type)
    query = query.order_by(PerformanceReview.review_period_end.desc())

    reviews, total = await paginate(db, query, page, limit)
    return success_response(
        [_review_dict(r) for r in reviews],
        pagination=pagination_meta(page, limit, total),
    )


@router.get("/{review_id}")
async def read_review(
    review_id: int,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_permission("performance", "read")),
) -> Any:
    review = await get_owned(db, PerformanceReview, review_id, principal.company_id, "Performance review")
    return success_response(_review_dict(review))


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_review(
    payload: PerformanceReviewCreate,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_permission("performance", "create")),
) -> Any:
    if payload.review_period_end < payload.review_period_start:
        raise validation_error("Review period end must not be before its start")
    employee = await get_owned(db, Employee, payload.employee_id, principal.company_id, "Employee")

    review = PerformanceReview(
        **payload.model_dump(exclude={"scores"}),
        scores=[score.model_dump() for score in payload.scores],
        company_id=principal.company_id,
        reviewed_by=principal.user_id,
        employee_acknowledged=False,
    )
    db.add(review)
    await db.commit()
    await db.refresh(review)
    return success_response(_review_dict(review, employee), message="Performance review created successfully")


@router.put("/{review_id}")
async def update_review(
    review_id: int,
    payload: PerformanceReviewUpdate,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_permission("performance", "update")),
) -> Any:
    review = await get_owned(db, PerformanceReview, review_id, principal.company_id, "Performance review")
    if review.status == "completed":
        raise conflict_error("Completed reviews cannot be edited")
    changes = apply_updates(review, payload, exclude=("scores",))
    if payload.scores is not None:
        review.scores = [score.model_dump() for score in payload.scores]
    if changes.get("status") == "completed":
        review.completed_at = datetime.utcnow()
    await db.commit()
    await db.refresh(review)
    return success_response(_review_dict(review), message="Performance review updated successfully")


@router.post("/{review_id}/complete")
async def complete_review(
    review_id: int,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_permission("performance", "update")),
) -> Any:
    review = await get_owned(db, PerformanceReview, review_id, principal.company_id, "Performance review")
    if review.status in ("completed", "cancelled"):
        raise conflict_error(f"Performance review is already {review.status}")
    review.status = "completed"
    review.completed_at = datetime.utcnow()
    await db.commit()
    await db.refresh(review)
    return success_response(_review_dict(review), message="Performance review completed")


@router.post("/{review_id}/acknowledge")
async def acknowledge_review(
    review_id: int,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_permission("performance", "update")),
) -> Any:
    """
    Record that the employee has seen a completed review.
    """
    review = await get_owned(db, PerformanceReview, review_id, principal.company_id, "Performance review")
    if review.status != "completed":
        raise validation_error("Only completed reviews can be acknowledged")
    if review.employee_acknowledged:
        raise conflict_error("Performance review has already been acknowledged")
    review.employee_acknowledged = True
    review.employee_acknowledged_at = datetime.utcnow()
    await db.commit()
    await db.refresh(review)
    return success_response(_review_dict(review), message="Performance review acknowledged")
