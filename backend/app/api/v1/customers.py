from typing import Any, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from app.api.deps import Principal, get_db, require_permission
from app.api.queries import apply_updates, get_owned, paginate, search_filter
from app.api.responses import pagination_meta, serialize, success_response
from app.models.customer import Customer
from app.schemas.crm import CustomerCreate, CustomerUpdate

router = APIRouter()


@router.get("")
async def list_customers(
    search: Optional[str] = None,
    category: Optional[str] = None,
    customer_type: Optional[str] = None,
    status: Optional[str] = None,
    territory: Optional[str] = None,
    page: int = 1,
    limit: int = 20,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_permission("customers", "read")),
) -> Any:
    query = select(Customer).where(Customer.company_id == principal.company_id)
    if category:
        query = query.where(Customer.category == category)
    if customer_type:
        query = query.where(Customer.customer_type == customer_type)
    if status:
        query = query.where(Customer.status == status)
    if territory:
        query = query.where(Customer.territory == territory)
    matches = search_filter(search, (Customer.company_name, Customer.contact_person, Customer.email))
    if matches is not None:
        query = query.where(matches)
    query = query.order_by(Customer.company_name)

    customers, total = await paginate(db, query, page, limit)
    return success_response(
        [serialize(c) for c in customers],
        pagination=pagination_meta(page, limit, total),
    )


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_customer(
    payload: CustomerCreate,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_permission("customers", "create")),
) -> Any:
    customer = Customer(**payload.model_dump(), company_id=principal.company_id, current_balance=0)
    if customer.assigned_to is None:
        customer.assigned_to = principal.user_id
    db.add(customer)
    await db.commit()
    await db.refresh(customer)
    return success_response(serialize(customer), message="Customer created successfully")


@router.get("/{customer_id}")
async def read_customer(
    customer_id: int,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_permission("customers", "read")),
) -> Any:
    customer = await get_owned(db, Customer, customer_id, principal.company_id, "Customer")
    return success_response(serialize(customer))


@router.put("/{customer_id}")
async def update_customer(
    customer_id: int,
    payload: CustomerUpdate,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_permission("customers", "update")),
) -> Any:
    customer = await get_owned(db, Customer, customer_id, principal.company_id, "Customer")
    apply_updates(customer, payload)
    await db.commit()
    await db.refresh(customer)
    return success_response(serialize(customer), message="Customer updated successfully")
