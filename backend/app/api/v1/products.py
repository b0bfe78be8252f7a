from typing import Any, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from app.api.deps import Principal, get_db, require_permission
from app.api.queries import apply_updates, get_owned, paginate, search_filter
from app.api.responses import pagination_meta, serialize, success_response
from app.core.errors import conflict_error
from app.models.product import Product
from app.schemas.crm import ProductCreate, ProductUpdate

router = APIRouter()


@router.get("")
async def list_products(
    category: Optional[str] = None,
    status: Optional[str] = None,
    search: Optional[str] = None,
    page: int = 1,
    limit: int = 20,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_permission("products", "read")),
) -> Any:
    query = select(Product).where(Product.company_id == principal.company_id)
    if category:
        query = query.where(Product.category == category)
    if status:
        query = query.where(Product.status == status)
    matches = search_filter(search, (Product.name, Product.sku, Product.brand))
    if matches is not None:
        query = query.where(matches)
    query = query.order_by(Product.name)

    products, total = await paginate(db, query, page, limit)
    return success_response(
        [serialize(p) for p in products],
        pagination=pagination_meta(page, limit, total),
    )


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_product(
    payload: ProductCreate,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_permission("products", "create")),
) -> Any:
    existing = await db.execute(
        select(Product.id).where(Product.company_id == principal.company_id, Product.sku == payload.sku)
    )
    if existing.scalar_one_or_none() is not None:
        raise conflict_error("SKU already exists", {"sku": payload.sku})

    product = Product(**payload.model_dump(), company_id=principal.company_id)
    product.recompute_margin()
    db.add(product)
    await db.commit()
    await db.refresh(product)
    return success_response(serialize(product), message="Product created successfully")


@router.get("/{product_id}")
async def read_product(
    product_id: int,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_permission("products", "read")),
) -> Any:
    product = await get_owned(db, Product, product_id, principal.company_id, "Product")
    return success_response(serialize(product))


@router.put("/{product_id}")
async def update_product(
    product_id: int,
    payload: ProductUpdate,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_permission("products", "update")),
) -> Any:
    product = await get_owned(db, Product, product_id, principal.company_id, "Product")
    changes = apply_updates(product, payload)
    if "price" in changes or "cost" in changes:
        product.recompute_margin()
    await db.commit()
    await db.refresh(product)
    return success_response(serialize(product), message="Product updated successfully")
