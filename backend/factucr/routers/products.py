"""Products & services router.

Endpoints:
    GET    /api/products/          List catalogue (search, filters, pagination)
    POST   /api/products/          Create product/service
    GET    /api/products/{id}      Get product/service
    PATCH  /api/products/{id}      Update product/service
    DELETE /api/products/{id}      Soft-delete (deactivate)

Price and tax changes only affect invoices written afterwards; existing
lines keep the values they were computed with.
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from factucr.auth.deps import require_permission
from factucr.database import get_tenant_db
from factucr.middleware.exceptions import ResourceNotFoundError, ValidationError
from factucr.models.public.user import User
from factucr.models.tenant.product_service import ItemType, ProductService
from factucr.schemas.common import PaginatedResponse
from factucr.schemas.product import ProductCreate, ProductOut, ProductUpdate
from factucr.utils.activity import log_activity

router = APIRouter()


async def _get_product(db: AsyncSession, product_id: str) -> ProductService:
    product = await db.get(ProductService, product_id)
    if product is None:
        raise ResourceNotFoundError("Product", product_id)
    return product


async def _ensure_unique_code(db: AsyncSession, code: str, exclude_id: str | None = None) -> None:
    stmt = select(ProductService.id).where(ProductService.code == code)
    if exclude_id:
        stmt = stmt.where(ProductService.id != exclude_id)
    if (await db.execute(stmt)).first():
        raise ValidationError(
            f"Product code {code} already exists",
            field="code",
            error_code="DUPLICATE_RECORD",
        )


@router.get("/", response_model=PaginatedResponse[ProductOut])
async def list_products(
    search: str | None = None,
    item_type: ItemType | None = None,
    is_active: bool | None = None,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_tenant_db),
    _user: User = Depends(require_permission("product.read")),
):
    base_stmt = select(ProductService)
    if search:
        pattern = f"%{search.lower()}%"
        base_stmt = base_stmt.where(
            or_(
                func.lower(ProductService.code).like(pattern),
                func.lower(ProductService.name).like(pattern),
            )
        )
    if item_type:
        base_stmt = base_stmt.where(ProductService.item_type == item_type.value)
    if is_active is not None:
        base_stmt = base_stmt.where(ProductService.is_active == is_active)

    total = await db.scalar(select(func.count()).select_from(base_stmt.subquery())) or 0
    result = await db.execute(base_stmt.order_by(ProductService.code).limit(limit).offset(offset))
    return PaginatedResponse(
        items=[ProductOut.model_validate(p) for p in result.scalars().all()],
        total=total,
        limit=limit,
        offset=offset,
    )


@router.post("/", response_model=ProductOut, status_code=201)
async def create_product(
    body: ProductCreate,
    db: AsyncSession = Depends(get_tenant_db),
    user: User = Depends(require_permission("product.write")),
):
    await _ensure_unique_code(db, body.code)

    data = body.model_dump()
    data["item_type"] = body.item_type.value
    product = ProductService(**data)
    db.add(product)
    await db.flush()

    await log_activity(
        db, user,
        action="created",
        entity_type="product",
        entity_id=product.id,
        entity_code=product.code,
        summary=f"Created {product.item_type.lower()} {product.code}: {product.name}",
    )
    return ProductOut.model_validate(product)


@router.get("/{product_id}", response_model=ProductOut)
async def get_product(
    product_id: str,
    db: AsyncSession = Depends(get_tenant_db),
    _user: User = Depends(require_permission("product.read")),
):
    return ProductOut.model_validate(await _get_product(db, product_id))


@router.patch("/{product_id}", response_model=ProductOut)
async def update_product(
    product_id: str,
    body: ProductUpdate,
    db: AsyncSession = Depends(get_tenant_db),
    user: User = Depends(require_permission("product.write")),
):
    product = await _get_product(db, product_id)

    updates = body.model_dump(exclude_unset=True)
    if updates.get("code"):
        await _ensure_unique_code(db, updates["code"], exclude_id=product.id)
    if updates.get("item_type"):
        updates["item_type"] = updates["item_type"].value
    for key, value in updates.items():
        setattr(product, key, value)
    await db.flush()

    await log_activity(
        db, user,
        action="updated",
        entity_type="product",
        entity_id=product.id,
        entity_code=product.code,
        summary=f"Updated {product.code}",
        details={"fields": sorted(updates)},
    )
    return ProductOut.model_validate(product)


@router.delete("/{product_id}", response_model=ProductOut)
async def deactivate_product(
    product_id: str,
    db: AsyncSession = Depends(get_tenant_db),
    user: User = Depends(require_permission("product.delete")),
):
    """Soft-delete: existing invoice lines keep pointing at the product."""
    product = await _get_product(db, product_id)
    product.is_active = False
    await db.flush()

    await log_activity(
        db, user,
        action="deactivated",
        entity_type="product",
        entity_id=product.id,
        entity_code=product.code,
        summary=f"Deactivated {product.code}",
    )
    return ProductOut.model_validate(product)
