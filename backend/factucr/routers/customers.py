"""Customer router.

Endpoints:
    GET    /api/customers/          List customers (search, filters, pagination)
    POST   /api/customers/          Create customer
    GET    /api/customers/{id}      Get customer
    PATCH  /api/customers/{id}      Update customer
    DELETE /api/customers/{id}      Soft-delete (deactivate) customer
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from factucr.auth.deps import require_permission
from factucr.database import get_tenant_db
from factucr.middleware.exceptions import ResourceNotFoundError, ValidationError
from factucr.models.public.user import User
from factucr.models.tenant.customer import Customer, IdentificationType
from factucr.schemas.common import PaginatedResponse
from factucr.schemas.customer import CustomerCreate, CustomerOut, CustomerUpdate
from factucr.utils.activity import log_activity

router = APIRouter()


async def _get_customer(db: AsyncSession, customer_id: str) -> Customer:
    customer = await db.get(Customer, customer_id)
    if customer is None:
        raise ResourceNotFoundError("Customer", customer_id)
    return customer


async def _ensure_unique_identification(
    db: AsyncSession, number: str, exclude_id: str | None = None
) -> None:
    stmt = select(Customer.id).where(Customer.identification_number == number)
    if exclude_id:
        stmt = stmt.where(Customer.id != exclude_id)
    if (await db.execute(stmt)).first():
        raise ValidationError(
            f"A customer with identification {number} already exists",
            field="identification_number",
            error_code="DUPLICATE_RECORD",
        )


@router.get("/", response_model=PaginatedResponse[CustomerOut])
async def list_customers(
    search: str | None = None,
    is_active: bool | None = None,
    identification_type: IdentificationType | None = None,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_tenant_db),
    _user: User = Depends(require_permission("customer.read")),
):
    """List customers ordered by name."""
    base_stmt = select(Customer)
    if search:
        pattern = f"%{search.lower()}%"
        base_stmt = base_stmt.where(
            or_(
                func.lower(Customer.name).like(pattern),
                func.lower(Customer.commercial_name).like(pattern),
                Customer.identification_number.like(f"%{search}%"),
                func.lower(Customer.email).like(pattern),
            )
        )
    if is_active is not None:
        base_stmt = base_stmt.where(Customer.is_active == is_active)
    if identification_type:
        base_stmt = base_stmt.where(Customer.identification_type == identification_type.value)

    total = await db.scalar(select(func.count()).select_from(base_stmt.subquery())) or 0
    result = await db.execute(base_stmt.order_by(Customer.name).limit(limit).offset(offset))
    return PaginatedResponse(
        items=[CustomerOut.model_validate(c) for c in result.scalars().all()],
        total=total,
        limit=limit,
        offset=offset,
    )


@router.post("/", response_model=CustomerOut, status_code=201)
async def create_customer(
    body: CustomerCreate,
    db: AsyncSession = Depends(get_tenant_db),
    user: User = Depends(require_permission("customer.write")),
):
    await _ensure_unique_identification(db, body.identification_number)

    data = body.model_dump()
    data["identification_type"] = body.identification_type.value
    customer = Customer(**data)
    db.add(customer)
    await db.flush()

    await log_activity(
        db, user,
        action="created",
        entity_type="customer",
        entity_id=customer.id,
        entity_code=customer.identification_number,
        summary=f"Created customer {customer.name}",
    )
    return CustomerOut.model_validate(customer)


@router.get("/{customer_id}", response_model=CustomerOut)
async def get_customer(
    customer_id: str,
    db: AsyncSession = Depends(get_tenant_db),
    _user: User = Depends(require_permission("customer.read")),
):
    return CustomerOut.model_validate(await _get_customer(db, customer_id))


@router.patch("/{customer_id}", response_model=CustomerOut)
async def update_customer(
    customer_id: str,
    body: CustomerUpdate,
    db: AsyncSession = Depends(get_tenant_db),
    user: User = Depends(require_permission("customer.write")),
):
    customer = await _get_customer(db, customer_id)

    updates = body.model_dump(exclude_unset=True)
    if updates.get("identification_number"):
        await _ensure_unique_identification(db, updates["identification_number"], exclude_id=customer.id)
    if updates.get("identification_type"):
        updates["identification_type"] = updates["identification_type"].value
    for key, value in updates.items():
        setattr(customer, key, value)
    await db.flush()

    await log_activity(
        db, user,
        action="updated",
        entity_type="customer",
        entity_id=customer.id,
        entity_code=customer.identification_number,
        summary=f"Updated customer {customer.name}",
        details={"fields": sorted(updates)},
    )
    return CustomerOut.model_validate(customer)


@router.delete("/{customer_id}", response_model=CustomerOut)
async def deactivate_customer(
    customer_id: str,
    db: AsyncSession = Depends(get_tenant_db),
    user: User = Depends(require_permission("customer.delete")),
):
    """Soft-delete: customers stay referenced by their invoices."""
    customer = await _get_customer(db, customer_id)
    customer.is_active = False
    await db.flush()

    await log_activity(
        db, user,
        action="deactivated",
        entity_type="customer",
        entity_id=customer.id,
        entity_code=customer.identification_number,
        summary=f"Deactivated customer {customer.name}",
    )
    return CustomerOut.model_validate(customer)
