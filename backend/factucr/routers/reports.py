"""Reports router.

Endpoints:
    GET /api/reports/sales            Issued-invoice sales between two dates
    GET /api/reports/customers        Totals per active customer
    GET /api/reports/products         Totals per product or service
    GET /api/reports/monthly-sales    Twelve months of sales for one year
"""

from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from factucr.auth.deps import require_permission
from factucr.database import get_tenant_db
from factucr.models.public.user import User
from factucr.models.tenant.product_service import ItemType
from factucr.schemas.report import (
    CustomerReportRow,
    MonthlySalesReport,
    ProductReportRow,
    SalesReport,
)
from factucr.services.reports import (
    customer_report,
    monthly_sales,
    product_report,
    sales_report,
)

router = APIRouter()


@router.get("/sales", response_model=SalesReport)
async def get_sales_report(
    start_date: date,
    end_date: date,
    customer_id: str | None = None,
    db: AsyncSession = Depends(get_tenant_db),
    _user: User = Depends(require_permission("reports.read")),
):
    return await sales_report(db, start_date, end_date, customer_id=customer_id)


@router.get("/customers", response_model=list[CustomerReportRow])
async def get_customer_report(
    start_date: date | None = None,
    end_date: date | None = None,
    db: AsyncSession = Depends(get_tenant_db),
    _user: User = Depends(require_permission("reports.read")),
):
    return await customer_report(db, start_date=start_date, end_date=end_date)


@router.get("/products", response_model=list[ProductReportRow])
async def get_product_report(
    start_date: date,
    end_date: date,
    item_type: ItemType | None = Query(None, alias="type"),
    db: AsyncSession = Depends(get_tenant_db),
    _user: User = Depends(require_permission("reports.read")),
):
    return await product_report(db, start_date, end_date, item_type=item_type)


@router.get("/monthly-sales", response_model=MonthlySalesReport)
async def get_monthly_sales(
    year: int = Query(..., ge=2000, le=2100),
    db: AsyncSession = Depends(get_tenant_db),
    _user: User = Depends(require_permission("reports.read")),
):
    return await monthly_sales(db, year)
