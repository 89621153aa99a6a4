"""Sales, customer, product and monthly reports over issued invoices.

Only Issued invoices count as sales; drafts are not yet sales and
cancelled invoices are void. Dates refer to the invoice issue_date.
"""

import calendar
from datetime import date
from decimal import Decimal

from sqlalchemy import and_, extract, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from factucr.middleware.exceptions import ValidationError
from factucr.models.tenant.customer import Customer
from factucr.models.tenant.invoice import Invoice, InvoiceDetail, InvoiceStatus
from factucr.models.tenant.product_service import ItemType, ProductService
from factucr.schemas.report import (
    CustomerReportRow,
    CustomerSales,
    DailySales,
    MonthlySales,
    MonthlySalesReport,
    ProductReportRow,
    SalesReport,
    SalesSummary,
)
from factucr.services.totals import ZERO, money


def _dec(value) -> Decimal:
    return money(Decimal(str(value))) if value is not None else ZERO


def _qty(value) -> Decimal:
    if value is None:
        return Decimal("0.000")
    return Decimal(str(value)).quantize(Decimal("0.001"))


def _check_range(start_date: date | None, end_date: date | None) -> None:
    if start_date and end_date and start_date > end_date:
        raise ValidationError("start_date must be on or before end_date", field="start_date")


# ── Sales ───────────────────────────────────────────────────

async def sales_report(
    db: AsyncSession,
    start_date: date,
    end_date: date,
    customer_id: str | None = None,
) -> SalesReport:
    _check_range(start_date, end_date)

    filters = [
        Invoice.status == InvoiceStatus.ISSUED.value,
        Invoice.issue_date >= start_date,
        Invoice.issue_date <= end_date,
    ]
    if customer_id:
        filters.append(Invoice.customer_id == customer_id)

    totals = (
        await db.execute(
            select(
                func.count(Invoice.id),
                func.sum(Invoice.grand_total),
                func.sum(Invoice.total_tax),
                func.sum(Invoice.total_discount),
                func.count(func.distinct(Invoice.customer_id)),
            ).where(*filters)
        )
    ).one()
    count, amount, tax, discount, customers = totals
    amount = _dec(amount)

    by_customer = await db.execute(
        select(
            Customer.id,
            Customer.name,
            func.count(Invoice.id),
            func.sum(Invoice.grand_total),
        )
        .join(Customer, Customer.id == Invoice.customer_id)
        .where(*filters)
        .group_by(Customer.id, Customer.name)
        .order_by(func.sum(Invoice.grand_total).desc())
    )
    by_day = await db.execute(
        select(
            Invoice.issue_date,
            func.count(Invoice.id),
            func.sum(Invoice.grand_total),
        )
        .where(*filters)
        .group_by(Invoice.issue_date)
        .order_by(Invoice.issue_date)
    )

    return SalesReport(
        start_date=start_date,
        end_date=end_date,
        summary=SalesSummary(
            total_invoices=count or 0,
            total_amount=amount,
            total_tax=_dec(tax),
            total_discount=_dec(discount),
            average_invoice=money(amount / count) if count else ZERO,
            active_customers=customers or 0,
        ),
        by_customer=[
            CustomerSales(
                customer_id=cid,
                customer_name=name,
                invoice_count=n,
                total_amount=_dec(total),
            )
            for cid, name, n, total in by_customer.all()
        ],
        by_day=[
            DailySales(day=day, invoice_count=n, total_amount=_dec(total))
            for day, n, total in by_day.all()
        ],
    )


# ── Customers ───────────────────────────────────────────────

async def customer_report(
    db: AsyncSession,
    start_date: date | None = None,
    end_date: date | None = None,
) -> list[CustomerReportRow]:
    """Issued-invoice totals for every active customer, largest first.

    Customers without sales in the range are listed with zero totals.
    """
    _check_range(start_date, end_date)

    on = [
        Invoice.customer_id == Customer.id,
        Invoice.status == InvoiceStatus.ISSUED.value,
    ]
    if start_date:
        on.append(Invoice.issue_date >= start_date)
    if end_date:
        on.append(Invoice.issue_date <= end_date)

    total = func.coalesce(func.sum(Invoice.grand_total), 0)
    result = await db.execute(
        select(
            Customer.id,
            Customer.name,
            Customer.identification_number,
            func.count(Invoice.id),
            total,
            func.max(Invoice.issue_date),
        )
        .outerjoin(Invoice, and_(*on))
        .where(Customer.is_active.is_(True))
        .group_by(Customer.id, Customer.name, Customer.identification_number)
        .order_by(total.desc(), Customer.name)
    )
    return [
        CustomerReportRow(
            customer_id=cid,
            customer_name=name,
            identification_number=ident,
            total_invoices=n,
            total_amount=_dec(amount),
            last_invoice_date=last,
        )
        for cid, name, ident, n, amount, last in result.all()
    ]


# ── Products and services ───────────────────────────────────

async def product_report(
    db: AsyncSession,
    start_date: date,
    end_date: date,
    item_type: ItemType | None = None,
) -> list[ProductReportRow]:
    _check_range(start_date, end_date)

    filters = [
        Invoice.status == InvoiceStatus.ISSUED.value,
        Invoice.issue_date >= start_date,
        Invoice.issue_date <= end_date,
    ]
    if item_type:
        filters.append(ProductService.item_type == item_type.value)

    amount = func.sum(InvoiceDetail.item_total)
    result = await db.execute(
        select(
            ProductService.id,
            ProductService.code,
            ProductService.name,
            ProductService.item_type,
            ProductService.unit_measure,
            func.sum(InvoiceDetail.quantity),
            func.sum(InvoiceDetail.item_subtotal),
            func.sum(InvoiceDetail.item_tax),
            amount,
            func.count(func.distinct(Invoice.id)),
        )
        .select_from(InvoiceDetail)
        .join(ProductService, ProductService.id == InvoiceDetail.product_id)
        .join(Invoice, Invoice.id == InvoiceDetail.invoice_id)
        .where(*filters)
        .group_by(
            ProductService.id,
            ProductService.code,
            ProductService.name,
            ProductService.item_type,
            ProductService.unit_measure,
        )
        .order_by(amount.desc(), ProductService.code)
    )
    return [
        ProductReportRow(
            product_id=pid,
            code=code,
            name=name,
            item_type=kind,
            unit_measure=unit,
            total_quantity=_qty(qty),
            total_subtotal=_dec(subtotal),
            total_tax=_dec(tax),
            total_amount=_dec(total),
            invoice_count=n,
        )
        for pid, code, name, kind, unit, qty, subtotal, tax, total, n in result.all()
    ]


# ── Monthly ─────────────────────────────────────────────────

async def monthly_sales(db: AsyncSession, year: int) -> MonthlySalesReport:
    """Issued sales per calendar month; months without sales are zero."""
    month = extract("month", Invoice.issue_date)
    result = await db.execute(
        select(
            month,
            func.sum(Invoice.grand_total),
            func.count(Invoice.id),
            func.sum(Invoice.total_tax),
            func.sum(Invoice.total_discount),
        )
        .where(
            Invoice.status == InvoiceStatus.ISSUED.value,
            Invoice.issue_date >= date(year, 1, 1),
            Invoice.issue_date <= date(year, 12, 31),
        )
        .group_by(month)
    )
    rows = {int(m): (sales, n, tax, discount) for m, sales, n, tax, discount in result.all()}

    months = []
    for number in range(1, 13):
        sales, n, tax, discount = rows.get(number, (None, 0, None, None))
        months.append(
            MonthlySales(
                month=number,
                month_name=calendar.month_name[number],
                total_sales=_dec(sales),
                invoice_count=n,
                total_tax=_dec(tax),
                total_discount=_dec(discount),
            )
        )
    return MonthlySalesReport(year=year, months=months)
