"""Pydantic schemas for the sales, customer, product and monthly reports."""

from datetime import date
from decimal import Decimal

from pydantic import BaseModel


class SalesSummary(BaseModel):
    total_invoices: int
    total_amount: Decimal
    total_tax: Decimal
    total_discount: Decimal
    average_invoice: Decimal
    active_customers: int


class CustomerSales(BaseModel):
    customer_id: str
    customer_name: str
    invoice_count: int
    total_amount: Decimal


class DailySales(BaseModel):
    day: date
    invoice_count: int
    total_amount: Decimal


class SalesReport(BaseModel):
    start_date: date
    end_date: date
    summary: SalesSummary
    by_customer: list[CustomerSales]
    by_day: list[DailySales]


class CustomerReportRow(BaseModel):
    customer_id: str
    customer_name: str
    identification_number: str
    total_invoices: int
    total_amount: Decimal
    last_invoice_date: date | None


class ProductReportRow(BaseModel):
    product_id: str
    code: str
    name: str
    item_type: str
    unit_measure: str
    total_quantity: Decimal
    total_subtotal: Decimal
    total_tax: Decimal
    total_amount: Decimal
    invoice_count: int


class MonthlySales(BaseModel):
    month: int
    month_name: str
    total_sales: Decimal
    invoice_count: int
    total_tax: Decimal
    total_discount: Decimal


class MonthlySalesReport(BaseModel):
    year: int
    months: list[MonthlySales]
