"""Pydantic schemas for invoices and their lines."""

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field, model_validator

from factucr.models.tenant.invoice import InvoiceStatus, PaymentMethod, SaleCondition


# ── Input ────────────────────────────────────────────────────

class InvoiceLineIn(BaseModel):
    product_id: str
    quantity: Decimal = Field(..., gt=0, max_digits=10, decimal_places=3)
    # Defaults to the catalogue price of the product
    unit_price: Decimal | None = Field(None, ge=0, max_digits=10, decimal_places=2)
    item_discount: Decimal = Field(Decimal("0"), ge=0, max_digits=12, decimal_places=2)


class InvoiceCreate(BaseModel):
    """Header + complete line set. Status is never taken from the client."""
    customer_id: str
    issue_date: date | None = None
    due_date: date | None = None
    payment_method: PaymentMethod
    sale_condition: SaleCondition
    credit_days: int = Field(0, ge=0)
    observations: str | None = None
    details: list[InvoiceLineIn] = Field(..., min_length=1)

    @model_validator(mode="after")
    def _due_after_issue(self):
        if self.issue_date and self.due_date and self.due_date < self.issue_date:
            raise ValueError("due_date must be on or after issue_date")
        return self


class InvoiceUpdate(InvoiceCreate):
    """Replaces the header and every line of a Draft invoice."""


class InvoiceCancel(BaseModel):
    reason: str | None = Field(None, max_length=1000)


# ── Output ───────────────────────────────────────────────────

class InvoiceLineOut(BaseModel):
    id: str
    line_number: int
    product_id: str
    product_code: str | None = None
    product_name: str | None = None
    quantity: Decimal
    unit_price: Decimal
    tax_rate: Decimal
    item_discount: Decimal
    item_subtotal: Decimal
    item_tax: Decimal
    item_total: Decimal


class InvoiceSummary(BaseModel):
    id: str
    invoice_number: str
    customer_id: str
    customer_name: str | None = None
    status: InvoiceStatus
    issue_date: date | None
    due_date: date | None
    grand_total: Decimal
    created_at: datetime


class InvoiceOut(InvoiceSummary):
    payment_method: str
    sale_condition: str
    credit_days: int
    observations: str | None
    subtotal: Decimal
    total_discount: Decimal
    total_tax: Decimal
    cancellation_reason: str | None
    issued_at: datetime | None
    cancelled_at: datetime | None
    created_by: str | None
    updated_at: datetime
    details: list[InvoiceLineOut] = []
