"""Invoice + InvoiceDetail: the billing document and its lines.

Lifecycle:  Draft → Issued → Cancelled   (Draft → Cancelled also allowed)

Lines are only written while the invoice is Draft and always as a
complete set; the header totals are the sums of the rounded line values
(see services/totals.py).
"""

import enum
import uuid
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import Date, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from factucr.database import TenantBase


class InvoiceStatus(str, enum.Enum):
    DRAFT = "Draft"
    ISSUED = "Issued"
    CANCELLED = "Cancelled"


class PaymentMethod(str, enum.Enum):
    CASH = "Cash"
    CARD = "Card"
    CHECK = "Check"
    TRANSFER = "Transfer"
    OTHER = "Other"


class SaleCondition(str, enum.Enum):
    CASH = "Cash"
    CREDIT = "Credit"


class Invoice(TenantBase):
    __tablename__ = "invoices"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    # Unique constraint is the backstop against duplicate allocation
    invoice_number: Mapped[str] = mapped_column(
        String(30), unique=True, nullable=False, index=True
    )

    customer_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("customers.id"), nullable=False, index=True
    )

    # ── Status ───────────────────────────────────────────────
    # Draft | Issued | Cancelled
    status: Mapped[str] = mapped_column(
        String(20), default=InvoiceStatus.DRAFT.value, nullable=False, index=True
    )
    cancellation_reason: Mapped[str | None] = mapped_column(Text)

    # ── Dates ────────────────────────────────────────────────
    issue_date: Mapped[date | None] = mapped_column(Date, index=True)
    due_date: Mapped[date | None] = mapped_column(Date)
    issued_at: Mapped[datetime | None] = mapped_column(DateTime)
    cancelled_at: Mapped[datetime | None] = mapped_column(DateTime)

    # ── Terms ────────────────────────────────────────────────
    payment_method: Mapped[str] = mapped_column(String(20), nullable=False)
    sale_condition: Mapped[str] = mapped_column(String(10), nullable=False)
    credit_days: Mapped[int] = mapped_column(Integer, default=0)
    observations: Mapped[str | None] = mapped_column(Text)

    # ── Totals (sums of the line values) ─────────────────────
    subtotal: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0.00"))
    total_discount: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0.00"))
    total_tax: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0.00"))
    grand_total: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0.00"))

    # 8-digit code reserved at issue time; part of the Clave
    security_code: Mapped[str | None] = mapped_column(String(8))

    # ── Metadata ─────────────────────────────────────────────
    created_by: Mapped[str | None] = mapped_column(String(36))  # user_id
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, index=True
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    # ── Relationships ────────────────────────────────────────
    customer = relationship("Customer", lazy="selectin")
    details = relationship(
        "InvoiceDetail",
        back_populates="invoice",
        cascade="all, delete-orphan",
        order_by="InvoiceDetail.line_number",
        lazy="selectin",
    )


class InvoiceDetail(TenantBase):
    __tablename__ = "invoice_details"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    invoice_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False, index=True
    )
    line_number: Mapped[int] = mapped_column(Integer, nullable=False)
    product_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("products_services.id"), nullable=False
    )

    quantity: Mapped[Decimal] = mapped_column(Numeric(10, 3), nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    # Product tax rate at the time the line was written
    tax_rate: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False)

    item_discount: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0.00"))
    item_subtotal: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    item_tax: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    item_total: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)

    invoice = relationship("Invoice", back_populates="details")
    product = relationship("ProductService", lazy="selectin")
