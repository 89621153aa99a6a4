"""ProductService: catalogue entry that invoice lines are priced from."""

import enum
import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import Boolean, DateTime, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from factucr.database import TenantBase


class ItemType(str, enum.Enum):
    PRODUCT = "Product"
    SERVICE = "Service"


class ProductService(TenantBase):
    __tablename__ = "products_services"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    code: Mapped[str] = mapped_column(String(50), unique=True, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    item_type: Mapped[str] = mapped_column(String(10), nullable=False)  # Product | Service
    unit_measure: Mapped[str] = mapped_column(String(20), default="Unid")

    unit_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    # IVA percentage, 0–100
    tax_rate: Mapped[Decimal] = mapped_column(Numeric(5, 2), default=Decimal("13.00"))

    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )
