"""Customer: the receiver ("Receptor") of an invoice."""

import enum
import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from factucr.database import TenantBase


class IdentificationType(str, enum.Enum):
    INDIVIDUAL = "Individual"  # cédula física
    BUSINESS = "Business"      # cédula jurídica


class Customer(TenantBase):
    __tablename__ = "customers"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    commercial_name: Mapped[str | None] = mapped_column(String(200))

    # Individual | Business
    identification_type: Mapped[str] = mapped_column(String(20), nullable=False)
    identification_number: Mapped[str] = mapped_column(
        String(20), unique=True, nullable=False, index=True
    )

    # Contact
    phone1: Mapped[str | None] = mapped_column(String(20))
    phone2: Mapped[str | None] = mapped_column(String(20))
    email: Mapped[str | None] = mapped_column(String(160))

    # Location (Hacienda codes)
    province: Mapped[str | None] = mapped_column(String(1))
    canton: Mapped[str | None] = mapped_column(String(2))
    district: Mapped[str | None] = mapped_column(String(2))
    neighborhood: Mapped[str | None] = mapped_column(String(2))
    address: Mapped[str | None] = mapped_column(Text)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )
