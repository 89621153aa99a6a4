"""Company profile: the issuer ("Emisor") of every electronic invoice.

One row per enterprise. Holds the legal identity and location that
Hacienda requires on the FacturaElectronica document and in the Clave.
"""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from factucr.database import TenantBase


class CompanyProfile(TenantBase):
    __tablename__ = "company_profile"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    # Legal identity
    business_name: Mapped[str] = mapped_column(String(200), nullable=False)
    commercial_name: Mapped[str | None] = mapped_column(String(200))
    legal_id: Mapped[str] = mapped_column(String(20), nullable=False)  # cédula jurídica, e.g. 3-101-123456
    activity_code: Mapped[str] = mapped_column(String(12), nullable=False)

    # Location (Hacienda codes)
    province: Mapped[str] = mapped_column(String(1), default="1")
    canton: Mapped[str] = mapped_column(String(2), default="01")
    district: Mapped[str] = mapped_column(String(2), default="01")
    neighborhood: Mapped[str | None] = mapped_column(String(2))
    address: Mapped[str] = mapped_column(Text, nullable=False)

    # Contact
    phone: Mapped[str | None] = mapped_column(String(20))
    email: Mapped[str | None] = mapped_column(String(160))

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )
