"""Enterprise: one invoicing tenant (a Costa Rican business).

Lives in the public schema. `tenant_schema` names the PostgreSQL schema
holding the enterprise's customers, products and invoices; it is derived
from the id by `tenancy.schema_name_for()` and is what access tokens
carry in their `tenant_schema` claim. The issuer data printed on
invoices is kept per tenant in `company_profile`, not here.
"""

import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from factucr.database import PublicBase


class Enterprise(PublicBase):
    __tablename__ = "enterprises"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    # ISO 3166-1 alpha-2; the electronic invoice export targets CR
    country: Mapped[str] = mapped_column(String(2), nullable=False, default="CR")
    tenant_schema: Mapped[str] = mapped_column(
        String(50), unique=True, nullable=False, index=True
    )
    # Deactivation never drops the schema; issued invoices must be kept
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    users = relationship("User", back_populates="enterprise")

    def __repr__(self) -> str:
        return f"<Enterprise {self.name!r} schema={self.tenant_schema}>"
