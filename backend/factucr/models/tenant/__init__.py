"""Tenant-schema models (duplicated into every tenant_xxx schema).

These models use TenantBase, so their tables are created per-tenant
and never in the public schema.
"""

# ── Master data ──────────────────────────────────────────────
from factucr.models.tenant.company_profile import CompanyProfile
from factucr.models.tenant.customer import Customer, IdentificationType
from factucr.models.tenant.product_service import ProductService, ItemType

# ── Invoicing ────────────────────────────────────────────────
from factucr.models.tenant.invoice import (
    Invoice, InvoiceDetail, InvoiceStatus, PaymentMethod, SaleCondition,
)
from factucr.models.tenant.invoice_sequence import InvoiceSequence

# ── Audit ────────────────────────────────────────────────────
from factucr.models.tenant.activity_log import ActivityLog

__all__ = [
    # Master data
    "CompanyProfile", "Customer", "IdentificationType", "ProductService", "ItemType",
    # Invoicing
    "Invoice", "InvoiceDetail", "InvoiceStatus", "PaymentMethod", "SaleCondition",
    "InvoiceSequence",
    # Audit
    "ActivityLog",
]
