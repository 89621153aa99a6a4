"""Aggregate model imports for Alembic auto-detection."""

# Public schema
from factucr.models.public.enterprise import Enterprise  # noqa: F401
from factucr.models.public.user import User, UserRole  # noqa: F401

# Tenant schema: master data
from factucr.models.tenant.company_profile import CompanyProfile  # noqa: F401
from factucr.models.tenant.customer import Customer  # noqa: F401
from factucr.models.tenant.product_service import ProductService  # noqa: F401

# Tenant schema: invoicing
from factucr.models.tenant.invoice import Invoice, InvoiceDetail  # noqa: F401
from factucr.models.tenant.invoice_sequence import InvoiceSequence  # noqa: F401

# Tenant schema: audit
from factucr.models.tenant.activity_log import ActivityLog  # noqa: F401
