"""Initial schema: public (enterprises, users) or tenant (invoicing) tables.

Revision ID: 0001
Revises: (none)
Create Date: 2026-10-19

Run with:
    # Public schema first (enterprises, users):
    alembic upgrade head

    # Tenant schema (all invoicing tables):
    alembic -x schema=tenant -x tenant_schema=tenant_XXXXX upgrade head

    # Or for all tenants at once:
    python -m factucr.cli migrate-tenants
"""

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None

from alembic import context, op
import sqlalchemy as sa


def _is_tenant() -> bool:
    return context.get_x_argument(as_dictionary=True).get("schema") == "tenant"


def upgrade() -> None:
    if _is_tenant():
        _upgrade_tenant()
    else:
        _upgrade_public()


def downgrade() -> None:
    if _is_tenant():
        for table in (
            "activity_logs", "invoice_details", "invoices", "invoice_sequences",
            "products_services", "customers", "company_profile",
        ):
            op.drop_table(table)
    else:
        op.drop_table("users")
        op.drop_table("enterprises")


# ── Public schema ────────────────────────────────────────────

def _upgrade_public() -> None:
    op.create_table(
        "enterprises",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("country", sa.String(2), nullable=False, server_default="CR"),
        sa.Column("tenant_schema", sa.String(50), nullable=False),
        sa.Column("is_active", sa.Boolean(), server_default="true"),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
    )
    op.create_index("ix_enterprises_tenant_schema", "enterprises", ["tenant_schema"], unique=True)

    op.create_table(
        "users",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("full_name", sa.String(255), nullable=False),
        sa.Column(
            "role",
            sa.Enum("ADMINISTRATOR", "BILLING_CLERK", "ACCOUNTANT", name="userrole"),
            server_default="BILLING_CLERK",
        ),
        sa.Column("is_active", sa.Boolean(), server_default="true"),
        sa.Column("enterprise_id", sa.String(36), sa.ForeignKey("enterprises.id"), nullable=True),
        sa.Column("custom_permissions", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now()),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)


# ── Tenant schema ────────────────────────────────────────────

def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now()),
    ]


def _upgrade_tenant() -> None:
    op.create_table(
        "company_profile",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("business_name", sa.String(200), nullable=False),
        sa.Column("commercial_name", sa.String(200), nullable=True),
        sa.Column("legal_id", sa.String(20), nullable=False),
        sa.Column("activity_code", sa.String(12), nullable=False),
        sa.Column("province", sa.String(1), server_default="1"),
        sa.Column("canton", sa.String(2), server_default="01"),
        sa.Column("district", sa.String(2), server_default="01"),
        sa.Column("neighborhood", sa.String(2), nullable=True),
        sa.Column("address", sa.Text(), nullable=False),
        sa.Column("phone", sa.String(20), nullable=True),
        sa.Column("email", sa.String(160), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        "customers",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("commercial_name", sa.String(200), nullable=True),
        sa.Column("identification_type", sa.String(20), nullable=False),
        sa.Column("identification_number", sa.String(20), nullable=False),
        sa.Column("phone1", sa.String(20), nullable=True),
        sa.Column("phone2", sa.String(20), nullable=True),
        sa.Column("email", sa.String(160), nullable=True),
        sa.Column("province", sa.String(1), nullable=True),
        sa.Column("canton", sa.String(2), nullable=True),
        sa.Column("district", sa.String(2), nullable=True),
        sa.Column("neighborhood", sa.String(2), nullable=True),
        sa.Column("address", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), server_default="true"),
        *_timestamps(),
    )
    op.create_index("ix_customers_name", "customers", ["name"])
    op.create_index(
        "ix_customers_identification_number", "customers", ["identification_number"], unique=True
    )

    op.create_table(
        "products_services",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("code", sa.String(50), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("item_type", sa.String(10), nullable=False),
        sa.Column("unit_measure", sa.String(20), server_default="Unid"),
        sa.Column("unit_price", sa.Numeric(10, 2), nullable=False),
        sa.Column("tax_rate", sa.Numeric(5, 2), server_default="13.00"),
        sa.Column("is_active", sa.Boolean(), server_default="true"),
        *_timestamps(),
    )
    op.create_index("ix_products_services_code", "products_services", ["code"], unique=True)

    op.create_table(
        "invoice_sequences",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("prefix", sa.String(10), nullable=False, unique=True),
        sa.Column("current_number", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now()),
    )

    op.create_table(
        "invoices",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("invoice_number", sa.String(30), nullable=False),
        sa.Column("customer_id", sa.String(36), sa.ForeignKey("customers.id"), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="Draft"),
        sa.Column("cancellation_reason", sa.Text(), nullable=True),
        sa.Column("issue_date", sa.Date(), nullable=True),
        sa.Column("due_date", sa.Date(), nullable=True),
        sa.Column("issued_at", sa.DateTime(), nullable=True),
        sa.Column("cancelled_at", sa.DateTime(), nullable=True),
        sa.Column("payment_method", sa.String(20), nullable=False),
        sa.Column("sale_condition", sa.String(10), nullable=False),
        sa.Column("credit_days", sa.Integer(), server_default="0"),
        sa.Column("observations", sa.Text(), nullable=True),
        sa.Column("subtotal", sa.Numeric(12, 2), server_default="0"),
        sa.Column("total_discount", sa.Numeric(12, 2), server_default="0"),
        sa.Column("total_tax", sa.Numeric(12, 2), server_default="0"),
        sa.Column("grand_total", sa.Numeric(12, 2), server_default="0"),
        sa.Column("security_code", sa.String(8), nullable=True),
        sa.Column("created_by", sa.String(36), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_invoices_invoice_number", "invoices", ["invoice_number"], unique=True)
    op.create_index("ix_invoices_customer_id", "invoices", ["customer_id"])
    op.create_index("ix_invoices_status", "invoices", ["status"])
    op.create_index("ix_invoices_issue_date", "invoices", ["issue_date"])
    op.create_index("ix_invoices_created_at", "invoices", ["created_at"])

    op.create_table(
        "invoice_details",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "invoice_id", sa.String(36),
            sa.ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("line_number", sa.Integer(), nullable=False),
        sa.Column("product_id", sa.String(36), sa.ForeignKey("products_services.id"), nullable=False),
        sa.Column("quantity", sa.Numeric(10, 3), nullable=False),
        sa.Column("unit_price", sa.Numeric(10, 2), nullable=False),
        sa.Column("tax_rate", sa.Numeric(5, 2), nullable=False),
        sa.Column("item_discount", sa.Numeric(12, 2), server_default="0"),
        sa.Column("item_subtotal", sa.Numeric(12, 2), nullable=False),
        sa.Column("item_tax", sa.Numeric(12, 2), nullable=False),
        sa.Column("item_total", sa.Numeric(12, 2), nullable=False),
    )
    op.create_index("ix_invoice_details_invoice_id", "invoice_details", ["invoice_id"])

    op.create_table(
        "activity_logs",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(36), nullable=False),
        sa.Column("user_name", sa.String(200), nullable=False),
        sa.Column("action", sa.String(50), nullable=False),
        sa.Column("entity_type", sa.String(50), nullable=False),
        sa.Column("entity_id", sa.String(36), nullable=True),
        sa.Column("entity_code", sa.String(100), nullable=True),
        sa.Column("summary", sa.Text(), nullable=True),
        sa.Column("details", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_activity_logs_user_id", "activity_logs", ["user_id"])
    op.create_index("ix_activity_logs_action", "activity_logs", ["action"])
    op.create_index("ix_activity_logs_entity_type", "activity_logs", ["entity_type"])
    op.create_index("ix_activity_logs_created_at", "activity_logs", ["created_at"])
