"""Multi-tenancy: schema-per-tenant isolation.

Key components:
  - _tenant_ctx      ContextVar holding the schema name for the current request
  - set / get / clear helpers for the ContextVar
  - schema_name_for()        derives the schema name of a new enterprise
  - validate_schema_name()   prevents SQL injection via schema names
  - create_tenant_schema()   provisions a new schema + all TenantBase tables
  - drop_tenant_schema()     destroys a tenant schema (admin-only, irreversible)
"""

import re
from contextvars import ContextVar

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from factucr.middleware.exceptions import TenantContextError

# ── Request-scoped tenant context ───────────────────────────

_tenant_ctx: ContextVar[str | None] = ContextVar("_tenant_ctx", default=None)


def set_current_tenant_schema(schema: str) -> None:
    _tenant_ctx.set(schema)


def get_current_tenant_schema() -> str:
    """Return the current tenant schema or raise if unset."""
    schema = _tenant_ctx.get()
    if schema is None:
        raise TenantContextError(
            "No tenant context: this endpoint requires an enterprise-scoped user"
        )
    return schema


def clear_tenant_context() -> None:
    _tenant_ctx.set(None)


# ── Validation ──────────────────────────────────────────────

_SCHEMA_RE = re.compile(r"^tenant_[a-z0-9]{6,36}$")


def schema_name_for(enterprise_id: str) -> str:
    """`tenant_` + the enterprise UUID without dashes."""
    return validate_schema_name(f"tenant_{enterprise_id.replace('-', '').lower()}")


def validate_schema_name(schema: str) -> str:
    """Ensure schema names are safe for SQL interpolation.

    Only allows the pattern `tenant_<lowercase-alphanum>`.
    """
    if not _SCHEMA_RE.match(schema):
        raise ValueError(f"Invalid tenant schema name: {schema!r}")
    return schema


# ── Schema provisioning ────────────────────────────────────

async def create_tenant_schema(db: AsyncSession, schema: str) -> None:
    """Create a new schema and provision all TenantBase tables inside it.

    Call this once when an enterprise signs up.
    """
    validate_schema_name(schema)

    await db.execute(text(f'CREATE SCHEMA IF NOT EXISTS "{schema}"'))

    from factucr.database import TenantBase
    import factucr.models  # noqa: F401  register every tenant table

    def _create_tables(sync_conn):
        for table in TenantBase.metadata.tables.values():
            table.schema = schema
        try:
            TenantBase.metadata.create_all(bind=sync_conn)
        finally:
            # Keep the MetaData schema-neutral for the next tenant
            for table in TenantBase.metadata.tables.values():
                table.schema = None

    conn = await db.connection()
    await conn.run_sync(_create_tables)
    await db.commit()


async def drop_tenant_schema(db: AsyncSession, schema: str) -> None:
    """Drop a tenant schema and all its contents. IRREVERSIBLE."""
    validate_schema_name(schema)
    await db.execute(text(f'DROP SCHEMA IF EXISTS "{schema}" CASCADE'))
    await db.commit()
